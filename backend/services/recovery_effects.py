"""
Side effects produced by stolen record transitions.

Transitions return effects instead of sending mail themselves; routes hand
them to ``dispatch_effects`` once the transaction has committed.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional, Tuple

from services.email_service import get_email_service

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NotifyPromotedAlertRecovery:
    """Tell admins a bike with an active promoted alert was recovered."""
    stolen_record_id: int
    theft_alert_ids: Tuple[int, ...]
    bike_id: Optional[int]
    bike_title: str
    recovered_at: datetime
    recovered_description: Optional[str] = None


def dispatch_effects(effects: Iterable) -> int:
    """
    Fire-and-forget dispatch of committed effects.

    Delivery problems are logged and never raised: the transition that
    produced the effect has already been committed.

    Returns:
        Number of effects handed off
    """
    dispatched = 0
    for effect in effects:
        try:
            if isinstance(effect, NotifyPromotedAlertRecovery):
                get_email_service().send_recovery_notification_async(effect)
            else:
                logger.warning(f"No dispatcher for effect {effect!r}")
                continue
            dispatched += 1
        except Exception as e:
            logger.error(f"Failed to dispatch {type(effect).__name__}: {str(e)}", exc_info=True)
    return dispatched
