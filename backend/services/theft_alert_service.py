"""
Theft Alert Service.
Promoted alert campaigns for stolen records.
"""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from models import StolenRecord, TheftAlert, TheftAlertStatus
from utils.timeparse import utc_now

logger = logging.getLogger(__name__)


class TheftAlertService:
    """Service for managing promoted theft alerts."""

    @staticmethod
    def create(
        db: Session,
        stolen_record: StolenRecord,
        user_id: Optional[int] = None,
        amount_cents: int = 0
    ) -> TheftAlert:
        """Open a pending promoted alert for a stolen record."""
        theft_alert = TheftAlert(
            stolen_record=stolen_record,
            user_id=user_id,
            amount_cents=amount_cents,
            status=TheftAlertStatus.PENDING
        )
        db.add(theft_alert)
        db.commit()
        db.refresh(theft_alert)

        logger.info(f"Created theft alert {theft_alert.id} for stolen record {stolen_record.id}")
        return theft_alert

    @staticmethod
    def get_by_id(db: Session, theft_alert_id: int) -> Optional[TheftAlert]:
        return db.query(TheftAlert).filter(TheftAlert.id == theft_alert_id).first()

    @staticmethod
    def get_for_stolen_record(db: Session, stolen_record_id: int) -> List[TheftAlert]:
        return db.query(TheftAlert).filter(
            TheftAlert.stolen_record_id == stolen_record_id
        ).order_by(TheftAlert.created_at.desc(), TheftAlert.id.desc()).all()

    @staticmethod
    def update_status(
        db: Session,
        theft_alert: TheftAlert,
        status: TheftAlertStatus,
        now: Optional[datetime] = None
    ) -> TheftAlert:
        """
        Move an alert between pending, active and inactive.

        Activation stamps begin_at, deactivation stamps end_at.
        """
        now = now or utc_now()
        if status == TheftAlertStatus.ACTIVE and theft_alert.begin_at is None:
            theft_alert.begin_at = now
        if status == TheftAlertStatus.INACTIVE and theft_alert.end_at is None:
            theft_alert.end_at = now
        theft_alert.status = status
        db.commit()
        db.refresh(theft_alert)

        logger.info(f"Theft alert {theft_alert.id} is now {status.value}")
        return theft_alert
