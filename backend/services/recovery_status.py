"""
Recovery display status derivation.

Decides whether a recovered bike's story can be shown publicly. The stored
column only ever holds a manual curation decision; everything else is
computed from the record, so the two cases are kept apart as
``Overridden`` and ``Computed``.

Precedence, first match wins:
    1. still stolen, or owner didn't consent -> not_eligible
    2. manual override                       -> the override
    3. a recovery display exists             -> displayed
    4. no public bike photo                  -> displayable_no_photo
    5. otherwise                             -> waiting_on_decision
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from models import StolenRecord


class RecoveryDisplayStatus(str, Enum):
    """Display states consumed by the recovery pages."""
    NOT_ELIGIBLE = "not_eligible"
    DISPLAYABLE_NO_PHOTO = "displayable_no_photo"
    WAITING_ON_DECISION = "waiting_on_decision"
    DISPLAYED = "displayed"
    NOT_DISPLAYED = "not_displayed"


# Values an admin can pin on a record
CURATION_STATUSES = (RecoveryDisplayStatus.DISPLAYED, RecoveryDisplayStatus.NOT_DISPLAYED)


@dataclass(frozen=True)
class Overridden:
    """Status pinned by a curator."""
    status: RecoveryDisplayStatus


@dataclass(frozen=True)
class Computed:
    """Status derived from the record's data."""
    status: RecoveryDisplayStatus


DisplayState = Union[Overridden, Computed]


@dataclass(frozen=True)
class RecoveryFacts:
    """The fields of a stolen record that the derivation looks at."""
    current: bool
    can_share_recovery: bool
    override: Optional[Overridden] = None
    has_recovery_display: bool = False
    has_photo: bool = False


def derive_display_state(facts: RecoveryFacts) -> DisplayState:
    if facts.current or not facts.can_share_recovery:
        return Computed(RecoveryDisplayStatus.NOT_ELIGIBLE)
    if facts.override is not None:
        return facts.override
    if facts.has_recovery_display:
        return Computed(RecoveryDisplayStatus.DISPLAYED)
    if not facts.has_photo:
        return Computed(RecoveryDisplayStatus.DISPLAYABLE_NO_PHOTO)
    return Computed(RecoveryDisplayStatus.WAITING_ON_DECISION)


def stored_override(stolen_record: StolenRecord) -> Optional[Overridden]:
    """Convert the nullable override column into the tagged variant."""
    value = stolen_record.recovery_display_status_override
    if not value:
        return None
    return Overridden(RecoveryDisplayStatus(value))


def facts_for(stolen_record: StolenRecord) -> RecoveryFacts:
    bike = stolen_record.bike
    return RecoveryFacts(
        current=bool(stolen_record.current),
        can_share_recovery=bool(stolen_record.can_share_recovery),
        override=stored_override(stolen_record),
        has_recovery_display=stolen_record.recovery_display is not None,
        has_photo=bike is not None and bike.first_public_image is not None,
    )


def recovery_display_state(stolen_record: StolenRecord) -> DisplayState:
    return derive_display_state(facts_for(stolen_record))


def recovery_display_status(stolen_record: StolenRecord) -> RecoveryDisplayStatus:
    """Display status of a stolen record, override or computed."""
    return recovery_display_state(stolen_record).status
