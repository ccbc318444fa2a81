"""
Recovery Display Service.
Curated recovery stories built from recovered stolen records.
"""

import logging
from datetime import datetime
from typing import Optional

import pytz
from sqlalchemy.orm import Session

from models import RecoveryDisplay, StolenRecord
from utils.timeparse import utc_now

logger = logging.getLogger(__name__)

DATE_INPUT_FORMAT = "%m-%d-%Y"
# Stories only carry a date; pin them to the morning
DATE_INPUT_HOUR = 6


def set_time(recovery_display: RecoveryDisplay, date_input: Optional[str] = None) -> RecoveryDisplay:
    """Set date_recovered from an MM-DD-YYYY input, or to now."""
    if date_input:
        try:
            parsed = datetime.strptime(date_input.strip(), DATE_INPUT_FORMAT)
            recovery_display.date_recovered = pytz.UTC.localize(parsed.replace(hour=DATE_INPUT_HOUR))
            return recovery_display
        except ValueError:
            logger.warning(f"Unparseable recovery date {date_input!r}, using current time")
    if recovery_display.date_recovered is None:
        recovery_display.date_recovered = utc_now()
    return recovery_display


class RecoveryDisplayService:
    """Service for managing recovery displays."""

    @staticmethod
    def from_stolen_record(
        db: Session,
        stolen_record_id: Optional[int],
        recovery_display: Optional[RecoveryDisplay] = None
    ) -> RecoveryDisplay:
        """
        Prefill a recovery display from a stolen record.

        A missing stolen record leaves the display untouched.
        """
        recovery_display = recovery_display or RecoveryDisplay()
        stolen_record = None
        if stolen_record_id is not None:
            stolen_record = db.query(StolenRecord).filter(StolenRecord.id == stolen_record_id).first()
        if stolen_record is None:
            return recovery_display

        recovery_display.stolen_record_id = stolen_record.id
        recovery_display.quote = stolen_record.recovered_description
        recovery_display.date_recovered = stolen_record.recovered_at
        bike = stolen_record.bike
        if bike is not None and bike.owner is not None:
            recovery_display.quote_by = bike.owner.name
        set_time(recovery_display)
        return recovery_display

    @staticmethod
    def create(
        db: Session,
        stolen_record: StolenRecord,
        quote: Optional[str] = None,
        quote_by: Optional[str] = None,
        date_input: Optional[str] = None,
        link: Optional[str] = None
    ) -> RecoveryDisplay:
        """
        Publish a recovery story for a stolen record.

        Fields not given are taken from the stolen record.
        """
        recovery_display = RecoveryDisplayService.from_stolen_record(db, stolen_record.id)
        if quote is not None:
            recovery_display.quote = quote
        if quote_by is not None:
            recovery_display.quote_by = quote_by
        if date_input:
            set_time(recovery_display, date_input)
        recovery_display.link = link

        db.add(recovery_display)
        db.commit()
        db.refresh(recovery_display)

        logger.info(f"Published recovery display {recovery_display.id} for stolen record {stolen_record.id}")
        return recovery_display

    @staticmethod
    def get_by_id(db: Session, recovery_display_id: int) -> Optional[RecoveryDisplay]:
        return db.query(RecoveryDisplay).filter(RecoveryDisplay.id == recovery_display_id).first()
