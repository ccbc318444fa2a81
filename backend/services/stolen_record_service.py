"""
Stolen Record Service.
Theft reports: creating and promoting the current record, recording a
recovery, and the lookups used by the recoveries pages.
"""

import secrets
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models import Bike, BikeStatus, StolenRecord
from services.alert_image_service import AlertImageService
from services.recovery_effects import NotifyPromotedAlertRecovery
from services.recovery_status import CURATION_STATUSES, RecoveryDisplayStatus
from utils.timeparse import parse_or_now, utc_now

logger = logging.getLogger(__name__)


class StolenRecordPersistenceError(Exception):
    """Raised when a stolen record transition can't be committed; nothing was written."""


class RecoveryPersistenceError(StolenRecordPersistenceError):
    """Raised when recording a recovery fails to commit."""


@dataclass
class RecoveryResult:
    """Outcome of recording a recovery; effects must be dispatched after commit."""
    stolen_record: StolenRecord
    effects: List[NotifyPromotedAlertRecovery] = field(default_factory=list)
    success: bool = True

    def __bool__(self):
        return self.success


class StolenRecordService:
    """Service for managing stolen records."""

    @staticmethod
    def get_by_id(db: Session, stolen_record_id: int) -> Optional[StolenRecord]:
        """Get stolen record by ID."""
        return db.query(StolenRecord).filter(StolenRecord.id == stolen_record_id).first()

    @staticmethod
    def get_current_for_bike(db: Session, bike_id: int) -> Optional[StolenRecord]:
        return db.query(StolenRecord).filter(
            StolenRecord.bike_id == bike_id,
            StolenRecord.current.is_(True)
        ).first()

    @staticmethod
    def _demote_others(db: Session, bike: Bike, keep_id: Optional[int] = None) -> List[str]:
        """Mark every other current record of the bike not current. Doesn't commit."""
        query = db.query(StolenRecord).filter(
            StolenRecord.bike_id == bike.id,
            StolenRecord.current.is_(True)
        )
        if keep_id is not None:
            query = query.filter(StolenRecord.id != keep_id)

        stale_paths = []
        for other in query.all():
            other.current = False
            # Records out of stolen status don't keep an alert image
            path = AlertImageService.detach(db, other)
            if path:
                stale_paths.append(path)
            logger.info(f"Demoted stolen record {other.id} for bike {bike.id}")
        return stale_paths

    @staticmethod
    def create_current(db: Session, bike: Bike, **attributes) -> StolenRecord:
        """
        Report a bike stolen.

        Creates the new current record and demotes any previous current
        record of the bike in the same transaction.

        Args:
            db: Database session
            bike: Stolen bike
            **attributes: StolenRecord column values (location, theft details)

        Returns:
            StolenRecord: Created record

        Raises:
            StolenRecordPersistenceError: If the transaction fails
        """
        attributes.pop("current", None)
        stolen_record = StolenRecord(current=True, **attributes)
        stolen_record.set_calculated_attributes()

        try:
            stale_paths = StolenRecordService._demote_others(db, bike)
            # Demotions must hit the table before the new current row does
            db.flush()

            stolen_record.bike = bike
            db.add(stolen_record)
            db.flush()

            bike.status = BikeStatus.STOLEN
            bike.current_stolen_record_id = stolen_record.id
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to create stolen record for bike {bike.id}: {str(e)}")
            raise StolenRecordPersistenceError(str(e)) from e

        AlertImageService.remove_files(stale_paths)
        db.refresh(stolen_record)
        logger.info(f"Created current stolen record {stolen_record.id} for bike {bike.id}")
        return stolen_record

    @staticmethod
    def promote_to_current(db: Session, stolen_record: StolenRecord) -> StolenRecord:
        """
        Make an existing record the bike's current one, demoting all others.

        Raises:
            StolenRecordPersistenceError: If the transaction fails
        """
        bike = stolen_record.bike
        if bike is None:
            raise ValueError(f"Stolen record {stolen_record.id} has no bike")

        try:
            stale_paths = StolenRecordService._demote_others(db, bike, keep_id=stolen_record.id)
            db.flush()

            stolen_record.current = True
            bike.status = BikeStatus.STOLEN
            bike.current_stolen_record_id = stolen_record.id
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to promote stolen record {stolen_record.id}: {str(e)}")
            raise StolenRecordPersistenceError(str(e)) from e

        AlertImageService.remove_files(stale_paths)
        db.refresh(stolen_record)
        return stolen_record

    @staticmethod
    def add_recovery_information(
        db: Session,
        stolen_record: StolenRecord,
        recovered_description: Optional[str] = None,
        index_helped_recovery: bool = False,
        can_share_recovery: bool = False,
        recovering_user_id: Optional[int] = None,
        recovered_at: Optional[str] = None,
        timezone: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> RecoveryResult:
        """
        Mark a stolen record recovered.

        Stamps the recovery details, returns the bike to its owner, drops the
        alert image and, the first time an active promoted alert is found,
        produces a notification effect for the caller to dispatch.

        Args:
            db: Database session
            stolen_record: Record being recovered
            recovered_description: Owner's account of the recovery
            index_helped_recovery: Whether the registry helped
            can_share_recovery: Consent to publish the story; defaults to False
            recovering_user_id: User reporting the recovery
            recovered_at: ISO-8601 wall-clock time of the recovery
            timezone: IANA zone recovered_at is expressed in
            now: Current time, injectable for tests

        Returns:
            RecoveryResult: Truthy result carrying effects to dispatch

        Raises:
            RecoveryPersistenceError: If the transaction fails; nothing is written
        """
        now = now or utc_now()
        recovered_at_value = parse_or_now(recovered_at, timezone, now=now)

        stolen_record.recovered_at = recovered_at_value
        stolen_record.recovered_description = recovered_description
        stolen_record.index_helped_recovery = bool(index_helped_recovery)
        stolen_record.can_share_recovery = bool(can_share_recovery)
        stolen_record.recovering_user_id = recovering_user_id
        stolen_record.current = False

        bike = stolen_record.bike
        if bike is not None and bike.current_stolen_record_id in (None, stolen_record.id):
            bike.current_stolen_record_id = None
            if bike.status == BikeStatus.STOLEN:
                bike.status = BikeStatus.WITH_OWNER

        stale_path = AlertImageService.detach(db, stolen_record)

        effects = []
        pending_alerts = [
            alert for alert in stolen_record.theft_alerts
            if alert.is_active and alert.recovery_notified_at is None
        ]
        if pending_alerts:
            for alert in pending_alerts:
                alert.recovery_notified_at = now
            effects.append(NotifyPromotedAlertRecovery(
                stolen_record_id=stolen_record.id,
                theft_alert_ids=tuple(alert.id for alert in pending_alerts),
                bike_id=bike.id if bike is not None else None,
                bike_title=bike.title if bike is not None else "Bike",
                recovered_at=recovered_at_value,
                recovered_description=recovered_description,
            ))

        try:
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to record recovery for stolen record {stolen_record.id}: {str(e)}")
            raise RecoveryPersistenceError(str(e)) from e

        if stale_path:
            AlertImageService.remove_files([stale_path])
        db.refresh(stolen_record)

        logger.info(
            f"Recorded recovery for stolen record {stolen_record.id} "
            f"(bike {stolen_record.bike_id}, effects: {len(effects)})"
        )
        return RecoveryResult(stolen_record=stolen_record, effects=effects)

    @staticmethod
    def detach_bike(db: Session, stolen_record: StolenRecord) -> StolenRecord:
        """Unlink the bike from a record, dropping the record's alert image."""
        bike = stolen_record.bike
        if bike is not None and bike.current_stolen_record_id == stolen_record.id:
            bike.current_stolen_record_id = None
        stolen_record.bike = None
        stale_path = AlertImageService.detach(db, stolen_record)
        db.commit()
        if stale_path:
            AlertImageService.remove_files([stale_path])
        db.refresh(stolen_record)
        return stolen_record

    @staticmethod
    def set_recovery_display_status(
        db: Session,
        stolen_record: StolenRecord,
        status: Optional[RecoveryDisplayStatus]
    ) -> StolenRecord:
        """Pin the recovery display decision, or clear it with None."""
        if status is not None and status not in CURATION_STATUSES:
            raise ValueError(f"Can't pin recovery display status to {status}")
        stolen_record.recovery_display_status_override = status.value if status is not None else None
        db.commit()
        db.refresh(stolen_record)
        return stolen_record

    @staticmethod
    def find_or_create_recovery_link_token(db: Session, stolen_record: StolenRecord) -> str:
        """Token for the "we found my bike" link; only saved when newly created."""
        if stolen_record.recovery_link_token:
            return stolen_record.recovery_link_token
        stolen_record.recovery_link_token = secrets.token_urlsafe(24)
        db.commit()
        return stolen_record.recovery_link_token

    @staticmethod
    def get_current(db: Session) -> List[StolenRecord]:
        return db.query(StolenRecord).filter(StolenRecord.current.is_(True)).all()

    @staticmethod
    def get_approved(db: Session, with_reports: bool = False) -> List[StolenRecord]:
        query = db.query(StolenRecord).filter(
            StolenRecord.current.is_(True),
            StolenRecord.approved.is_(True)
        )
        if with_reports:
            query = query.filter(
                StolenRecord.police_report_number.isnot(None),
                StolenRecord.police_report_department.isnot(None)
            )
        return query.all()

    @staticmethod
    def get_recovered(db: Session, limit: int = 100, offset: int = 0) -> List[StolenRecord]:
        """Recovered records, most recent recovery first."""
        return db.query(StolenRecord).filter(
            StolenRecord.current.is_(False)
        ).order_by(StolenRecord.recovered_at.desc()).offset(offset).limit(limit).all()

    @staticmethod
    def get_displayable(db: Session, limit: int = 100, offset: int = 0) -> List[StolenRecord]:
        """Recovered records whose owners agreed to share the story."""
        return db.query(StolenRecord).filter(
            StolenRecord.current.is_(False),
            StolenRecord.can_share_recovery.is_(True)
        ).order_by(StolenRecord.recovered_at.desc()).offset(offset).limit(limit).all()

    @staticmethod
    def get_recovery_unposted(db: Session) -> List[StolenRecord]:
        return db.query(StolenRecord).filter(
            StolenRecord.current.is_(False),
            StolenRecord.recovery_posted.is_(False)
        ).all()
