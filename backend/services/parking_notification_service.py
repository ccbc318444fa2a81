"""
Parking Notification Service.
Creating notifications on bikes and resolving the retrieval links emailed
to their owners.
"""

import secrets
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from config import settings
from models import (
    Bike, BikeStatus, ParkingNotification, ParkingNotificationKind,
    ParkingNotificationStatus, RetrievedKind
)
from utils.brevo_email import send_parking_notification_email
from utils.timeparse import utc_now

logger = logging.getLogger(__name__)


@dataclass
class TokenResolution:
    """Flash style outcome of following a retrieval link."""
    level: str  # success, error or info
    message: str
    parking_notification_id: Optional[int] = None


class ParkingNotificationService:
    """Service for managing parking notifications."""

    @staticmethod
    def create(
        db: Session,
        bike: Bike,
        kind: ParkingNotificationKind = ParkingNotificationKind.PARKED_INCORRECTLY,
        user_id: Optional[int] = None,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        organization_name: Optional[str] = None,
        send_email: bool = True
    ) -> ParkingNotification:
        """
        Leave a parking notification on a bike and email the owner.

        Impound notifications are created already impounded and move the bike
        to the impounded status.
        """
        status = ParkingNotificationStatus.CURRENT
        if kind == ParkingNotificationKind.IMPOUND:
            status = ParkingNotificationStatus.IMPOUNDED
            bike.status = BikeStatus.IMPOUNDED

        parking_notification = ParkingNotification(
            bike=bike,
            user_id=user_id,
            kind=kind,
            status=status,
            latitude=latitude,
            longitude=longitude,
            organization_name=organization_name,
            retrieval_link_token=secrets.token_urlsafe(24)
        )
        db.add(parking_notification)
        db.commit()
        db.refresh(parking_notification)

        logger.info(f"Created {kind.value} {parking_notification.id} for bike {bike.id}")

        if send_email and bike.owner_email:
            owner_name = bike.owner.name if bike.owner is not None and bike.owner.name else bike.owner_email
            send_parking_notification_email(
                user_email=bike.owner_email,
                user_name=owner_name,
                notification_details={
                    "parking_notification_id": parking_notification.id,
                    "bike_title": bike.title,
                    "kind": kind.value,
                    "organization_name": organization_name,
                    "retrieval_link": ParkingNotificationService.retrieval_link(parking_notification),
                }
            )
        return parking_notification

    @staticmethod
    def retrieval_link(parking_notification: ParkingNotification) -> str:
        return (
            f"{settings.BASE_URL}/bikes/{parking_notification.bike_id}/resolve-token"
            f"?token={parking_notification.retrieval_link_token}"
        )

    @staticmethod
    def get_by_token(db: Session, bike_id: int, token: str) -> Optional[ParkingNotification]:
        if not token:
            return None
        return db.query(ParkingNotification).filter(
            ParkingNotification.bike_id == bike_id,
            ParkingNotification.retrieval_link_token == token
        ).first()

    @staticmethod
    def mark_retrieved(
        db: Session,
        parking_notification: ParkingNotification,
        retrieved_by_id: Optional[int] = None,
        retrieved_kind: RetrievedKind = RetrievedKind.LINK_TOKEN_RECOVERY
    ) -> ParkingNotification:
        """Mark an active notification retrieved."""
        parking_notification.status = ParkingNotificationStatus.RETRIEVED
        parking_notification.retrieved_by_id = retrieved_by_id
        parking_notification.retrieved_kind = retrieved_kind
        parking_notification.resolved_at = utc_now()
        db.commit()
        db.refresh(parking_notification)

        logger.info(f"Parking notification {parking_notification.id} retrieved ({retrieved_kind.value})")
        return parking_notification

    @staticmethod
    def resolve_token(
        db: Session,
        bike: Bike,
        token: str,
        user_id: Optional[int] = None,
        user_recovery: bool = False
    ) -> TokenResolution:
        """
        Follow a retrieval link for a bike.

        Active notifications are marked retrieved; impounded and already
        resolved ones are reported back without changes.
        """
        parking_notification = ParkingNotificationService.get_by_token(db, bike.id, token)
        if parking_notification is None:
            return TokenResolution(
                level="error",
                message="Unable to find that parking notification"
            )

        if parking_notification.active:
            retrieved_kind = RetrievedKind.USER_RECOVERY if user_recovery else RetrievedKind.LINK_TOKEN_RECOVERY
            ParkingNotificationService.mark_retrieved(
                db, parking_notification, retrieved_by_id=user_id, retrieved_kind=retrieved_kind
            )
            return TokenResolution(
                level="success",
                message="Your bike has been marked retrieved",
                parking_notification_id=parking_notification.id
            )

        if parking_notification.impounded:
            org_name = parking_notification.organization_name or "the organization"
            return TokenResolution(
                level="error",
                message=f"This bike was impounded by {org_name}, contact them to retrieve it",
                parking_notification_id=parking_notification.id
            )

        # Most likely already retrieved, possibly resolved some other way
        return TokenResolution(
            level="info",
            message="This bike has already been marked retrieved",
            parking_notification_id=parking_notification.id
        )
