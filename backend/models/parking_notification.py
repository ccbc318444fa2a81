"""
Parking Notification model.
Notices left on bikes parked where they shouldn't be, or that look abandoned.
"""

from sqlalchemy import Column, Integer, String, DateTime, Float, Enum, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from database.connection import Base
import enum


class ParkingNotificationKind(str, enum.Enum):
    """Enumeration for parking notification kinds."""
    PARKED_INCORRECTLY = "parked_incorrectly_notification"
    APPEARS_ABANDONED = "appears_abandoned_notification"
    IMPOUND = "impound_notification"


class ParkingNotificationStatus(str, enum.Enum):
    """Enumeration for parking notification status."""
    CURRENT = "current"
    RETRIEVED = "retrieved"
    IMPOUNDED = "impounded"
    RESOLVED_OTHERWISE = "resolved_otherwise"


class RetrievedKind(str, enum.Enum):
    """How a notified bike was marked retrieved."""
    LINK_TOKEN_RECOVERY = "link_token_recovery"
    USER_RECOVERY = "user_recovery"


class ParkingNotification(Base):
    """
    Parking notification attached to a bike.

    Attributes:
        id: Primary key, auto-incremented
        bike_id: Notified bike
        user_id: Who left the notification
        kind: Parked incorrectly, appears abandoned or impounded
        status: current until retrieved or resolved
        organization_name: Organization that issued it, if any
        retrieval_link_token: Token emailed to the owner to mark it retrieved
        retrieved_by_id / retrieved_kind / resolved_at: Retrieval details
    """
    __tablename__ = "parking_notifications"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    bike_id = Column(Integer, ForeignKey("bikes.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    kind = Column(Enum(ParkingNotificationKind), default=ParkingNotificationKind.PARKED_INCORRECTLY, nullable=False)
    status = Column(Enum(ParkingNotificationStatus), default=ParkingNotificationStatus.CURRENT, nullable=False)
    organization_name = Column(String(120), nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    retrieval_link_token = Column(String(64), nullable=True, index=True)
    retrieved_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    retrieved_kind = Column(Enum(RetrievedKind), nullable=True)
    resolved_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    bike = relationship("Bike", back_populates="parking_notifications")

    @property
    def active(self) -> bool:
        return self.status == ParkingNotificationStatus.CURRENT

    @property
    def impounded(self) -> bool:
        return self.status == ParkingNotificationStatus.IMPOUNDED

    def __repr__(self):
        return f"<ParkingNotification(id={self.id}, bike_id={self.bike_id}, status='{self.status}')>"
