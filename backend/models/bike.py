"""
Bike and BikeImage models.
A bike is the registered asset; stolen records, parking notifications and
photos all hang off it.
"""

from sqlalchemy import Column, Integer, String, DateTime, Enum, Boolean, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from database.connection import Base
import enum


class BikeStatus(str, enum.Enum):
    """Enumeration for the registry status of a bike."""
    WITH_OWNER = "status_with_owner"
    STOLEN = "status_stolen"
    IMPOUNDED = "status_impounded"
    ABANDONED = "status_abandoned"
    UNREGISTERED_PARKING_NOTIFICATION = "unregistered_parking_notification"


class Bike(Base):
    """
    Bike model for registered bicycles.

    Attributes:
        id: Primary key, auto-incremented
        serial_number: Frame serial number
        manufacturer: Brand name
        frame_model: Model name
        primary_color: Main frame color
        owner_id: Current owner (user), if claimed
        owner_email: Email the registration was sent to
        status: Registry status (with owner, stolen, impounded, ...)
        current_stolen_record_id: Cached id of the active theft report, if any
    """
    __tablename__ = "bikes"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    serial_number = Column(String(100), index=True, nullable=False)
    manufacturer = Column(String(100), nullable=True)
    frame_model = Column(String(100), nullable=True)
    primary_color = Column(String(30), nullable=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    owner_email = Column(String(255), nullable=True)
    status = Column(Enum(BikeStatus), default=BikeStatus.WITH_OWNER, nullable=False)
    # Plain column rather than a FK: stolen_records already points back at bikes
    current_stolen_record_id = Column(Integer, nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    owner = relationship("User", foreign_keys=[owner_id])
    images = relationship(
        "BikeImage",
        back_populates="bike",
        order_by="[BikeImage.listing_order, BikeImage.id]",
        cascade="all, delete-orphan",
    )
    stolen_records = relationship("StolenRecord", back_populates="bike")
    parking_notifications = relationship("ParkingNotification", back_populates="bike")

    @property
    def public_images(self):
        return [image for image in self.images if not image.is_private]

    @property
    def first_public_image(self):
        """The photo shown on listings and used for alert images."""
        public_images = self.public_images
        return public_images[0] if public_images else None

    @property
    def status_stolen(self) -> bool:
        return self.status == BikeStatus.STOLEN

    @property
    def title(self) -> str:
        parts = [self.primary_color, self.manufacturer, self.frame_model]
        return " ".join(p for p in parts if p) or "Bike"

    def __repr__(self):
        return f"<Bike(id={self.id}, serial='{self.serial_number}', status='{self.status}')>"


class BikeImage(Base):
    """
    Photo attached to a bike.

    Private images are only visible to the owner and are never used for
    public listings or alert images.
    """
    __tablename__ = "bike_images"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    bike_id = Column(Integer, ForeignKey("bikes.id"), nullable=False, index=True)
    image_path = Column(String(500), nullable=False)
    listing_order = Column(Integer, default=0, nullable=False)
    is_private = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    bike = relationship("Bike", back_populates="images")

    def __repr__(self):
        return f"<BikeImage(id={self.id}, bike_id={self.bike_id}, path='{self.image_path}')>"
