"""
Bike Service for registration and photo management.
"""

import os
import uuid
import logging
from typing import Optional

from sqlalchemy.orm import Session

from config import settings
from models import Bike, BikeImage, BikeStatus
from services.alert_image_service import AlertImageService

logger = logging.getLogger(__name__)


class BikeService:
    """Service for managing bikes and their photos."""

    @staticmethod
    def create(
        db: Session,
        serial_number: str,
        manufacturer: Optional[str] = None,
        frame_model: Optional[str] = None,
        primary_color: Optional[str] = None,
        owner_id: Optional[int] = None,
        owner_email: Optional[str] = None
    ) -> Bike:
        """
        Register a new bike.

        Args:
            db: Database session
            serial_number: Frame serial number
            manufacturer: Brand
            frame_model: Model name
            primary_color: Main frame color
            owner_id: Owning user, if known
            owner_email: Email to send the registration to

        Returns:
            Bike: Created record
        """
        bike = Bike(
            serial_number=serial_number.strip().upper(),
            manufacturer=manufacturer,
            frame_model=frame_model,
            primary_color=primary_color,
            owner_id=owner_id,
            owner_email=owner_email.strip().lower() if owner_email else None,
            status=BikeStatus.WITH_OWNER
        )

        db.add(bike)
        db.commit()
        db.refresh(bike)

        logger.info(f"Registered bike {bike.id}: {bike.serial_number}")
        return bike

    @staticmethod
    def get_by_id(db: Session, bike_id: int) -> Optional[Bike]:
        """Get bike by ID."""
        return db.query(Bike).filter(Bike.id == bike_id).first()

    @staticmethod
    def image_path_for(bike_id: int, file_ext: str = ".jpg") -> str:
        """Fresh storage path for a new photo of a bike."""
        image_dir = os.path.join(settings.UPLOAD_DIR, "bikes", str(bike_id))
        os.makedirs(image_dir, exist_ok=True)
        return os.path.join(image_dir, f"{uuid.uuid4()}{file_ext}")

    @staticmethod
    def add_image(
        db: Session,
        bike: Bike,
        image_path: str,
        is_private: bool = False,
        listing_order: Optional[int] = None
    ) -> BikeImage:
        """
        Attach a stored photo to a bike.

        New photos go to the end of the listing unless an order is given.
        """
        if listing_order is None:
            listing_order = max((image.listing_order for image in bike.images), default=-1) + 1

        image = BikeImage(
            bike=bike,
            image_path=image_path,
            listing_order=listing_order,
            is_private=is_private
        )
        db.add(image)
        db.commit()
        db.refresh(image)

        logger.info(f"Added image {image.id} to bike {bike.id}")
        return image

    @staticmethod
    def get_image(db: Session, bike_id: int, image_id: int) -> Optional[BikeImage]:
        return db.query(BikeImage).filter(
            BikeImage.id == image_id,
            BikeImage.bike_id == bike_id
        ).first()

    @staticmethod
    def remove_image(db: Session, image: BikeImage) -> None:
        """Delete a photo, and every alert image generated from it."""
        image_id = image.id
        paths = AlertImageService.detach_for_source_image(db, image_id)
        paths.append(image.image_path)

        bike = image.bike
        if bike is not None:
            bike.images.remove(image)
        db.delete(image)
        db.commit()

        AlertImageService.remove_files(paths)
        logger.info(f"Removed image {image_id}, released {len(paths) - 1} alert image(s)")
