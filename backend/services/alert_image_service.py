"""
Alert Image Service.
Builds the square "STOLEN" promo image used by promoted theft alerts and
keeps it in step with the stolen record and the bike's photos.
"""

import os
import logging
from typing import Iterable, List, Optional

import cv2
import numpy as np
from sqlalchemy.orm import Session

from config import settings
from models import AlertImage, BikeImage, StolenRecord

logger = logging.getLogger(__name__)

BANNER_COLOR = (0, 0, 200)  # BGR red
TEXT_COLOR = (255, 255, 255)
FOOTER_TEXT_COLOR = (40, 40, 40)
BACKGROUND_COLOR = 255


class AlertImageGenerationError(Exception):
    """Raised when the source photo can't be read or the output can't be written."""


class AlertImageRenderer:
    """
    Composes alert images with OpenCV.

    Layout: red banner with the headline on top, the bike photo letterboxed
    in the middle, bike title and location in the footer.
    """

    def __init__(self, size: int = 1200, banner_height: int = 160, jpeg_quality: int = 90):
        self.size = size
        self.banner_height = banner_height
        self.footer_height = banner_height // 2
        self.jpeg_quality = jpeg_quality

    def _fit(self, image: np.ndarray, max_w: int, max_h: int) -> np.ndarray:
        h, w = image.shape[:2]
        scale = min(max_w / w, max_h / h)
        new_w = max(1, int(w * scale))
        new_h = max(1, int(h * scale))
        interpolation = cv2.INTER_AREA if scale < 1 else cv2.INTER_CUBIC
        return cv2.resize(image, (new_w, new_h), interpolation=interpolation)

    def _centered_text(self, canvas: np.ndarray, text: str, center_y: int,
                       font_scale: float, color, thickness: int) -> None:
        (text_width, text_height), _ = cv2.getTextSize(
            text, cv2.FONT_HERSHEY_SIMPLEX, font_scale, thickness
        )
        # Shrink long lines until they fit with a margin
        while text_width > self.size - 40 and font_scale > 0.4:
            font_scale -= 0.1
            (text_width, text_height), _ = cv2.getTextSize(
                text, cv2.FONT_HERSHEY_SIMPLEX, font_scale, thickness
            )
        x = (self.size - text_width) // 2
        y = center_y + text_height // 2
        cv2.putText(
            canvas, text, (x, y),
            cv2.FONT_HERSHEY_SIMPLEX, font_scale, color, thickness, cv2.LINE_AA
        )

    def render(self, source: np.ndarray, headline: str, caption: Optional[str] = None) -> np.ndarray:
        canvas = np.full((self.size, self.size, 3), BACKGROUND_COLOR, dtype=np.uint8)

        cv2.rectangle(canvas, (0, 0), (self.size, self.banner_height), BANNER_COLOR, -1)
        self._centered_text(
            canvas, headline, self.banner_height // 2,
            font_scale=self.banner_height / 40, color=TEXT_COLOR, thickness=6
        )

        area_top = self.banner_height
        area_h = self.size - self.banner_height - self.footer_height
        photo = self._fit(source, self.size, area_h)
        photo_h, photo_w = photo.shape[:2]
        y0 = area_top + (area_h - photo_h) // 2
        x0 = (self.size - photo_w) // 2
        canvas[y0:y0 + photo_h, x0:x0 + photo_w] = photo

        if caption:
            self._centered_text(
                canvas, caption, self.size - self.footer_height // 2,
                font_scale=self.footer_height / 50, color=FOOTER_TEXT_COLOR, thickness=2
            )
        return canvas

    def render_file(self, source_path: str, output_path: str,
                    headline: str, caption: Optional[str] = None) -> str:
        """
        Render an alert image from a photo on disk.

        Raises:
            AlertImageGenerationError: If the photo is missing or unreadable,
                or the result can't be written
        """
        if not source_path or not os.path.exists(source_path):
            raise AlertImageGenerationError(f"Source image not found: {source_path}")

        source = cv2.imread(source_path, cv2.IMREAD_COLOR)
        if source is None:
            raise AlertImageGenerationError(f"Failed to decode source image: {source_path}")

        output = self.render(source, headline, caption)

        os.makedirs(os.path.dirname(output_path), exist_ok=True)
        written = cv2.imwrite(output_path, output, [cv2.IMWRITE_JPEG_QUALITY, self.jpeg_quality])
        if not written:
            raise AlertImageGenerationError(f"Failed to write alert image: {output_path}")
        return output_path


class AlertImageService:
    """Service for generating and releasing stolen record alert images."""

    @staticmethod
    def generate(
        db: Session,
        stolen_record: StolenRecord,
        bike_image: Optional[BikeImage] = None
    ) -> Optional[AlertImage]:
        """
        Return the alert image for a stolen record, building it if needed.

        Args:
            db: Database session
            stolen_record: Record to build the image for
            bike_image: Photo picked by the owner; must belong to the bike,
                otherwise the bike's first public photo is used

        Returns:
            AlertImage, or None when there is no usable photo or the record
            is no longer current
        """
        bike = stolen_record.bike
        existing = stolen_record.alert_image

        # Only records still reported stolen carry an alert image
        if bike is None or not stolen_record.current:
            if existing is not None:
                AlertImageService.release(db, stolen_record)
            return None

        source = AlertImageService._select_source(bike, bike_image)
        if source is None:
            # The photo it was built from is gone
            if existing is not None:
                AlertImageService.release(db, stolen_record)
            return None

        if (existing is not None
                and existing.source_image_id == source.id
                and os.path.exists(existing.image_path)):
            return existing

        stem = os.path.splitext(os.path.basename(source.image_path))[0]
        output_path = os.path.join(settings.ALERT_IMAGE_DIR, str(stolen_record.id), f"{stem}.jpg")
        try:
            get_alert_image_renderer().render_file(
                source.image_path,
                output_path,
                headline="STOLEN",
                caption=AlertImageService._caption(stolen_record),
            )
        except AlertImageGenerationError as e:
            logger.warning(f"Alert image not generated for stolen record {stolen_record.id}: {str(e)}")
            return None

        stale_path = None
        if existing is not None:
            stale_path = AlertImageService.detach(db, stolen_record)
            db.flush()

        alert_image = AlertImage(
            stolen_record=stolen_record,
            source_image_id=source.id,
            image_path=output_path
        )
        db.add(alert_image)
        db.commit()
        db.refresh(alert_image)

        if stale_path and stale_path != output_path:
            AlertImageService.remove_files([stale_path])

        logger.info(f"Generated alert image for stolen record {stolen_record.id} from image {source.id}")
        return alert_image

    @staticmethod
    def _select_source(bike, bike_image: Optional[BikeImage]) -> Optional[BikeImage]:
        if bike_image is not None and bike_image.bike_id == bike.id and not bike_image.is_private:
            return bike_image
        return bike.first_public_image

    @staticmethod
    def _caption(stolen_record: StolenRecord) -> str:
        parts = [stolen_record.bike.title if stolen_record.bike else None,
                 stolen_record.address_location()]
        return " - ".join(p for p in parts if p)

    @staticmethod
    def detach(db: Session, stolen_record: StolenRecord) -> Optional[str]:
        """
        Delete the alert image row without committing.

        Returns:
            Path of the file to remove once the transaction commits
        """
        alert_image = stolen_record.alert_image
        if alert_image is None:
            return None
        path = alert_image.image_path
        stolen_record.alert_image = None
        db.delete(alert_image)
        return path

    @staticmethod
    def release(db: Session, stolen_record: StolenRecord) -> bool:
        """Delete a record's alert image and its file. Safe to call repeatedly."""
        path = AlertImageService.detach(db, stolen_record)
        if path is None:
            return False
        db.commit()
        AlertImageService.remove_files([path])
        logger.info(f"Released alert image for stolen record {stolen_record.id}")
        return True

    @staticmethod
    def detach_for_source_image(db: Session, bike_image_id: int) -> List[str]:
        """Delete, without committing, every alert image built from a photo."""
        alert_images = db.query(AlertImage).filter(
            AlertImage.source_image_id == bike_image_id
        ).all()
        paths = []
        for alert_image in alert_images:
            paths.append(alert_image.image_path)
            if alert_image.stolen_record is not None:
                alert_image.stolen_record.alert_image = None
            db.delete(alert_image)
        return paths

    @staticmethod
    def remove_files(paths: Iterable[str]) -> None:
        for path in paths:
            try:
                if path and os.path.exists(path):
                    os.remove(path)
            except OSError as e:
                logger.warning(f"Failed to remove file {path}: {str(e)}")


# Singleton instance
_renderer: Optional[AlertImageRenderer] = None


def get_alert_image_renderer() -> AlertImageRenderer:
    """
    Get or create singleton alert image renderer.

    Returns:
        AlertImageRenderer: The renderer instance
    """
    global _renderer
    if _renderer is None:
        _renderer = AlertImageRenderer(
            size=settings.ALERT_IMAGE_SIZE,
            banner_height=settings.ALERT_IMAGE_BANNER_HEIGHT,
            jpeg_quality=settings.ALERT_IMAGE_JPEG_QUALITY
        )
    return _renderer
