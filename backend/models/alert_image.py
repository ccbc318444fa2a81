"""
Alert Image model.
Generated promotional image for a stolen record's theft alert.
"""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from database.connection import Base


class AlertImage(Base):
    """
    Alert image owned by exactly one stolen record.

    Attributes:
        id: Primary key, auto-incremented
        stolen_record_id: Owning stolen record (one-to-one)
        source_image_id: Bike photo the image was derived from
        image_path: Location of the generated JPEG on disk
    """
    __tablename__ = "alert_images"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    stolen_record_id = Column(Integer, ForeignKey("stolen_records.id"), unique=True, nullable=False)
    # No FK: the source photo can be deleted, which releases this image
    source_image_id = Column(Integer, nullable=True, index=True)
    image_path = Column(String(500), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    stolen_record = relationship("StolenRecord", back_populates="alert_image")

    def __repr__(self):
        return f"<AlertImage(id={self.id}, stolen_record_id={self.stolen_record_id})>"
