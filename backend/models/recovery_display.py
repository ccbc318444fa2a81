"""
Recovery Display model.
A curated, publicly shown story about a bike's recovery.
"""

from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from database.connection import Base


class RecoveryDisplay(Base):
    """
    Recovery story shown on the public recoveries page.

    Attributes:
        id: Primary key, auto-incremented
        stolen_record_id: Recovered stolen record the story is about
        quote: The owner's words
        quote_by: Who said it
        date_recovered: When the bike came back
        link: Optional link to the bike or a press article
        image_path: Optional photo for the story
    """
    __tablename__ = "recovery_displays"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    stolen_record_id = Column(Integer, ForeignKey("stolen_records.id"), unique=True, nullable=True)
    quote = Column(Text, nullable=True)
    quote_by = Column(String(120), nullable=True)
    date_recovered = Column(DateTime(timezone=True), nullable=True)
    link = Column(String(500), nullable=True)
    image_path = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    stolen_record = relationship("StolenRecord", back_populates="recovery_display")

    def __repr__(self):
        return f"<RecoveryDisplay(id={self.id}, stolen_record_id={self.stolen_record_id})>"
