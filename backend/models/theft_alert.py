"""
Theft Alert model.
A paid promotion campaign for a stolen record.
"""

from sqlalchemy import Column, Integer, DateTime, Enum, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from database.connection import Base
import enum


class TheftAlertStatus(str, enum.Enum):
    """Enumeration for promoted alert status."""
    PENDING = "pending"
    ACTIVE = "active"
    INACTIVE = "inactive"


class TheftAlert(Base):
    """
    Promoted theft alert.

    Attributes:
        id: Primary key, auto-incremented
        stolen_record_id: Promoted stolen record
        user_id: Purchaser
        status: pending until an admin activates it
        amount_cents: Price paid
        begin_at / end_at: Campaign window
        recovery_notified_at: Set once when admins were told about the
            recovery; never cleared
    """
    __tablename__ = "theft_alerts"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    stolen_record_id = Column(Integer, ForeignKey("stolen_records.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    status = Column(Enum(TheftAlertStatus), default=TheftAlertStatus.PENDING, nullable=False)
    amount_cents = Column(Integer, default=0, nullable=False)
    begin_at = Column(DateTime(timezone=True), nullable=True)
    end_at = Column(DateTime(timezone=True), nullable=True)
    recovery_notified_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    stolen_record = relationship("StolenRecord", back_populates="theft_alerts")

    @property
    def is_active(self) -> bool:
        return self.status == TheftAlertStatus.ACTIVE

    def __repr__(self):
        return f"<TheftAlert(id={self.id}, stolen_record_id={self.stolen_record_id}, status='{self.status}')>"
