"""
Stolen Record model for theft reports.
One row per theft report; a bike has at most one current record at a time.
"""

import re

from sqlalchemy import Column, Integer, String, DateTime, Float, Boolean, Text, ForeignKey, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from database.connection import Base
from utils.timeparse import ensure_aware, utc_now

EXTENSION_RE = re.compile(r"\s*(?:extension|ext\.?|x)\s*:?\s*(\d+)\s*$", re.IGNORECASE)


class StolenRecord(Base):
    """
    Stolen Record model for storing theft reports and their recovery.

    Attributes:
        id: Primary key, auto-incremented
        bike_id: Reported bike (nullable so the bike can be detached)
        current: True while the bike is actively reported stolen
        date_stolen: When the theft happened
        recovered_at: When the bike was reported recovered
        recovered_description: Free-form recovery story from the owner
        can_share_recovery: Owner consent to publicize the recovery
        recovery_display_status_override: Manual curation of the recovery
            story ("displayed" / "not_displayed"); NULL means compute it
        recovering_user_id: User who reported the recovery
        index_helped_recovery: Owner says the registry helped

    Location fields use the state abbreviation and the country ISO code.
    """
    __tablename__ = "stolen_records"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    bike_id = Column(Integer, ForeignKey("bikes.id"), nullable=True, index=True)
    current = Column(Boolean, default=True, nullable=False, index=True)
    approved = Column(Boolean, default=False, nullable=False)

    # Theft details
    date_stolen = Column(DateTime(timezone=True), nullable=True)
    theft_description = Column(Text, nullable=True)
    police_report_number = Column(String(100), nullable=True)
    police_report_department = Column(String(100), nullable=True)
    phone = Column(String(40), nullable=True)
    secondary_phone = Column(String(40), nullable=True)

    # Location
    street = Column(String(255), nullable=True)
    city = Column(String(100), nullable=True)
    state = Column(String(10), nullable=True)
    zipcode = Column(String(20), nullable=True)
    country = Column(String(10), nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)

    # Recovery
    recovered_at = Column(DateTime(timezone=True), nullable=True)
    recovered_description = Column(Text, nullable=True)
    can_share_recovery = Column(Boolean, default=False, nullable=False)
    index_helped_recovery = Column(Boolean, default=False, nullable=False)
    recovering_user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    recovery_display_status_override = Column("recovery_display_status", String(30), nullable=True)
    recovery_posted = Column(Boolean, default=False, nullable=False)
    recovery_link_token = Column(String(64), nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __table_args__ = (
        # One current record per bike; detached records (NULL bike) are exempt
        Index(
            "uq_stolen_records_current_bike", "bike_id", unique=True,
            sqlite_where=(current == True),  # noqa: E712
            postgresql_where=(current == True),  # noqa: E712
        ),
    )

    bike = relationship("Bike", back_populates="stolen_records")
    recovering_user = relationship("User", foreign_keys=[recovering_user_id])
    alert_image = relationship(
        "AlertImage", back_populates="stolen_record", uselist=False,
        cascade="all, delete-orphan",
    )
    recovery_display = relationship(
        "RecoveryDisplay", back_populates="stolen_record", uselist=False
    )
    theft_alerts = relationship("TheftAlert", back_populates="stolen_record")

    def __init__(self, **kwargs):
        # Column defaults only apply on flush; unsaved records need them too
        kwargs.setdefault("current", True)
        kwargs.setdefault("approved", False)
        kwargs.setdefault("can_share_recovery", False)
        kwargs.setdefault("index_helped_recovery", False)
        kwargs.setdefault("recovery_posted", False)
        super().__init__(**kwargs)

    @property
    def recovered(self) -> bool:
        return not self.current and self.recovered_at is not None

    @property
    def recovering_user_owner(self) -> bool:
        if self.recovering_user_id is None or self.bike is None:
            return False
        return self.bike.owner_id == self.recovering_user_id

    @property
    def theft_alert_missing_photo(self) -> bool:
        """An active promoted alert exists but there is no image to promote."""
        if self.alert_image is not None:
            return False
        return any(alert.is_active for alert in self.theft_alerts)

    @property
    def without_location(self) -> bool:
        return not (self.street or "").strip()

    @property
    def latitude_public(self):
        return round(self.latitude, 2) if self.latitude is not None else None

    @property
    def longitude_public(self):
        return round(self.longitude, 2) if self.longitude is not None else None

    def address(self, force_show_address: bool = False):
        """Mailing style address; the street is only shown when forced."""
        if not self.country:
            return None
        state_zip = " ".join(p for p in [self.state, self.zipcode] if p)
        parts = [self.city, state_zip, self.country]
        if force_show_address:
            parts.insert(0, self.street)
        return ", ".join(p for p in parts if p)

    def address_location(self, include_all: bool = False):
        """Short public location, e.g. "New York, NY" or "Amsterdam - NL"."""
        domestic = self.country in (None, "", "US")
        if domestic:
            if not self.state:
                return None
            location = f"{self.city}, {self.state}" if self.city else self.state
            return f"{location} - US" if include_all else location
        location = ", ".join(p for p in [self.city, self.state] if p)
        return f"{location} - {self.country}" if location else self.country

    def set_calculated_attributes(self):
        """Normalize user-entered fields before saving."""
        self.phone = normalize_phone(self.phone)
        self.secondary_phone = normalize_phone(self.secondary_phone)
        self.city = titleize_city(self.city)
        self.date_stolen = fix_date(self.date_stolen)

    def __repr__(self):
        return f"<StolenRecord(id={self.id}, bike_id={self.bike_id}, current={self.current})>"


def normalize_phone(phone):
    if not phone:
        return phone
    extension = None
    match = EXTENSION_RE.search(phone)
    if match:
        extension = match.group(1)
        phone = phone[:match.start()]
    digits = re.sub(r"\D", "", phone)
    if phone.strip().startswith("+") and len(digits) > 10:
        digits = f"+{digits[:-10]} {digits[-10:]}"
    if extension:
        digits = f"{digits} x{extension}"
    return digits


def titleize_city(city):
    if not city:
        return city
    # "INDIANAPOLIS, IN USA" -> "Indianapolis"
    city = city.split(",")[0]
    return " ".join(word.capitalize() for word in city.split())


def fix_date(date_stolen):
    """Correct the year typos people make when entering a theft date."""
    if date_stolen is None:
        return None
    date_stolen = ensure_aware(date_stolen).astimezone(utc_now().tzinfo)
    now = utc_now()
    year = date_stolen.year
    if year < 100:
        year += 2000
    elif year < now.year - 100:
        year += 100
    date_stolen = _with_year(date_stolen, year)
    if date_stolen > now:
        date_stolen = _with_year(date_stolen, now.year - 1)
    return date_stolen


def _with_year(value, year):
    try:
        return value.replace(year=year)
    except ValueError:
        # Feb 29 in a non leap year
        return value.replace(year=year, day=28)
