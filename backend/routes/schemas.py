"""
Pydantic schemas for API request/response validation.
Defines data transfer objects for all endpoints.
"""

from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from enum import Enum


# ============ Enums ============

class RecoveryDisplayStatusEnum(str, Enum):
    NOT_ELIGIBLE = "not_eligible"
    DISPLAYABLE_NO_PHOTO = "displayable_no_photo"
    WAITING_ON_DECISION = "waiting_on_decision"
    DISPLAYED = "displayed"
    NOT_DISPLAYED = "not_displayed"


class TheftAlertStatusEnum(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    INACTIVE = "inactive"


class ParkingNotificationKindEnum(str, Enum):
    PARKED_INCORRECTLY = "parked_incorrectly_notification"
    APPEARS_ABANDONED = "appears_abandoned_notification"
    IMPOUND = "impound_notification"


# ============ Bike Schemas ============

class BikeCreate(BaseModel):
    """Schema for registering a bike."""
    serial_number: str = Field(..., min_length=1, max_length=100, description="Frame serial number")
    manufacturer: Optional[str] = Field(None, max_length=100)
    frame_model: Optional[str] = Field(None, max_length=100)
    primary_color: Optional[str] = Field(None, max_length=30)
    owner_id: Optional[int] = None
    owner_email: Optional[str] = Field(None, max_length=255)

    class Config:
        json_schema_extra = {
            "example": {
                "serial_number": "WTU123C4567",
                "manufacturer": "Surly",
                "frame_model": "Cross-Check",
                "primary_color": "Black",
                "owner_email": "owner@example.com"
            }
        }


class BikeImageResponse(BaseModel):
    """Schema for bike photo response."""
    id: int
    bike_id: int
    listing_order: int
    is_private: bool

    class Config:
        from_attributes = True


class BikeResponse(BaseModel):
    """Schema for bike response."""
    id: int
    serial_number: str
    manufacturer: Optional[str]
    frame_model: Optional[str]
    primary_color: Optional[str]
    owner_id: Optional[int]
    status: str
    title: str
    current_stolen_record_id: Optional[int]
    images: List[BikeImageResponse] = []


# ============ Stolen Record Schemas ============

class StolenRecordCreate(BaseModel):
    """Schema for reporting a bike stolen."""
    date_stolen: Optional[datetime] = None
    theft_description: Optional[str] = Field(None, max_length=5000)
    police_report_number: Optional[str] = Field(None, max_length=100)
    police_report_department: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=40)
    secondary_phone: Optional[str] = Field(None, max_length=40)
    street: Optional[str] = Field(None, max_length=255)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=10)
    zipcode: Optional[str] = Field(None, max_length=20)
    country: Optional[str] = Field(None, max_length=10, description="ISO country code")
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)


class StolenRecordResponse(BaseModel):
    """Schema for stolen record response."""
    id: int
    bike_id: Optional[int]
    current: bool
    date_stolen: Optional[datetime]
    phone: Optional[str]
    city: Optional[str]
    state: Optional[str]
    country: Optional[str]
    address_location: Optional[str]
    latitude: Optional[float] = Field(None, description="Rounded for public display")
    longitude: Optional[float] = Field(None, description="Rounded for public display")
    recovered_at: Optional[datetime]
    recovered_description: Optional[str]
    can_share_recovery: bool
    index_helped_recovery: bool
    recovering_user_id: Optional[int]
    recovery_display_status: RecoveryDisplayStatusEnum
    recovery_display_status_overridden: bool
    alert_image_id: Optional[int] = None


class RecoveryRequest(BaseModel):
    """Schema for marking a stolen record recovered."""
    recovered_description: Optional[str] = Field(None, max_length=5000)
    index_helped_recovery: bool = False
    can_share_recovery: bool = Field(False, description="Consent to publish the recovery story")
    recovering_user_id: Optional[int] = None
    recovered_at: Optional[str] = Field(
        None, description="ISO-8601 wall-clock time, read in `timezone` unless it carries an offset"
    )
    timezone: Optional[str] = Field(None, description="IANA zone name, e.g. Atlantic/Reykjavik")

    class Config:
        json_schema_extra = {
            "example": {
                "recovered_description": "Found it locked outside the library",
                "index_helped_recovery": True,
                "can_share_recovery": True,
                "recovered_at": "2017-01-31T23:57:56",
                "timezone": "Atlantic/Reykjavik"
            }
        }


class RecoveryResponse(BaseModel):
    """Schema for recovery response."""
    success: bool
    stolen_record: StolenRecordResponse
    notifications_dispatched: int = 0


class AlertImageRequest(BaseModel):
    """Schema for (re)generating an alert image."""
    bike_image_id: Optional[int] = Field(None, description="Photo to use; defaults to the first public photo")


class AlertImageResponse(BaseModel):
    """Schema for alert image response."""
    id: int
    stolen_record_id: int
    source_image_id: Optional[int]
    filename: str


class RecoveryDisplayStatusUpdate(BaseModel):
    """Pin the display decision, or clear it with null."""
    status: Optional[RecoveryDisplayStatusEnum] = None


# ============ Recovery Display Schemas ============

class RecoveryDisplayCreate(BaseModel):
    """Schema for publishing a recovery story."""
    quote: Optional[str] = Field(None, max_length=5000)
    quote_by: Optional[str] = Field(None, max_length=120)
    date_recovered: Optional[str] = Field(None, description="MM-DD-YYYY")
    link: Optional[str] = Field(None, max_length=500)


class RecoveryDisplayResponse(BaseModel):
    """Schema for recovery display response."""
    id: int
    stolen_record_id: Optional[int]
    quote: Optional[str]
    quote_by: Optional[str]
    date_recovered: Optional[datetime]
    link: Optional[str]

    class Config:
        from_attributes = True


# ============ Theft Alert Schemas ============

class TheftAlertCreate(BaseModel):
    """Schema for purchasing a promoted alert."""
    user_id: Optional[int] = None
    amount_cents: int = Field(0, ge=0)


class TheftAlertUpdate(BaseModel):
    """Schema for moving an alert between states."""
    status: TheftAlertStatusEnum


class TheftAlertResponse(BaseModel):
    """Schema for theft alert response."""
    id: int
    stolen_record_id: int
    status: str
    amount_cents: int
    begin_at: Optional[datetime]
    end_at: Optional[datetime]
    recovery_notified_at: Optional[datetime]


# ============ Parking Notification Schemas ============

class ParkingNotificationCreate(BaseModel):
    """Schema for leaving a parking notification on a bike."""
    kind: ParkingNotificationKindEnum = ParkingNotificationKindEnum.PARKED_INCORRECTLY
    user_id: Optional[int] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    organization_name: Optional[str] = Field(None, max_length=120)


class ParkingNotificationResponse(BaseModel):
    """Schema for parking notification response."""
    id: int
    bike_id: int
    kind: str
    status: str
    organization_name: Optional[str]
    retrieved_kind: Optional[str]
    resolved_at: Optional[datetime]


class ResolveTokenRequest(BaseModel):
    """Schema for following a retrieval link."""
    token: str = Field(..., min_length=1)
    user_id: Optional[int] = None
    user_recovery: bool = False


class ResolveTokenResponse(BaseModel):
    """Schema for the outcome of a retrieval link."""
    level: str
    message: str
    parking_notification_id: Optional[int] = None


# ============ Common ============

class MessageResponse(BaseModel):
    """Generic message response."""
    message: str
    success: bool = True
