"""
Models package initialization.
Exports all database models.
"""

from models.user import User, UserRole
from models.bike import Bike, BikeImage, BikeStatus
from models.stolen_record import StolenRecord
from models.alert_image import AlertImage
from models.recovery_display import RecoveryDisplay
from models.theft_alert import TheftAlert, TheftAlertStatus
from models.parking_notification import (
    ParkingNotification, ParkingNotificationKind, ParkingNotificationStatus, RetrievedKind
)

__all__ = [
    "User", "UserRole",
    "Bike", "BikeImage", "BikeStatus",
    "StolenRecord",
    "AlertImage",
    "RecoveryDisplay",
    "TheftAlert", "TheftAlertStatus",
    "ParkingNotification", "ParkingNotificationKind", "ParkingNotificationStatus", "RetrievedKind",
]
