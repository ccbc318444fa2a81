"""
Services package initialization.
Exports all service modules.

- recovery_status: recovery display status derivation
- stolen_record_service: current record promotion and recovery recording
- recovery_effects: post-commit side effects of transitions
- alert_image_service: OpenCV alert image generation and release
- email_service: admin notifications over SMTP
"""

from services.recovery_status import (
    RecoveryDisplayStatus, Overridden, Computed, RecoveryFacts,
    derive_display_state, recovery_display_state, recovery_display_status
)
from services.recovery_effects import NotifyPromotedAlertRecovery, dispatch_effects
from services.alert_image_service import (
    AlertImageService, AlertImageRenderer, AlertImageGenerationError, get_alert_image_renderer
)
from services.stolen_record_service import (
    StolenRecordService, RecoveryResult, StolenRecordPersistenceError, RecoveryPersistenceError
)
from services.bike_service import BikeService
from services.recovery_display_service import RecoveryDisplayService
from services.theft_alert_service import TheftAlertService
from services.parking_notification_service import ParkingNotificationService, TokenResolution
from services.email_service import EmailService, get_email_service

__all__ = [
    # Recovery core
    "RecoveryDisplayStatus", "Overridden", "Computed", "RecoveryFacts",
    "derive_display_state", "recovery_display_state", "recovery_display_status",
    "NotifyPromotedAlertRecovery", "dispatch_effects",
    "StolenRecordService", "RecoveryResult", "StolenRecordPersistenceError", "RecoveryPersistenceError",
    # Alert images
    "AlertImageService", "AlertImageRenderer", "AlertImageGenerationError", "get_alert_image_renderer",
    # Records
    "BikeService", "RecoveryDisplayService", "TheftAlertService",
    "ParkingNotificationService", "TokenResolution",
    # Notifications
    "EmailService", "get_email_service",
]
