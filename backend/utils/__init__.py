"""
Utility modules for the Bike Registry recovery service.
"""

from utils.timeparse import (
    RecoveredAtParseError,
    parse_in_timezone,
    parse_or_now,
    unix_timestamp,
    utc_now,
)
from utils.brevo_email import (
    send_parking_notification_email,
    get_brevo_service,
    BrevoEmailService
)

__all__ = [
    "RecoveredAtParseError",
    "parse_in_timezone",
    "parse_or_now",
    "unix_timestamp",
    "utc_now",
    "send_parking_notification_email",
    "get_brevo_service",
    "BrevoEmailService"
]
