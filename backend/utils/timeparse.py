"""
Timezone-aware parsing helpers.

Timestamps are stored as UTC instants. SQLite hands them back naive, so
anything naive coming out of the database is read as UTC.
"""

import calendar
import logging
from datetime import datetime
from typing import Optional

import pytz

logger = logging.getLogger(__name__)


class RecoveredAtParseError(ValueError):
    """Raised when a recovery timestamp or its timezone can't be interpreted."""


def utc_now() -> datetime:
    return datetime.now(pytz.UTC)


def ensure_aware(value: datetime) -> datetime:
    """Attach UTC to naive datetimes, leave aware ones alone."""
    if value.tzinfo is None:
        return pytz.UTC.localize(value)
    return value


def unix_timestamp(value: datetime) -> int:
    return calendar.timegm(ensure_aware(value).astimezone(pytz.UTC).utctimetuple())


def parse_in_timezone(value: str, timezone_name: Optional[str] = None) -> datetime:
    """
    Parse an ISO-8601 string as wall-clock time in the given IANA zone.

    An explicit offset inside the string wins over the zone. A trailing "Z"
    is read as UTC. Without a zone the value is read as UTC.

    Returns:
        datetime: Aware datetime normalized to UTC

    Raises:
        RecoveredAtParseError: If the string or the zone is invalid
    """
    try:
        text = value.strip()
        # fromisoformat only accepts the Z suffix from 3.11 on
        if text[-1:] in ("Z", "z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    except (AttributeError, ValueError) as e:
        raise RecoveredAtParseError(f"Invalid timestamp {value!r}: {e}") from e

    if parsed.tzinfo is None:
        try:
            zone = pytz.timezone(timezone_name) if timezone_name else pytz.UTC
        except pytz.UnknownTimeZoneError as e:
            raise RecoveredAtParseError(f"Unknown timezone {timezone_name!r}") from e
        parsed = zone.localize(parsed)

    return parsed.astimezone(pytz.UTC)


def parse_or_now(
    value: Optional[str],
    timezone_name: Optional[str] = None,
    now: Optional[datetime] = None
) -> datetime:
    """
    Parse a user-supplied timestamp, falling back to the current time.

    A malformed date should never block the caller, so parse errors are
    logged and replaced by now, or by utc_now() when now is not given.
    """
    now = now or utc_now()
    if not value:
        return now
    try:
        return parse_in_timezone(value, timezone_name)
    except RecoveredAtParseError as e:
        logger.warning(f"Falling back to current time: {str(e)}")
        return now
