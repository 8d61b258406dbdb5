"""Date and time utilities for Agenda Sync application."""

from datetime import date, datetime, timedelta
from typing import Optional

import pytz


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(pytz.utc)


def ensure_utc(dt: datetime) -> datetime:
    """
    Ensure datetime is in UTC.

    Args:
        dt: Datetime to convert (naive values are taken as UTC)

    Returns:
        UTC datetime
    """
    if dt.tzinfo is None:
        return pytz.utc.localize(dt)
    return dt.astimezone(pytz.utc)


def default_watermark(now: datetime, lookback_days: int = 30) -> datetime:
    """
    Watermark used for the very first sync of an account.

    Args:
        now: Current time
        lookback_days: Days to look back from now

    Returns:
        UTC datetime lookback_days before now
    """
    return ensure_utc(now) - timedelta(days=lookback_days)


def parse_rfc3339(value: str) -> datetime:
    """Parse an RFC 3339 timestamp (``Z`` suffix allowed) into an aware UTC datetime."""
    return ensure_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))


def format_rfc3339(dt: datetime) -> str:
    """Format an instant as an RFC 3339 UTC string with a ``Z`` suffix."""
    return ensure_utc(dt).strftime("%Y-%m-%dT%H:%M:%SZ")


def to_reference_time(value: datetime, reference_tz: str, source_tz: Optional[str] = None) -> datetime:
    """
    Convert a remote timestamp to naive wall-clock time in the reference timezone.

    Args:
        value: Remote datetime; aware values keep their offset
        reference_tz: IANA name of the local reference timezone
        source_tz: IANA timezone used to localize naive values (defaults to reference_tz)

    Returns:
        Naive datetime in the reference timezone
    """
    tz = pytz.timezone(reference_tz)
    if value.tzinfo is None:
        value = pytz.timezone(source_tz or reference_tz).localize(value)
    return value.astimezone(tz).replace(tzinfo=None)


def from_reference_time(value: datetime, reference_tz: str) -> datetime:
    """Attach the reference timezone to a naive local datetime."""
    if value.tzinfo is not None:
        return value.astimezone(pytz.timezone(reference_tz))
    return pytz.timezone(reference_tz).localize(value)


def day_start(day: date) -> datetime:
    """Naive local midnight at the start of ``day``."""
    return datetime(day.year, day.month, day.day)
