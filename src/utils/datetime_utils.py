"""UTC timestamp helpers shared by the models, the catalog and log output.

Usage:
    from src.utils.datetime_utils import utc_now

    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)
"""

from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


def utc_from_timestamp(timestamp: float) -> datetime:
    """Convert a POSIX timestamp (e.g. LogRecord.created) to aware UTC."""
    return datetime.fromtimestamp(timestamp, tz=timezone.utc)


def to_iso(value: Optional[datetime], timespec: str = "microseconds") -> str:
    """
    Render a datetime as ISO-8601 in UTC.

    SQLite hands back naive datetimes for values stored as UTC, so naive
    input is treated as UTC rather than local time.

    Args:
        value: Datetime to render, or None
        timespec: Passed through to datetime.isoformat

    Returns:
        ISO string, or "-" for None
    """
    if value is None:
        return "-"
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec=timespec)
