"""
Time-based utilities for window resolution and display.
"""

from __future__ import annotations

from datetime import datetime, timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def utc_now() -> datetime:
    """Return current UTC datetime."""
    return datetime.now(timezone.utc)


def resolve_timezone(name: str | None) -> tzinfo:
    """Return a ZoneInfo instance, falling back to UTC if the name is invalid."""
    try:
        return ZoneInfo(name or "UTC")
    except (TypeError, ValueError, ZoneInfoNotFoundError):
        return timezone.utc


def ensure_aware(value: datetime) -> datetime:
    """
    Attach UTC to naive datetimes so that window arithmetic never depends on the host clock.
    """
    if value.tzinfo is None or value.tzinfo.utcoffset(value) is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def from_unix(seconds: int | float, tz: tzinfo) -> datetime:
    return datetime.fromtimestamp(float(seconds), tz)
