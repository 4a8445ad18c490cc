"""Utility functions for time handling.

All timestamps are UTC and timezone-aware. Naive datetimes coming from callers
are interpreted as UTC.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any


def utc_now() -> datetime:
    """Return current UTC time as an aware datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Return ``dt`` as an aware UTC datetime (naive values are taken as UTC)."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def whole_minutes_between(earlier: datetime, later: datetime) -> int:
    """Number of whole minutes elapsed from ``earlier`` to ``later``.

    Truncates toward zero, so 90 seconds is 1 minute and -30 seconds is 0.
    """
    seconds = (ensure_utc(later) - ensure_utc(earlier)).total_seconds()
    return int(seconds / 60)


def coerce_datetime(value: Any) -> datetime | None:
    """
    Coerce value to datetime, returning None on failure.

    Args:
        value: String or datetime to coerce

    Returns:
        Datetime in timezone.utc or None if invalid
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        raw = value.strip()
        if raw.endswith("Z"):
            raw = raw.replace("Z", "+00:00")
        try:
            parsed = datetime.fromisoformat(raw)
        except ValueError:
            return None
    else:
        return None

    return ensure_utc(parsed)
