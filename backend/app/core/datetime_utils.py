"""
Datetime helpers for timezone-aware test windows.
"""
from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """
    Return the current datetime in UTC.

    Use this instead of datetime.now(timezone.utc) so tests can patch time.
    """
    return datetime.now(timezone.utc)


def ensure_timezone_aware(dt: Optional[datetime]) -> datetime:
    """
    Ensure a datetime object is timezone-aware (UTC).

    SQLite returns naive datetimes even for DateTime(timezone=True) columns,
    and clients may post naive ISO strings; both are taken to be UTC.

    Raises:
        ValueError: If dt is None
    """
    if dt is None:
        raise ValueError("datetime cannot be None")
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def is_window_valid(starts_at: datetime, ends_at: datetime) -> bool:
    """Return True when the window ends strictly after it starts."""
    return ensure_timezone_aware(ends_at) > ensure_timezone_aware(starts_at)


def is_within_window(
    starts_at: datetime, ends_at: datetime, at: Optional[datetime] = None
) -> bool:
    """
    Check whether a moment falls inside [starts_at, ends_at).

    Args:
        starts_at: Window start
        ends_at: Window end (exclusive)
        at: Moment to check, defaults to now

    Returns:
        True if the moment is inside the window
    """
    moment = ensure_timezone_aware(at) if at is not None else utc_now()
    return ensure_timezone_aware(starts_at) <= moment < ensure_timezone_aware(ends_at)


def to_utc(dt: datetime) -> datetime:
    """Convert a datetime to UTC, treating naive values as UTC already."""
    return ensure_timezone_aware(dt).astimezone(timezone.utc)
