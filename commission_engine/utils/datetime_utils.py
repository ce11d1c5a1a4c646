"""
Datetime utilities.

Provides timezone-aware datetime functions.
"""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """
    Get current UTC datetime with timezone info.

    Returns:
        Current datetime in UTC with timezone awareness
    """
    return datetime.now(UTC)


def ensure_utc(value: datetime) -> datetime:
    """
    Attach UTC to naive datetimes (SQLite drops tzinfo on read).

    Args:
        value: Datetime, naive or aware

    Returns:
        Aware datetime in UTC
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def days_between(start: datetime, end: datetime) -> int:
    """
    Whole days elapsed from start to end, never negative.

    Args:
        start: Earlier moment
        end: Later moment

    Returns:
        Number of complete days
    """
    delta = ensure_utc(end) - ensure_utc(start)
    return max(0, delta.days)
