"""
Revenue-share periods.

A period specifier resolves to a half-open UTC range [start, end) and a
canonical key stored on runs and commissions:

    monthly  "2026-09"                    -> [2026-09-01, 2026-10-01)
    weekly   "2026-W38"                   -> ISO week, Monday to Monday
    custom   "2026-09-01..2026-09-15"     -> end date inclusive
"""

import re
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from enum import Enum


class PeriodKind(str, Enum):
    """Period granularity."""

    MONTHLY = "monthly"
    WEEKLY = "weekly"
    CUSTOM = "custom"


_MONTHLY_RE = re.compile(r"^(\d{4})-(\d{2})$")
_WEEKLY_RE = re.compile(r"^(\d{4})-W(\d{2})$")
_CUSTOM_RE = re.compile(r"^(\d{4}-\d{2}-\d{2})\.\.(\d{4}-\d{2}-\d{2})$")


@dataclass(frozen=True)
class RevSharePeriod:
    """Resolved distribution period."""

    kind: PeriodKind
    key: str
    start: datetime
    end: datetime

    def contains(self, moment: datetime) -> bool:
        """Check whether a moment falls into [start, end)."""
        return self.start <= moment < self.end

    def __str__(self) -> str:
        return self.key


def _midnight(day: date) -> datetime:
    return datetime(day.year, day.month, day.day, tzinfo=UTC)


def monthly_period(year: int, month: int) -> RevSharePeriod:
    """Calendar month period."""
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month: {month}")
    start = datetime(year, month, 1, tzinfo=UTC)
    if month == 12:
        end = datetime(year + 1, 1, 1, tzinfo=UTC)
    else:
        end = datetime(year, month + 1, 1, tzinfo=UTC)
    return RevSharePeriod(PeriodKind.MONTHLY, f"{year:04d}-{month:02d}", start, end)


def weekly_period(iso_year: int, week: int) -> RevSharePeriod:
    """ISO week period (Monday 00:00 UTC to next Monday)."""
    try:
        monday = date.fromisocalendar(iso_year, week, 1)
    except ValueError as e:
        raise ValueError(f"Invalid ISO week: {iso_year}-W{week:02d}") from e
    start = _midnight(monday)
    return RevSharePeriod(
        PeriodKind.WEEKLY, f"{iso_year:04d}-W{week:02d}", start, start + timedelta(days=7)
    )


def custom_period(first_day: date, last_day: date) -> RevSharePeriod:
    """Custom period, both days inclusive."""
    if last_day < first_day:
        raise ValueError(f"Period ends before it starts: {first_day}..{last_day}")
    return RevSharePeriod(
        PeriodKind.CUSTOM,
        f"{first_day.isoformat()}..{last_day.isoformat()}",
        _midnight(first_day),
        _midnight(last_day) + timedelta(days=1),
    )


def parse_period(spec: str) -> RevSharePeriod:
    """
    Parse a period specifier.

    Args:
        spec: "YYYY-MM", "YYYY-Www" or "YYYY-MM-DD..YYYY-MM-DD"

    Returns:
        Resolved period

    Raises:
        ValueError: If the specifier is malformed
    """
    spec = spec.strip()

    match = _MONTHLY_RE.match(spec)
    if match:
        return monthly_period(int(match.group(1)), int(match.group(2)))

    match = _WEEKLY_RE.match(spec)
    if match:
        return weekly_period(int(match.group(1)), int(match.group(2)))

    match = _CUSTOM_RE.match(spec)
    if match:
        return custom_period(
            date.fromisoformat(match.group(1)), date.fromisoformat(match.group(2))
        )

    raise ValueError(f"Unrecognized period specifier: {spec!r}")


def previous_period(kind: PeriodKind, now: datetime) -> RevSharePeriod:
    """
    Last complete week or month before a moment.

    Args:
        kind: MONTHLY or WEEKLY
        now: Reference moment

    Returns:
        Previous complete period
    """
    today = now.astimezone(UTC).date() if now.tzinfo else now.date()

    if kind == PeriodKind.MONTHLY:
        if today.month == 1:
            return monthly_period(today.year - 1, 12)
        return monthly_period(today.year, today.month - 1)

    if kind == PeriodKind.WEEKLY:
        iso_year, week, _ = (today - timedelta(days=7)).isocalendar()
        return weekly_period(iso_year, week)

    raise ValueError(f"No previous period for kind {kind.value!r}")
