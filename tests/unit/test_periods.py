"""
Unit tests for revenue-share periods.

Tests cover:
- Monthly, ISO weekly and custom specifiers
- Half-open ranges and canonical keys
- Previous complete period for schedulers
"""

from datetime import UTC, date, datetime

import pytest

from commission_engine.services.revshare.periods import (
    PeriodKind,
    custom_period,
    parse_period,
    previous_period,
)


class TestParsePeriod:
    """Test period specifier parsing."""

    def test_monthly(self):
        period = parse_period("2026-09")

        assert period.kind == PeriodKind.MONTHLY
        assert period.key == "2026-09"
        assert period.start == datetime(2026, 9, 1, tzinfo=UTC)
        assert period.end == datetime(2026, 10, 1, tzinfo=UTC)

    def test_monthly_december_rolls_over(self):
        period = parse_period("2026-12")

        assert period.end == datetime(2027, 1, 1, tzinfo=UTC)

    def test_weekly_iso(self):
        period = parse_period("2026-W01")

        # ISO week 1 of 2026 starts on Monday 2025-12-29
        assert period.kind == PeriodKind.WEEKLY
        assert period.start == datetime(2025, 12, 29, tzinfo=UTC)
        assert period.end == datetime(2026, 1, 5, tzinfo=UTC)

    def test_custom_end_is_inclusive(self):
        period = parse_period("2026-09-01..2026-09-15")

        assert period.kind == PeriodKind.CUSTOM
        assert period.key == "2026-09-01..2026-09-15"
        assert period.end == datetime(2026, 9, 16, tzinfo=UTC)

    def test_contains_is_half_open(self):
        period = parse_period("2026-09")

        assert period.contains(datetime(2026, 9, 1, tzinfo=UTC))
        assert period.contains(datetime(2026, 9, 30, 23, 59, 59, tzinfo=UTC))
        assert not period.contains(datetime(2026, 10, 1, tzinfo=UTC))

    @pytest.mark.parametrize(
        "spec", ["2026-13", "2026-W60", "2026/09", "", "2026-09-15..2026-09-01"]
    )
    def test_invalid_specifiers(self, spec):
        with pytest.raises(ValueError):
            parse_period(spec)

    def test_custom_period_rejects_reversed_range(self):
        with pytest.raises(ValueError):
            custom_period(date(2026, 9, 2), date(2026, 9, 1))

    def test_same_spec_same_period(self):
        """Periods are deterministic from their specifier."""
        assert parse_period("2026-W38") == parse_period(" 2026-W38 ")


class TestPreviousPeriod:
    """Test previous complete period."""

    def test_previous_month(self):
        period = previous_period(PeriodKind.MONTHLY, datetime(2026, 10, 19, tzinfo=UTC))

        assert period.key == "2026-09"

    def test_previous_month_in_january(self):
        period = previous_period(PeriodKind.MONTHLY, datetime(2026, 1, 3, tzinfo=UTC))

        assert period.key == "2025-12"

    def test_previous_week(self):
        # 2026-10-19 is a Monday of ISO week 43
        period = previous_period(PeriodKind.WEEKLY, datetime(2026, 10, 19, tzinfo=UTC))

        assert period.key == "2026-W42"
        assert period.end == datetime(2026, 10, 19, tzinfo=UTC)

    def test_custom_has_no_previous(self):
        with pytest.raises(ValueError):
            previous_period(PeriodKind.CUSTOM, datetime(2026, 10, 19, tzinfo=UTC))
