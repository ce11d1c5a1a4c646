"""
Unit tests for inactivity decay.

Tests cover:
- Step function thresholds
- Monotonicity in days inactive
- Missing activity
"""

from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest

from commission_engine.config.commission_config import InactivitySchedule
from commission_engine.services.revshare.decay import InactivityDecay

AS_OF = datetime(2026, 10, 1, tzinfo=UTC)


@pytest.fixture
def decay():
    """Decay with the default schedule."""
    return InactivityDecay(InactivitySchedule())


class TestReductionPercent:
    """Test reduction lookup."""

    @pytest.mark.parametrize(
        "days, expected",
        [
            (0, "0"),
            (10, "0"),
            (29, "0"),
            (30, "10"),
            (59, "10"),
            (60, "25"),
            (89, "25"),
            (90, "50"),
            (95, "50"),
            (400, "50"),
        ],
    )
    def test_step_function(self, decay, days, expected):
        last_activity = AS_OF - timedelta(days=days)

        assert decay.reduction_percent(last_activity, AS_OF) == Decimal(expected)

    def test_monotonic_in_days_inactive(self, decay):
        """More inactivity never means a smaller reduction."""
        previous = Decimal("0")
        for days in range(0, 200):
            current = decay.reduction_percent(AS_OF - timedelta(days=days), AS_OF)
            assert current >= previous
            previous = current

    def test_no_activity_recorded(self, decay):
        assert decay.reduction_percent(None, AS_OF) == Decimal("0")

    def test_activity_after_reference_moment(self, decay):
        """Activity later than as_of counts as zero days."""
        assert decay.reduction_percent(AS_OF + timedelta(days=3), AS_OF) == Decimal("0")

    def test_naive_activity_treated_as_utc(self, decay):
        naive = (AS_OF - timedelta(days=95)).replace(tzinfo=None)

        assert decay.reduction_percent(naive, AS_OF) == Decimal("50")


class TestApply:
    """Test amount reduction."""

    def test_half(self):
        assert InactivityDecay.apply(Decimal("10.00"), Decimal("50")) == Decimal("5.00")

    def test_zero_reduction_returns_amount(self):
        assert InactivityDecay.apply(Decimal("10.00"), Decimal("0")) == Decimal("10.00")

    def test_custom_schedule(self):
        decay = InactivityDecay(InactivitySchedule(steps=((7, Decimal("5")),)))

        assert decay.reduction_percent(AS_OF - timedelta(days=7), AS_OF) == Decimal("5")
