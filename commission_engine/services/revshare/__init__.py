"""Revenue share (periodic NGR distribution)."""

from commission_engine.services.revshare.batch import RevShareBatchRunner
from commission_engine.services.revshare.decay import InactivityDecay
from commission_engine.services.revshare.ngr import NgrBreakdown, NgrCalculator
from commission_engine.services.revshare.periods import (
    PeriodKind,
    RevSharePeriod,
    custom_period,
    monthly_period,
    parse_period,
    previous_period,
    weekly_period,
)
from commission_engine.services.revshare.revenue_share_engine import RevenueShareEngine

__all__ = [
    "InactivityDecay",
    "NgrBreakdown",
    "NgrCalculator",
    "PeriodKind",
    "RevSharePeriod",
    "RevShareBatchRunner",
    "RevenueShareEngine",
    "custom_period",
    "monthly_period",
    "parse_period",
    "previous_period",
    "weekly_period",
]
