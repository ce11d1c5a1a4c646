"""
Inactivity decay.

Reduction of a revenue-share amount as a step function of the days
since the receiver's last activity.
"""

from datetime import datetime
from decimal import Decimal

from commission_engine.config.business_constants import HUNDRED, ZERO
from commission_engine.config.commission_config import InactivitySchedule
from commission_engine.utils.datetime_utils import days_between


class InactivityDecay:
    """Applies an InactivitySchedule."""

    def __init__(self, schedule: InactivitySchedule) -> None:
        self.schedule = schedule

    def reduction_percent(
        self, last_activity_at: datetime | None, as_of: datetime
    ) -> Decimal:
        """
        Reduction percent for an affiliate at a moment.

        No recorded activity means no decay.
        """
        if last_activity_at is None:
            return ZERO
        return self.schedule.reduction_for(days_between(last_activity_at, as_of))

    @staticmethod
    def apply(amount: Decimal, reduction_percent: Decimal) -> Decimal:
        """amount * (1 - reduction/100), unquantized."""
        if reduction_percent <= 0:
            return amount
        return amount * (HUNDRED - reduction_percent) / HUNDRED
