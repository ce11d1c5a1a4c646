"""
Net gaming revenue.

NGR = deposits - withdrawals - bonuses over the completed transactions of
the customers an affiliate referred directly, within a period.
"""

from dataclasses import dataclass
from decimal import Decimal

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.models.enums import TransactionType
from commission_engine.repositories.transaction_repository import (
    TransactionRepository,
)
from commission_engine.services.revshare.periods import RevSharePeriod


@dataclass(frozen=True)
class NgrBreakdown:
    """NGR and its components."""

    deposits: Decimal
    withdrawals: Decimal
    bonuses: Decimal

    @property
    def ngr(self) -> Decimal:
        return self.deposits - self.withdrawals - self.bonuses


class NgrCalculator:
    """Pure aggregation over immutable transactions."""

    def __init__(self, session: AsyncSession) -> None:
        self.transaction_repo = TransactionRepository(session)

    async def compute(self, affiliate_id: int, period: RevSharePeriod) -> NgrBreakdown:
        """
        Compute the NGR breakdown of an affiliate for a period.

        Args:
            affiliate_id: Source affiliate
            period: Distribution period

        Returns:
            NgrBreakdown
        """
        sums = await self.transaction_repo.sum_by_type_for_affiliate(
            affiliate_id,
            period.start,
            period.end,
            (TransactionType.DEPOSIT, TransactionType.WITHDRAWAL, TransactionType.BONUS),
        )
        breakdown = NgrBreakdown(
            deposits=sums[TransactionType.DEPOSIT.value],
            withdrawals=sums[TransactionType.WITHDRAWAL.value],
            bonuses=sums[TransactionType.BONUS.value],
        )

        logger.debug(
            "NGR computed",
            extra={
                "affiliate_id": affiliate_id,
                "period": period.key,
                "deposits": str(breakdown.deposits),
                "withdrawals": str(breakdown.withdrawals),
                "bonuses": str(breakdown.bonuses),
                "ngr": str(breakdown.ngr),
            },
        )
        return breakdown
