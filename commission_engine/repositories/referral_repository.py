"""
Referral repository.

Data access layer for Referral model, including the CPA claim.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.config.business_constants import ZERO
from commission_engine.models.referral import Referral
from commission_engine.repositories.base import BaseRepository


class ReferralRepository(BaseRepository[Referral]):
    """Repository for Referral entity."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize referral repository."""
        super().__init__(Referral, session)

    async def get_by_customer(self, customer_id: str) -> Referral | None:
        """
        Get referral of a customer.

        Args:
            customer_id: Platform customer ID

        Returns:
            Referral or None if the customer was not referred
        """
        return await self.get_by(customer_id=customer_id)

    async def record_first_deposit(
        self, referral_id: int, amount: Decimal, deposited_at: datetime
    ) -> bool:
        """
        Store the first qualifying deposit unless one is already stored.

        Args:
            referral_id: Referral ID
            amount: Deposit amount
            deposited_at: Deposit time

        Returns:
            True if this deposit became the first one
        """
        stmt = (
            update(Referral)
            .where(
                Referral.id == referral_id,
                Referral.first_deposit.is_(None),
            )
            .values(first_deposit=amount, first_deposit_at=deposited_at)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def add_activity(
        self, referral_id: int, bets: int = 0, ggr: Decimal = ZERO
    ) -> None:
        """
        Atomically add to the bet count and GGR total.

        Args:
            referral_id: Referral ID
            bets: Bets to add
            ggr: GGR to add (may be negative)
        """
        stmt = (
            update(Referral)
            .where(Referral.id == referral_id)
            .values(
                total_bets=Referral.total_bets + bets,
                total_ggr=Referral.total_ggr + ggr,
            )
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)

    async def claim_cpa(self, referral_id: int, claimed_at: datetime) -> bool:
        """
        Flip cpa_processed from false to true in one statement.

        Concurrent callers race on the row: exactly one sees rowcount 1.
        The referral is marked validated in the same statement.

        Args:
            referral_id: Referral ID
            claimed_at: Claim timestamp

        Returns:
            True if this call performed the transition
        """
        stmt = (
            update(Referral)
            .where(
                Referral.id == referral_id,
                Referral.cpa_processed.is_(False),
            )
            .values(
                cpa_processed=True,
                cpa_processed_at=claimed_at,
                is_validated=True,
                validated_at=claimed_at,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1
