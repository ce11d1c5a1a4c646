"""
Commission ledger.

The only component that writes commissions or mutates affiliate
financial state (balances and carryover). All mutations are single
atomic UPDATE statements so concurrent credits never lose an update.
"""

from decimal import ROUND_DOWN, Decimal

from loguru import logger
from sqlalchemy import case, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.config.business_constants import MONEY_QUANTUM, ZERO
from commission_engine.models.affiliate import Affiliate
from commission_engine.models.commission import Commission
from commission_engine.models.enums import CommissionStatus, CommissionType
from commission_engine.repositories.commission_repository import CommissionRepository
from commission_engine.utils.exceptions import AlreadyProcessedError, NotFoundError


def quantize_money(value: Decimal) -> Decimal:
    """Truncate to the precision of money columns."""
    return value.quantize(MONEY_QUANTUM, rounding=ROUND_DOWN)


class CommissionLedger:
    """Writes commissions and applies balance/carryover changes."""

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize ledger.

        Args:
            session: Async database session (caller owns the transaction)
        """
        self.session = session
        self.commission_repo = CommissionRepository(session)

    async def create(
        self,
        affiliate_id: int,
        commission_type: CommissionType,
        level: int,
        base_amount: Decimal,
        amount: Decimal,
        gross_amount: Decimal | None = None,
        percentage: Decimal | None = None,
        decay_percent: Decimal = ZERO,
        period: str | None = None,
        source_affiliate_id: int | None = None,
        referral_id: int | None = None,
        transaction_id: int | None = None,
        revshare_run_id: int | None = None,
    ) -> Commission:
        """
        Persist one commission line.

        Args:
            affiliate_id: Receiver
            commission_type: cpa or revshare
            level: Hierarchy level of the receiver
            base_amount: CPA table amount or adjusted NGR
            amount: Final amount (post-decay)
            gross_amount: Amount before decay (defaults to amount)
            percentage: RevShare percentage
            decay_percent: Inactivity reduction applied
            period: Period key (revshare)
            source_affiliate_id: Affiliate whose customers generated revenue
            referral_id: Referral that triggered the payout (cpa)
            transaction_id: Qualifying transaction (cpa)
            revshare_run_id: Run that created the line (revshare)

        Returns:
            Persisted commission with assigned ID
        """
        if amount < 0:
            raise ValueError(f"Commission amount must be non-negative, got {amount}")

        commission = await self.commission_repo.create(
            affiliate_id=affiliate_id,
            source_affiliate_id=source_affiliate_id,
            referral_id=referral_id,
            transaction_id=transaction_id,
            revshare_run_id=revshare_run_id,
            type=commission_type.value,
            level=level,
            base_amount=quantize_money(base_amount),
            percentage=percentage,
            gross_amount=quantize_money(gross_amount if gross_amount is not None else amount),
            decay_percent=decay_percent,
            amount=quantize_money(amount),
            status=CommissionStatus.CALCULATED.value,
            period=period,
        )

        logger.debug(
            "Commission created",
            extra={
                "commission_id": commission.id,
                "affiliate_id": affiliate_id,
                "type": commission_type.value,
                "level": level,
                "amount": str(commission.amount),
                "period": period,
            },
        )
        return commission

    async def credit_balance(
        self,
        affiliate_id: int,
        amount: Decimal,
        available: bool = True,
        lifetime: bool = True,
    ) -> None:
        """
        Atomically add an amount to an affiliate's aggregates.

        Args:
            affiliate_id: Affiliate ID
            amount: Non-negative amount
            available: Credit available_balance
            lifetime: Credit lifetime_commissions

        Raises:
            ValueError: If amount is negative
            NotFoundError: If the affiliate does not exist
        """
        if amount < 0:
            raise ValueError(f"Credit amount must be non-negative, got {amount}")
        await self._apply_balance_delta(affiliate_id, quantize_money(amount), available, lifetime)

    async def reverse(self, commission: Commission, available: bool = True) -> None:
        """
        Cancel a calculated commission and take its amount back.

        Args:
            commission: Commission to cancel
            available: Also debit available_balance (revshare credits it, cpa does not)

        Raises:
            AlreadyProcessedError: If the payment processor already settled it
        """
        if commission.is_settled:
            raise AlreadyProcessedError(
                f"Commission {commission.id} is {commission.status}, cannot reverse"
            )
        if commission.status == CommissionStatus.CANCELLED.value:
            return

        commission.status = CommissionStatus.CANCELLED.value
        await self.session.flush()
        await self._apply_balance_delta(
            commission.affiliate_id, -commission.amount, available, lifetime=True
        )

        logger.info(
            "Commission reversed",
            extra={
                "commission_id": commission.id,
                "affiliate_id": commission.affiliate_id,
                "amount": str(commission.amount),
            },
        )

    async def adjust_carryover(
        self, affiliate_id: int, delta: Decimal, floor_at_zero: bool = True
    ) -> Decimal:
        """
        Atomically add a signed delta to negative_carryover.

        Args:
            affiliate_id: Affiliate ID
            delta: Positive to accumulate, negative to offset
            floor_at_zero: Clamp the result at zero

        Returns:
            Carryover after the change

        Raises:
            NotFoundError: If the affiliate does not exist
        """
        new_value = Affiliate.negative_carryover + quantize_money(delta)
        if floor_at_zero:
            new_value = case((new_value < 0, ZERO), else_=new_value)

        stmt = (
            update(Affiliate)
            .where(Affiliate.id == affiliate_id)
            .values(negative_carryover=new_value)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        if result.rowcount == 0:
            raise NotFoundError("Affiliate", affiliate_id)

        current = await self.session.execute(
            select(Affiliate.negative_carryover).where(Affiliate.id == affiliate_id)
        )
        carryover = quantize_money(Decimal(str(current.scalar_one())))

        logger.debug(
            "Carryover adjusted",
            extra={
                "affiliate_id": affiliate_id,
                "delta": str(delta),
                "carryover": str(carryover),
            },
        )
        return carryover

    async def _apply_balance_delta(
        self, affiliate_id: int, delta: Decimal, available: bool, lifetime: bool
    ) -> None:
        values = {}
        if available:
            values["available_balance"] = Affiliate.available_balance + delta
        if lifetime:
            values["lifetime_commissions"] = Affiliate.lifetime_commissions + delta
        if not values:
            return

        stmt = (
            update(Affiliate)
            .where(Affiliate.id == affiliate_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        if result.rowcount == 0:
            raise NotFoundError("Affiliate", affiliate_id)
