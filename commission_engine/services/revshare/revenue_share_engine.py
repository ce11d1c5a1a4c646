"""
Revenue share engine.

Periodic distribution of a source affiliate's NGR up its sponsor chain.

Order of operations for one (affiliate, period) pair:
1. Insert the run record (unique per pair) before touching carryover
2. NGR <= 0: add |NGR| to carryover, no commissions
3. NGR > 0: offset existing carryover first, distribute the remainder
4. Each receiver gets its own category percentage, reduced by its
   inactivity decay measured at the end of the period
"""

from datetime import datetime
from decimal import Decimal

from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.config.business_constants import HUNDRED, ZERO
from commission_engine.config.commission_config import (
    CommissionConfig,
    get_commission_config,
)
from commission_engine.models.commission import Commission
from commission_engine.models.enums import CommissionType, RevShareRunStatus
from commission_engine.models.revshare_run import RevShareRun
from commission_engine.repositories.affiliate_repository import AffiliateRepository
from commission_engine.repositories.commission_repository import CommissionRepository
from commission_engine.repositories.revshare_run_repository import (
    RevShareRunRepository,
)
from commission_engine.services.category.cache import CategoryCache
from commission_engine.services.category.resolver import (
    CategoryResolution,
    CategoryResolver,
)
from commission_engine.services.events.publisher import (
    EventPublisher,
    LoggingEventPublisher,
    publish_commissions,
)
from commission_engine.services.hierarchy.walker import HierarchyWalker
from commission_engine.services.ledger.commission_ledger import (
    CommissionLedger,
    quantize_money,
)
from commission_engine.services.results import (
    DistributionResult,
    DistributionStatus,
    LevelOutcome,
    LevelStatus,
)
from commission_engine.services.revshare.decay import InactivityDecay
from commission_engine.services.revshare.ngr import NgrBreakdown, NgrCalculator
from commission_engine.services.revshare.periods import RevSharePeriod, parse_period
from commission_engine.utils.datetime_utils import ensure_utc
from commission_engine.utils.db_decorators import translate_storage_errors
from commission_engine.utils.exceptions import AlreadyProcessedError, NotFoundError


class RevenueShareEngine:
    """NGR computation and revenue-share distribution."""

    def __init__(
        self,
        session: AsyncSession,
        config: CommissionConfig | None = None,
        publisher: EventPublisher | None = None,
        cache: CategoryCache | None = None,
    ) -> None:
        """
        Initialize revenue share engine.

        Args:
            session: Async database session
            config: Commission configuration (defaults to settings)
            publisher: Event publisher (defaults to logging only)
            cache: Optional category cache (never used for carryover decisions)
        """
        self.session = session
        self.config = config or get_commission_config()
        self.publisher = publisher or LoggingEventPublisher()
        self.cache = cache
        self.resolver = cache.resolver if cache else CategoryResolver(self.config)
        self.decay = InactivityDecay(self.config.inactivity)
        self.affiliate_repo = AffiliateRepository(session)
        self.commission_repo = CommissionRepository(session)
        self.run_repo = RevShareRunRepository(session)
        self.ngr_calculator = NgrCalculator(session)
        self.walker = HierarchyWalker(session)
        self.ledger = CommissionLedger(session)

    async def compute_ngr(
        self, affiliate_id: int, period: RevSharePeriod | str
    ) -> NgrBreakdown:
        """
        NGR of an affiliate's customers for a period.

        Args:
            affiliate_id: Source affiliate
            period: Period or period specifier

        Returns:
            NgrBreakdown (deposits, withdrawals, bonuses, ngr)
        """
        if isinstance(period, str):
            period = parse_period(period)
        return await self.ngr_calculator.compute(affiliate_id, period)

    @translate_storage_errors
    async def distribute(
        self,
        affiliate_id: int,
        period: RevSharePeriod | str,
        reprocess: bool = False,
        as_of: datetime | None = None,
    ) -> DistributionResult:
        """
        Distribute one period of revenue share for a source affiliate.

        Args:
            affiliate_id: Source affiliate
            period: Period or period specifier
            reprocess: Reverse a previous run of the same pair first
                (refused if any of its commissions was approved or paid)
            as_of: Moment inactivity is measured at (defaults to period end)

        Returns:
            DistributionResult with NGR, carryover movement and levels

        Raises:
            NotFoundError: If the affiliate does not exist
            StorageFailureError: If the database fails (nothing is persisted)
        """
        if isinstance(period, str):
            period = parse_period(period)

        # Serializes carryover changes per source affiliate until commit
        source = await self.affiliate_repo.get_for_update(affiliate_id)
        if source is None:
            raise NotFoundError("Affiliate", affiliate_id)

        run = await self.run_repo.get_for_period(affiliate_id, period.key)
        if run is not None:
            if not reprocess:
                await self.session.rollback()
                logger.warning(
                    "RevShare already processed for period",
                    extra={"affiliate_id": affiliate_id, "period": period.key},
                )
                return DistributionResult(
                    status=DistributionStatus.ALREADY_PROCESSED,
                    affiliate_id=affiliate_id,
                    period=period.key,
                )
            try:
                await self._reverse_run(run)
            except AlreadyProcessedError as e:
                await self.session.rollback()
                logger.warning(
                    "RevShare reprocess refused",
                    extra={
                        "affiliate_id": affiliate_id,
                        "period": period.key,
                        "reason": str(e),
                    },
                )
                return DistributionResult(
                    status=DistributionStatus.ALREADY_PROCESSED,
                    affiliate_id=affiliate_id,
                    period=period.key,
                    error_message=str(e),
                )

        breakdown = await self.ngr_calculator.compute(affiliate_id, period)

        source = await self.affiliate_repo.get_for_update(affiliate_id)
        carryover_before = quantize_money(source.negative_carryover)

        if run is None:
            try:
                run = await self.run_repo.create(
                    affiliate_id=affiliate_id,
                    period=period.key,
                    period_start=period.start,
                    period_end=period.end,
                    status=RevShareRunStatus.CARRIED_OVER.value,
                )
            except IntegrityError:
                await self.session.rollback()
                logger.warning(
                    "RevShare run created concurrently, skipping",
                    extra={"affiliate_id": affiliate_id, "period": period.key},
                )
                return DistributionResult(
                    status=DistributionStatus.ALREADY_PROCESSED,
                    affiliate_id=affiliate_id,
                    period=period.key,
                )

        ngr = breakdown.ngr
        if ngr <= 0:
            adjusted_ngr = ZERO
            carryover_after = await self.ledger.adjust_carryover(affiliate_id, -ngr)
        else:
            offset = min(ngr, carryover_before)
            adjusted_ngr = ngr - offset
            if offset > 0:
                carryover_after = await self.ledger.adjust_carryover(affiliate_id, -offset)
            else:
                carryover_after = carryover_before

        run.deposits = breakdown.deposits
        run.withdrawals = breakdown.withdrawals
        run.bonuses = breakdown.bonuses
        run.ngr = ngr
        run.carryover_before = carryover_before
        run.carryover_after = carryover_after
        run.adjusted_ngr = quantize_money(adjusted_ngr)

        outcomes: list[LevelOutcome] = []
        commissions: list[Commission] = []

        if adjusted_ngr <= 0:
            run.status = RevShareRunStatus.CARRIED_OVER.value
            run.total_distributed = ZERO
            status = DistributionStatus.CARRIED_OVER
        else:
            outcomes, commissions = await self._distribute_levels(
                run, adjusted_ngr, period, ensure_utc(as_of) if as_of else period.end
            )
            run.status = RevShareRunStatus.DISTRIBUTED.value
            run.total_distributed = sum((c.amount for c in commissions), ZERO)
            status = DistributionStatus.DISTRIBUTED

        await self.session.commit()

        result = DistributionResult(
            status=status,
            affiliate_id=affiliate_id,
            period=period.key,
            levels=outcomes,
            ngr=ngr,
            adjusted_ngr=quantize_money(adjusted_ngr),
            carryover_before=carryover_before,
            carryover_after=carryover_after,
        )

        logger.info(
            "RevShare distribution finished",
            extra={
                "affiliate_id": affiliate_id,
                "period": period.key,
                "status": status.value,
                "ngr": str(ngr),
                "adjusted_ngr": str(result.adjusted_ngr),
                "carryover_before": str(carryover_before),
                "carryover_after": str(carryover_after),
                "total_amount": str(result.total_amount),
            },
        )

        if self.cache is not None:
            await self.cache.store_carryover(affiliate_id, carryover_after)
        await publish_commissions(self.publisher, commissions)

        return result

    async def _resolve(self, validated_referrals: int) -> CategoryResolution:
        if self.cache is not None:
            return await self.cache.resolve(validated_referrals)
        return self.resolver.resolve(validated_referrals)

    async def _distribute_levels(
        self,
        run: RevShareRun,
        adjusted_ngr: Decimal,
        period: RevSharePeriod,
        as_of: datetime,
    ) -> tuple[list[LevelOutcome], list[Commission]]:
        depth = self.config.hierarchy_depth
        chain = await self.walker.walk(run.affiliate_id, depth)
        by_level = {node.level: node.affiliate for node in chain}

        outcomes: list[LevelOutcome] = []
        commissions: list[Commission] = []

        for level in range(1, depth + 1):
            receiver = by_level.get(level)
            if receiver is None:
                outcomes.append(LevelOutcome(level=level, status=LevelStatus.SKIPPED_NO_SPONSOR))
                continue

            # Receiver's own category, not the source's
            resolution = await self._resolve(receiver.validated_referrals)
            percentage = resolution.percentage_for_level(level)
            raw_amount = adjusted_ngr * percentage / HUNDRED
            reduction = self.decay.reduction_percent(receiver.last_activity_at, as_of)
            final_amount = quantize_money(self.decay.apply(raw_amount, reduction))

            logger.debug(
                "RevShare level computed",
                extra={
                    "source_affiliate_id": run.affiliate_id,
                    "receiver_id": receiver.id,
                    "level": level,
                    "category": resolution.category.value,
                    "percentage": str(percentage),
                    "decay_percent": str(reduction),
                    "amount": str(final_amount),
                },
            )

            if final_amount <= 0:
                outcomes.append(
                    LevelOutcome(
                        level=level,
                        status=LevelStatus.SKIPPED_ZERO_AMOUNT,
                        affiliate_id=receiver.id,
                        percentage=percentage,
                        decay_percent=reduction,
                    )
                )
                continue

            commission = await self.ledger.create(
                affiliate_id=receiver.id,
                commission_type=CommissionType.REVSHARE,
                level=level,
                base_amount=adjusted_ngr,
                gross_amount=raw_amount,
                percentage=percentage,
                decay_percent=reduction,
                amount=final_amount,
                period=period.key,
                source_affiliate_id=run.affiliate_id,
                revshare_run_id=run.id,
            )
            await self.ledger.credit_balance(receiver.id, final_amount)
            commissions.append(commission)
            outcomes.append(
                LevelOutcome(
                    level=level,
                    status=LevelStatus.CREDITED,
                    affiliate_id=receiver.id,
                    commission_id=commission.id,
                    percentage=percentage,
                    gross_amount=commission.gross_amount,
                    decay_percent=reduction,
                    amount=commission.amount,
                )
            )

        return outcomes, commissions

    async def _reverse_run(self, run: RevShareRun) -> None:
        """
        Undo a previous run: cancel its commissions and restore carryover.

        Raises:
            AlreadyProcessedError: If any commission is approved or paid
        """
        commissions = await self.commission_repo.get_by_run(run.id)
        settled = [c.id for c in commissions if c.is_settled]
        if settled:
            raise AlreadyProcessedError(
                f"Run {run.id} has settled commissions {settled}"
            )

        for commission in commissions:
            await self.ledger.reverse(commission, available=True)

        restore = run.carryover_before - run.carryover_after
        if restore != 0:
            await self.ledger.adjust_carryover(run.affiliate_id, restore)

        if self.cache is not None:
            await self.cache.invalidate_carryover(run.affiliate_id)

        logger.info(
            "RevShare run reversed for reprocessing",
            extra={
                "run_id": run.id,
                "affiliate_id": run.affiliate_id,
                "period": run.period,
                "commissions_cancelled": len(commissions),
                "carryover_restored": str(restore),
            },
        )
