"""
Acquisition engine (CPA).

Grants the one-time multi-level acquisition bonus of a referral.
The cpa_processed flag is claimed with a conditional UPDATE in the same
transaction that writes the commissions, so two concurrent callers can
never both pay the same referral.
"""

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.config.business_constants import EVENT_CATEGORY_CHANGED
from commission_engine.config.commission_config import (
    CommissionConfig,
    get_commission_config,
)
from commission_engine.models.commission import Commission
from commission_engine.models.enums import CommissionType
from commission_engine.repositories.referral_repository import ReferralRepository
from commission_engine.services.affiliate.affiliate_service import AffiliateService
from commission_engine.services.category.cache import CategoryCache
from commission_engine.services.cpa.eligibility import (
    CpaEligibilityEvaluator,
    EligibilityResult,
)
from commission_engine.services.events.publisher import (
    EventPublisher,
    LoggingEventPublisher,
    publish_commissions,
)
from commission_engine.services.hierarchy.walker import HierarchyWalker
from commission_engine.services.ledger.commission_ledger import CommissionLedger
from commission_engine.services.results import (
    DistributionResult,
    DistributionStatus,
    LevelOutcome,
    LevelStatus,
)
from commission_engine.utils.datetime_utils import utc_now
from commission_engine.utils.db_decorators import translate_storage_errors
from commission_engine.utils.exceptions import NotFoundError


class AcquisitionEngine:
    """CPA eligibility check and payout."""

    def __init__(
        self,
        session: AsyncSession,
        config: CommissionConfig | None = None,
        publisher: EventPublisher | None = None,
        cache: CategoryCache | None = None,
    ) -> None:
        """
        Initialize acquisition engine.

        Args:
            session: Async database session
            config: Commission configuration (defaults to settings)
            publisher: Event publisher (defaults to logging only)
            cache: Optional category cache
        """
        self.session = session
        self.config = config or get_commission_config()
        self.publisher = publisher or LoggingEventPublisher()
        self.referral_repo = ReferralRepository(session)
        self.evaluator = CpaEligibilityEvaluator(session, self.config.cpa)
        self.walker = HierarchyWalker(session)
        self.ledger = CommissionLedger(session)
        self.affiliate_service = AffiliateService(
            session, self.config, self.publisher, cache
        )

    async def validate(self, referral_id: int) -> EligibilityResult:
        """
        Check eligibility without side effects.

        Args:
            referral_id: Referral ID

        Returns:
            EligibilityResult; not eligible when already processed or when
            no transaction satisfies the active model

        Raises:
            NotFoundError: If the referral does not exist
        """
        referral = await self.referral_repo.get_by_id(referral_id, fresh=True)
        if referral is None:
            raise NotFoundError("Referral", referral_id)
        return await self.evaluator.evaluate(referral)

    @translate_storage_errors
    async def process(self, referral_id: int) -> DistributionResult:
        """
        Pay the acquisition bonus of a referral up the hierarchy.

        Steps:
        1. Load the referral; stop if already processed
        2. Check eligibility against the active model
        3. Claim cpa_processed atomically (lost race -> already processed)
        4. Create one commission per level with a sponsor and a non-zero amount
        5. Increment the direct affiliate's validated referrals (category sync)
        6. Commit, then publish events

        Args:
            referral_id: Referral ID

        Returns:
            DistributionResult with per-level outcomes

        Raises:
            NotFoundError: If the referral or its affiliate does not exist
            StorageFailureError: If the database fails (nothing is persisted)
        """
        referral = await self.referral_repo.get_by_id(referral_id, fresh=True)
        if referral is None:
            raise NotFoundError("Referral", referral_id)

        direct_affiliate_id = referral.affiliate_id

        if referral.cpa_processed:
            await self.session.rollback()
            logger.warning(
                "CPA already processed for referral",
                extra={"referral_id": referral_id},
            )
            return DistributionResult(
                status=DistributionStatus.ALREADY_PROCESSED,
                affiliate_id=direct_affiliate_id,
                referral_id=referral_id,
            )

        eligibility = await self.evaluator.evaluate(referral)
        if not eligibility.eligible:
            await self.session.rollback()
            logger.debug(
                "Referral not eligible for CPA",
                extra={"referral_id": referral_id, "reason": eligibility.reason},
            )
            return DistributionResult(
                status=DistributionStatus.NOT_ELIGIBLE,
                affiliate_id=direct_affiliate_id,
                referral_id=referral_id,
                error_message=eligibility.reason,
            )

        claimed = await self.referral_repo.claim_cpa(referral_id, utc_now())
        if not claimed:
            await self.session.rollback()
            logger.warning(
                "CPA claim lost to a concurrent caller",
                extra={"referral_id": referral_id},
            )
            return DistributionResult(
                status=DistributionStatus.ALREADY_PROCESSED,
                affiliate_id=direct_affiliate_id,
                referral_id=referral_id,
            )

        depth = self.config.hierarchy_depth
        chain = await self.walker.walk(direct_affiliate_id, depth)
        by_level = {node.level: node.affiliate.id for node in chain}

        outcomes: list[LevelOutcome] = []
        commissions: list[Commission] = []

        for level in range(1, depth + 1):
            receiver_id = by_level.get(level)
            if receiver_id is None:
                outcomes.append(LevelOutcome(level=level, status=LevelStatus.SKIPPED_NO_SPONSOR))
                continue

            amount = self.config.cpa.amount_for_level(level)
            if amount <= 0:
                outcomes.append(
                    LevelOutcome(
                        level=level,
                        status=LevelStatus.SKIPPED_ZERO_AMOUNT,
                        affiliate_id=receiver_id,
                    )
                )
                continue

            commission = await self.ledger.create(
                affiliate_id=receiver_id,
                commission_type=CommissionType.CPA,
                level=level,
                base_amount=amount,
                amount=amount,
                source_affiliate_id=direct_affiliate_id,
                referral_id=referral_id,
                transaction_id=eligibility.qualifying_transaction_id,
            )
            # CPA counts towards lifetime totals only
            await self.ledger.credit_balance(
                receiver_id, amount, available=False, lifetime=True
            )
            commissions.append(commission)
            outcomes.append(
                LevelOutcome(
                    level=level,
                    status=LevelStatus.CREDITED,
                    affiliate_id=receiver_id,
                    commission_id=commission.id,
                    gross_amount=commission.gross_amount,
                    amount=commission.amount,
                )
            )

        category_change = await self.affiliate_service.apply_referral_delta(
            direct_affiliate_id, 1
        )

        await self.session.commit()

        result = DistributionResult(
            status=DistributionStatus.DISTRIBUTED,
            affiliate_id=direct_affiliate_id,
            referral_id=referral_id,
            levels=outcomes,
        )

        logger.info(
            "CPA distributed",
            extra={
                "referral_id": referral_id,
                "affiliate_id": direct_affiliate_id,
                "levels_credited": len(commissions),
                "total_amount": str(result.total_amount),
            },
        )

        await publish_commissions(self.publisher, commissions)
        if category_change is not None:
            await self.publisher.publish_safe(
                EVENT_CATEGORY_CHANGED, category_change.to_payload()
            )

        return result
