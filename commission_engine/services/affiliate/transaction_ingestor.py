"""
Transaction ingestion.

Stores immutable customer transactions and keeps the referral aggregates
and the referring affiliate's activity up to date. Reports whether the
referral became CPA-eligible so the caller can trigger the payout.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.config.commission_config import (
    CommissionConfig,
    get_commission_config,
)
from commission_engine.models.enums import TransactionStatus, TransactionType
from commission_engine.models.transaction import Transaction
from commission_engine.repositories.affiliate_repository import AffiliateRepository
from commission_engine.repositories.referral_repository import ReferralRepository
from commission_engine.repositories.transaction_repository import (
    TransactionRepository,
)
from commission_engine.services.cpa.eligibility import CpaEligibilityEvaluator
from commission_engine.utils.datetime_utils import utc_now
from commission_engine.utils.db_decorators import translate_storage_errors


@dataclass
class IngestResult:
    """Outcome of recording one transaction."""

    transaction: Transaction
    duplicate: bool = False
    referral_id: int | None = None
    cpa_eligible: bool = False


class TransactionIngestor:
    """Entry point for platform transaction webhooks."""

    def __init__(
        self, session: AsyncSession, config: CommissionConfig | None = None
    ) -> None:
        """
        Initialize ingestor.

        Args:
            session: Async database session
            config: Commission configuration (defaults to settings)
        """
        self.session = session
        self.config = config or get_commission_config()
        self.transaction_repo = TransactionRepository(session)
        self.referral_repo = ReferralRepository(session)
        self.affiliate_repo = AffiliateRepository(session)
        self.evaluator = CpaEligibilityEvaluator(session, self.config.cpa)

    @translate_storage_errors
    async def record(
        self,
        customer_id: str,
        transaction_type: TransactionType,
        amount: Decimal,
        status: TransactionStatus = TransactionStatus.COMPLETED,
        created_at: datetime | None = None,
        external_id: str | None = None,
    ) -> IngestResult:
        """
        Record a customer transaction.

        Args:
            customer_id: Platform customer ID
            transaction_type: deposit, withdrawal, bonus, bet or ggr
            amount: Transaction amount
            status: Transaction status (only completed ones count)
            created_at: Event time (defaults to now)
            external_id: Platform ID used to drop webhook duplicates

        Returns:
            IngestResult
        """
        if amount < 0 and transaction_type != TransactionType.GGR:
            raise ValueError(f"Amount must be non-negative for {transaction_type.value}")

        if external_id is not None:
            existing = await self.transaction_repo.get_by_external_id(external_id)
            if existing is not None:
                logger.warning(
                    "Duplicate transaction ignored",
                    extra={"external_id": external_id, "transaction_id": existing.id},
                )
                return IngestResult(transaction=existing, duplicate=True)

        moment = created_at or utc_now()
        transaction = await self.transaction_repo.create(
            customer_id=customer_id,
            external_id=external_id,
            type=transaction_type.value,
            amount=amount,
            status=status.value,
            created_at=moment,
        )

        result = IngestResult(transaction=transaction)

        referral = await self.referral_repo.get_by_customer(customer_id)
        if referral is not None and status == TransactionStatus.COMPLETED:
            result.referral_id = referral.id

            if transaction_type == TransactionType.DEPOSIT:
                if amount >= self.config.cpa.min_deposit:
                    await self.referral_repo.record_first_deposit(
                        referral.id, amount, moment
                    )
            elif transaction_type == TransactionType.BET:
                await self.referral_repo.add_activity(referral.id, bets=1)
            elif transaction_type == TransactionType.GGR:
                await self.referral_repo.add_activity(referral.id, ggr=amount)

            await self.affiliate_repo.touch_activity(referral.affiliate_id, moment)

            if not referral.cpa_processed:
                eligibility = await self.evaluator.evaluate(referral)
                result.cpa_eligible = eligibility.eligible

        await self.session.commit()

        logger.debug(
            "Transaction recorded",
            extra={
                "transaction_id": transaction.id,
                "customer_id": customer_id,
                "type": transaction_type.value,
                "amount": str(amount),
                "referral_id": result.referral_id,
                "cpa_eligible": result.cpa_eligible,
            },
        )
        return result
