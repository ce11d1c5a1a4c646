"""
CPA eligibility models.

Model A: one completed deposit >= threshold.
Model B: one completed deposit >= threshold, then bets >= N or GGR >= M
observed at or after that deposit.
"""

from dataclasses import dataclass
from decimal import Decimal

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.config.business_constants import ZERO
from commission_engine.config.commission_config import CpaConfig, CpaModel
from commission_engine.models.referral import Referral
from commission_engine.repositories.transaction_repository import (
    TransactionRepository,
)


@dataclass
class EligibilityResult:
    """Outcome of an eligibility check."""

    eligible: bool
    model: CpaModel
    reason: str | None = None
    qualifying_transaction_id: int | None = None
    deposit_amount: Decimal | None = None
    bets: int = 0
    ggr: Decimal = ZERO


class CpaEligibilityEvaluator:
    """Checks a referral's transactions against the active CPA model."""

    def __init__(self, session: AsyncSession, cpa_config: CpaConfig) -> None:
        """
        Initialize evaluator.

        Args:
            session: Async database session
            cpa_config: Active model and thresholds
        """
        self.session = session
        self.cpa_config = cpa_config
        self.transaction_repo = TransactionRepository(session)

    async def evaluate(self, referral: Referral) -> EligibilityResult:
        """
        Evaluate a referral. Side-effect free.

        Args:
            referral: Referral to check

        Returns:
            EligibilityResult (not eligible if already processed)
        """
        model = self.cpa_config.model

        if referral.cpa_processed:
            return EligibilityResult(
                eligible=False, model=model, reason="already_processed"
            )

        deposit = await self.transaction_repo.get_first_deposit_at_least(
            referral.customer_id, self.cpa_config.min_deposit
        )
        if deposit is None:
            return EligibilityResult(
                eligible=False, model=model, reason="no_qualifying_deposit"
            )

        if model == CpaModel.A:
            return EligibilityResult(
                eligible=True,
                model=model,
                qualifying_transaction_id=deposit.id,
                deposit_amount=deposit.amount,
            )

        # Earliest qualifying deposit sees the most activity afterwards
        bets, ggr = await self.transaction_repo.get_activity_since(
            referral.customer_id, deposit.created_at
        )
        eligible = bets >= self.cpa_config.min_bets or ggr >= self.cpa_config.min_ggr

        logger.debug(
            "Model B activity checked",
            extra={
                "referral_id": referral.id,
                "bets": bets,
                "ggr": str(ggr),
                "eligible": eligible,
            },
        )

        return EligibilityResult(
            eligible=eligible,
            model=model,
            reason=None if eligible else "insufficient_activity",
            qualifying_transaction_id=deposit.id,
            deposit_amount=deposit.amount,
            bets=bets,
            ggr=ggr,
        )
