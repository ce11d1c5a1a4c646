"""
Affiliate service.

Hierarchy membership, activity tracking and validated-referral
administration. Keeps category/category_level equal to the resolver
output whenever the referral count changes.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.config.business_constants import EVENT_CATEGORY_CHANGED
from commission_engine.config.commission_config import (
    CommissionConfig,
    get_commission_config,
)
from commission_engine.models.affiliate import Affiliate
from commission_engine.repositories.affiliate_repository import AffiliateRepository
from commission_engine.services.category.cache import CategoryCache
from commission_engine.services.category.resolver import (
    CategoryResolution,
    CategoryResolver,
)
from commission_engine.services.events.publisher import (
    EventPublisher,
    LoggingEventPublisher,
)
from commission_engine.utils.datetime_utils import utc_now
from commission_engine.utils.db_decorators import translate_storage_errors
from commission_engine.utils.exceptions import NotFoundError


@dataclass
class CategoryChange:
    """An affiliate moved to another category row."""

    affiliate_id: int
    validated_referrals: int
    old_category: str
    old_level: int
    new_category: str
    new_level: int

    def to_payload(self) -> dict[str, object]:
        """Body of the affiliate.category_changed event."""
        return {
            "affiliateId": self.affiliate_id,
            "validatedReferrals": self.validated_referrals,
            "oldCategory": self.old_category,
            "oldLevel": self.old_level,
            "newCategory": self.new_category,
            "newLevel": self.new_level,
        }


class AffiliateService:
    """Affiliate administration used by engines and callers."""

    def __init__(
        self,
        session: AsyncSession,
        config: CommissionConfig | None = None,
        publisher: EventPublisher | None = None,
        cache: CategoryCache | None = None,
    ) -> None:
        """
        Initialize affiliate service.

        Args:
            session: Async database session
            config: Commission configuration (defaults to settings)
            publisher: Event publisher (defaults to logging only)
            cache: Optional category cache
        """
        self.session = session
        self.config = config or get_commission_config()
        self.publisher = publisher or LoggingEventPublisher()
        self.cache = cache
        self.resolver = cache.resolver if cache else CategoryResolver(self.config)
        self.affiliate_repo = AffiliateRepository(session)

    async def resolve_category(self, validated_referrals: int) -> CategoryResolution:
        """Resolve through the cache when one is configured."""
        if self.cache is not None:
            return await self.cache.resolve(validated_referrals)
        return self.resolver.resolve(validated_referrals)

    @translate_storage_errors
    async def create_affiliate(
        self,
        sponsor_id: int | None = None,
        code: str | None = None,
        last_activity_at: datetime | None = None,
    ) -> Affiliate:
        """
        Register an affiliate under an optional sponsor.

        Args:
            sponsor_id: Parent affiliate ID
            code: External affiliate code
            last_activity_at: Initial activity timestamp

        Returns:
            Created affiliate

        Raises:
            NotFoundError: If the sponsor does not exist
            ValueError: If the code is already taken
        """
        if sponsor_id is not None and not await self.affiliate_repo.exists(id=sponsor_id):
            await self.session.rollback()
            raise NotFoundError("Affiliate", sponsor_id)
        if code is not None and await self.affiliate_repo.get_by_code(code) is not None:
            await self.session.rollback()
            raise ValueError(f"Affiliate code {code!r} is already taken")

        resolution = await self.resolve_category(0)
        affiliate = await self.affiliate_repo.create(
            sponsor_id=sponsor_id,
            code=code,
            validated_referrals=0,
            category=resolution.category.value,
            category_level=resolution.level,
            last_activity_at=last_activity_at,
        )
        await self.session.commit()

        logger.info(
            "Affiliate created",
            extra={"affiliate_id": affiliate.id, "sponsor_id": sponsor_id},
        )
        return affiliate

    @translate_storage_errors
    async def change_sponsor(
        self, affiliate_id: int, sponsor_id: int | None
    ) -> tuple[bool, str | None]:
        """
        Move an affiliate under another sponsor.

        Rejects self-sponsoring and any move that would create a cycle.

        Args:
            affiliate_id: Affiliate to move
            sponsor_id: New parent, or None to make it a root

        Returns:
            Tuple of (success, error_message)
        """
        affiliate = await self.affiliate_repo.get_by_id(affiliate_id, fresh=True)
        if affiliate is None:
            await self.session.rollback()
            return False, "Affiliate not found"

        if sponsor_id is not None:
            if sponsor_id == affiliate_id:
                await self.session.rollback()
                return False, "An affiliate cannot sponsor itself"

            # Walk up from the new sponsor; finding the affiliate means a loop
            visited: set[int] = set()
            current_id: int | None = sponsor_id
            while current_id is not None and current_id not in visited:
                if current_id == affiliate_id:
                    logger.warning(
                        "Sponsor loop rejected",
                        extra={"affiliate_id": affiliate_id, "sponsor_id": sponsor_id},
                    )
                    await self.session.rollback()
                    return False, "Sponsor change would create a cycle"
                visited.add(current_id)
                ancestor = await self.affiliate_repo.get_by_id(current_id, fresh=True)
                if ancestor is None:
                    if current_id == sponsor_id:
                        await self.session.rollback()
                        return False, "Sponsor not found"
                    break
                current_id = ancestor.sponsor_id

        affiliate.sponsor_id = sponsor_id
        await self.session.commit()

        logger.info(
            "Sponsor changed",
            extra={"affiliate_id": affiliate_id, "sponsor_id": sponsor_id},
        )
        return True, None

    async def apply_referral_delta(
        self, affiliate_id: int, delta: int
    ) -> CategoryChange | None:
        """
        Change validated referrals and recompute the category.

        Does not commit; the caller owns the transaction.

        Args:
            affiliate_id: Affiliate ID
            delta: Signed change (result floored at zero)

        Returns:
            CategoryChange if the category row changed, else None

        Raises:
            NotFoundError: If the affiliate does not exist
        """
        count = await self.affiliate_repo.increment_validated_referrals(affiliate_id, delta)
        if count is None:
            raise NotFoundError("Affiliate", affiliate_id)
        return await self._sync_category(affiliate_id, count)

    @translate_storage_errors
    async def adjust_validated_referrals(
        self, affiliate_id: int, delta: int
    ) -> CategoryChange | None:
        """
        Administrative correction of validated referrals.

        Args:
            affiliate_id: Affiliate ID
            delta: Signed change (never goes below zero)

        Returns:
            CategoryChange if the category row changed, else None
        """
        change = await self.apply_referral_delta(affiliate_id, delta)
        await self.session.commit()

        logger.info(
            "Validated referrals adjusted",
            extra={"affiliate_id": affiliate_id, "delta": delta},
        )
        if change is not None:
            await self.publisher.publish_safe(EVENT_CATEGORY_CHANGED, change.to_payload())
        return change

    @translate_storage_errors
    async def refresh_category(self, affiliate_id: int) -> CategoryChange | None:
        """
        Recompute the cached category fields from the referral count.

        Args:
            affiliate_id: Affiliate ID

        Returns:
            CategoryChange if the stored fields were out of date
        """
        affiliate = await self.affiliate_repo.get_by_id(affiliate_id, fresh=True)
        if affiliate is None:
            raise NotFoundError("Affiliate", affiliate_id)

        change = await self._sync_category(affiliate_id, affiliate.validated_referrals)
        await self.session.commit()
        if change is not None:
            await self.publisher.publish_safe(EVENT_CATEGORY_CHANGED, change.to_payload())
        return change

    @translate_storage_errors
    async def record_activity(
        self, affiliate_id: int, at: datetime | None = None
    ) -> None:
        """
        Record qualifying activity (resets inactivity decay).

        Args:
            affiliate_id: Affiliate ID
            at: Activity moment (defaults to now)

        Raises:
            NotFoundError: If the affiliate does not exist
        """
        moment = at or utc_now()
        if not await self.affiliate_repo.touch_activity(affiliate_id, moment):
            raise NotFoundError("Affiliate", affiliate_id)
        await self.session.commit()

        logger.debug(
            "Activity recorded",
            extra={"affiliate_id": affiliate_id, "at": moment.isoformat()},
        )

    async def get_carryover(self, affiliate_id: int) -> Decimal:
        """
        Current negative carryover for reporting.

        Served from the cached snapshot when present. Distribution never
        reads this value.

        Raises:
            NotFoundError: If the affiliate does not exist
        """
        if self.cache is not None:
            snapshot = await self.cache.get_carryover(affiliate_id)
            if snapshot is not None:
                return snapshot

        affiliate = await self.affiliate_repo.get_by_id(affiliate_id, fresh=True)
        carryover = affiliate.negative_carryover if affiliate is not None else None
        # Read-only; release the connection
        await self.session.rollback()
        if carryover is None:
            raise NotFoundError("Affiliate", affiliate_id)

        if self.cache is not None:
            await self.cache.store_carryover(affiliate_id, carryover)
        return carryover

    async def _sync_category(
        self, affiliate_id: int, validated_referrals: int
    ) -> CategoryChange | None:
        affiliate = await self.affiliate_repo.get_by_id(affiliate_id, fresh=True)
        if affiliate is None:
            raise NotFoundError("Affiliate", affiliate_id)

        resolution = await self.resolve_category(validated_referrals)
        new_category = resolution.category.value
        if (
            affiliate.category == new_category
            and affiliate.category_level == resolution.level
        ):
            return None

        change = CategoryChange(
            affiliate_id=affiliate_id,
            validated_referrals=validated_referrals,
            old_category=affiliate.category,
            old_level=affiliate.category_level,
            new_category=new_category,
            new_level=resolution.level,
        )
        await self.affiliate_repo.set_category(affiliate_id, new_category, resolution.level)

        logger.info(
            "Affiliate category changed",
            extra=change.to_payload(),
        )
        return change
