"""
Category resolver.

Maps a validated-referral count to its row of the category table.
Pure and cheap: a binary search over the row lower bounds.
"""

from bisect import bisect_right
from dataclasses import dataclass
from decimal import Decimal

from loguru import logger

from commission_engine.config.category_levels import (
    AffiliateCategory,
    CategoryLevelConfig,
)
from commission_engine.config.commission_config import CommissionConfig


@dataclass(frozen=True)
class CategoryResolution:
    """Resolved tier of an affiliate."""

    category: AffiliateCategory
    level: int
    min_referrals: int
    max_referrals: int | None
    rev_share_level1: Decimal
    rev_share_levels_2_to_5: Decimal
    acquisition_amounts: tuple[Decimal, ...]
    row_index: int

    def percentage_for_level(self, level: int) -> Decimal:
        """RevShare percentage when receiving at a hierarchy level."""
        if level == 1:
            return self.rev_share_level1
        return self.rev_share_levels_2_to_5


class CategoryResolver:
    """Resolves categories from an injected, already validated table."""

    def __init__(self, config: CommissionConfig) -> None:
        """
        Initialize resolver.

        Args:
            config: Commission configuration (category table + CPA amounts)
        """
        self.rows: tuple[CategoryLevelConfig, ...] = config.category_levels
        self.acquisition_amounts = config.cpa.level_amounts
        self._lower_bounds = [row.min_referrals for row in self.rows]

    def resolve(self, validated_referrals: int) -> CategoryResolution:
        """
        Resolve the row containing a referral count.

        Args:
            validated_referrals: Non-negative referral count

        Returns:
            Matching row; the lowest row if nothing matches

        Raises:
            ValueError: If the count is negative
        """
        if validated_referrals < 0:
            raise ValueError(
                f"Validated referrals must be non-negative, got {validated_referrals}"
            )

        index = bisect_right(self._lower_bounds, validated_referrals) - 1
        if index < 0 or not self.rows[index].contains(validated_referrals):
            logger.warning(
                "No category row matched, falling back to lowest tier",
                extra={"validated_referrals": validated_referrals},
            )
            index = 0

        return self.resolution_at(index)

    def resolution_at(self, index: int) -> CategoryResolution:
        """
        Build the resolution of a table row.

        Args:
            index: Row index in the category table

        Returns:
            Resolution of that row
        """
        row = self.rows[index]
        return CategoryResolution(
            category=row.category,
            level=row.level,
            min_referrals=row.min_referrals,
            max_referrals=row.max_referrals,
            rev_share_level1=row.rev_level1,
            rev_share_levels_2_to_5=row.rev_levels_2_to_5,
            acquisition_amounts=self.acquisition_amounts,
            row_index=index,
        )
