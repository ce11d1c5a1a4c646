"""
Single source of truth for the affiliate category table.

Each row maps a contiguous range of validated referrals to a category,
a level inside that category and the revenue-share percentages paid to an
affiliate of that tier. All other modules must import from this file.
"""

from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import NamedTuple

from commission_engine.utils.exceptions import InvalidConfigurationError


class AffiliateCategory(str, Enum):
    """Affiliate categories, lowest first."""

    JOGADOR = "jogador"
    INICIANTE = "iniciante"
    AFILIADO = "afiliado"
    PROFISSIONAL = "profissional"
    EXPERT = "expert"
    MESTRE = "mestre"
    LENDA = "lenda"


class CategoryLevelConfig(NamedTuple):
    """One row of the category table."""

    category: AffiliateCategory
    level: int  # Level inside the category (1-based)
    min_referrals: int  # Inclusive lower bound
    max_referrals: int | None  # Inclusive upper bound, None = unbounded
    rev_level1: Decimal  # RevShare % when receiving as level 1
    rev_levels_2_to_5: Decimal  # RevShare % when receiving as level 2..5

    @property
    def rev_total(self) -> Decimal:
        """Total percentage distributed across a full 5-level chain."""
        return self.rev_level1 + 4 * self.rev_levels_2_to_5

    def contains(self, validated_referrals: int) -> bool:
        """Check whether a referral count falls into this row."""
        if validated_referrals < self.min_referrals:
            return False
        return self.max_referrals is None or validated_referrals <= self.max_referrals


def _row(
    category: AffiliateCategory,
    level: int,
    min_referrals: int,
    max_referrals: int | None,
    rev_level1: str,
    rev_levels_2_to_5: str,
) -> CategoryLevelConfig:
    return CategoryLevelConfig(
        category=category,
        level=level,
        min_referrals=min_referrals,
        max_referrals=max_referrals,
        rev_level1=Decimal(rev_level1),
        rev_levels_2_to_5=Decimal(rev_levels_2_to_5),
    )


def build_progressive_levels(
    category: AffiliateCategory,
    start: int,
    step: int,
    count: int,
    rev_level1_from: Decimal,
    rev_level1_to: Decimal,
    rev_levels_2_to_5: Decimal,
    unbounded_last: bool = False,
) -> list[CategoryLevelConfig]:
    """
    Build evenly sized levels with a linearly interpolated level-1 share.

    Args:
        category: Category the levels belong to
        start: First referral count of level 1
        step: Referrals per level
        count: Number of levels
        rev_level1_from: Level-1 share of the first level
        rev_level1_to: Level-1 share of the last level
        rev_levels_2_to_5: Share for levels 2..5 (constant inside a category)
        unbounded_last: Leave the last level without an upper bound

    Returns:
        Rows ordered by level
    """
    rows = []
    span = rev_level1_to - rev_level1_from
    for index in range(count):
        if count > 1:
            share = rev_level1_from + span * index / (count - 1)
        else:
            share = rev_level1_from
        lower = start + index * step
        upper: int | None = lower + step - 1
        if unbounded_last and index == count - 1:
            upper = None
        rows.append(
            CategoryLevelConfig(
                category=category,
                level=index + 1,
                min_referrals=lower,
                max_referrals=upper,
                rev_level1=share.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP),
                rev_levels_2_to_5=rev_levels_2_to_5,
            )
        )
    return rows


# Canonical category table
CATEGORY_LEVELS: tuple[CategoryLevelConfig, ...] = tuple(
    [
        _row(AffiliateCategory.JOGADOR, 1, 0, 4, "1.00", "1.00"),
        _row(AffiliateCategory.JOGADOR, 2, 5, 10, "6.00", "1.00"),
        _row(AffiliateCategory.INICIANTE, 1, 11, 20, "6.00", "2.00"),
        _row(AffiliateCategory.INICIANTE, 2, 21, 30, "12.00", "2.00"),
    ]
    + build_progressive_levels(
        AffiliateCategory.AFILIADO, 31, 10, 7,
        Decimal("12.00"), Decimal("18.00"), Decimal("3.00"),
    )
    + build_progressive_levels(
        AffiliateCategory.PROFISSIONAL, 101, 30, 30,
        Decimal("18.00"), Decimal("24.00"), Decimal("4.00"),
    )
    + build_progressive_levels(
        AffiliateCategory.EXPERT, 1001, 100, 90,
        Decimal("24.00"), Decimal("30.00"), Decimal("5.00"),
    )
    + build_progressive_levels(
        AffiliateCategory.MESTRE, 10001, 1000, 90,
        Decimal("30.00"), Decimal("36.00"), Decimal("6.00"),
    )
    + build_progressive_levels(
        AffiliateCategory.LENDA, 100001, 10000, 90,
        Decimal("36.00"), Decimal("42.00"), Decimal("6.00"),
        unbounded_last=True,
    )
)


def validate_category_table(rows: tuple[CategoryLevelConfig, ...]) -> None:
    """
    Validate that the table is contiguous over [0, +inf) and monotonic.

    Raises:
        InvalidConfigurationError: If the table is empty, has gaps or
            overlaps, has a bounded last row, or decreasing percentages
    """
    if not rows:
        raise InvalidConfigurationError("Category table is empty")

    if rows[0].min_referrals != 0:
        raise InvalidConfigurationError(
            f"Category table must start at 0, starts at {rows[0].min_referrals}"
        )

    previous: CategoryLevelConfig | None = None
    for index, row in enumerate(rows):
        is_last = index == len(rows) - 1

        if row.max_referrals is None and not is_last:
            raise InvalidConfigurationError(
                f"Only the last category row may be unbounded "
                f"({row.category.value} L{row.level})"
            )
        if is_last and row.max_referrals is not None:
            raise InvalidConfigurationError(
                "Last category row must be unbounded to cover [0, +inf)"
            )
        if row.max_referrals is not None and row.max_referrals < row.min_referrals:
            raise InvalidConfigurationError(
                f"Empty range in {row.category.value} L{row.level}: "
                f"{row.min_referrals}..{row.max_referrals}"
            )
        for share in (row.rev_level1, row.rev_levels_2_to_5):
            if share < 0 or share > 100:
                raise InvalidConfigurationError(
                    f"RevShare percentage out of range in "
                    f"{row.category.value} L{row.level}: {share}"
                )

        if previous is not None:
            expected_min = previous.max_referrals + 1
            if row.min_referrals != expected_min:
                raise InvalidConfigurationError(
                    f"Category table is not contiguous at "
                    f"{row.category.value} L{row.level}: expected min "
                    f"{expected_min}, got {row.min_referrals}"
                )
            if (
                row.rev_level1 < previous.rev_level1
                or row.rev_levels_2_to_5 < previous.rev_levels_2_to_5
            ):
                raise InvalidConfigurationError(
                    f"RevShare percentages decrease at "
                    f"{row.category.value} L{row.level}"
                )
        previous = row

