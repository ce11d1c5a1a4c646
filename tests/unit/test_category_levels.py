"""
Unit tests for the category table.

Tests cover:
- Contiguity over [0, +inf)
- Known row boundaries and percentages
- Table validation errors
"""

from decimal import Decimal

import pytest

from commission_engine.config.category_levels import (
    CATEGORY_LEVELS,
    AffiliateCategory,
    CategoryLevelConfig,
    build_progressive_levels,
    validate_category_table,
)
from commission_engine.utils.exceptions import InvalidConfigurationError


def _row(min_referrals, max_referrals, rev1="1.00", rev2="1.00", level=1):
    return CategoryLevelConfig(
        category=AffiliateCategory.JOGADOR,
        level=level,
        min_referrals=min_referrals,
        max_referrals=max_referrals,
        rev_level1=Decimal(rev1),
        rev_levels_2_to_5=Decimal(rev2),
    )


class TestCanonicalTable:
    """Test the canonical category table."""

    def test_table_is_valid(self):
        """Canonical table passes validation."""
        validate_category_table(CATEGORY_LEVELS)

    def test_table_starts_at_zero_and_ends_unbounded(self):
        """First row starts at 0, last row has no upper bound."""
        assert CATEGORY_LEVELS[0].min_referrals == 0
        assert CATEGORY_LEVELS[-1].max_referrals is None

    def test_ranges_are_contiguous(self):
        """Each row starts right after the previous one."""
        for previous, row in zip(CATEGORY_LEVELS, CATEGORY_LEVELS[1:]):
            assert row.min_referrals == previous.max_referrals + 1

    def test_row_counts_per_category(self):
        """Number of levels inside each category."""
        counts = {}
        for row in CATEGORY_LEVELS:
            counts[row.category] = counts.get(row.category, 0) + 1

        assert counts == {
            AffiliateCategory.JOGADOR: 2,
            AffiliateCategory.INICIANTE: 2,
            AffiliateCategory.AFILIADO: 7,
            AffiliateCategory.PROFISSIONAL: 30,
            AffiliateCategory.EXPERT: 90,
            AffiliateCategory.MESTRE: 90,
            AffiliateCategory.LENDA: 90,
        }

    def test_category_boundaries(self):
        """First and last row of each progressive category."""
        by_category = {}
        for row in CATEGORY_LEVELS:
            by_category.setdefault(row.category, []).append(row)

        assert by_category[AffiliateCategory.AFILIADO][0].min_referrals == 31
        assert by_category[AffiliateCategory.AFILIADO][-1].max_referrals == 100
        assert by_category[AffiliateCategory.PROFISSIONAL][0].min_referrals == 101
        assert by_category[AffiliateCategory.PROFISSIONAL][-1].max_referrals == 1000
        assert by_category[AffiliateCategory.EXPERT][-1].max_referrals == 10000
        assert by_category[AffiliateCategory.MESTRE][-1].max_referrals == 100000
        assert by_category[AffiliateCategory.LENDA][0].min_referrals == 100001

    def test_percentages_are_monotonic(self):
        """Both shares never decrease along the table."""
        for previous, row in zip(CATEGORY_LEVELS, CATEGORY_LEVELS[1:]):
            assert row.rev_level1 >= previous.rev_level1
            assert row.rev_levels_2_to_5 >= previous.rev_levels_2_to_5

    def test_rev_total(self):
        """rev_total = level1 + 4 * levels 2..5."""
        row = CATEGORY_LEVELS[0]
        assert row.rev_total == Decimal("5.00")
        assert CATEGORY_LEVELS[-1].rev_total == Decimal("42.00") + 4 * Decimal("6.00")


class TestProgressiveLevels:
    """Test build_progressive_levels."""

    def test_interpolates_level1_share(self):
        """Level-1 share goes linearly from first to last value."""
        rows = build_progressive_levels(
            AffiliateCategory.AFILIADO, 31, 10, 7,
            Decimal("12.00"), Decimal("18.00"), Decimal("3.00"),
        )

        assert [row.rev_level1 for row in rows] == [
            Decimal(v) for v in ("12.00", "13.00", "14.00", "15.00", "16.00", "17.00", "18.00")
        ]
        assert all(row.rev_levels_2_to_5 == Decimal("3.00") for row in rows)
        assert [row.level for row in rows] == list(range(1, 8))

    def test_unbounded_last(self):
        """Last row can be left open."""
        rows = build_progressive_levels(
            AffiliateCategory.LENDA, 100, 10, 3,
            Decimal("1"), Decimal("3"), Decimal("1"),
            unbounded_last=True,
        )

        assert rows[-1].max_referrals is None
        assert rows[-2].max_referrals == 119


class TestTableValidation:
    """Test validate_category_table errors."""

    def test_empty_table(self):
        with pytest.raises(InvalidConfigurationError):
            validate_category_table(())

    def test_not_starting_at_zero(self):
        with pytest.raises(InvalidConfigurationError):
            validate_category_table((_row(1, None),))

    def test_gap_between_rows(self):
        with pytest.raises(InvalidConfigurationError, match="contiguous"):
            validate_category_table((_row(0, 4), _row(6, None, level=2)))

    def test_overlapping_rows(self):
        with pytest.raises(InvalidConfigurationError, match="contiguous"):
            validate_category_table((_row(0, 4), _row(3, None, level=2)))

    def test_bounded_last_row(self):
        with pytest.raises(InvalidConfigurationError, match="unbounded"):
            validate_category_table((_row(0, 4), _row(5, 10, level=2)))

    def test_unbounded_middle_row(self):
        with pytest.raises(InvalidConfigurationError, match="last"):
            validate_category_table((_row(0, None), _row(5, None, level=2)))

    def test_decreasing_percentage(self):
        with pytest.raises(InvalidConfigurationError, match="decrease"):
            validate_category_table(
                (_row(0, 4, rev1="5.00"), _row(5, None, rev1="4.00", level=2))
            )

    def test_percentage_out_of_range(self):
        with pytest.raises(InvalidConfigurationError, match="out of range"):
            validate_category_table((_row(0, None, rev1="101"),))

    def test_single_unbounded_row_is_valid(self):
        validate_category_table((_row(0, None),))
