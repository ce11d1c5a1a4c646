"""
Commission configuration.

Immutable configuration injected into the engines. Built from settings at
runtime or constructed directly (tests, simulations). Validated on creation
so a broken table fails at load time instead of during a distribution.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from commission_engine.config.business_constants import (
    CPA_DEFAULT_LEVEL_AMOUNTS,
    CPA_DEFAULT_MIN_BETS,
    CPA_DEFAULT_MIN_DEPOSIT,
    CPA_DEFAULT_MIN_GGR,
    DEFAULT_HIERARCHY_DEPTH,
    INACTIVITY_DECAY_SCHEDULE,
    ZERO,
)
from commission_engine.config.category_levels import (
    CATEGORY_LEVELS,
    CategoryLevelConfig,
    validate_category_table,
)
from commission_engine.utils.exceptions import InvalidConfigurationError


class CpaModel(str, Enum):
    """CPA eligibility models."""

    A = "A"  # Single deposit >= threshold
    B = "B"  # Deposit >= threshold and (bets >= N or GGR >= M) afterwards


@dataclass(frozen=True)
class CpaConfig:
    """Active CPA model, its thresholds and the per-level amount table."""

    model: CpaModel = CpaModel.A
    min_deposit_model_a: Decimal = CPA_DEFAULT_MIN_DEPOSIT
    min_deposit_model_b: Decimal = CPA_DEFAULT_MIN_DEPOSIT
    min_bets: int = CPA_DEFAULT_MIN_BETS
    min_ggr: Decimal = CPA_DEFAULT_MIN_GGR
    level_amounts: tuple[Decimal, ...] = CPA_DEFAULT_LEVEL_AMOUNTS

    @property
    def min_deposit(self) -> Decimal:
        """Deposit threshold of the active model."""
        if self.model == CpaModel.B:
            return self.min_deposit_model_b
        return self.min_deposit_model_a

    @property
    def total_amount(self) -> Decimal:
        """Sum paid for one referral across a full chain."""
        return sum(self.level_amounts, ZERO)

    def amount_for_level(self, level: int) -> Decimal:
        """CPA amount for a hierarchy level (0 when not configured)."""
        if 1 <= level <= len(self.level_amounts):
            return self.level_amounts[level - 1]
        return ZERO


@dataclass(frozen=True)
class InactivitySchedule:
    """Step function: days inactive -> reduction percent."""

    steps: tuple[tuple[int, Decimal], ...] = INACTIVITY_DECAY_SCHEDULE

    def reduction_for(self, days_inactive: int) -> Decimal:
        """Reduction percent for a number of inactive days."""
        reduction = ZERO
        for threshold, percent in self.steps:
            if days_inactive >= threshold:
                reduction = percent
        return reduction


@dataclass(frozen=True)
class CommissionConfig:
    """Everything the engines read from configuration."""

    category_levels: tuple[CategoryLevelConfig, ...] = CATEGORY_LEVELS
    cpa: CpaConfig = field(default_factory=CpaConfig)
    inactivity: InactivitySchedule = field(default_factory=InactivitySchedule)
    hierarchy_depth: int = DEFAULT_HIERARCHY_DEPTH

    def __post_init__(self) -> None:
        if self.hierarchy_depth < 1:
            raise InvalidConfigurationError(
                f"Hierarchy depth must be >= 1, got {self.hierarchy_depth}"
            )

        validate_category_table(self.category_levels)

        if not isinstance(self.cpa.model, CpaModel):
            raise InvalidConfigurationError(
                f"Unknown CPA eligibility model: {self.cpa.model!r}"
            )
        if any(amount < 0 for amount in self.cpa.level_amounts):
            raise InvalidConfigurationError("CPA level amounts must be non-negative")
        if len(self.cpa.level_amounts) > self.hierarchy_depth:
            raise InvalidConfigurationError(
                f"CPA table has {len(self.cpa.level_amounts)} levels, "
                f"hierarchy depth is {self.hierarchy_depth}"
            )
        if len(self.cpa.level_amounts) < self.hierarchy_depth:
            padding = (ZERO,) * (self.hierarchy_depth - len(self.cpa.level_amounts))
            # Pad missing levels with zero
            object.__setattr__(
                self,
                "cpa",
                CpaConfig(
                    model=self.cpa.model,
                    min_deposit_model_a=self.cpa.min_deposit_model_a,
                    min_deposit_model_b=self.cpa.min_deposit_model_b,
                    min_bets=self.cpa.min_bets,
                    min_ggr=self.cpa.min_ggr,
                    level_amounts=self.cpa.level_amounts + padding,
                ),
            )

        previous_days = -1
        previous_percent = ZERO
        for days, percent in self.inactivity.steps:
            if days <= previous_days:
                raise InvalidConfigurationError(
                    "Inactivity thresholds must be strictly increasing"
                )
            if percent < previous_percent or percent < 0 or percent > 100:
                raise InvalidConfigurationError(
                    "Inactivity reductions must be non-decreasing and within 0..100"
                )
            previous_days = days
            previous_percent = percent

    @classmethod
    def from_settings(cls, app_settings=None) -> "CommissionConfig":
        """Build configuration from application settings."""
        if app_settings is None:
            from commission_engine.config.settings import settings as app_settings

        try:
            model = CpaModel(app_settings.cpa_model)
        except ValueError as exc:
            raise InvalidConfigurationError(
                f"Unknown CPA eligibility model: {app_settings.cpa_model!r}"
            ) from exc

        return cls(
            cpa=CpaConfig(
                model=model,
                min_deposit_model_a=app_settings.cpa_min_deposit_model_a,
                min_deposit_model_b=app_settings.cpa_min_deposit_model_b,
                min_bets=app_settings.cpa_min_bets,
                min_ggr=app_settings.cpa_min_ggr,
                level_amounts=app_settings.get_level_amounts(),
            ),
            inactivity=InactivitySchedule(steps=app_settings.get_decay_schedule()),
            hierarchy_depth=app_settings.hierarchy_depth,
        )


_default_config: CommissionConfig | None = None


def get_commission_config() -> CommissionConfig:
    """Process-wide configuration built from settings on first use."""
    global _default_config
    if _default_config is None:
        _default_config = CommissionConfig.from_settings()
    return _default_config
