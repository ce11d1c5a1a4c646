"""
Business logic constants for the commission engine.

Default values for the CPA table, inactivity decay and hierarchy depth.
Runtime values come from settings; these are the defaults settings fall back to.
"""

from decimal import Decimal


# Hierarchy depth (level 1 = the affiliate itself)
DEFAULT_HIERARCHY_DEPTH = 5

# CPA eligibility thresholds
CPA_DEFAULT_MIN_DEPOSIT = Decimal("30.00")
CPA_DEFAULT_MIN_BETS = 10
CPA_DEFAULT_MIN_GGR = Decimal("20.00")

# One-time acquisition bonus per hierarchy level (total 60.00)
CPA_DEFAULT_LEVEL_AMOUNTS: tuple[Decimal, ...] = (
    Decimal("35.00"),  # level 1 (direct affiliate)
    Decimal("10.00"),  # level 2
    Decimal("5.00"),   # level 3
    Decimal("5.00"),   # level 4
    Decimal("5.00"),   # level 5
)

# Inactivity decay: (days inactive, reduction percent)
INACTIVITY_DECAY_SCHEDULE: tuple[tuple[int, Decimal], ...] = (
    (30, Decimal("10")),
    (60, Decimal("25")),
    (90, Decimal("50")),
)

# Money precision matches DECIMAL(18, 8) columns
MONEY_QUANTUM = Decimal("0.00000001")
ZERO = Decimal("0")
HUNDRED = Decimal("100")


class AffiliateStatus:
    """Affiliate status constants."""
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


# Event types published on the event bus
EVENT_COMMISSION_CALCULATED = "commission.calculated"
EVENT_CATEGORY_CHANGED = "affiliate.category_changed"
EVENT_REVSHARE_BATCH_COMPLETED = "revshare.batch_completed"
