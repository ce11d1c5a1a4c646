"""
Model enums.

String enums stored in plain VARCHAR columns.
"""

from enum import Enum


class TransactionType(str, Enum):
    """Customer transaction types."""

    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    BONUS = "bonus"
    BET = "bet"
    GGR = "ggr"


class TransactionStatus(str, Enum):
    """Transaction status. Only completed transactions count."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class CommissionType(str, Enum):
    """Commission models."""

    CPA = "cpa"
    REVSHARE = "revshare"


class CommissionStatus(str, Enum):
    """Commission status (approved/paid set by the payment processor)."""

    CALCULATED = "calculated"
    APPROVED = "approved"
    PAID = "paid"
    CANCELLED = "cancelled"


class RevShareRunStatus(str, Enum):
    """Outcome of one (affiliate, period) revenue-share run."""

    CARRIED_OVER = "carried_over"  # NGR did not cover carryover, nothing paid
    DISTRIBUTED = "distributed"
