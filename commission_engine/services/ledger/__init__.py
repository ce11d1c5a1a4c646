"""Commission ledger."""

from commission_engine.services.ledger.commission_ledger import (
    CommissionLedger,
    quantize_money,
)

__all__ = ["CommissionLedger", "quantize_money"]
