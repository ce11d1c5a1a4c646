"""
Exception handling utilities.

Defines the engine's error kinds and their handling categories.
"""

from sqlalchemy.exc import SQLAlchemyError


class CommissionEngineError(Exception):
    """Base class for commission engine errors."""
    pass


class NotFoundError(CommissionEngineError):
    """Raised when a referral, affiliate or transaction is missing."""

    def __init__(self, entity: str, entity_id: object) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class AlreadyProcessedError(CommissionEngineError):
    """Raised by idempotency guards; engines report it as a no-op."""
    pass


class InvalidConfigurationError(CommissionEngineError):
    """Raised when tables or eligibility settings are unusable."""
    pass


class StorageFailureError(CommissionEngineError):
    """Raised when the storage collaborator fails."""
    pass


# Exception categories based on handling strategy

# Abort one distribution, never a whole batch
ABORTS_DISTRIBUTION = (
    NotFoundError,
    InvalidConfigurationError,
    StorageFailureError,
    SQLAlchemyError,
)


def aborts_distribution(exc: Exception) -> bool:
    """
    Check if exception aborts a single distribution.

    Args:
        exc: Exception to check

    Returns:
        True if only the current distribution must be abandoned
    """
    return isinstance(exc, ABORTS_DISTRIBUTION)
