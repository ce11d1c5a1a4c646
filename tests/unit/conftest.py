"""
Shared fixtures for unit tests.

- CategoryResolver over the default table
- Default CommissionConfig
"""

import pytest

from commission_engine.config.commission_config import CommissionConfig
from commission_engine.services.category.resolver import CategoryResolver


@pytest.fixture
def resolver():
    """
    Create CategoryResolver over the canonical table.

    Returns:
        CategoryResolver: Resolver for testing
    """
    return CategoryResolver(CommissionConfig())
