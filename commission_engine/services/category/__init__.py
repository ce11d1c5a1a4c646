"""Category resolution and caching."""

from commission_engine.services.category.cache import CategoryCache
from commission_engine.services.category.resolver import (
    CategoryResolution,
    CategoryResolver,
)

__all__ = ["CategoryCache", "CategoryResolution", "CategoryResolver"]
