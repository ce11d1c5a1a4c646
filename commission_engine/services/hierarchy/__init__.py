"""Sponsor hierarchy traversal."""

from commission_engine.services.hierarchy.walker import HierarchyLevel, HierarchyWalker

__all__ = ["HierarchyLevel", "HierarchyWalker"]
