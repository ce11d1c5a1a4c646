"""
Affiliate commission engine.

Multi-level CPA and revenue-share distribution over a sponsor hierarchy.
"""

__version__ = "0.1.0"
