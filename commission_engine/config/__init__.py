"""
Configuration package.

Settings, default business constants, the category table and the
immutable configuration injected into the engines.
"""
