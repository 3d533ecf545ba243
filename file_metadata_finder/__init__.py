"""Redacted file catalogue with exact and fuzzy schema similarity."""

__version__ = "0.1.0"
