"""PII protection layer for clinic patient records."""

__version__ = "0.1.0"
