"""
Configuration package.

This package contains the settings consumed by the PII protection layer.
"""

from clinic_pii.core.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
