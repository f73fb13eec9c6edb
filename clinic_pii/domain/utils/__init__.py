"""Domain utilities."""

from clinic_pii.domain.utils.normalization import (
    is_valid_email,
    is_valid_phone,
    normalize_email,
    normalize_for_purpose,
    normalize_name,
    normalize_phone,
    normalize_text,
)

__all__ = [
    "is_valid_email",
    "is_valid_phone",
    "normalize_email",
    "normalize_for_purpose",
    "normalize_name",
    "normalize_phone",
    "normalize_text",
]
