"""
Core exceptions package.

This package contains all exceptions raised by the PII protection layer.
"""

from clinic_pii.core.exceptions.application_exceptions import (
    DuplicateCandidateError,
    PIIValidationError,
)
from clinic_pii.core.exceptions.base_exceptions import (
    BusinessRuleException,
    ClinicPIIError,
    ConfigurationError,
    PersistenceError,
    SecurityException,
    ValidationException,
)
from clinic_pii.core.exceptions.persistence_exceptions import (
    BlobNotFoundError,
    ConstraintViolationError,
    NotFoundError,
    RecordNotFoundError,
)
from clinic_pii.core.exceptions.security_exceptions import (
    DecryptionError,
    KeyMaterialError,
    KeyMissingError,
    KeyTooShortError,
    RecordDecodeError,
)

__all__ = [
    "BlobNotFoundError",
    "BusinessRuleException",
    "ClinicPIIError",
    "ConfigurationError",
    "ConstraintViolationError",
    "DecryptionError",
    "DuplicateCandidateError",
    "KeyMaterialError",
    "KeyMissingError",
    "KeyTooShortError",
    "NotFoundError",
    "PIIValidationError",
    "PersistenceError",
    "RecordDecodeError",
    "RecordNotFoundError",
    "SecurityException",
    "ValidationException",
]
