"""
Base exceptions for the PII protection layer.

This module defines the foundational exception classes that form the basis of the
package's exception hierarchy. Messages must never carry plaintext PII; use
``detail`` for field names, tenant ids and other non-sensitive context.
"""

from typing import Any


class ClinicPIIError(Exception):
    """
    Base exception for all clinic_pii exceptions.

    Attributes:
        message: A human-readable error message
        detail: Additional information about the error
        code: An error code for machine processing
    """

    def __init__(
        self,
        message: str,
        detail: str | list[str] | dict[str, Any] | None = None,
        code: str | None = None,
    ) -> None:
        self.message = message
        self.detail = detail
        self.code = code
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.detail:
            return f"{self.message} - {self.detail}"
        return self.message


class ConfigurationError(ClinicPIIError):
    """Exception raised for configuration errors."""

    def __init__(
        self,
        message: str = "Configuration error",
        detail: str | list[str] | dict[str, Any] | None = None,
        code: str = "CONFIGURATION_ERROR",
    ) -> None:
        super().__init__(message=message, detail=detail, code=code)


class SecurityException(ClinicPIIError):
    """Exception raised for security-related errors."""

    def __init__(
        self,
        message: str = "Security error",
        detail: str | list[str] | dict[str, Any] | None = None,
        code: str = "SECURITY_ERROR",
    ) -> None:
        super().__init__(message=message, detail=detail, code=code)


class PersistenceError(ClinicPIIError):
    """Exception raised for persistence layer errors."""

    def __init__(
        self,
        message: str = "Persistence error",
        detail: str | list[str] | dict[str, Any] | None = None,
        code: str = "PERSISTENCE_ERROR",
        original_exception: Exception | None = None,
    ) -> None:
        super().__init__(message=message, detail=detail, code=code)
        self.original_exception = original_exception


class ValidationException(ClinicPIIError):
    """Exception raised for validation errors."""

    def __init__(
        self,
        message: str = "Validation error",
        detail: str | list[str] | dict[str, Any] | None = None,
        code: str = "VALIDATION_ERROR",
    ) -> None:
        super().__init__(message=message, detail=detail, code=code)


class BusinessRuleException(ClinicPIIError):
    """Exception raised when a business rule is violated."""

    def __init__(
        self,
        message: str = "Business rule violation",
        detail: str | list[str] | dict[str, Any] | None = None,
        code: str = "BUSINESS_RULE_ERROR",
    ) -> None:
        super().__init__(message=message, detail=detail, code=code)
