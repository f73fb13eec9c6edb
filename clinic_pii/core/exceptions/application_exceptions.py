"""
Application-level exceptions: user-correctable outcomes, not system faults.
"""

from typing import TYPE_CHECKING, Any

from clinic_pii.core.exceptions.base_exceptions import BusinessRuleException, ValidationException

if TYPE_CHECKING:
    from clinic_pii.application.services.duplicate_detector import DuplicateCheckResult


class DuplicateCandidateError(BusinessRuleException):
    """
    Raised when a registration collides with an existing record in the tenant.

    Produced both by the duplicate pre-check and by a store constraint
    violation, so callers see one conflict outcome regardless of which fired.
    """

    def __init__(
        self,
        result: "DuplicateCheckResult",
        message: str = "A record already exists with this phone, email or name",
    ) -> None:
        super().__init__(
            message=message,
            detail=result.as_dict(),
            code="DUPLICATE_CANDIDATE",
        )
        self.result = result
        self.status_code = 409


class PIIValidationError(ValidationException):
    """Raised when raw PII fails caller-side validation before registration."""

    def __init__(
        self,
        message: str = "Invalid registration data",
        detail: str | list[str] | dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message=message, detail=detail, code="PII_VALIDATION_ERROR")
        self.status_code = 400
