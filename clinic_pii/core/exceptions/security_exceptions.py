"""
Security exceptions for key material and cryptographic failures.

Key errors are fatal at startup: a process that raised one must not serve
requests. Decryption errors are per-value and are never retried or downgraded
to an empty string.
"""

from typing import Any

from clinic_pii.core.exceptions.base_exceptions import ConfigurationError, SecurityException


class KeyMaterialError(ConfigurationError):
    """Raised when configured key material is unusable."""

    def __init__(
        self,
        message: str = "Invalid key material",
        detail: str | list[str] | dict[str, Any] | None = None,
        code: str = "KEY_MATERIAL_ERROR",
    ) -> None:
        super().__init__(message=message, detail=detail, code=code)


class KeyMissingError(KeyMaterialError):
    """Raised when a required key is not configured."""

    def __init__(
        self,
        message: str = "Encryption key is missing",
        detail: str | list[str] | dict[str, Any] | None = None,
        code: str = "KEY_MISSING",
    ) -> None:
        super().__init__(message=message, detail=detail, code=code)


class KeyTooShortError(KeyMaterialError):
    """Raised when a configured key is under the minimum strength."""

    def __init__(
        self,
        message: str = "Encryption key is too short",
        detail: str | list[str] | dict[str, Any] | None = None,
        code: str = "KEY_TOO_SHORT",
        min_length: int | None = None,
    ) -> None:
        super().__init__(message=message, detail=detail, code=code)
        self.min_length = min_length


class DecryptionError(SecurityException):
    """
    Raised when a ciphertext cannot be authenticated or decrypted.

    Covers malformed framing, unknown key versions, wrong keys and tampered
    payloads alike; callers decide whether to surface or mask it.
    """

    def __init__(
        self,
        message: str = "Ciphertext could not be decrypted",
        detail: str | list[str] | dict[str, Any] | None = None,
        code: str = "DECRYPTION_ERROR",
    ) -> None:
        super().__init__(message=message, detail=detail, code=code)


class RecordDecodeError(DecryptionError):
    """Raised when a composite record fails to decode; names the failing field."""

    def __init__(
        self,
        field_name: str,
        message: str | None = None,
        code: str = "RECORD_DECODE_ERROR",
    ) -> None:
        super().__init__(
            message=message or f"Record field '{field_name}' could not be decrypted",
            detail={"field": field_name},
            code=code,
        )
        self.field_name = field_name
