"""
Exception classes related to record and blob persistence.

Not-found and constraint-violation outcomes are kept distinct from other
write failures so that callers can map them to 404 and conflict responses.
"""

from typing import Any

from clinic_pii.core.exceptions.base_exceptions import PersistenceError


class NotFoundError(PersistenceError):
    """Raised when a requested record or blob does not exist."""

    def __init__(
        self,
        message: str = "Resource not found",
        detail: str | list[str] | dict[str, Any] | None = None,
        code: str = "NOT_FOUND",
    ) -> None:
        super().__init__(message=message, detail=detail, code=code)


class RecordNotFoundError(NotFoundError):
    """Raised when no record with the given id exists in the tenant."""

    def __init__(self, clinic_id: str | None = None, record_id: str | None = None) -> None:
        detail = {"clinic_id": clinic_id, "record_id": record_id}
        super().__init__(message="Record not found", detail=detail, code="RECORD_NOT_FOUND")
        self.clinic_id = clinic_id
        self.record_id = record_id


class BlobNotFoundError(NotFoundError):
    """Raised when a blob handle points at nothing in the blob store."""

    def __init__(self, bucket: str | None = None, key: str | None = None) -> None:
        super().__init__(
            message="Blob not found",
            detail={"bucket": bucket, "key": key},
            code="BLOB_NOT_FOUND",
        )
        self.bucket = bucket
        self.key = key


class ConstraintViolationError(PersistenceError):
    """
    Raised by a record store when a uniqueness constraint rejects an insert.

    ``fields`` names the lookup fields whose hash collided, when the store can
    tell; an empty tuple means the store could not attribute the violation.
    """

    def __init__(
        self,
        fields: tuple[str, ...] = (),
        message: str = "Uniqueness constraint violated",
        original_exception: Exception | None = None,
    ) -> None:
        super().__init__(
            message=message,
            detail={"fields": list(fields)},
            code="CONSTRAINT_VIOLATION",
            original_exception=original_exception,
        )
        self.fields = tuple(fields)
