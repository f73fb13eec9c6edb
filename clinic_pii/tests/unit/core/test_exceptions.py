"""Unit tests for the exception hierarchy."""

import pytest

from clinic_pii.application.services import DuplicateCheckResult
from clinic_pii.core.exceptions import (
    ClinicPIIError,
    ConstraintViolationError,
    DecryptionError,
    DuplicateCandidateError,
    KeyMaterialError,
    KeyMissingError,
    KeyTooShortError,
    NotFoundError,
    RecordDecodeError,
    RecordNotFoundError,
)


@pytest.mark.unit()
class TestExceptionHierarchy:
    """Tests for the ClinicPIIError hierarchy."""

    def test_key_errors_are_key_material_errors(self) -> None:
        assert issubclass(KeyMissingError, KeyMaterialError)
        assert issubclass(KeyTooShortError, KeyMaterialError)

    def test_decode_error_is_decryption_error(self) -> None:
        error = RecordDecodeError("phone")

        assert isinstance(error, DecryptionError)
        assert error.field_name == "phone"
        assert error.detail == {"field": "phone"}
        assert "phone" in str(error)

    def test_not_found_is_not_a_decryption_error(self) -> None:
        assert not issubclass(RecordNotFoundError, DecryptionError)
        assert issubclass(RecordNotFoundError, NotFoundError)

    def test_constraint_violation_keeps_fields(self) -> None:
        error = ConstraintViolationError(fields=("phone", "email"))

        assert error.fields == ("phone", "email")
        assert error.code == "CONSTRAINT_VIOLATION"

    def test_duplicate_candidate_carries_result(self) -> None:
        result = DuplicateCheckResult(phone_exists=True)

        error = DuplicateCandidateError(result)

        assert isinstance(error, ClinicPIIError)
        assert error.result is result
        assert error.detail["is_duplicate"] is True
        assert error.status_code == 409
