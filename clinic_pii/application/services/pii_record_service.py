"""
Application service for registering and reading patient records.

Registration runs the duplicate pre-check, encodes the record, and inserts it;
a uniqueness violation raised by the store is converted into the same
``DuplicateCandidateError`` the pre-check produces.
"""

import logging
from collections.abc import Mapping
from typing import Any

from clinic_pii.application.services.duplicate_detector import DuplicateCheckResult, DuplicateDetector
from clinic_pii.core.config.settings import Settings
from clinic_pii.core.exceptions import (
    ConstraintViolationError,
    DuplicateCandidateError,
    PIIValidationError,
)
from clinic_pii.core.interfaces import IPIIRecordStore
from clinic_pii.domain.schemas import USER_REQUIRED_FIELDS
from clinic_pii.domain.utils import is_valid_email, is_valid_phone, normalize_phone
from clinic_pii.domain.value_objects import TenantScope
from clinic_pii.infrastructure.security.encryption import PIIRecordCodec

logger = logging.getLogger(__name__)


class PIIRecordService:
    """Registration, retrieval and lookup of encrypted user records."""

    def __init__(
        self,
        record_store: IPIIRecordStore,
        codec: PIIRecordCodec,
        duplicate_detector: DuplicateDetector,
        phone_min_digits: int = 8,
        phone_max_digits: int = 15,
    ):
        """
        Initialize the service.

        Args:
            record_store: Store holding encrypted records
            codec: Codec for the user schema
            duplicate_detector: Pre-check run before every insert
            phone_min_digits: Minimum digits of an accepted phone number
            phone_max_digits: Maximum digits of an accepted phone number
        """
        self._store = record_store
        self._codec = codec
        self._detector = duplicate_detector
        self._phone_min_digits = phone_min_digits
        self._phone_max_digits = phone_max_digits

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        record_store: IPIIRecordStore,
        codec: PIIRecordCodec,
        duplicate_detector: DuplicateDetector,
    ) -> "PIIRecordService":
        return cls(
            record_store,
            codec,
            duplicate_detector,
            phone_min_digits=settings.PHONE_MIN_DIGITS,
            phone_max_digits=settings.PHONE_MAX_DIGITS,
        )

    def validate_registration(self, raw: Mapping[str, Any]) -> None:
        """
        Caller-side validation of a registration before anything is hashed.

        Raises:
            PIIValidationError: Listing every failing field
        """
        errors: dict[str, str] = {}
        for name in USER_REQUIRED_FIELDS:
            value = raw.get(name)
            if not isinstance(value, str) or not value.strip():
                errors[name] = "required"

        if "phone" not in errors:
            digits = normalize_phone(raw["phone"])
            if not is_valid_phone(digits, self._phone_min_digits, self._phone_max_digits):
                errors["phone"] = (
                    f"must contain {self._phone_min_digits} to {self._phone_max_digits} digits"
                )
        if "email" not in errors and not is_valid_email(raw["email"].strip()):
            errors["email"] = "invalid format"

        if errors:
            raise PIIValidationError(detail=errors)

    async def register(self, tenant: TenantScope, raw: Mapping[str, Any]) -> str:
        """
        Register a new user record.

        Args:
            tenant: Clinic the user registers with
            raw: Plaintext user attributes

        Returns:
            The new record id

        Raises:
            PIIValidationError: If required fields are missing or malformed
            DuplicateCandidateError: If the phone, email or name already exists
                in the clinic, by pre-check or by store constraint
        """
        self.validate_registration(raw)

        result = await self.check_duplicate(tenant, raw)
        if result.is_duplicate:
            raise DuplicateCandidateError(result)

        payload = self._codec.encode(tenant, raw)
        try:
            await self._store.insert(payload)
        except ConstraintViolationError as e:
            logger.info("Registration in clinic %s lost a uniqueness race", tenant.clinic_id)
            raise DuplicateCandidateError(self._detector.conflict_from_violation(e.fields)) from e

        logger.info("Registered record %s in clinic %s", payload.record_id, tenant.clinic_id)
        return payload.record_id

    async def check_duplicate(self, tenant: TenantScope, raw: Mapping[str, Any]) -> DuplicateCheckResult:
        """Run the duplicate pre-check for a raw registration's phone, email and name."""
        return await self._detector.check(
            tenant,
            {
                "phone": raw.get("phone"),
                "email": raw.get("email"),
                "name": raw.get("full_name"),
            },
        )

    async def get(self, tenant: TenantScope, record_id: str) -> dict[str, Any]:
        """
        Fetch and fully decode a record.

        Raises:
            RecordNotFoundError: If the record does not exist in the clinic
            RecordDecodeError: If any field fails to decrypt
        """
        payload = await self._store.get_by_id(tenant, record_id)
        return self._codec.decode(payload)

    async def validate(self, tenant: TenantScope, record_id: str) -> dict[str, Any]:
        """
        Confirm a record exists and return its decrypted full name only.

        Returns:
            ``{"valid": True, "full_name": ...}``

        Raises:
            RecordNotFoundError: If the record does not exist in the clinic
            RecordDecodeError: If the full name fails to decrypt
        """
        payload = await self._store.get_by_id(tenant, record_id)
        decoded = self._codec.decode_fields(payload, ["full_name"])
        return {"valid": True, "full_name": decoded["full_name"]}

    async def find_id_by_value(self, tenant: TenantScope, field_name: str, raw_value: str) -> str | None:
        """
        Find the id of the record whose hashed field equals a raw value.

        Args:
            tenant: Clinic to search
            field_name: A hashed field of the schema (e.g. ``phone``)
            raw_value: Plaintext value; normalized before hashing

        Returns:
            The record id, or None

        Raises:
            PIIValidationError: If the field is not searchable
        """
        try:
            spec = self._codec.schema.get(field_name)
        except KeyError:
            spec = None
        if spec is None or not spec.hashed:
            raise PIIValidationError(
                "Field is not searchable",
                detail={"field": field_name},
            )

        digest = self._codec.lookup_hasher.hash_value(raw_value, spec.hash_purpose)
        if digest is None:
            return None
        payload = await self._store.find_by_hash(tenant, spec.name, digest)
        return payload.record_id if payload is not None else None

    async def delete(self, tenant: TenantScope, record_id: str) -> None:
        """
        Delete a record and its lookup keys.

        Raises:
            RecordNotFoundError: If the record does not exist in the clinic
        """
        await self._store.delete(tenant, record_id)
        logger.info("Deleted record %s from clinic %s", record_id, tenant.clinic_id)
