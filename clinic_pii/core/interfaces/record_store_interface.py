"""
Record store interface definition.

This module defines the contract the PII protection layer consumes from the
external record store. The store never sees plaintext: it receives storage
payloads (ciphertext fields, lookup keys, plaintext attributes) and answers
equality probes on lookup key hashes.
"""

from abc import ABC, abstractmethod

from clinic_pii.domain.value_objects import StoragePayload, TenantScope


class IPIIRecordStore(ABC):
    """
    Abstract interface for encrypted record stores.

    Implementations must enforce uniqueness of ``(tenant, field_name, hash)``
    for every lookup key flagged ``unique``. That constraint, not the
    duplicate pre-check, is what prevents two concurrent registrations of the
    same phone number from both succeeding.
    """

    @abstractmethod
    async def find_by_hash(
        self, tenant: TenantScope, field_name: str, hash_value: bytes
    ) -> StoragePayload | None:
        """
        Find a record in the tenant whose lookup key for a field equals a hash.

        Args:
            tenant: Tenant the probe is scoped to
            field_name: Name of the hashed field
            hash_value: Lookup hash to match

        Returns:
            The matching record, or None
        """
        raise NotImplementedError

    @abstractmethod
    async def insert(self, payload: StoragePayload) -> StoragePayload:
        """
        Durably insert a new record.

        Args:
            payload: Storage payload produced by the record codec

        Returns:
            The stored record

        Raises:
            ConstraintViolationError: If a unique lookup key already exists in the tenant
        """
        raise NotImplementedError

    @abstractmethod
    async def get_by_id(self, tenant: TenantScope, record_id: str) -> StoragePayload:
        """
        Retrieve a record by id within a tenant.

        Raises:
            RecordNotFoundError: If no such record exists in the tenant
        """
        raise NotImplementedError

    @abstractmethod
    async def delete(self, tenant: TenantScope, record_id: str) -> None:
        """
        Delete a record and its lookup keys.

        Raises:
            RecordNotFoundError: If no such record exists in the tenant
        """
        raise NotImplementedError
