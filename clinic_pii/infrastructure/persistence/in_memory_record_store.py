"""
In-memory record store for tests and local development.

Enforces the same ``(tenant, field_name, hash)`` uniqueness as the SQL store,
atomically with respect to other coroutines on the same event loop.
"""

import asyncio
import logging

from clinic_pii.core.exceptions import ConstraintViolationError, RecordNotFoundError
from clinic_pii.core.interfaces import IPIIRecordStore
from clinic_pii.domain.value_objects import StoragePayload, TenantScope

logger = logging.getLogger(__name__)


class InMemoryPIIRecordStore(IPIIRecordStore):
    """Dictionary-backed implementation of IPIIRecordStore."""

    def __init__(self) -> None:
        self._records: dict[tuple[str, str], StoragePayload] = {}
        # (clinic_id, field_name, hash) -> record ids; unique keys map to exactly one
        self._index: dict[tuple[str, str, bytes], list[str]] = {}
        self._lock = asyncio.Lock()

    async def find_by_hash(
        self, tenant: TenantScope, field_name: str, hash_value: bytes
    ) -> StoragePayload | None:
        ids = self._index.get((tenant.clinic_id, field_name, hash_value))
        if not ids:
            return None
        return self._records[(tenant.clinic_id, ids[0])]

    async def insert(self, payload: StoragePayload) -> StoragePayload:
        async with self._lock:
            if (payload.clinic_id, payload.record_id) in self._records:
                raise ConstraintViolationError(message="Record id already exists")

            colliding = tuple(
                key.field_name
                for key in payload.unique_lookup_keys
                if (payload.clinic_id, key.field_name, key.hash) in self._index
            )
            if colliding:
                logger.info("Unique lookup key collision on %s", ", ".join(colliding))
                raise ConstraintViolationError(fields=colliding)

            self._records[(payload.clinic_id, payload.record_id)] = payload
            for key in payload.lookup_keys:
                index_key = (payload.clinic_id, key.field_name, key.hash)
                self._index.setdefault(index_key, []).append(payload.record_id)
        return payload

    async def get_by_id(self, tenant: TenantScope, record_id: str) -> StoragePayload:
        payload = self._records.get((tenant.clinic_id, record_id))
        if payload is None:
            raise RecordNotFoundError(tenant.clinic_id, record_id)
        return payload

    async def delete(self, tenant: TenantScope, record_id: str) -> None:
        async with self._lock:
            payload = self._records.pop((tenant.clinic_id, record_id), None)
            if payload is None:
                raise RecordNotFoundError(tenant.clinic_id, record_id)
            for key in payload.lookup_keys:
                index_key = (payload.clinic_id, key.field_name, key.hash)
                ids = self._index.get(index_key, [])
                if record_id in ids:
                    ids.remove(record_id)
                if not ids:
                    self._index.pop(index_key, None)

    def __len__(self) -> int:
        return len(self._records)
