"""
Storage payload: the storage-ready form of one record.

Ciphertext fields, lookup keys and plaintext attributes are kept apart so a
store can index the lookup keys without ever seeing a StoredField's contents.
"""

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from clinic_pii.domain.value_objects.lookup_key import LookupKey


@dataclass(frozen=True)
class StoragePayload:
    """Storage-ready representation of a record."""

    clinic_id: str
    entity: str
    fields: dict[str, str]
    lookup_keys: tuple[LookupKey, ...] = ()
    attributes: dict[str, Any] = field(default_factory=dict)
    record_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def lookup_key(self, field_name: str) -> LookupKey | None:
        for key in self.lookup_keys:
            if key.field_name == field_name:
                return key
        return None

    @property
    def unique_lookup_keys(self) -> tuple[LookupKey, ...]:
        return tuple(key for key in self.lookup_keys if key.unique)
