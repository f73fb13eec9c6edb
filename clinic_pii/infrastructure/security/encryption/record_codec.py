"""
Codec between raw records and their storage-ready form.

The codec walks a declared RecordSchema: every sensitive field is encrypted
with the FieldCipher, hashed fields additionally get a LookupKey from the
LookupHasher, and everything else passes through as a plaintext attribute.
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from clinic_pii.core.exceptions import DecryptionError, RecordDecodeError
from clinic_pii.domain.schemas import RecordSchema
from clinic_pii.domain.value_objects import LookupKey, StoragePayload, StoredField, TenantScope
from clinic_pii.infrastructure.security.encryption.field_cipher import FieldCipher
from clinic_pii.infrastructure.security.encryption.lookup_hasher import LookupHasher

logger = logging.getLogger(__name__)

# Keys the codec adds to decoded records
RESERVED_KEYS = frozenset({"id", "clinic_id", "created_at"})


class PIIRecordCodec:
    """Encodes raw records into StoragePayloads and decodes them back."""

    def __init__(self, schema: RecordSchema, field_cipher: FieldCipher, lookup_hasher: LookupHasher):
        self.schema = schema
        self._cipher = field_cipher
        self._hasher = lookup_hasher

    @property
    def lookup_hasher(self) -> LookupHasher:
        return self._hasher

    def encode(
        self,
        tenant: TenantScope,
        raw_record: Mapping[str, Any],
        fields_requiring_hash: Iterable[str] | None = None,
        record_id: str | None = None,
    ) -> StoragePayload:
        """
        Encode a raw record for storage.

        Args:
            tenant: Tenant the record belongs to
            raw_record: Attribute name to plaintext value
            fields_requiring_hash: Sensitive fields to emit lookup keys for;
                defaults to the schema's hashed fields
            record_id: Record id to use instead of a generated one

        Returns:
            StoragePayload with one StoredField per declared sensitive field,
            lookup keys for non-empty hashed fields and the remaining
            attributes unchanged

        Raises:
            TypeError: If a sensitive value is not text
            ValueError: If a field to hash is not a sensitive schema field
        """
        hash_names = self._hash_names(fields_requiring_hash)

        fields: dict[str, str] = {}
        lookup_keys: list[LookupKey] = []
        for spec in self.schema.sensitive_fields:
            value = raw_record.get(spec.name)
            if value is not None and not isinstance(value, str):
                raise TypeError(f"Sensitive field '{spec.name}' must be text")

            fields[spec.name] = self._cipher.encrypt(value).serialize()
            if spec.name in hash_names:
                key = self._hasher.lookup_key(spec, value)
                if key is not None:
                    lookup_keys.append(key)

        attributes = {
            name: value
            for name, value in raw_record.items()
            if name not in self.schema.sensitive_names and name not in RESERVED_KEYS
        }

        extra: dict[str, Any] = {}
        if record_id is not None:
            extra["record_id"] = record_id
        return StoragePayload(
            clinic_id=tenant.clinic_id,
            entity=self.schema.entity,
            fields=fields,
            lookup_keys=tuple(lookup_keys),
            attributes=attributes,
            **extra,
        )

    def decode(self, payload: StoragePayload) -> dict[str, Any]:
        """
        Decode a stored record back to plaintext.

        The decode is all-or-nothing: a partially decrypted record is never
        returned.

        Raises:
            RecordDecodeError: Naming the first field that failed to decrypt
        """
        record: dict[str, Any] = {
            "id": payload.record_id,
            "clinic_id": payload.clinic_id,
            "created_at": payload.created_at,
        }
        record.update(payload.attributes)
        record.update(self.decode_fields(payload, self.schema.sensitive_names | payload.fields.keys()))
        return record

    def decode_fields(self, payload: StoragePayload, names: Iterable[str]) -> dict[str, str]:
        """
        Decrypt only the named fields of a stored record.

        Fields declared in the schema but absent from the payload decode to
        ``""``.

        Raises:
            RecordDecodeError: Naming the first field that failed to decrypt
        """
        decoded: dict[str, str] = {}
        for name in sorted(names, key=self._field_order):
            try:
                decoded[name] = self._cipher.decrypt(payload.fields.get(name, StoredField.EMPTY))
            except DecryptionError as e:
                logger.warning(
                    "Failed to decode field %s of %s record %s",
                    name,
                    payload.entity,
                    payload.record_id,
                )
                raise RecordDecodeError(name) from e
        return decoded

    def _hash_names(self, fields_requiring_hash: Iterable[str] | None) -> frozenset[str]:
        if fields_requiring_hash is None:
            return frozenset(spec.name for spec in self.schema.hashed_fields)
        names = frozenset(fields_requiring_hash)
        unknown = names - self.schema.sensitive_names
        if unknown:
            raise ValueError(f"Cannot hash non-sensitive or undeclared fields: {sorted(unknown)}")
        return names

    def _field_order(self, name: str) -> tuple[int, str]:
        for index, spec in enumerate(self.schema.fields):
            if spec.name == name:
                return index, name
        return len(self.schema.fields), name
