"""
Keyed lookup hashes for equality search over encrypted fields.

Hashes are HMAC-SHA256 under a per-purpose key, so the same value hashed for
``phone`` and for ``email`` never correlates. The keys come from the hashing
root of the key material, which is kept separate from every encryption key.
"""

import hashlib
import hmac

from clinic_pii.domain.schemas import FieldSpec
from clinic_pii.domain.utils import normalize_for_purpose
from clinic_pii.domain.value_objects import LookupKey
from clinic_pii.infrastructure.security.key_material import KeyMaterial


class LookupHasher:
    """Deterministic keyed one-way transform of normalized values."""

    def __init__(self, key_material: KeyMaterial):
        self._key_material = key_material

    def hash(self, normalized_text: str, purpose: str) -> bytes:
        """
        Hash an already-normalized value under the purpose key.

        Args:
            normalized_text: Output of the purpose's normalization rule
            purpose: Lookup purpose (``phone``, ``email``, ``name``, ...)

        Returns:
            32-byte digest
        """
        key = self._key_material.lookup_key(purpose)
        return hmac.new(key, normalized_text.encode("utf-8"), hashlib.sha256).digest()

    def hash_value(self, raw_value: str | None, purpose: str) -> bytes | None:
        """
        Normalize a raw value for the purpose and hash it.

        Returns:
            The digest, or None if the value normalizes to the empty string
        """
        normalized = normalize_for_purpose(purpose, raw_value)
        if not normalized:
            return None
        return self.hash(normalized, purpose)

    def lookup_key(self, spec: FieldSpec, raw_value: str | None) -> LookupKey | None:
        """Build the LookupKey for a hashed field, or None for an empty value."""
        digest = self.hash_value(raw_value, spec.hash_purpose)
        if digest is None:
            return None
        return LookupKey(field_name=spec.name, hash=digest, unique=spec.unique)

    def matches(self, raw_value: str | None, purpose: str, expected: bytes) -> bool:
        """Constant-time comparison of a raw value against a stored lookup hash."""
        digest = self.hash_value(raw_value, purpose)
        return digest is not None and hmac.compare_digest(digest, expected)
