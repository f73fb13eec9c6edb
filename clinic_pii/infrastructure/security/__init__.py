"""Security infrastructure: key material and encryption components."""

from clinic_pii.infrastructure.security.encryption import (
    BlobCipher,
    FieldCipher,
    LookupHasher,
    PIIRecordCodec,
)
from clinic_pii.infrastructure.security.key_material import KeyMaterial

__all__ = ["BlobCipher", "FieldCipher", "KeyMaterial", "LookupHasher", "PIIRecordCodec"]
