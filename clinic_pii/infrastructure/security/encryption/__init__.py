"""
Encryption components of the PII protection layer.

Field-level encryption, lookup hashing, blob encryption and the record codec
that composes them.
"""

from clinic_pii.infrastructure.security.encryption.blob_cipher import BlobCipher
from clinic_pii.infrastructure.security.encryption.field_cipher import FieldCipher
from clinic_pii.infrastructure.security.encryption.lookup_hasher import LookupHasher
from clinic_pii.infrastructure.security.encryption.record_codec import PIIRecordCodec

__all__ = ["BlobCipher", "FieldCipher", "LookupHasher", "PIIRecordCodec"]
