"""
Encrypt-then-store and fetch-then-decrypt for binary assets.

Signatures and selfies are encrypted as single opaque payloads with the
BlobCipher before they reach the blob store. Object keys are generated and
never contain the original filename, which is PII; the filename travels
encrypted in the blob's metadata record instead.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Any

from clinic_pii.core.interfaces import IBlobStore
from clinic_pii.domain.value_objects import StoragePayload, TenantScope
from clinic_pii.infrastructure.security.encryption import BlobCipher, PIIRecordCodec

logger = logging.getLogger(__name__)

IMAGE_BUCKETS = frozenset({"selfies", "signatures"})
DEFAULT_CONTENT_TYPE = "application/octet-stream"
IMAGE_CONTENT_TYPE = "image/jpeg"


def default_content_type(bucket: str) -> str:
    """Content type assumed for a bucket when the caller supplies none."""
    return IMAGE_CONTENT_TYPE if bucket in IMAGE_BUCKETS else DEFAULT_CONTENT_TYPE


@dataclass(frozen=True)
class BlobMetadata:
    """Caller-supplied description of a payload; never derived from ciphertext."""

    content_type: str | None = None
    original_filename: str | None = None


@dataclass(frozen=True)
class BlobHandle:
    """Reference to an encrypted blob in the blob store."""

    bucket: str
    key: str
    content_type: str
    key_version: str
    size: int = 0


class BlobPipeline:
    """Orchestrates BlobCipher and the blob store."""

    def __init__(
        self,
        blob_store: IBlobStore,
        blob_cipher: BlobCipher,
        metadata_codec: PIIRecordCodec | None = None,
    ):
        """
        Initialize the pipeline.

        Args:
            blob_store: Store receiving ciphertext only
            blob_cipher: Cipher for payloads
            metadata_codec: Codec for blob metadata records; required by
                ``metadata_record`` and ``read_metadata``
        """
        self._store = blob_store
        self._cipher = blob_cipher
        self._metadata_codec = metadata_codec

    def store(
        self,
        tenant: TenantScope,
        bucket: str,
        data: bytes,
        metadata: BlobMetadata | None = None,
        key: str | None = None,
    ) -> BlobHandle:
        """
        Encrypt a payload and hand the ciphertext to the blob store.

        Args:
            tenant: Clinic owning the blob; generated keys are prefixed with it
            bucket: Target bucket
            data: Plaintext payload
            metadata: Content type and original filename
            key: Object key to use instead of a generated one

        Returns:
            BlobHandle for ``fetch``
        """
        metadata = metadata or BlobMetadata()
        object_key = key or f"{tenant.clinic_id}/{uuid.uuid4().hex}"
        ciphertext = self._cipher.encrypt(data)
        self._store.put(bucket, object_key, ciphertext)

        handle = BlobHandle(
            bucket=bucket,
            key=object_key,
            content_type=metadata.content_type or default_content_type(bucket),
            key_version=self._cipher.key_version,
            size=len(data),
        )
        logger.info("Stored encrypted blob in bucket %s (%d bytes)", bucket, len(data))
        return handle

    def fetch(self, handle: BlobHandle) -> bytes:
        """
        Retrieve and decrypt a blob.

        Raises:
            BlobNotFoundError: If nothing is stored under the handle
            DecryptionError: If the blob is present but cannot be decrypted
        """
        ciphertext = self._store.get(handle.bucket, handle.key)
        return self._cipher.decrypt(ciphertext)

    def delete(self, handles: list[BlobHandle]) -> None:
        """Delete blobs, grouped per bucket."""
        by_bucket: dict[str, list[str]] = {}
        for handle in handles:
            by_bucket.setdefault(handle.bucket, []).append(handle.key)
        for bucket, keys in by_bucket.items():
            self._store.delete(bucket, keys)
            logger.info("Deleted %d blobs from bucket %s", len(keys), bucket)

    def list(self, tenant: TenantScope, bucket: str, prefix: str | None = None, limit: int = 100) -> list[str]:
        """List a clinic's object keys in a bucket, optionally narrowed by a prefix."""
        scoped_prefix = f"{tenant.clinic_id}/{prefix or ''}"
        return self._store.list_keys(bucket, prefix=scoped_prefix, limit=limit)

    def metadata_record(
        self, tenant: TenantScope, handle: BlobHandle, metadata: BlobMetadata | None = None
    ) -> StoragePayload:
        """
        Encode a blob's metadata for the record store.

        The original filename is encrypted; bucket, key, content type and size
        are plaintext attributes.
        """
        metadata = metadata or BlobMetadata()
        return self._require_codec().encode(
            tenant,
            {
                "original_filename": metadata.original_filename,
                "bucket": handle.bucket,
                "object_key": handle.key,
                "content_type": handle.content_type,
                "size": handle.size,
                "key_version": handle.key_version,
            },
        )

    def read_metadata(self, payload: StoragePayload) -> tuple[BlobHandle, dict[str, Any]]:
        """
        Decode a metadata record back into a handle and its decrypted fields.

        Raises:
            RecordDecodeError: If the original filename fails to decrypt
        """
        record = self._require_codec().decode(payload)
        handle = BlobHandle(
            bucket=record["bucket"],
            key=record["object_key"],
            content_type=record["content_type"],
            key_version=record["key_version"],
            size=record.get("size", 0),
        )
        return handle, record

    def _require_codec(self) -> PIIRecordCodec:
        if self._metadata_codec is None:
            raise RuntimeError("BlobPipeline was built without a metadata codec")
        return self._metadata_codec
