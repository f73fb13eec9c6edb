"""Blob store implementations."""

from clinic_pii.infrastructure.storage.in_memory_blob_store import InMemoryBlobStore
from clinic_pii.infrastructure.storage.s3_blob_store import S3BlobStore

__all__ = ["InMemoryBlobStore", "S3BlobStore"]
