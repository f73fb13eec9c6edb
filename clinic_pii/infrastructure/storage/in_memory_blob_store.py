"""
In-memory blob store for tests and local development.
"""

import threading

from clinic_pii.core.exceptions import BlobNotFoundError
from clinic_pii.core.interfaces import IBlobStore


class InMemoryBlobStore(IBlobStore):
    """In-memory bucket/key storage."""

    def __init__(self) -> None:
        """Initialize with empty buckets storage."""
        self._buckets: dict[str, dict[str, bytes]] = {}
        self._lock = threading.Lock()

    def put(self, bucket: str, key: str, data: bytes) -> None:
        with self._lock:
            self._buckets.setdefault(bucket, {})[key] = bytes(data)

    def get(self, bucket: str, key: str) -> bytes:
        try:
            return self._buckets[bucket][key]
        except KeyError as e:
            raise BlobNotFoundError(bucket, key) from e

    def delete(self, bucket: str, keys: list[str]) -> None:
        with self._lock:
            objects = self._buckets.get(bucket, {})
            for key in keys:
                objects.pop(key, None)

    def list_keys(self, bucket: str, prefix: str | None = None, limit: int = 100) -> list[str]:
        keys = sorted(
            key
            for key in self._buckets.get(bucket, {})
            if prefix is None or key.startswith(prefix)
        )
        return keys[:limit]

