"""
Blob store interface definition.

The blob store only ever holds ciphertext; encryption and decryption happen
in the blob pipeline before ``put`` and after ``get``.
"""

from abc import ABC, abstractmethod


class IBlobStore(ABC):
    """Abstract interface for bucket/key object storage."""

    @abstractmethod
    def put(self, bucket: str, key: str, data: bytes) -> None:
        """Store bytes under a key, replacing any existing object."""
        raise NotImplementedError

    @abstractmethod
    def get(self, bucket: str, key: str) -> bytes:
        """
        Retrieve the bytes stored under a key.

        Raises:
            BlobNotFoundError: If the bucket or key does not exist
        """
        raise NotImplementedError

    @abstractmethod
    def delete(self, bucket: str, keys: list[str]) -> None:
        """Delete keys from a bucket; missing keys are ignored."""
        raise NotImplementedError

    @abstractmethod
    def list_keys(self, bucket: str, prefix: str | None = None, limit: int = 100) -> list[str]:
        """List up to ``limit`` keys in a bucket, optionally filtered by prefix."""
        raise NotImplementedError
