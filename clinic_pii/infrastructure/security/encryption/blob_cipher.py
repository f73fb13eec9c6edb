"""
Chunked authenticated encryption of binary payloads (signatures, selfies).

Payloads are encrypted with AES-256-GCM in fixed-size chunks so a large image
never has to be held as a single cipher call. Framing::

    header  = b"CPB1" | len(version) (1 byte) | version | nonce prefix (7 bytes)
              | chunk size (4 bytes, big-endian)
    body    = chunk_0 | chunk_1 | ... | chunk_n      (each ciphertext + 16-byte tag)

The nonce of chunk ``i`` is ``prefix | i (4 bytes, big-endian) | final flag``
and the full header is bound as associated data to every chunk. Reordered,
dropped, or appended chunks and any header change all fail authentication.
"""

import io
import logging
import os
import struct
from typing import BinaryIO, Iterator

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from clinic_pii.core.exceptions import DecryptionError
from clinic_pii.infrastructure.security.key_material import KeyMaterial

logger = logging.getLogger(__name__)

MAGIC = b"CPB1"
NONCE_PREFIX_SIZE = 7
TAG_SIZE = 16
DEFAULT_CHUNK_SIZE = 64 * 1024
MIN_CHUNK_SIZE = 1024
MAX_CHUNK_SIZE = 16 * 1024 * 1024
MAX_CHUNKS = 2**32 - 1

_CHUNK_SIZE = struct.Struct(">I")


def _read_full(source: BinaryIO, size: int) -> bytes:
    """Read up to ``size`` bytes, looping over short reads until EOF."""
    parts = []
    remaining = size
    while remaining > 0:
        data = source.read(remaining)
        if not data:
            break
        parts.append(data)
        remaining -= len(data)
    return b"".join(parts)


def _blocks(source: BinaryIO, size: int) -> Iterator[tuple[bytes, bool]]:
    """
    Yield ``(block, is_last)`` pairs with one block of lookahead.

    An empty source yields a single empty final block.
    """
    current = _read_full(source, size)
    while True:
        following = _read_full(source, size) if len(current) == size else b""
        is_last = not following
        yield current, is_last
        if is_last:
            return
        current = following


def _nonce(prefix: bytes, counter: int, final: bool) -> bytes:
    if counter > MAX_CHUNKS:
        raise ValueError("Blob exceeds the maximum number of chunks")
    return prefix + counter.to_bytes(4, "big") + (b"\x01" if final else b"\x00")


class BlobCipher:
    """Streaming-safe AES-256-GCM encryption of opaque binary payloads."""

    def __init__(self, key_material: KeyMaterial, chunk_size: int = DEFAULT_CHUNK_SIZE):
        """
        Initialize the cipher.

        Args:
            key_material: Keys for the current and all decrypt-capable versions
            chunk_size: Plaintext bytes per encrypted chunk

        Raises:
            ValueError: If the chunk size is out of range
        """
        if not MIN_CHUNK_SIZE <= chunk_size <= MAX_CHUNK_SIZE:
            raise ValueError(f"chunk_size must be between {MIN_CHUNK_SIZE} and {MAX_CHUNK_SIZE}")
        self._key_material = key_material
        self._chunk_size = chunk_size
        self._ciphers = {
            version: AESGCM(key_material.blob_key(version)) for version in key_material.versions
        }

    @property
    def key_version(self) -> str:
        return self._key_material.current_version

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    def encrypt(self, data: bytes) -> bytes:
        """Encrypt a whole payload held in memory."""
        sink = io.BytesIO()
        self.encrypt_stream(io.BytesIO(data), sink)
        return sink.getvalue()

    def decrypt(self, data: bytes) -> bytes:
        """
        Decrypt a whole payload held in memory.

        Raises:
            DecryptionError: If the payload is malformed, truncated, tampered
                with, or encrypted under an unknown key version
        """
        sink = io.BytesIO()
        self.decrypt_stream(io.BytesIO(data), sink)
        return sink.getvalue()

    def encrypt_stream(self, source: BinaryIO, sink: BinaryIO) -> int:
        """
        Encrypt from a binary file object into another.

        Args:
            source: Readable plaintext stream
            sink: Writable stream receiving the framed ciphertext

        Returns:
            Number of plaintext bytes encrypted
        """
        version = self.key_version.encode("ascii")
        prefix = os.urandom(NONCE_PREFIX_SIZE)
        header = (
            MAGIC
            + bytes([len(version)])
            + version
            + prefix
            + _CHUNK_SIZE.pack(self._chunk_size)
        )
        cipher = self._ciphers[self.key_version]

        sink.write(header)
        total = 0
        for counter, (block, is_last) in enumerate(_blocks(source, self._chunk_size)):
            sink.write(cipher.encrypt(_nonce(prefix, counter, is_last), block, header))
            total += len(block)

        logger.debug("Encrypted blob of %d bytes under key version %s", total, self.key_version)
        return total

    def decrypt_stream(self, source: BinaryIO, sink: BinaryIO) -> int:
        """
        Decrypt from a binary file object into another.

        Plaintext is written chunk by chunk as each chunk authenticates; on
        error the sink may hold a verified prefix and must be discarded.

        Returns:
            Number of plaintext bytes written

        Raises:
            DecryptionError: If the payload is malformed, truncated, tampered
                with, or encrypted under an unknown key version
        """
        header, version, prefix, chunk_size = self._read_header(source)
        cipher = self._ciphers.get(version)
        if cipher is None:
            logger.warning("Blob uses unknown key version %s", version)
            raise DecryptionError("Unknown key version", detail={"key_version": version})

        total = 0
        for counter, (block, is_last) in enumerate(_blocks(source, chunk_size + TAG_SIZE)):
            if len(block) < TAG_SIZE:
                raise DecryptionError("Blob ciphertext is truncated")
            try:
                plaintext = cipher.decrypt(_nonce(prefix, counter, is_last), block, header)
            except InvalidTag as e:
                raise DecryptionError("Blob failed authentication") from e
            except ValueError as e:
                raise DecryptionError("Blob exceeds the maximum number of chunks") from e
            sink.write(plaintext)
            total += len(plaintext)
        return total

    def key_version_of(self, data: bytes) -> str:
        """Return the key version recorded in a ciphertext header."""
        return self._read_header(io.BytesIO(data))[1]

    @staticmethod
    def _read_header(source: BinaryIO) -> tuple[bytes, str, bytes, int]:
        magic = _read_full(source, len(MAGIC) + 1)
        if len(magic) != len(MAGIC) + 1 or magic[: len(MAGIC)] != MAGIC:
            raise DecryptionError("Not an encrypted blob", detail="bad magic")

        version_len = magic[-1]
        rest = _read_full(source, version_len + NONCE_PREFIX_SIZE + _CHUNK_SIZE.size)
        if len(rest) != version_len + NONCE_PREFIX_SIZE + _CHUNK_SIZE.size or version_len == 0:
            raise DecryptionError("Blob header is truncated")

        try:
            version = rest[:version_len].decode("ascii")
        except UnicodeDecodeError as e:
            raise DecryptionError("Blob header is malformed") from e
        prefix = rest[version_len : version_len + NONCE_PREFIX_SIZE]
        (chunk_size,) = _CHUNK_SIZE.unpack(rest[version_len + NONCE_PREFIX_SIZE :])
        if not MIN_CHUNK_SIZE <= chunk_size <= MAX_CHUNK_SIZE:
            raise DecryptionError("Blob header is malformed", detail="chunk size out of range")

        return magic + rest, version, prefix, chunk_size
