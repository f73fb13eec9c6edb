"""
Authenticated encryption of single text values.

This module provides the FieldCipher used for every sensitive record field.
It uses Fernet (AES-128-CBC with HMAC-SHA256 for authentication and a random
IV per call), keyed by the HKDF-derived field key of each key version.
"""

import base64
import logging

from cryptography.fernet import Fernet, InvalidToken

from clinic_pii.core.exceptions import DecryptionError
from clinic_pii.domain.value_objects import StoredField
from clinic_pii.infrastructure.security.key_material import KeyMaterial

logger = logging.getLogger(__name__)


class FieldCipher:
    """
    Reversible, non-deterministic encryption of one text value.

    Two encryptions of the same plaintext never produce the same StoredField.
    The empty string maps to ``StoredField.EMPTY`` without invoking the cipher,
    and a StoredField that cannot be authenticated always raises
    ``DecryptionError`` rather than decrypting to ``""``.
    """

    def __init__(self, key_material: KeyMaterial):
        """
        Initialize the cipher with key material.

        Args:
            key_material: Keys for the current and all decrypt-capable versions
        """
        self._key_material = key_material
        self._ciphers = {
            version: Fernet(base64.urlsafe_b64encode(key_material.field_key(version)))
            for version in key_material.versions
        }

    @property
    def key_version(self) -> str:
        """Version tag written into new StoredFields."""
        return self._key_material.current_version

    def encrypt(self, plaintext: str | None) -> StoredField:
        """
        Encrypt a text value.

        Args:
            plaintext: Value to encrypt; ``None`` and ``""`` give the empty sentinel

        Returns:
            StoredField tagged with the current key version

        Raises:
            TypeError: If the value is not text
        """
        if plaintext is None or plaintext == "":
            return StoredField.EMPTY
        if not isinstance(plaintext, str):
            raise TypeError(f"FieldCipher encrypts text, got {type(plaintext).__name__}")

        token = self._ciphers[self.key_version].encrypt(plaintext.encode("utf-8"))
        return StoredField(key_version=self.key_version, token=token.decode("ascii"))

    def decrypt(self, stored: StoredField | str | None) -> str:
        """
        Decrypt a StoredField (or its serialized form) back to text.

        Args:
            stored: StoredField, or the ``"<version>:<token>"`` text read from storage

        Returns:
            The plaintext; ``""`` only for the empty sentinel

        Raises:
            DecryptionError: If the value is malformed, tagged with an unknown
                version, fails authentication or is not UTF-8
        """
        if not isinstance(stored, StoredField):
            stored = StoredField.parse(stored)
        if stored.is_empty:
            return ""

        cipher = self._ciphers.get(stored.key_version)
        if cipher is None:
            logger.warning("Stored field uses unknown key version %s", stored.key_version)
            raise DecryptionError(
                "Unknown key version",
                detail={"key_version": stored.key_version},
            )

        try:
            data = cipher.decrypt(stored.token.encode("ascii"))
        except (InvalidToken, UnicodeEncodeError) as e:
            raise DecryptionError("Stored field failed authentication") from e

        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecryptionError("Decrypted field is not valid UTF-8") from e

    def needs_rotation(self, stored: StoredField | str | None) -> bool:
        """Return True if a non-empty value was encrypted under a non-current version."""
        if not isinstance(stored, StoredField):
            stored = StoredField.parse(stored)
        return not stored.is_empty and stored.key_version != self.key_version

    def rotate(self, stored: StoredField | str | None) -> StoredField:
        """
        Re-encrypt a value under the current key version.

        Raises:
            DecryptionError: If the value cannot be decrypted with any known version
        """
        if not self.needs_rotation(stored):
            return stored if isinstance(stored, StoredField) else StoredField.parse(stored)
        return self.encrypt(self.decrypt(stored))
