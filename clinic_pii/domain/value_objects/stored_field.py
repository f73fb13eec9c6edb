"""
Stored field value object.

A ``StoredField`` is the persisted form of one sensitive value: a key version
tag plus an authenticated ciphertext token (the nonce is embedded in the
token). It serializes to ``"<key_version>:<token>"``; the empty sentinel
serializes to ``""`` and stands for a legitimately empty value.
"""

from dataclasses import dataclass
from typing import ClassVar

from clinic_pii.core.exceptions import DecryptionError

SEPARATOR = ":"


@dataclass(frozen=True)
class StoredField:
    """Persisted ciphertext form of one sensitive value."""

    key_version: str
    token: str

    EMPTY: ClassVar["StoredField"]

    def __post_init__(self) -> None:
        if SEPARATOR in self.key_version:
            raise ValueError(f"key_version must not contain '{SEPARATOR}'")
        if bool(self.key_version) != bool(self.token):
            raise ValueError("key_version and token must both be set or both be empty")

    @property
    def is_empty(self) -> bool:
        return not self.token

    def serialize(self) -> str:
        if self.is_empty:
            return ""
        return f"{self.key_version}{SEPARATOR}{self.token}"

    @classmethod
    def parse(cls, value: str | None) -> "StoredField":
        """
        Parse the serialized form back into a StoredField.

        Raises:
            DecryptionError: If the value is not a well-formed StoredField
        """
        if value is None or value == "":
            return cls.EMPTY
        if not isinstance(value, str):
            raise DecryptionError("Malformed stored field", detail="expected text")

        key_version, sep, token = value.partition(SEPARATOR)
        if not sep or not key_version or not token:
            raise DecryptionError("Malformed stored field", detail="missing key version tag")
        return cls(key_version=key_version, token=token)

    def __str__(self) -> str:
        return self.serialize()


StoredField.EMPTY = StoredField(key_version="", token="")
