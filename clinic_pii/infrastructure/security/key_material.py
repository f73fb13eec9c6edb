"""
Key material for the PII protection layer.

One confidentiality root per key version and one hashing root are supplied at
startup. Every key a cipher or hasher actually uses is derived from those
roots with HKDF-SHA256 under a fixed, purpose-specific ``info`` label, so the
field key, the blob key and each lookup purpose key are cryptographically
independent even though they share a root.

The object is immutable once built. Rotation produces a new ``KeyMaterial``
(see ``with_rotated_key``) that callers swap in between requests.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from clinic_pii.core.config.settings import Settings
from clinic_pii.core.exceptions import KeyMaterialError, KeyMissingError, KeyTooShortError

logger = logging.getLogger(__name__)

MIN_KEY_BYTES = 32
DERIVED_KEY_BYTES = 32

_FIELD_KEY_INFO = b"clinic-pii/field-encryption/v1"
_BLOB_KEY_INFO = b"clinic-pii/blob-encryption/v1"
_LOOKUP_ROOT_INFO = b"clinic-pii/lookup-root/v1"
_LOOKUP_PURPOSE_INFO = b"clinic-pii/lookup/v1/"

DEFAULT_PURPOSES = ("phone", "email", "name")


def _hkdf(root: bytes, info: bytes) -> bytes:
    return HKDF(
        algorithm=hashes.SHA256(),
        length=DERIVED_KEY_BYTES,
        salt=None,
        info=info,
    ).derive(root)


def _validate_root(value: str | bytes | None, name: str) -> bytes:
    """
    Check a configured key against the minimum strength.

    Length is measured in bytes of the UTF-8 encoding.

    Raises:
        KeyMissingError: If the key is absent or empty
        KeyTooShortError: If the key is under ``MIN_KEY_BYTES``
    """
    if value is None or len(value) == 0:
        logger.error("%s is not configured", name)
        raise KeyMissingError(f"{name} is not configured", detail={"setting": name})

    raw = value.encode("utf-8") if isinstance(value, str) else bytes(value)
    if len(raw) < MIN_KEY_BYTES:
        logger.error("%s is shorter than %d bytes", name, MIN_KEY_BYTES)
        raise KeyTooShortError(
            f"{name} must be at least {MIN_KEY_BYTES} bytes",
            detail={"setting": name, "min_length": MIN_KEY_BYTES},
            min_length=MIN_KEY_BYTES,
        )
    return raw


def _validate_version(version: str) -> str:
    if not version or ":" in version or not version.isascii() or len(version) > 255:
        raise KeyMaterialError(
            "Key version must be a non-empty ASCII tag without ':'",
            detail={"key_version": version},
        )
    return version


@dataclass(frozen=True)
class KeyMaterial:
    """
    Immutable set of confidentiality and hashing keys.

    Attributes:
        current_version: Version tag used for every new encryption
        encryption_roots: Confidentiality root per key version; all versions
            remain decrypt-capable
        hash_root: Root of the lookup purpose keys; never equal to any
            confidentiality root
    """

    current_version: str
    encryption_roots: Mapping[str, bytes] = field(repr=False)
    hash_root: bytes = field(repr=False)
    purposes: tuple[str, ...] = DEFAULT_PURPOSES

    _field_keys: dict[str, bytes] = field(init=False, repr=False, compare=False)
    _blob_keys: dict[str, bytes] = field(init=False, repr=False, compare=False)
    _lookup_keys: dict[str, bytes] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        _validate_version(self.current_version)
        if self.current_version not in self.encryption_roots:
            raise KeyMaterialError(
                "No encryption key configured for the current version",
                detail={"key_version": self.current_version},
            )
        for version, root in self.encryption_roots.items():
            _validate_version(version)
            if root == self.hash_root:
                raise KeyMaterialError(
                    "Lookup hash key must differ from the encryption key",
                    detail={"key_version": version},
                )

        object.__setattr__(self, "encryption_roots", MappingProxyType(dict(self.encryption_roots)))
        object.__setattr__(
            self,
            "_field_keys",
            {v: _hkdf(root, _FIELD_KEY_INFO) for v, root in self.encryption_roots.items()},
        )
        object.__setattr__(
            self,
            "_blob_keys",
            {v: _hkdf(root, _BLOB_KEY_INFO) for v, root in self.encryption_roots.items()},
        )
        object.__setattr__(
            self,
            "_lookup_keys",
            {p: _hkdf(self.hash_root, _LOOKUP_PURPOSE_INFO + p.encode("utf-8")) for p in self.purposes},
        )

    @classmethod
    def create(
        cls,
        encryption_key: str | bytes | None,
        key_version: str = "k1",
        lookup_hash_key: str | bytes | None = None,
        previous_key: str | bytes | None = None,
        previous_version: str | None = None,
        purposes: Iterable[str] = DEFAULT_PURPOSES,
    ) -> "KeyMaterial":
        """
        Build key material from raw configured keys.

        Args:
            encryption_key: Current confidentiality key
            key_version: Tag written into every StoredField and blob header
            lookup_hash_key: Independent hashing root; when omitted it is
                derived under a distinct label from the oldest configured
                encryption key (the previous key if one is given), so a
                single rotation through settings keeps lookup keys stable
            previous_key: Retired confidentiality key kept for decryption
            previous_version: Version tag of the retired key
            purposes: Lookup purposes to derive keys for up front

        Returns:
            KeyMaterial instance

        Raises:
            KeyMissingError: If the encryption key is absent
            KeyTooShortError: If any supplied key is under the minimum length
            KeyMaterialError: If versions clash or the hash root equals an encryption key
        """
        current_root = _validate_root(encryption_key, "PII_ENCRYPTION_KEY")
        roots = {_validate_version(key_version): current_root}
        oldest_root = current_root

        if previous_key is not None:
            if not previous_version:
                raise KeyMaterialError("A previous key requires a previous key version")
            if previous_version in roots:
                raise KeyMaterialError(
                    "Previous key version must differ from the current version",
                    detail={"key_version": previous_version},
                )
            oldest_root = _validate_root(previous_key, "PII_ENCRYPTION_PREVIOUS_KEY")
            roots[_validate_version(previous_version)] = oldest_root

        if lookup_hash_key is not None:
            hash_root = _validate_root(lookup_hash_key, "PII_LOOKUP_HASH_KEY")
        else:
            # Lookup keys must survive rotation: derive from the key they were first made under
            hash_root = _hkdf(oldest_root, _LOOKUP_ROOT_INFO)
            if previous_key is not None:
                logger.warning(
                    "PII_LOOKUP_HASH_KEY is unset; lookup hashes stay derived from key version %s. "
                    "Configure PII_LOOKUP_HASH_KEY before rotating again.",
                    previous_version,
                )

        purpose_list = tuple(dict.fromkeys((*DEFAULT_PURPOSES, *purposes)))
        return cls(
            current_version=key_version,
            encryption_roots=roots,
            hash_root=hash_root,
            purposes=purpose_list,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "KeyMaterial":
        """
        Build key material from application settings.

        Called once at startup; any error raised here is fatal.
        """
        key_material = cls.create(
            encryption_key=_secret(settings.PII_ENCRYPTION_KEY),
            key_version=settings.PII_ENCRYPTION_KEY_VERSION,
            lookup_hash_key=_secret(settings.PII_LOOKUP_HASH_KEY),
            previous_key=_secret(settings.PII_ENCRYPTION_PREVIOUS_KEY),
            previous_version=settings.PII_ENCRYPTION_PREVIOUS_KEY_VERSION,
        )
        logger.info(
            "Key material loaded: current version %s, %d decrypt-capable versions",
            key_material.current_version,
            len(key_material.versions),
        )
        return key_material

    @property
    def versions(self) -> tuple[str, ...]:
        return tuple(self.encryption_roots)

    def field_key(self, version: str) -> bytes:
        """
        Return the 32-byte field encryption key for a version.

        Raises:
            KeyError: If the version is unknown
        """
        return self._field_keys[version]

    def blob_key(self, version: str) -> bytes:
        """
        Return the 32-byte blob encryption key for a version.

        Raises:
            KeyError: If the version is unknown
        """
        return self._blob_keys[version]

    def lookup_key(self, purpose: str) -> bytes:
        """Return the lookup hashing key for a purpose, deriving it on first use."""
        key = self._lookup_keys.get(purpose)
        if key is None:
            if not purpose:
                raise KeyMaterialError("Lookup purpose must be non-empty")
            key = _hkdf(self.hash_root, _LOOKUP_PURPOSE_INFO + purpose.encode("utf-8"))
            self._lookup_keys[purpose] = key
        return key

    def with_rotated_key(self, new_key: str | bytes, new_version: str) -> "KeyMaterial":
        """
        Return new key material encrypting under ``new_version``.

        Every existing version stays decrypt-capable and the hashing root is
        kept, so lookup keys already stored remain valid after rotation.

        Raises:
            KeyTooShortError: If the new key is under the minimum length
            KeyMaterialError: If the version is already in use
        """
        _validate_version(new_version)
        if new_version in self.encryption_roots:
            raise KeyMaterialError(
                "Key version is already in use",
                detail={"key_version": new_version},
            )
        roots = dict(self.encryption_roots)
        roots[new_version] = _validate_root(new_key, "PII_ENCRYPTION_KEY")
        logger.info("Rotating key material from %s to %s", self.current_version, new_version)
        return KeyMaterial(
            current_version=new_version,
            encryption_roots=roots,
            hash_root=self.hash_root,
            purposes=self.purposes,
        )


def _secret(value) -> str | None:
    return value.get_secret_value() if value is not None else None
