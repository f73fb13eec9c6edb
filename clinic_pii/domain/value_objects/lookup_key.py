"""Lookup key value object."""

from dataclasses import dataclass


@dataclass(frozen=True)
class LookupKey:
    """
    Deterministic keyed hash of a normalized value, used for equality search.

    ``unique`` marks lookup keys whose ``(tenant, field_name, hash)`` must be
    unique in the record store; heuristic keys (first-name) are searchable
    but not constrained.
    """

    field_name: str
    hash: bytes
    unique: bool = False

    def __post_init__(self) -> None:
        if not self.field_name:
            raise ValueError("field_name is required")
        if not isinstance(self.hash, bytes) or not self.hash:
            raise ValueError("hash must be non-empty bytes")

    @property
    def hex(self) -> str:
        return self.hash.hex()

    @classmethod
    def from_hex(cls, field_name: str, hash_hex: str, unique: bool = False) -> "LookupKey":
        return cls(field_name=field_name, hash=bytes.fromhex(hash_hex), unique=unique)

    def __repr__(self) -> str:
        return f"LookupKey(field_name={self.field_name!r}, hash={self.hex[:12]}..., unique={self.unique})"
