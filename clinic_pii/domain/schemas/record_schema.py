"""
Declared record schemas.

A schema is the ordered list of sensitive fields of one entity. Adding a new
sensitive field to an entity is a one-line change here; the codec, the
duplicate detector and the stores all read from the schema.
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class FieldSpec:
    """
    Declaration of one field of a record.

    Attributes:
        name: Attribute name in the raw record
        sensitive: Encrypt the value; never persist it in plaintext
        hashed: Also emit a LookupKey for equality search
        unique: The LookupKey must be unique per tenant in the record store
        purpose: Hashing purpose (selects normalization rule and purpose key);
            defaults to the field name
    """

    name: str
    sensitive: bool = True
    hashed: bool = False
    unique: bool = False
    purpose: str | None = None

    def __post_init__(self) -> None:
        if self.unique and not self.hashed:
            raise ValueError(f"Field '{self.name}' cannot be unique without being hashed")
        if self.hashed and not self.sensitive:
            raise ValueError(f"Field '{self.name}' is hashed but not sensitive")

    @property
    def hash_purpose(self) -> str:
        return self.purpose or self.name


@dataclass(frozen=True)
class RecordSchema:
    """Ordered field declarations for one entity."""

    entity: str
    fields: tuple[FieldSpec, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        names = [spec.name for spec in self.fields]
        if len(names) != len(set(names)):
            raise ValueError(f"Schema '{self.entity}' declares a field twice")

    @property
    def sensitive_fields(self) -> tuple[FieldSpec, ...]:
        return tuple(spec for spec in self.fields if spec.sensitive)

    @property
    def hashed_fields(self) -> tuple[FieldSpec, ...]:
        return tuple(spec for spec in self.fields if spec.hashed)

    @property
    def sensitive_names(self) -> frozenset[str]:
        return frozenset(spec.name for spec in self.sensitive_fields)

    def get(self, name: str) -> FieldSpec:
        for spec in self.fields:
            if spec.name == name:
                return spec
        raise KeyError(f"Schema '{self.entity}' has no field '{name}'")

    def field_for_purpose(self, purpose: str) -> FieldSpec | None:
        for spec in self.hashed_fields:
            if spec.hash_purpose == purpose:
                return spec
        return None
