"""Record schemas."""

from clinic_pii.domain.schemas.entities import (
    BLOB_METADATA_SCHEMA,
    USER_REQUIRED_FIELDS,
    USER_SCHEMA,
)
from clinic_pii.domain.schemas.record_schema import FieldSpec, RecordSchema

__all__ = [
    "BLOB_METADATA_SCHEMA",
    "USER_REQUIRED_FIELDS",
    "USER_SCHEMA",
    "FieldSpec",
    "RecordSchema",
]
