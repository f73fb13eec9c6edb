"""Schemas of the clinic entities that carry PII."""

from clinic_pii.domain.schemas.record_schema import FieldSpec, RecordSchema

USER_SCHEMA = RecordSchema(
    entity="user",
    fields=(
        FieldSpec("full_name", hashed=True, purpose="name"),
        FieldSpec("phone", hashed=True, unique=True),
        FieldSpec("email", hashed=True, unique=True),
        FieldSpec("id_last4"),
        FieldSpec("dob"),
        FieldSpec("postal_code"),
        FieldSpec("block_no"),
        FieldSpec("street"),
        FieldSpec("building"),
        FieldSpec("floor"),
        FieldSpec("unit"),
        FieldSpec("other_health_notes"),
        FieldSpec("signature"),
        FieldSpec("selfie"),
    ),
)

BLOB_METADATA_SCHEMA = RecordSchema(
    entity="blob",
    fields=(FieldSpec("original_filename"),),
)

# Fields every user registration must supply
USER_REQUIRED_FIELDS = ("full_name", "phone", "email")
