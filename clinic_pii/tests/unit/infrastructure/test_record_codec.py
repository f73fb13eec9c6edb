"""Unit tests for PIIRecordCodec."""

import pytest

from clinic_pii.core.exceptions import RecordDecodeError
from clinic_pii.domain.schemas import USER_SCHEMA
from clinic_pii.domain.value_objects import StoragePayload, StoredField, TenantScope
from clinic_pii.infrastructure.security import FieldCipher, KeyMaterial, LookupHasher, PIIRecordCodec
from clinic_pii.tests.conftest import TEST_LOOKUP_KEY, TEST_PREVIOUS_KEY


def _replace_field(payload: StoragePayload, name: str, value: str) -> StoragePayload:
    fields = dict(payload.fields)
    fields[name] = value
    return StoragePayload(
        clinic_id=payload.clinic_id,
        entity=payload.entity,
        fields=fields,
        lookup_keys=payload.lookup_keys,
        attributes=payload.attributes,
        record_id=payload.record_id,
        created_at=payload.created_at,
    )


@pytest.mark.unit()
@pytest.mark.security()
class TestPIIRecordCodecEncode:
    """Tests for PIIRecordCodec.encode."""

    def test_every_sensitive_field_is_encrypted(
        self, user_codec: PIIRecordCodec, clinic_a: TenantScope, registration: dict
    ) -> None:
        payload = user_codec.encode(clinic_a, registration)

        assert set(payload.fields) == USER_SCHEMA.sensitive_names
        for name, value in registration.items():
            if name in USER_SCHEMA.sensitive_names and len(value) >= 6:
                assert value not in payload.fields[name]

    def test_missing_and_empty_fields_store_sentinel(
        self, user_codec: PIIRecordCodec, clinic_a: TenantScope, registration: dict
    ) -> None:
        payload = user_codec.encode(clinic_a, registration)

        assert payload.fields["building"] == ""
        assert payload.fields["selfie"] == ""

    def test_non_sensitive_attributes_pass_through(
        self, user_codec: PIIRecordCodec, clinic_a: TenantScope, registration: dict
    ) -> None:
        payload = user_codec.encode(clinic_a, registration)

        assert payload.attributes == {"is_guardian": False}
        assert payload.clinic_id == "clinic-a"
        assert payload.entity == "user"

    def test_lookup_keys_for_hashed_fields(
        self,
        user_codec: PIIRecordCodec,
        lookup_hasher: LookupHasher,
        clinic_a: TenantScope,
        registration: dict,
    ) -> None:
        payload = user_codec.encode(clinic_a, registration)

        assert {key.field_name for key in payload.lookup_keys} == {"full_name", "phone", "email"}
        assert payload.lookup_key("phone").hash == lookup_hasher.hash("6591234567", "phone")
        assert payload.lookup_key("email").hash == lookup_hasher.hash("wei.ming@example.com", "email")
        assert payload.lookup_key("full_name").hash == lookup_hasher.hash("TAN", "name")
        assert {key.field_name for key in payload.unique_lookup_keys} == {"phone", "email"}

    def test_empty_hashed_field_gets_no_lookup_key(
        self, user_codec: PIIRecordCodec, clinic_a: TenantScope, registration: dict
    ) -> None:
        registration["email"] = ""

        payload = user_codec.encode(clinic_a, registration)

        assert payload.lookup_key("email") is None

    def test_explicit_fields_requiring_hash(
        self, user_codec: PIIRecordCodec, clinic_a: TenantScope, registration: dict
    ) -> None:
        payload = user_codec.encode(clinic_a, registration, fields_requiring_hash=["phone", "postal_code"])

        assert {key.field_name for key in payload.lookup_keys} == {"phone", "postal_code"}

    def test_hashing_non_sensitive_field_rejected(
        self, user_codec: PIIRecordCodec, clinic_a: TenantScope, registration: dict
    ) -> None:
        with pytest.raises(ValueError):
            user_codec.encode(clinic_a, registration, fields_requiring_hash=["is_guardian"])

    def test_non_text_sensitive_value_rejected(
        self, user_codec: PIIRecordCodec, clinic_a: TenantScope, registration: dict
    ) -> None:
        registration["dob"] = 19900201

        with pytest.raises(TypeError):
            user_codec.encode(clinic_a, registration)

    def test_record_id_override(self, user_codec: PIIRecordCodec, clinic_a: TenantScope, registration: dict) -> None:
        assert user_codec.encode(clinic_a, registration, record_id="fixed-id").record_id == "fixed-id"


@pytest.mark.unit()
@pytest.mark.security()
class TestPIIRecordCodecDecode:
    """Tests for PIIRecordCodec.decode and decode_fields."""

    def test_round_trip(self, user_codec: PIIRecordCodec, clinic_a: TenantScope, registration: dict) -> None:
        payload = user_codec.encode(clinic_a, registration)

        record = user_codec.decode(payload)

        for name, value in registration.items():
            assert record[name] == value
        assert record["selfie"] == ""
        assert record["id"] == payload.record_id
        assert record["clinic_id"] == "clinic-a"

    def test_decode_failure_names_field(
        self, user_codec: PIIRecordCodec, clinic_a: TenantScope, registration: dict
    ) -> None:
        payload = _replace_field(user_codec.encode(clinic_a, registration), "dob", "k1:corrupted")

        with pytest.raises(RecordDecodeError) as exc_info:
            user_codec.decode(payload)

        assert exc_info.value.field_name == "dob"
        assert "01/02/1990" not in str(exc_info.value)

    def test_wrong_key_fails_whole_record(self, user_codec: PIIRecordCodec, clinic_a: TenantScope, registration: dict) -> None:
        other_material = KeyMaterial.create(TEST_PREVIOUS_KEY, lookup_hash_key=TEST_LOOKUP_KEY)
        other = PIIRecordCodec(USER_SCHEMA, FieldCipher(other_material), LookupHasher(other_material))

        with pytest.raises(RecordDecodeError) as exc_info:
            other.decode(user_codec.encode(clinic_a, registration))

        assert exc_info.value.field_name == "full_name"

    def test_decode_fields_only_touches_requested(
        self, user_codec: PIIRecordCodec, clinic_a: TenantScope, registration: dict
    ) -> None:
        payload = _replace_field(user_codec.encode(clinic_a, registration), "dob", "k1:corrupted")

        assert user_codec.decode_fields(payload, ["full_name"]) == {"full_name": "Tan Wei Ming"}

    def test_field_missing_from_payload_decodes_empty(
        self, user_codec: PIIRecordCodec, field_cipher: FieldCipher, clinic_a: TenantScope
    ) -> None:
        payload = StoragePayload(
            clinic_id=clinic_a.clinic_id,
            entity="user",
            fields={"full_name": field_cipher.encrypt("Old Record").serialize()},
        )

        record = user_codec.decode(payload)

        assert record["full_name"] == "Old Record"
        assert record["phone"] == ""

    def test_accepts_stored_field_sentinel(self, user_codec: PIIRecordCodec, clinic_a: TenantScope) -> None:
        payload = StoragePayload(
            clinic_id=clinic_a.clinic_id,
            entity="user",
            fields={"full_name": StoredField.EMPTY.serialize()},
        )

        assert user_codec.decode_fields(payload, ["full_name"]) == {"full_name": ""}
