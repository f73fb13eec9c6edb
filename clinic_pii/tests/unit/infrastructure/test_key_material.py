"""Unit tests for KeyMaterial construction and derivation."""

import pytest

from clinic_pii.core.config.settings import Settings
from clinic_pii.core.exceptions import KeyMaterialError, KeyMissingError, KeyTooShortError
from clinic_pii.infrastructure.security import KeyMaterial
from clinic_pii.tests.conftest import TEST_ENCRYPTION_KEY, TEST_LOOKUP_KEY, TEST_PREVIOUS_KEY


@pytest.mark.unit()
@pytest.mark.security()
class TestKeyMaterial:
    """Tests for KeyMaterial."""

    @pytest.mark.parametrize("key", [None, ""])
    def test_missing_key(self, key) -> None:
        with pytest.raises(KeyMissingError):
            KeyMaterial.create(key)

    def test_short_key(self) -> None:
        with pytest.raises(KeyTooShortError) as exc_info:
            KeyMaterial.create("x" * 31)
        assert exc_info.value.min_length == 32

    def test_length_counts_utf8_bytes(self) -> None:
        # 16 two-byte characters
        assert KeyMaterial.create("é" * 16).current_version == "k1"

    def test_short_lookup_key(self) -> None:
        with pytest.raises(KeyTooShortError):
            KeyMaterial.create(TEST_ENCRYPTION_KEY, lookup_hash_key="short")

    def test_lookup_key_equal_to_encryption_key_rejected(self) -> None:
        with pytest.raises(KeyMaterialError):
            KeyMaterial.create(TEST_ENCRYPTION_KEY, lookup_hash_key=TEST_ENCRYPTION_KEY)

    def test_derived_keys_are_separated(self, key_material: KeyMaterial) -> None:
        derived = {
            key_material.field_key("k1"),
            key_material.blob_key("k1"),
            key_material.lookup_key("phone"),
            key_material.lookup_key("email"),
            key_material.lookup_key("name"),
        }

        assert len(derived) == 5
        assert all(len(key) == 32 for key in derived)

    def test_derived_hash_root_differs_from_encryption_key(self) -> None:
        material = KeyMaterial.create(TEST_ENCRYPTION_KEY)

        assert material.hash_root != TEST_ENCRYPTION_KEY.encode()

    def test_unknown_purpose_derived_on_demand(self, key_material: KeyMaterial) -> None:
        assert key_material.lookup_key("postal_code") == key_material.lookup_key("postal_code")

    def test_unknown_version(self, key_material: KeyMaterial) -> None:
        with pytest.raises(KeyError):
            key_material.field_key("k9")

    def test_repr_hides_keys(self, key_material: KeyMaterial) -> None:
        assert TEST_ENCRYPTION_KEY not in repr(key_material)
        assert repr(key_material.field_key("k1")) not in repr(key_material)

    def test_previous_version_must_differ(self) -> None:
        with pytest.raises(KeyMaterialError):
            KeyMaterial.create(TEST_ENCRYPTION_KEY, previous_key=TEST_PREVIOUS_KEY, previous_version="k1")

    def test_with_rotated_key_keeps_old_versions_and_hash_root(self, key_material: KeyMaterial) -> None:
        rotated = key_material.with_rotated_key(TEST_PREVIOUS_KEY, "k2")

        assert rotated.current_version == "k2"
        assert set(rotated.versions) == {"k1", "k2"}
        assert rotated.field_key("k1") == key_material.field_key("k1")
        assert rotated.lookup_key("phone") == key_material.lookup_key("phone")
        assert key_material.current_version == "k1"

    def test_with_rotated_key_rejects_reused_version(self, key_material: KeyMaterial) -> None:
        with pytest.raises(KeyMaterialError):
            key_material.with_rotated_key(TEST_PREVIOUS_KEY, "k1")


@pytest.mark.unit()
class TestKeyMaterialFromSettings:
    """Tests for KeyMaterial.from_settings."""

    def test_missing_key_is_fatal(self) -> None:
        settings = Settings(_env_file=None, PII_ENCRYPTION_KEY=None)

        with pytest.raises(KeyMissingError):
            KeyMaterial.from_settings(settings)

    def test_builds_with_previous_key(self) -> None:
        settings = Settings(
            _env_file=None,
            PII_ENCRYPTION_KEY=TEST_ENCRYPTION_KEY,
            PII_ENCRYPTION_KEY_VERSION="k2",
            PII_ENCRYPTION_PREVIOUS_KEY=TEST_PREVIOUS_KEY,
            PII_ENCRYPTION_PREVIOUS_KEY_VERSION="k1",
            PII_LOOKUP_HASH_KEY=TEST_LOOKUP_KEY,
        )

        material = KeyMaterial.from_settings(settings)

        assert material.current_version == "k2"
        assert set(material.versions) == {"k1", "k2"}

    def test_rotation_through_settings_keeps_derived_lookup_keys(self) -> None:
        before = KeyMaterial.from_settings(Settings(_env_file=None, PII_ENCRYPTION_KEY=TEST_PREVIOUS_KEY))
        after = KeyMaterial.from_settings(
            Settings(
                _env_file=None,
                PII_ENCRYPTION_KEY=TEST_ENCRYPTION_KEY,
                PII_ENCRYPTION_KEY_VERSION="k2",
                PII_ENCRYPTION_PREVIOUS_KEY=TEST_PREVIOUS_KEY,
                PII_ENCRYPTION_PREVIOUS_KEY_VERSION="k1",
            )
        )

        assert after.hash_root == before.hash_root
        assert after.lookup_key("phone") == before.lookup_key("phone")
        assert after.field_key("k1") == before.field_key("k1")
