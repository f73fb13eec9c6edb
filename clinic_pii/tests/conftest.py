"""
Shared fixtures for the clinic_pii test suite.

Fixtures build real key material and ciphers from fixed test keys; nothing
here reads the process environment.
"""

import pytest

from clinic_pii.application.services import BlobPipeline, DuplicateDetector, PIIRecordService
from clinic_pii.core.config.settings import Settings
from clinic_pii.domain.schemas import BLOB_METADATA_SCHEMA, USER_SCHEMA
from clinic_pii.domain.value_objects import TenantScope
from clinic_pii.infrastructure.persistence import InMemoryPIIRecordStore
from clinic_pii.infrastructure.security import (
    BlobCipher,
    FieldCipher,
    KeyMaterial,
    LookupHasher,
    PIIRecordCodec,
)
from clinic_pii.infrastructure.storage import InMemoryBlobStore

TEST_ENCRYPTION_KEY = "test_encryption_key_longer_than_32_chars"
TEST_PREVIOUS_KEY = "previous_test_key_also_longer_than_32"
TEST_LOOKUP_KEY = "test_lookup_hash_key_longer_than_32_chars"


def pytest_configure(config) -> None:
    """Register custom markers used in the test suite."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "security: Tests specifically validating security features")
    config.addinivalue_line("markers", "slow: Tests that take longer than 1 second to execute")


@pytest.fixture
def test_settings() -> Settings:
    """Settings built explicitly, independent of any .env file."""
    return Settings(
        _env_file=None,
        ENVIRONMENT="test",
        PII_ENCRYPTION_KEY=TEST_ENCRYPTION_KEY,
        PII_LOOKUP_HASH_KEY=TEST_LOOKUP_KEY,
        DATABASE_URL="sqlite+aiosqlite:///:memory:",
    )


@pytest.fixture
def key_material() -> KeyMaterial:
    return KeyMaterial.create(TEST_ENCRYPTION_KEY, key_version="k1", lookup_hash_key=TEST_LOOKUP_KEY)


@pytest.fixture
def field_cipher(key_material: KeyMaterial) -> FieldCipher:
    return FieldCipher(key_material)


@pytest.fixture
def lookup_hasher(key_material: KeyMaterial) -> LookupHasher:
    return LookupHasher(key_material)


@pytest.fixture
def blob_cipher(key_material: KeyMaterial) -> BlobCipher:
    return BlobCipher(key_material, chunk_size=4096)


@pytest.fixture
def user_codec(field_cipher: FieldCipher, lookup_hasher: LookupHasher) -> PIIRecordCodec:
    return PIIRecordCodec(USER_SCHEMA, field_cipher, lookup_hasher)


@pytest.fixture
def record_store() -> InMemoryPIIRecordStore:
    return InMemoryPIIRecordStore()


@pytest.fixture
def blob_store() -> InMemoryBlobStore:
    return InMemoryBlobStore()


@pytest.fixture
def duplicate_detector(record_store, lookup_hasher) -> DuplicateDetector:
    return DuplicateDetector(record_store, lookup_hasher)


@pytest.fixture
def record_service(record_store, user_codec, duplicate_detector) -> PIIRecordService:
    return PIIRecordService(record_store, user_codec, duplicate_detector)


@pytest.fixture
def blob_pipeline(blob_store, blob_cipher, field_cipher, lookup_hasher) -> BlobPipeline:
    return BlobPipeline(
        blob_store,
        blob_cipher,
        metadata_codec=PIIRecordCodec(BLOB_METADATA_SCHEMA, field_cipher, lookup_hasher),
    )


@pytest.fixture
def clinic_a() -> TenantScope:
    return TenantScope("clinic-a")


@pytest.fixture
def clinic_b() -> TenantScope:
    return TenantScope("clinic-b")


@pytest.fixture
def registration() -> dict:
    """A complete, valid registration."""
    return {
        "full_name": "Tan Wei Ming",
        "phone": "+65 9123-4567",
        "email": "Wei.Ming@Example.com",
        "id_last4": "567A",
        "dob": "01/02/1990",
        "postal_code": "123456",
        "block_no": "12",
        "street": "Clementi Ave 3",
        "building": "",
        "floor": "05",
        "unit": "123",
        "other_health_notes": "Allergic to penicillin",
        "is_guardian": False,
    }
