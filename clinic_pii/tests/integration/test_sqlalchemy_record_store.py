"""Integration tests for the SQLAlchemy record store on SQLite (aiosqlite)."""

import asyncio
from datetime import UTC, date, datetime, timedelta, timezone
from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio

from clinic_pii.application.services import DuplicateDetector, PIIRecordService
from clinic_pii.core.exceptions import ConstraintViolationError, DuplicateCandidateError, RecordNotFoundError
from clinic_pii.domain.value_objects import TenantScope
from clinic_pii.infrastructure.persistence.sqlalchemy import (
    SQLAlchemyPIIRecordStore,
    create_session_factory,
    create_tables,
)
from clinic_pii.infrastructure.security import LookupHasher, PIIRecordCodec


@pytest_asyncio.fixture
async def sql_store(tmp_path) -> AsyncGenerator[SQLAlchemyPIIRecordStore, None]:
    """Create a file-backed SQLite record store with all tables."""
    engine, session_factory = create_session_factory(f"sqlite+aiosqlite:///{tmp_path / 'records.db'}")
    await create_tables(engine)
    yield SQLAlchemyPIIRecordStore(session_factory)
    await engine.dispose()


@pytest.mark.integration()
class TestSQLAlchemyPIIRecordStore:
    """Tests for SQLAlchemyPIIRecordStore."""

    @pytest.mark.asyncio
    async def test_insert_get_find(
        self, sql_store: SQLAlchemyPIIRecordStore, user_codec: PIIRecordCodec, clinic_a: TenantScope, registration: dict
    ) -> None:
        payload = user_codec.encode(clinic_a, registration)

        await sql_store.insert(payload)
        loaded = await sql_store.get_by_id(clinic_a, payload.record_id)
        found = await sql_store.find_by_hash(clinic_a, "phone", payload.lookup_key("phone").hash)

        assert loaded.fields == payload.fields
        assert loaded.attributes == {"is_guardian": False}
        assert set(loaded.lookup_keys) == set(payload.lookup_keys)
        assert loaded.created_at.tzinfo is not None
        assert found.record_id == payload.record_id
        assert user_codec.decode(loaded)["email"] == registration["email"]

    @pytest.mark.asyncio
    async def test_find_is_tenant_scoped(
        self,
        sql_store: SQLAlchemyPIIRecordStore,
        user_codec: PIIRecordCodec,
        clinic_a: TenantScope,
        clinic_b: TenantScope,
        registration: dict,
    ) -> None:
        payload = user_codec.encode(clinic_a, registration)
        await sql_store.insert(payload)

        assert await sql_store.find_by_hash(clinic_b, "phone", payload.lookup_key("phone").hash) is None
        with pytest.raises(RecordNotFoundError):
            await sql_store.get_by_id(clinic_b, payload.record_id)

    @pytest.mark.asyncio
    async def test_unique_index_rejects_same_phone(
        self, sql_store: SQLAlchemyPIIRecordStore, user_codec: PIIRecordCodec, clinic_a: TenantScope, registration: dict
    ) -> None:
        await sql_store.insert(user_codec.encode(clinic_a, registration))
        again = dict(registration, full_name="Lim Mei Ling", email="mei.ling@example.com")

        with pytest.raises(ConstraintViolationError) as exc_info:
            await sql_store.insert(user_codec.encode(clinic_a, again))

        assert exc_info.value.fields == ("phone",)

    @pytest.mark.asyncio
    async def test_name_keys_are_not_unique(
        self, sql_store: SQLAlchemyPIIRecordStore, user_codec: PIIRecordCodec, clinic_a: TenantScope, registration: dict
    ) -> None:
        await sql_store.insert(user_codec.encode(clinic_a, registration))
        namesake = dict(registration, phone="6598765432", email="other.tan@example.com")

        await sql_store.insert(user_codec.encode(clinic_a, namesake))

    @pytest.mark.asyncio
    async def test_same_phone_in_other_clinic(
        self,
        sql_store: SQLAlchemyPIIRecordStore,
        user_codec: PIIRecordCodec,
        clinic_a: TenantScope,
        clinic_b: TenantScope,
        registration: dict,
    ) -> None:
        await sql_store.insert(user_codec.encode(clinic_a, registration))

        await sql_store.insert(user_codec.encode(clinic_b, registration))

    @pytest.mark.asyncio
    async def test_delete_removes_lookup_keys(
        self, sql_store: SQLAlchemyPIIRecordStore, user_codec: PIIRecordCodec, clinic_a: TenantScope, registration: dict
    ) -> None:
        payload = user_codec.encode(clinic_a, registration)
        await sql_store.insert(payload)

        await sql_store.delete(clinic_a, payload.record_id)

        assert await sql_store.find_by_hash(clinic_a, "phone", payload.lookup_key("phone").hash) is None
        await sql_store.insert(user_codec.encode(clinic_a, registration))
        with pytest.raises(RecordNotFoundError):
            await sql_store.delete(clinic_a, payload.record_id)

    @pytest.mark.asyncio
    async def test_concurrent_registration_single_winner(
        self, sql_store: SQLAlchemyPIIRecordStore, user_codec: PIIRecordCodec, lookup_hasher: LookupHasher
    ) -> None:
        service = PIIRecordService(sql_store, user_codec, DuplicateDetector(sql_store, lookup_hasher))
        clinic = TenantScope("A")

        results = await asyncio.gather(
            service.register(clinic, {"full_name": "Alice Lee", "phone": "6591234567", "email": "a@example.com"}),
            service.register(clinic, {"full_name": "Bob Ng", "phone": "+65 9123 4567", "email": "b@example.com"}),
            return_exceptions=True,
        )

        assert sum(isinstance(r, str) for r in results) == 1
        assert sum(isinstance(r, DuplicateCandidateError) for r in results) == 1

    @pytest.mark.asyncio
    async def test_timestamp_attributes_round_trip(
        self, sql_store: SQLAlchemyPIIRecordStore, user_codec: PIIRecordCodec, clinic_a: TenantScope, registration: dict
    ) -> None:
        consented_at = datetime(2024, 3, 1, 9, 30, tzinfo=timezone(timedelta(hours=8)))
        raw = dict(
            registration,
            consented_at=consented_at,
            visit_date=date(2024, 3, 2),
            history=[{"seen_at": datetime(2024, 1, 5, tzinfo=UTC)}],
        )
        payload = user_codec.encode(clinic_a, raw)

        await sql_store.insert(payload)
        loaded = await sql_store.get_by_id(clinic_a, payload.record_id)

        assert loaded.attributes["consented_at"] == consented_at
        assert loaded.attributes["consented_at"].utcoffset() == timedelta(hours=8)
        assert loaded.attributes["visit_date"] == date(2024, 3, 2)
        assert loaded.attributes["history"] == [{"seen_at": datetime(2024, 1, 5, tzinfo=UTC)}]
        assert loaded.attributes["is_guardian"] is False
