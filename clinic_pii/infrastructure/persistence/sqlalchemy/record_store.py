"""
Record store implementation using SQLAlchemy.

This module implements IPIIRecordStore on SQLAlchemy 2.0 async sessions.
Uniqueness of ``(clinic_id, field_name, hash)`` for unique lookup keys is
enforced by a partial unique index; an ``IntegrityError`` on insert is
translated into ``ConstraintViolationError`` naming the colliding fields.
"""

import logging
from datetime import UTC

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from clinic_pii.core.exceptions import ConstraintViolationError, RecordNotFoundError
from clinic_pii.core.interfaces import IPIIRecordStore
from clinic_pii.domain.value_objects import LookupKey, StoragePayload, TenantScope
from clinic_pii.infrastructure.persistence.sqlalchemy.models import (
    PIILookupKeyModel,
    PIIRecordModel,
)

logger = logging.getLogger(__name__)


class SQLAlchemyPIIRecordStore(IPIIRecordStore):
    """
    SQLAlchemy implementation of the IPIIRecordStore interface.

    Each operation opens its own session from the factory and commits before
    returning, so an insert that returns has been durably committed.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        """
        Initialize the store with a SQLAlchemy session factory.

        Args:
            session_factory: The SQLAlchemy async session factory to create sessions.
        """
        self._session_factory = session_factory

    async def find_by_hash(
        self, tenant: TenantScope, field_name: str, hash_value: bytes
    ) -> StoragePayload | None:
        async with self._session_factory() as session:
            stmt = (
                select(PIIRecordModel)
                .join(PIILookupKeyModel, PIILookupKeyModel.record_id == PIIRecordModel.id)
                .where(
                    PIILookupKeyModel.clinic_id == tenant.clinic_id,
                    PIILookupKeyModel.field_name == field_name,
                    PIILookupKeyModel.hash_hex == hash_value.hex(),
                )
                .limit(1)
            )
            result = await session.execute(stmt)
            model = result.scalars().first()
            return self._to_payload(model) if model is not None else None

    async def insert(self, payload: StoragePayload) -> StoragePayload:
        """
        Insert a record and its lookup keys in one transaction.

        Raises:
            ConstraintViolationError: If a unique lookup key already exists in the clinic
            SQLAlchemyError: For any other database failure
        """
        async with self._session_factory() as session:
            try:
                session.add(self._to_model(payload))
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                fields = await self._colliding_fields(session, payload)
                logger.info(
                    "Insert of %s record rejected by constraint on %s",
                    payload.entity,
                    ", ".join(fields) or "record id",
                )
                raise ConstraintViolationError(fields=fields, original_exception=e) from e
            except SQLAlchemyError as e:
                logger.error("Database error when inserting %s record: %s", payload.entity, type(e).__name__)
                await session.rollback()
                raise
        return payload

    async def get_by_id(self, tenant: TenantScope, record_id: str) -> StoragePayload:
        async with self._session_factory() as session:
            model = await self._get_model(session, tenant, record_id)
            return self._to_payload(model)

    async def delete(self, tenant: TenantScope, record_id: str) -> None:
        async with self._session_factory() as session:
            model = await self._get_model(session, tenant, record_id)
            await session.delete(model)
            await session.commit()
            logger.debug("Deleted record %s", record_id)

    @staticmethod
    async def _get_model(session: AsyncSession, tenant: TenantScope, record_id: str) -> PIIRecordModel:
        stmt = select(PIIRecordModel).where(
            PIIRecordModel.id == record_id,
            PIIRecordModel.clinic_id == tenant.clinic_id,
        )
        model = (await session.execute(stmt)).scalars().first()
        if model is None:
            raise RecordNotFoundError(tenant.clinic_id, record_id)
        return model

    @staticmethod
    async def _colliding_fields(session: AsyncSession, payload: StoragePayload) -> tuple[str, ...]:
        """Find which unique lookup keys of a rejected payload already exist."""
        colliding = []
        for key in payload.unique_lookup_keys:
            stmt = select(PIILookupKeyModel.id).where(
                PIILookupKeyModel.clinic_id == payload.clinic_id,
                PIILookupKeyModel.field_name == key.field_name,
                PIILookupKeyModel.hash_hex == key.hex,
                PIILookupKeyModel.is_unique.is_(True),
            )
            if (await session.execute(stmt)).first() is not None:
                colliding.append(key.field_name)
        return tuple(colliding)

    @staticmethod
    def _to_model(payload: StoragePayload) -> PIIRecordModel:
        return PIIRecordModel(
            id=payload.record_id,
            clinic_id=payload.clinic_id,
            entity=payload.entity,
            fields=dict(payload.fields),
            attributes=dict(payload.attributes),
            created_at=payload.created_at,
            lookup_keys=[
                PIILookupKeyModel(
                    clinic_id=payload.clinic_id,
                    field_name=key.field_name,
                    hash_hex=key.hex,
                    is_unique=key.unique,
                )
                for key in payload.lookup_keys
            ],
        )

    @staticmethod
    def _to_payload(model: PIIRecordModel) -> StoragePayload:
        created_at = model.created_at
        # SQLite drops the timezone on the way back
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=UTC)
        return StoragePayload(
            clinic_id=model.clinic_id,
            entity=model.entity,
            fields=dict(model.fields),
            lookup_keys=tuple(
                LookupKey.from_hex(key.field_name, key.hash_hex, unique=key.is_unique)
                for key in model.lookup_keys
            ),
            attributes=dict(model.attributes),
            record_id=model.id,
            created_at=created_at,
        )
