"""
SQLAlchemy models for encrypted records and their lookup keys.

Sensitive values are stored only as serialized StoredFields inside the
``fields`` JSON column. Lookup keys live in their own table so the probe
``(clinic_id, field_name, hash_hex)`` is indexed, and a partial unique index
enforces per-clinic uniqueness for keys flagged ``is_unique``.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Index, Integer, MetaData, String, text
from sqlalchemy.ext.asyncio import AsyncAttrs
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from clinic_pii.infrastructure.persistence.sqlalchemy.types import AttributesJSON

UNIQUE_LOOKUP_INDEX = "uq_pii_lookup_keys_clinic_field_hash"


class Base(AsyncAttrs, DeclarativeBase):
    """Declarative base for the PII record store tables."""

    metadata = MetaData()


class PIIRecordModel(Base):
    """One encrypted record of any entity."""

    __tablename__ = "pii_records"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    clinic_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    entity: Mapped[str] = mapped_column(String(64), nullable=False)
    # field name -> "<key_version>:<token>"
    fields: Mapped[dict[str, str]] = mapped_column(JSON, nullable=False, default=dict)
    # plaintext, non-sensitive attributes; JSON values plus dates and datetimes
    attributes: Mapped[dict[str, Any]] = mapped_column(AttributesJSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    lookup_keys: Mapped[list["PIILookupKeyModel"]] = relationship(
        back_populates="record",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<PIIRecordModel(id={self.id}, clinic_id={self.clinic_id}, entity={self.entity})>"


class PIILookupKeyModel(Base):
    """Keyed hash of one normalized field value of a record."""

    __tablename__ = "pii_lookup_keys"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    record_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("pii_records.id", ondelete="CASCADE"), nullable=False
    )
    clinic_id: Mapped[str] = mapped_column(String(64), nullable=False)
    field_name: Mapped[str] = mapped_column(String(64), nullable=False)
    hash_hex: Mapped[str] = mapped_column(String(64), nullable=False)
    is_unique: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    record: Mapped[PIIRecordModel] = relationship(back_populates="lookup_keys")

    __table_args__ = (
        Index("ix_pii_lookup_keys_probe", "clinic_id", "field_name", "hash_hex"),
        Index(
            UNIQUE_LOOKUP_INDEX,
            "clinic_id",
            "field_name",
            "hash_hex",
            unique=True,
            sqlite_where=text("is_unique = 1"),
            postgresql_where=text("is_unique"),
        ),
    )

    def __repr__(self) -> str:
        return f"<PIILookupKeyModel(record_id={self.record_id}, field_name={self.field_name})>"
