"""SQLAlchemy-backed record store."""

from clinic_pii.infrastructure.persistence.sqlalchemy.database import (
    create_session_factory,
    create_session_factory_from_settings,
    create_tables,
)
from clinic_pii.infrastructure.persistence.sqlalchemy.models import (
    Base,
    PIILookupKeyModel,
    PIIRecordModel,
)
from clinic_pii.infrastructure.persistence.sqlalchemy.record_store import SQLAlchemyPIIRecordStore

__all__ = [
    "Base",
    "PIILookupKeyModel",
    "PIIRecordModel",
    "SQLAlchemyPIIRecordStore",
    "create_session_factory",
    "create_session_factory_from_settings",
    "create_tables",
]
