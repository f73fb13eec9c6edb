"""
Composition root for the PII protection layer.

Builds key material once from settings and wires the ciphers, codecs, stores
and services around it. Key material errors raised here are fatal: a process
that fails to build its layer must not serve requests.
"""

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncEngine

from clinic_pii.application.services import BlobPipeline, DuplicateDetector, PIIRecordService
from clinic_pii.core.config.settings import Settings, get_settings
from clinic_pii.core.interfaces import IBlobStore, IPIIRecordStore
from clinic_pii.domain.schemas import BLOB_METADATA_SCHEMA, USER_SCHEMA
from clinic_pii.infrastructure.persistence.sqlalchemy import (
    SQLAlchemyPIIRecordStore,
    create_session_factory_from_settings,
    create_tables,
)
from clinic_pii.infrastructure.security import (
    BlobCipher,
    FieldCipher,
    KeyMaterial,
    LookupHasher,
    PIIRecordCodec,
)
from clinic_pii.infrastructure.storage import S3BlobStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PIILayer:
    """Wired components of the PII protection layer."""

    key_material: KeyMaterial
    field_cipher: FieldCipher
    lookup_hasher: LookupHasher
    blob_cipher: BlobCipher
    user_codec: PIIRecordCodec
    record_store: IPIIRecordStore
    duplicate_detector: DuplicateDetector
    records: PIIRecordService
    blobs: BlobPipeline
    # Set only when the layer built its own SQLAlchemy record store
    engine: AsyncEngine | None = None

    async def init(self) -> None:
        """Create the record store tables when the layer owns the database engine."""
        if self.engine is not None:
            await create_tables(self.engine)

    async def close(self) -> None:
        """Dispose of the database engine the layer created, if any."""
        if self.engine is not None:
            await self.engine.dispose()


def create_pii_layer(
    settings: Settings | None = None,
    record_store: IPIIRecordStore | None = None,
    blob_store: IBlobStore | None = None,
    key_material: KeyMaterial | None = None,
) -> PIILayer:
    """
    Build the PII protection layer.

    When the default SQLAlchemy store is built, the returned layer owns its
    engine: ``await layer.init()`` creates the tables on a fresh database and
    ``await layer.close()`` disposes of the engine. A caller-supplied record
    store is never initialized by the layer.

    Args:
        settings: Settings to use; defaults to the cached process settings
        record_store: Record store; defaults to the SQLAlchemy store on ``DATABASE_URL``
        blob_store: Blob store; defaults to S3 in ``AWS_REGION``
        key_material: Preloaded key material, e.g. after a rotation

    Returns:
        PIILayer

    Raises:
        KeyMissingError: If no encryption key is configured
        KeyTooShortError: If a configured key is under the minimum length
        KeyMaterialError: If the key material is otherwise unusable
    """
    settings = settings or get_settings()
    key_material = key_material or KeyMaterial.from_settings(settings)

    engine = None
    if record_store is None:
        engine, session_factory = create_session_factory_from_settings(settings)
        record_store = SQLAlchemyPIIRecordStore(session_factory)
    if blob_store is None:
        blob_store = S3BlobStore.from_settings(settings)

    field_cipher = FieldCipher(key_material)
    lookup_hasher = LookupHasher(key_material)
    blob_cipher = BlobCipher(key_material, chunk_size=settings.BLOB_CHUNK_SIZE)
    user_codec = PIIRecordCodec(USER_SCHEMA, field_cipher, lookup_hasher)
    detector = DuplicateDetector(
        record_store,
        lookup_hasher,
        schema=USER_SCHEMA,
        name_heuristic_enabled=settings.NAME_DUPLICATE_HEURISTIC_ENABLED,
    )

    layer = PIILayer(
        key_material=key_material,
        field_cipher=field_cipher,
        lookup_hasher=lookup_hasher,
        blob_cipher=blob_cipher,
        user_codec=user_codec,
        record_store=record_store,
        duplicate_detector=detector,
        records=PIIRecordService.from_settings(settings, record_store, user_codec, detector),
        blobs=BlobPipeline(
            blob_store,
            blob_cipher,
            metadata_codec=PIIRecordCodec(BLOB_METADATA_SCHEMA, field_cipher, lookup_hasher),
        ),
        engine=engine,
    )
    logger.info("PII layer ready for environment %s", settings.ENVIRONMENT)
    return layer
