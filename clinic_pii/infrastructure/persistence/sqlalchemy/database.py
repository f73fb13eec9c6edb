"""
Engine and session factory setup for the SQLAlchemy record store.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from clinic_pii.core.config.settings import Settings
from clinic_pii.infrastructure.persistence.sqlalchemy.models import Base

logger = logging.getLogger(__name__)


def create_session_factory(
    database_url: str, echo: bool = False
) -> tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:
    """
    Create an async engine and a session factory bound to it.

    Args:
        database_url: Async SQLAlchemy URL, e.g. ``sqlite+aiosqlite:///./clinic_pii.db``
        echo: Log emitted SQL

    Returns:
        Tuple of (engine, session factory)
    """
    engine = create_async_engine(database_url, echo=echo, pool_pre_ping=True)
    session_factory = async_sessionmaker(bind=engine, expire_on_commit=False, class_=AsyncSession)
    logger.info("Record store engine created for dialect %s", engine.dialect.name)
    return engine, session_factory


def create_session_factory_from_settings(
    settings: Settings,
) -> tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:
    return create_session_factory(settings.DATABASE_URL, echo=settings.DB_ECHO_LOG)


async def create_tables(engine: AsyncEngine) -> None:
    """Create the record store tables if they do not exist."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Record store tables ensured")
