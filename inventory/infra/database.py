"""Async database access for the products table.

The engine and session factory are created on first use so that importing
the application (tests, scripts) never opens a connection.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from inventory.config import settings
from inventory.infra.logging import get_logger

logger = get_logger(__name__)

DatabaseSession = AsyncSession

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def _engine_options() -> dict[str, Any]:
    return {
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_pool_max_overflow,
        "pool_pre_ping": True,
        "pool_recycle": 1800,
        "echo": settings.debug,
    }


def get_engine() -> AsyncEngine:
    """Return the process-wide engine, creating it on first call."""
    global _engine

    if _engine is None:
        url = make_url(settings.database_url)
        options = _engine_options()
        logger.info(
            "Creating database engine",
            driver=url.drivername,
            host=url.host,
            database=url.database,
            pool_size=options["pool_size"],
        )
        _engine = create_async_engine(url, **options)

    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    global _session_factory

    if _session_factory is None:
        # Objects stay readable after commit: responses are built from them.
        _session_factory = async_sessionmaker(
            bind=get_engine(),
            expire_on_commit=False,
            autoflush=False,
        )

    return _session_factory


@asynccontextmanager
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """One unit of work: commit on clean exit, roll back on any error.

    Example:
        async with get_db_session() as session:
            repository = SqlProductRepository(session)
            await repository.bulk_upsert(plan)
    """
    async with get_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except Exception as e:
            await session.rollback()
            logger.error("Database session rolled back", error=str(e), error_type=type(e).__name__)
            raise


async def create_tables() -> None:
    """Create the products table if it does not exist (local development)."""
    from inventory.models import Base

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables ensured", tables=sorted(Base.metadata.tables))


async def close_db_engine() -> None:
    """Dispose of the engine; the next `get_engine()` call recreates it."""
    global _engine, _session_factory

    if _engine is not None:
        logger.info("Closing database engine")
        await _engine.dispose()
    _engine = None
    _session_factory = None


async def verify_db_connection() -> bool:
    """Return True when the database answers a trivial query."""
    try:
        async with get_engine().connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.error("Database connection failed", error=str(e))
        return False

    logger.info("Database connection verified")
    return True
