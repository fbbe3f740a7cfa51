"""
Database session management for the Tollgate admin API.

Provides async SQLAlchemy session factory for database access.
"""

from collections.abc import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from tollgate.config import settings
from tollgate.logging_config import get_logger

logger = get_logger(__name__)

# Primary engine, created lazily in init_db()
_engine: AsyncEngine | None = None
_async_session_factory: async_sessionmaker[AsyncSession] | None = None


def _engine_options(url: str) -> dict:
    # SQLite (tests, local dev) uses a single-connection pool without sizing knobs
    if url.startswith("sqlite"):
        return {}
    return {"pool_pre_ping": True, "pool_size": 10, "max_overflow": 20}


async def init_db() -> None:
    """Initialize database connection pool."""
    global _engine, _async_session_factory  # noqa: PLW0603
    logger.info("Initializing database connection")

    url = str(settings.database_url)
    _engine = create_async_engine(url, echo=settings.debug, **_engine_options(url))

    _async_session_factory = async_sessionmaker(
        _engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with _engine.begin() as conn:
        await conn.execute(text("SELECT 1"))
    logger.info("Database connection established")


async def close_db() -> None:
    """Close database connection pool."""
    global _engine, _async_session_factory  # noqa: PLW0603
    if _engine is not None:
        logger.info("Closing database connection pool")
        await _engine.dispose()
        _engine = None
        _async_session_factory = None


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Return the session factory. Raises if the database is not initialized."""
    if _async_session_factory is None:
        raise RuntimeError("Database not initialized — call init_db() first")
    return _async_session_factory


async def get_db() -> AsyncGenerator[AsyncSession]:
    """
    Dependency that provides a read-write database session.

    Commits when the request handler returns, rolls back if it raises.
    """
    async with get_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_db_health() -> bool:
    """Check database health for readiness probe."""
    try:
        if _engine is None:
            return False
        async with _engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error("Database health check failed", error=str(e))
        return False
