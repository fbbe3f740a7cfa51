"""
Top-level test configuration for Tollgate.

Database tests run against in-memory SQLite (aiosqlite) with the real models;
Redis-backed code runs against an in-memory stand-in.
"""

import fnmatch
import os
from collections.abc import AsyncGenerator

# Ensure test-friendly defaults
os.environ.setdefault("TOLLGATE_JSON_LOGS", "false")
os.environ.setdefault("TOLLGATE_LOG_LEVEL", "DEBUG")
os.environ.setdefault("TOLLGATE_ADMIN_TOKEN", "test-admin-token")
os.environ.setdefault("TOLLGATE_DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

from tollgate.db.models import Base  # noqa: E402
from tollgate.permissions import build_catalog  # noqa: E402
from tollgate.permissions.catalog import PermissionCatalog  # noqa: E402


class DummyRedis:
    """In-memory stand-in for the subset of redis.asyncio the search uses."""

    def __init__(self) -> None:
        self.store: dict[str, str] = {}

    async def get(self, key: str):
        return self.store.get(key)

    async def set(self, key: str, value) -> bool:
        self.store[key] = value
        return True

    async def mget(self, keys):
        return [self.store.get(k) for k in keys]

    async def delete(self, *keys) -> int:
        removed = 0
        for k in keys:
            if self.store.pop(k, None) is not None:
                removed += 1
        return removed

    async def scan_iter(self, match: str | None = None, count: int | None = None):
        for key in list(self.store):
            if match is None or fnmatch.fnmatchcase(key, match):
                yield key

    async def ping(self) -> bool:
        return True


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine]:
    """Fresh in-memory database with every table created."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def catalog() -> PermissionCatalog:
    return build_catalog()


@pytest.fixture
def dummy_redis() -> DummyRedis:
    return DummyRedis()
