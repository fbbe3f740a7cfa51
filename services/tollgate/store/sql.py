"""SQL-backed settings store over the core_store table."""

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tollgate.db.models import CoreStoreEntry
from tollgate.logging_config import get_logger
from tollgate.store.protocol import SettingsScope

logger = get_logger(__name__)


class SQLSettingsStore:
    """Settings store bound to a request-scoped database session."""

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def _entry(self, scope: SettingsScope) -> CoreStoreEntry | None:
        result = await self._db.execute(
            select(CoreStoreEntry).where(
                CoreStoreEntry.key == scope.store_key,
                CoreStoreEntry.environment == scope.environment,
            )
        )
        return result.scalar_one_or_none()

    async def get(self, scope: SettingsScope) -> Any | None:
        entry = await self._entry(scope)
        return entry.value if entry is not None else None

    async def set(self, scope: SettingsScope, value: Any) -> None:
        entry = await self._entry(scope)
        if entry is None:
            self._db.add(
                CoreStoreEntry(key=scope.store_key, environment=scope.environment, value=value)
            )
        else:
            entry.value = value
        await self._db.flush()
        logger.debug("Settings stored", key=scope.store_key, environment=scope.environment)
