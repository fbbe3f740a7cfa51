"""
User search dispatch.

Provides init_search() for app lifespan and get_search_dispatcher() as a
FastAPI dependency. The backend strategy is selected once, at startup, from
SEARCH_STRATEGIES; adding a backend means adding one registry entry.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping

from tollgate.config import SearchBackend, SearchConfig, settings
from tollgate.errors import InvalidInputError, UnknownBackendError
from tollgate.logging_config import get_logger
from tollgate.search.protocol import SearchStrategy, UserRecord

logger = get_logger(__name__)

StrategyFactory = Callable[[SearchConfig], SearchStrategy]


def _sql_strategy(cfg: SearchConfig) -> SearchStrategy:
    from tollgate.db.session import get_session_factory
    from tollgate.search.sql import SQLSearchStrategy

    return SQLSearchStrategy(get_session_factory())


def _redis_strategy(cfg: SearchConfig) -> SearchStrategy:
    from tollgate.redis.client import get_redis_client
    from tollgate.search.documents import RedisDocumentSearchStrategy

    return RedisDocumentSearchStrategy(get_redis_client(), prefix=cfg.redis_prefix)


SEARCH_STRATEGIES: dict[str, StrategyFactory] = {
    SearchBackend.SQL: _sql_strategy,
    SearchBackend.REDIS: _redis_strategy,
}


class QueryDispatcher:
    """Uniform user search over whichever strategy was configured."""

    def __init__(self, backend: str, strategy: SearchStrategy) -> None:
        self.backend = backend
        self._strategy = strategy

    @classmethod
    def configure(
        cls,
        cfg: SearchConfig,
        registry: Mapping[str, StrategyFactory] = SEARCH_STRATEGIES,
    ) -> QueryDispatcher:
        """Bind the strategy registered for cfg.backend.

        Raises UnknownBackendError for an unregistered backend; this is a
        startup failure and is never caught per request.
        """
        factory = registry.get(cfg.backend)
        if factory is None:
            raise UnknownBackendError(cfg.backend, sorted(registry))
        return cls(cfg.backend, factory(cfg))

    async def search(self, term: str) -> list[UserRecord]:
        if not term or not term.strip():
            raise InvalidInputError("Search term cannot be empty")
        results = await self._strategy.search(term)
        logger.debug("User search", backend=self.backend, matches=len(results))
        return results


# Module-level dispatcher instance
_dispatcher: QueryDispatcher | None = None


def init_search() -> None:
    """Select the search strategy from configuration.

    Called during app startup (lifespan), after the backing store is initialized.
    """
    global _dispatcher  # noqa: PLW0603
    _dispatcher = QueryDispatcher.configure(settings.search)
    logger.info("User search initialized", backend=_dispatcher.backend)


def close_search() -> None:
    global _dispatcher  # noqa: PLW0603
    _dispatcher = None


def get_search_dispatcher() -> QueryDispatcher:
    """FastAPI dependency that returns the configured dispatcher.

    Raises RuntimeError if search has not been initialized.
    """
    if _dispatcher is None:
        raise RuntimeError("User search not initialized — call init_search() first")
    return _dispatcher


__all__ = [
    "SEARCH_STRATEGIES",
    "QueryDispatcher",
    "SearchStrategy",
    "UserRecord",
    "close_search",
    "get_search_dispatcher",
    "init_search",
]
