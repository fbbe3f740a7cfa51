"""
Redis client for the document-backed user search.

With `search.backend: redis`, user records live as JSON documents under
`{search.redis_prefix}users:{id}` and the search strategy scans that
keyspace through this client. The SQL backend never opens it.
"""

import redis.asyncio as aioredis

from tollgate.config import settings
from tollgate.logging_config import get_logger

logger = get_logger(__name__)

# Module-level client reference, initialized in lifespan
_redis: aioredis.Redis | None = None


async def init_redis() -> None:
    """Open the connection pool used to read user documents."""
    global _redis  # noqa: PLW0603
    logger.info("Initializing Redis connection for user search")
    _redis = aioredis.from_url(
        str(settings.redis_url),
        decode_responses=True,
    )
    await _redis.ping()
    logger.info("Redis connection established")


async def close_redis() -> None:
    """Close the user document connection pool."""
    global _redis  # noqa: PLW0603
    if _redis is not None:
        logger.info("Closing Redis connection pool")
        await _redis.aclose()
        _redis = None


def get_redis_client() -> aioredis.Redis:
    """Return the client handed to RedisDocumentSearchStrategy."""
    if _redis is None:
        raise RuntimeError(
            "Redis client not initialized — call init_redis() before searching user documents"
        )
    return _redis


async def get_redis_health() -> bool:
    """Readiness check, only consulted when search runs on Redis."""
    try:
        if _redis is None:
            return False
        await _redis.ping()
        return True
    except Exception as e:
        logger.error("Redis health check failed", error=str(e))
        return False
