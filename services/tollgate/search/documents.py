"""Document-store user search over JSON user documents held in Redis.

Each user is one JSON string at `{prefix}users:{id}`. Redis has no secondary
indexes here, so the search scans the keyspace and filters documents with a
compiled regular expression.
"""

import json
import re

import redis.asyncio as aioredis

from tollgate.logging_config import get_logger
from tollgate.search.protocol import UserRecord

logger = get_logger(__name__)

_SCAN_BATCH = 500


def user_key(prefix: str, user_id: int | str) -> str:
    """Key of a user document."""
    return f"{prefix}users:{user_id}"


class RedisDocumentSearchStrategy:
    """Case-insensitive substring match; the term is escaped, never run as a pattern."""

    def __init__(self, client: aioredis.Redis, prefix: str = "tollgate:") -> None:
        self._client = client
        self._prefix = prefix

    async def search(self, term: str) -> list[UserRecord]:
        pattern = re.compile(re.escape(term), re.IGNORECASE)

        keys = [
            key
            async for key in self._client.scan_iter(
                match=user_key(self._prefix, "*"), count=_SCAN_BATCH
            )
        ]

        records: list[UserRecord] = []
        for start in range(0, len(keys), _SCAN_BATCH):
            documents = await self._client.mget(keys[start : start + _SCAN_BATCH])
            for raw in documents:
                # Deleted between SCAN and MGET
                if raw is None:
                    continue
                try:
                    doc = json.loads(raw)
                except json.JSONDecodeError:
                    logger.warning("Skipping malformed user document")
                    continue
                if pattern.search(doc.get("username") or "") or pattern.search(
                    doc.get("email") or ""
                ):
                    records.append(UserRecord.from_document(doc))

        records.sort(key=lambda r: (isinstance(r.id, str), r.id))
        return records
