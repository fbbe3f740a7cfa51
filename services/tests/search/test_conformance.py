"""
Conformance test suite for user search strategies.

Runs identical tests against every strategy: the relational LIKE search over
the users table and the document search over JSON users held in Redis.
"""

from __future__ import annotations

import json

import pytest_asyncio

from tollgate.db.models import User
from tollgate.search.documents import RedisDocumentSearchStrategy, user_key
from tollgate.search.protocol import SearchStrategy
from tollgate.search.sql import SQLSearchStrategy

USERS = [
    {"id": 1, "username": "alice", "email": "alice@example.com", "role_id": 1},
    {"id": 2, "username": "bob", "email": "bob@corp.io", "role_id": 2},
    {"id": 3, "username": "Carol_Admin", "email": "carol@example.com", "role_id": 2},
    {"id": 4, "username": "dave%", "email": "dave@corp.io", "role_id": None},
    {"id": 5, "username": "erin", "email": "alice@y.com", "role_id": 1},
]


async def _conformance_username_match(strategy: SearchStrategy) -> None:
    """Test: a username substring returns exactly that user."""
    results = await strategy.search("bo")
    assert [u.username for u in results] == ["bob"]
    assert results[0].email == "bob@corp.io"


async def _conformance_username_or_email(strategy: SearchStrategy) -> None:
    """Test: the term matches username OR email, one record per user."""
    results = await strategy.search("alice")
    assert [(u.id, u.username) for u in results] == [(1, "alice"), (5, "erin")]


async def _conformance_email_match(strategy: SearchStrategy) -> None:
    """Test: an email substring matches on email, results ordered by id."""
    results = await strategy.search("example.com")
    assert [u.id for u in results] == [1, 3]


async def _conformance_case_insensitive(strategy: SearchStrategy) -> None:
    results = await strategy.search("CAROL")
    assert [u.username for u in results] == ["Carol_Admin"]


async def _conformance_no_match(strategy: SearchStrategy) -> None:
    assert await strategy.search("zzz") == []


async def _conformance_term_is_literal(strategy: SearchStrategy) -> None:
    """Test: wildcard and regex metacharacters in the term match literally."""
    assert [u.username for u in await strategy.search("%")] == ["dave%"]
    assert await strategy.search(".*") == []
    assert [u.username for u in await strategy.search("_admin")] == ["Carol_Admin"]


async def _conformance_plain_records(strategy: SearchStrategy) -> None:
    """Test: results are plain records with every field populated."""
    (record,) = await strategy.search("bob")
    assert record.to_dict() == {
        "id": 2,
        "username": "bob",
        "email": "bob@corp.io",
        "provider": "local",
        "confirmed": False,
        "blocked": False,
        "role_id": 2,
    }


# --- SQL conformance ---


@pytest_asyncio.fixture
async def sql_strategy(session_factory) -> SQLSearchStrategy:
    async with session_factory() as session:
        session.add_all([User(**user) for user in USERS])
        await session.commit()
    return SQLSearchStrategy(session_factory)


class TestSQLConformance:
    def test_satisfies_protocol(self, sql_strategy):
        assert isinstance(sql_strategy, SearchStrategy)

    async def test_username_match(self, sql_strategy):
        await _conformance_username_match(sql_strategy)

    async def test_username_or_email(self, sql_strategy):
        await _conformance_username_or_email(sql_strategy)

    async def test_email_match(self, sql_strategy):
        await _conformance_email_match(sql_strategy)

    async def test_case_insensitive(self, sql_strategy):
        await _conformance_case_insensitive(sql_strategy)

    async def test_no_match(self, sql_strategy):
        await _conformance_no_match(sql_strategy)

    async def test_term_is_literal(self, sql_strategy):
        await _conformance_term_is_literal(sql_strategy)

    async def test_plain_records(self, sql_strategy):
        await _conformance_plain_records(sql_strategy)


# --- Redis document conformance ---


@pytest_asyncio.fixture
async def redis_strategy(dummy_redis) -> RedisDocumentSearchStrategy:
    for user in USERS:
        await dummy_redis.set(user_key("test:", user["id"]), json.dumps(user))
    # keys outside the users namespace are never considered
    await dummy_redis.set("test:sessions:1", json.dumps({"username": "alice"}))
    return RedisDocumentSearchStrategy(dummy_redis, prefix="test:")


class TestRedisDocumentConformance:
    def test_satisfies_protocol(self, redis_strategy):
        assert isinstance(redis_strategy, SearchStrategy)

    async def test_username_match(self, redis_strategy):
        await _conformance_username_match(redis_strategy)

    async def test_username_or_email(self, redis_strategy):
        await _conformance_username_or_email(redis_strategy)

    async def test_email_match(self, redis_strategy):
        await _conformance_email_match(redis_strategy)

    async def test_case_insensitive(self, redis_strategy):
        await _conformance_case_insensitive(redis_strategy)

    async def test_no_match(self, redis_strategy):
        await _conformance_no_match(redis_strategy)

    async def test_term_is_literal(self, redis_strategy):
        await _conformance_term_is_literal(redis_strategy)

    async def test_plain_records(self, redis_strategy):
        await _conformance_plain_records(redis_strategy)

    async def test_skips_malformed_documents(self, redis_strategy, dummy_redis):
        await dummy_redis.set(user_key("test:", 99), "{not json")
        assert [u.username for u in await redis_strategy.search("bo")] == ["bob"]
