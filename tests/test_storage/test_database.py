"""Tests for the asyncpg pool wrapper."""

import logging
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.storage import database as database_module
from src.storage.database import Database


def _pool_with(conn):
    pool = MagicMock()
    pool.acquire.return_value.__aenter__ = AsyncMock(return_value=conn)
    pool.acquire.return_value.__aexit__ = AsyncMock(return_value=False)
    pool.close = AsyncMock()
    return pool


@pytest.fixture
def conn():
    conn = AsyncMock()
    conn.fetchval.return_value = 1
    return conn


@pytest.fixture
def create_pool(conn):
    with patch(
        "src.storage.database.asyncpg.create_pool",
        AsyncMock(return_value=_pool_with(conn)),
    ) as mock:
        yield mock


class TestDatabase:
    def test_pool_requires_connect(self):
        db = Database(database_url="postgresql://localhost/test")
        assert not db.is_connected
        with pytest.raises(RuntimeError, match="not connected"):
            _ = db.pool

    @pytest.mark.asyncio
    async def test_sessions_pinned_to_utc(self, create_pool):
        db = Database(database_url="postgresql://localhost/test", command_timeout=5.0)
        await db.connect()

        kwargs = create_pool.call_args.kwargs
        assert kwargs["server_settings"]["timezone"] == "UTC"
        assert kwargs["command_timeout"] == 5.0

    @pytest.mark.asyncio
    async def test_connect_is_idempotent(self, create_pool):
        db = Database(database_url="postgresql://localhost/test")
        await db.connect()
        await db.connect()

        assert create_pool.await_count == 1

    @pytest.mark.asyncio
    async def test_context_manager_closes_pool(self, create_pool):
        async with Database(database_url="postgresql://localhost/test") as db:
            assert db.is_connected
            pool = db.pool

        pool.close.assert_awaited_once()
        assert not db.is_connected

    @pytest.mark.asyncio
    async def test_fetch_helpers_forward_arguments(self, create_pool, conn):
        conn.fetchrow.return_value = {"id": 3}

        async with Database(database_url="postgresql://localhost/test") as db:
            row = await db.fetchrow("SELECT * FROM toilets WHERE id = $1", 3)

        assert row == {"id": 3}
        conn.fetchrow.assert_awaited_once_with("SELECT * FROM toilets WHERE id = $1", 3)

    @pytest.mark.asyncio
    async def test_slow_statement_logged(self, create_pool, caplog, monkeypatch):
        monkeypatch.setattr(database_module, "SLOW_QUERY_SECONDS", 0.0)

        with caplog.at_level(logging.WARNING, logger="src.storage.database"):
            async with Database(database_url="postgresql://localhost/test") as db:
                await db.execute("UPDATE cleaning_tasks\n   SET status = $1", "completed")

        assert "Slow execute" in caplog.text
        assert "UPDATE cleaning_tasks SET status = $1" in caplog.text


class TestHealthCheck:
    @pytest.mark.asyncio
    async def test_not_connected(self):
        assert await Database(database_url="postgresql://localhost/test").health_check() is False

    @pytest.mark.asyncio
    async def test_round_trip(self, create_pool):
        async with Database(database_url="postgresql://localhost/test") as db:
            assert await db.health_check() is True

    @pytest.mark.asyncio
    async def test_query_failure(self, create_pool, conn):
        conn.fetchval.side_effect = OSError("connection reset")

        async with Database(database_url="postgresql://localhost/test") as db:
            assert await db.health_check() is False
