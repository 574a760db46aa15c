"""
asyncpg connection pool shared by the tracker repositories.

Every pooled connection runs with ``TimeZone=UTC`` so ``TIMESTAMPTZ``
columns (rating and task timestamps) come back as aware UTC datetimes and
compare directly with one another.
"""

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import asyncpg

from src.config.settings import get_settings

logger = logging.getLogger(__name__)

# Statements slower than this are logged at WARNING.
SLOW_QUERY_SECONDS = 0.5


def _summarize(query: str) -> str:
    return " ".join(query.split())[:120]


class Database:
    """
    Owns the pool; repositories call the fetch helpers on it.

    Usage:
        async with Database() as db:
            row = await db.fetchrow("SELECT * FROM toilets WHERE id = $1", 1)
    """

    def __init__(
        self,
        database_url: str | None = None,
        min_size: int | None = None,
        max_size: int | None = None,
        command_timeout: float | None = None,
    ):
        settings = get_settings()

        self._dsn = database_url or str(settings.database_url)
        self._min_size = min_size or settings.db_pool_min_size
        self._max_size = max_size or settings.db_pool_max_size
        self._command_timeout = command_timeout or settings.db_command_timeout_seconds

        self._pool: asyncpg.Pool | None = None

    @property
    def is_connected(self) -> bool:
        return self._pool is not None

    async def connect(self) -> None:
        """Create the pool. Calling it again on a connected instance is a no-op."""
        if self._pool is not None:
            return

        try:
            self._pool = await asyncpg.create_pool(
                self._dsn,
                min_size=self._min_size,
                max_size=self._max_size,
                command_timeout=self._command_timeout,
                server_settings={
                    "timezone": "UTC",
                    "application_name": "restroom-tracker",
                },
            )
        except Exception as e:
            logger.error(f"Failed to connect to database: {e}")
            raise

        logger.info(f"Database connected (pool: {self._min_size}-{self._max_size})")

    async def close(self) -> None:
        if self._pool is None:
            return
        await self._pool.close()
        self._pool = None
        logger.info("Database connection closed")

    async def __aenter__(self) -> "Database":
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    @property
    def pool(self) -> asyncpg.Pool:
        if self._pool is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._pool

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[asyncpg.Connection]:
        async with self.pool.acquire() as conn:
            yield conn

    async def _run(self, method: str, query: str, args: tuple[Any, ...]) -> Any:
        start = time.perf_counter()
        async with self.acquire() as conn:
            result = await getattr(conn, method)(query, *args)

        elapsed = time.perf_counter() - start
        if elapsed >= SLOW_QUERY_SECONDS:
            logger.warning(f"Slow {method} ({elapsed:.3f}s): {_summarize(query)}")
        return result

    async def execute(self, query: str, *args: Any) -> str:
        """Run a statement and return its status tag, e.g. ``"UPDATE 1"``."""
        return await self._run("execute", query, args)

    async def fetch(self, query: str, *args: Any) -> list[asyncpg.Record]:
        return await self._run("fetch", query, args)

    async def fetchrow(self, query: str, *args: Any) -> asyncpg.Record | None:
        """First row of the result, or None. Used for ``RETURNING *`` writes."""
        return await self._run("fetchrow", query, args)

    async def fetchval(self, query: str, *args: Any) -> Any:
        return await self._run("fetchval", query, args)

    async def health_check(self) -> bool:
        """Round-trip ``SELECT 1``. False when not connected or on any failure."""
        if self._pool is None:
            return False
        try:
            return await self.fetchval("SELECT 1") == 1
        except Exception as e:
            logger.warning(f"Database health check failed: {e}")
            return False
