"""Database repository for the toilets table."""

import logging
from typing import Any

from src.storage.database import Database
from src.toilets.schemas import Toilet

logger = logging.getLogger(__name__)

_CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS toilets (
    id          SERIAL PRIMARY KEY,
    name        TEXT NOT NULL,
    location    TEXT NOT NULL DEFAULT '',
    is_active   BOOLEAN NOT NULL DEFAULT TRUE,
    created_at  TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_toilets_active
    ON toilets(is_active) WHERE is_active = TRUE;
"""


def _row_to_toilet(row: Any) -> Toilet:
    """Convert an asyncpg Record to a Toilet."""
    return Toilet(
        id=row["id"],
        name=row["name"],
        location=row["location"],
        is_active=row["is_active"],
        created_at=row["created_at"],
    )


class ToiletRepository:
    """CRUD operations for the toilets table."""

    def __init__(self, database: Database) -> None:
        self._db = database

    async def create_table(self) -> None:
        """Create the toilets table and indexes (idempotent)."""
        await self._db.execute(_CREATE_TABLE_SQL)
        logger.info("Toilets table ensured")

    async def create(self, toilet: Toilet) -> Toilet:
        """Insert a new toilet and return it with its assigned id."""
        sql = """
            INSERT INTO toilets (name, location, is_active, created_at)
            VALUES ($1, $2, $3, $4)
            RETURNING *
        """
        row = await self._db.fetchrow(
            sql,
            toilet.name,
            toilet.location,
            toilet.is_active,
            toilet.created_at,
        )
        return _row_to_toilet(row)

    async def get_by_id(self, toilet_id: int) -> Toilet | None:
        """Fetch a toilet regardless of its active flag."""
        row = await self._db.fetchrow(
            "SELECT * FROM toilets WHERE id = $1",
            toilet_id,
        )
        return _row_to_toilet(row) if row else None

    async def get_active(self, toilet_id: int) -> Toilet | None:
        """Fetch a toilet only if it is active."""
        row = await self._db.fetchrow(
            "SELECT * FROM toilets WHERE id = $1 AND is_active = TRUE",
            toilet_id,
        )
        return _row_to_toilet(row) if row else None

    async def list_active(self) -> list[Toilet]:
        """All active toilets ordered by id."""
        rows = await self._db.fetch(
            "SELECT * FROM toilets WHERE is_active = TRUE ORDER BY id"
        )
        return [_row_to_toilet(row) for row in rows]

    async def set_active(self, toilet_id: int, is_active: bool) -> bool:
        """Toggle the active flag.

        Returns:
            True if a toilet was updated, False if it does not exist.
        """
        result = await self._db.fetchval(
            "UPDATE toilets SET is_active = $2 WHERE id = $1 RETURNING id",
            toilet_id,
            is_active,
        )
        return result is not None

    async def count(self) -> dict[str, int]:
        """Total and active toilet counts."""
        row = await self._db.fetchrow(
            """
            SELECT
                COUNT(*) AS total,
                COUNT(*) FILTER (WHERE is_active) AS active
            FROM toilets
            """
        )
        return {"total": row["total"], "active": row["active"]}
