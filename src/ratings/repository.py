"""Rating repository: the append-only store of visitor ratings.

Follows the FeedbackRepository pattern with asyncpg, providing storage,
newest-first retrieval and per-toilet aggregates. Rows are never updated
or deleted.
"""

import logging
from typing import Any

from src.ratings.schemas import Rating, RatingSummary
from src.storage.database import Database

logger = logging.getLogger(__name__)

_CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS ratings (
    id          BIGSERIAL PRIMARY KEY,
    toilet_id   INTEGER NOT NULL REFERENCES toilets(id),
    rating      SMALLINT NOT NULL CHECK (rating BETWEEN 1 AND 5),
    problems    INTEGER[] NOT NULL DEFAULT '{}',
    other_text  TEXT NOT NULL DEFAULT '',
    created_at  TIMESTAMPTZ NOT NULL DEFAULT clock_timestamp()
);

CREATE INDEX IF NOT EXISTS idx_ratings_toilet_created
    ON ratings(toilet_id, created_at DESC, id DESC);
"""

# Newest first; id breaks ties between ratings sharing a timestamp.
_NEWEST_FIRST = "ORDER BY created_at DESC, id DESC"


class RatingRepository:
    """Repository for rating persistence and querying."""

    def __init__(self, database: Database) -> None:
        self._db = database

    async def create_table(self) -> None:
        """Create the ratings table and indexes (idempotent)."""
        await self._db.execute(_CREATE_TABLE_SQL)
        logger.info("Ratings table ensured")

    async def create(self, rating: Rating) -> Rating:
        """Append a rating.

        Args:
            rating: Validated rating to persist.

        Returns:
            The stored Rating with its DB-assigned id.
        """
        sql = """
            INSERT INTO ratings (toilet_id, rating, problems, other_text)
            VALUES ($1, $2, $3, $4)
            RETURNING *
        """
        row = await self._db.fetchrow(
            sql,
            rating.toilet_id,
            rating.rating,
            rating.problems,
            rating.other_text,
        )
        return _row_to_rating(row)

    async def get_by_id(self, rating_id: int) -> Rating | None:
        row = await self._db.fetchrow("SELECT * FROM ratings WHERE id = $1", rating_id)
        return _row_to_rating(row) if row else None

    async def get_latest(self, toilet_id: int) -> Rating | None:
        """Most recent rating for a toilet, or None if it has none."""
        sql = f"""
            SELECT * FROM ratings
            WHERE toilet_id = $1
            {_NEWEST_FIRST}
            LIMIT 1
        """
        row = await self._db.fetchrow(sql, toilet_id)
        return _row_to_rating(row) if row else None

    async def get_latest_for_toilets(self, toilet_ids: list[int]) -> dict[int, Rating]:
        """Most recent rating per toilet for a batch of toilets.

        Toilets without ratings are absent from the result.
        """
        if not toilet_ids:
            return {}
        sql = """
            SELECT DISTINCT ON (toilet_id) *
            FROM ratings
            WHERE toilet_id = ANY($1::int[])
            ORDER BY toilet_id, created_at DESC, id DESC
        """
        rows = await self._db.fetch(sql, toilet_ids)
        return {row["toilet_id"]: _row_to_rating(row) for row in rows}

    async def get_summary(self, toilet_id: int) -> RatingSummary:
        """Count and exact mean score for one toilet."""
        sql = """
            SELECT COUNT(*) AS total_count, COALESCE(SUM(rating), 0) AS score_sum
            FROM ratings
            WHERE toilet_id = $1
        """
        row = await self._db.fetchrow(sql, toilet_id)
        return _to_summary(toilet_id, row["total_count"], row["score_sum"])

    async def get_summaries(self, toilet_ids: list[int]) -> dict[int, RatingSummary]:
        """Count and exact mean score per toilet for a batch.

        Every requested toilet is present; those without ratings get an
        empty summary.
        """
        summaries = {tid: RatingSummary(toilet_id=tid) for tid in toilet_ids}
        if not toilet_ids:
            return summaries
        sql = """
            SELECT toilet_id, COUNT(*) AS total_count, SUM(rating) AS score_sum
            FROM ratings
            WHERE toilet_id = ANY($1::int[])
            GROUP BY toilet_id
        """
        rows = await self._db.fetch(sql, toilet_ids)
        for row in rows:
            summaries[row["toilet_id"]] = _to_summary(
                row["toilet_id"], row["total_count"], row["score_sum"]
            )
        return summaries

    async def count_for_toilet(self, toilet_id: int) -> int:
        count = await self._db.fetchval(
            "SELECT COUNT(*) FROM ratings WHERE toilet_id = $1",
            toilet_id,
        )
        return count or 0

    async def list_page(
        self,
        toilet_id: int,
        *,
        limit: int,
        offset: int,
    ) -> list[Rating]:
        """One newest-first slice of a toilet's ratings."""
        sql = f"""
            SELECT * FROM ratings
            WHERE toilet_id = $1
            {_NEWEST_FIRST}
            LIMIT $2 OFFSET $3
        """
        rows = await self._db.fetch(sql, toilet_id, limit, offset)
        return [_row_to_rating(row) for row in rows]

    async def list_for_toilet(self, toilet_id: int) -> list[Rating]:
        """Every rating of a toilet, newest first."""
        sql = f"""
            SELECT * FROM ratings
            WHERE toilet_id = $1
            {_NEWEST_FIRST}
        """
        rows = await self._db.fetch(sql, toilet_id)
        return [_row_to_rating(row) for row in rows]

    async def list_recent(self, *, limit: int = 100) -> list[Rating]:
        """Most recent ratings across all toilets."""
        sql = f"""
            SELECT * FROM ratings
            {_NEWEST_FIRST}
            LIMIT $1
        """
        rows = await self._db.fetch(sql, limit)
        return [_row_to_rating(row) for row in rows]

    async def get_global_summary(self) -> dict[str, Any]:
        """Total rating count and overall mean score (None when empty)."""
        row = await self._db.fetchrow(
            "SELECT COUNT(*) AS total_count, COALESCE(SUM(rating), 0) AS score_sum FROM ratings"
        )
        summary = _to_summary(0, row["total_count"], row["score_sum"])
        return {"total_ratings": summary.count, "average_rating": summary.average}


def _to_summary(toilet_id: int, count: int, score_sum: int) -> RatingSummary:
    count = count or 0
    average = (score_sum / count) if count else None
    return RatingSummary(toilet_id=toilet_id, count=count, average=average)


def _row_to_rating(row: Any) -> Rating:
    """Convert an asyncpg Record to a Rating."""
    return Rating(
        id=row["id"],
        toilet_id=row["toilet_id"],
        rating=row["rating"],
        problems=list(row["problems"] or []),
        other_text=row.get("other_text") or "",
        created_at=row["created_at"],
    )
