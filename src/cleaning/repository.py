"""Task registry: persistence for cleaning tasks.

Exclusivity lives in the database. A partial unique index allows one
``assigned``/``in_progress`` row per toilet, and claims go through a single
``INSERT ... ON CONFLICT DO NOTHING`` statement, so two concurrent claims on
the same toilet cannot both succeed, even across processes. Transitions are
single conditional UPDATEs on the targeted row.
"""

import logging
from datetime import datetime
from typing import Any

from src.cleaning.schemas import TIMESTAMP_FIELDS, CleaningTask, TaskStatus
from src.storage.database import Database

logger = logging.getLogger(__name__)

_CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS cleaning_tasks (
    id            BIGSERIAL PRIMARY KEY,
    toilet_id     INTEGER NOT NULL REFERENCES toilets(id),
    cleaner_id    INTEGER NOT NULL,
    cleaner_name  TEXT NOT NULL,
    status        TEXT NOT NULL DEFAULT 'assigned'
                  CHECK (status IN ('assigned', 'in_progress', 'completed')),
    created_at    TIMESTAMPTZ NOT NULL DEFAULT clock_timestamp(),
    started_at    TIMESTAMPTZ,
    completed_at  TIMESTAMPTZ
);

CREATE UNIQUE INDEX IF NOT EXISTS uq_cleaning_tasks_one_active
    ON cleaning_tasks(toilet_id)
    WHERE status IN ('assigned', 'in_progress');
CREATE INDEX IF NOT EXISTS idx_cleaning_tasks_cleaner
    ON cleaning_tasks(cleaner_id, status);
CREATE INDEX IF NOT EXISTS idx_cleaning_tasks_completed
    ON cleaning_tasks(toilet_id, completed_at DESC)
    WHERE status = 'completed';
"""

_ACTIVE_PREDICATE = "status IN ('assigned', 'in_progress')"

# Minutes between begin and complete for finished tasks.
_DURATION_MINUTES = "EXTRACT(EPOCH FROM (completed_at - started_at)) / 60.0"


class TaskRepository:
    """Repository for cleaning task persistence and querying."""

    def __init__(self, database: Database) -> None:
        self._db = database

    async def create_table(self) -> None:
        """Create the cleaning_tasks table and indexes (idempotent)."""
        await self._db.execute(_CREATE_TABLE_SQL)
        logger.info("Cleaning tasks table ensured")

    async def create_if_idle(self, task: CleaningTask) -> CleaningTask | None:
        """Insert ``task`` unless its toilet already has an active task.

        Args:
            task: New task in ``assigned`` state.

        Returns:
            The stored task, or None if another active task holds the toilet.
        """
        sql = f"""
            INSERT INTO cleaning_tasks (
                toilet_id, cleaner_id, cleaner_name, status
            ) VALUES ($1, $2, $3, $4)
            ON CONFLICT (toilet_id) WHERE {_ACTIVE_PREDICATE} DO NOTHING
            RETURNING *
        """
        row = await self._db.fetchrow(
            sql,
            task.toilet_id,
            task.cleaner_id,
            task.cleaner_name,
            task.status.value,
        )
        return _row_to_task(row) if row else None

    async def transition(
        self,
        task_id: int,
        cleaner_id: int,
        from_status: TaskStatus,
        to_status: TaskStatus,
    ) -> CleaningTask | None:
        """Move a task between states if it is still owned and in ``from_status``.

        Returns:
            The updated task, or None if the guard did not match.
        """
        column = TIMESTAMP_FIELDS[to_status]
        sql = f"""
            UPDATE cleaning_tasks
            SET status = $4, {column} = clock_timestamp()
            WHERE id = $1 AND cleaner_id = $2 AND status = $3
            RETURNING *
        """
        row = await self._db.fetchrow(
            sql,
            task_id,
            cleaner_id,
            from_status.value,
            to_status.value,
        )
        return _row_to_task(row) if row else None

    async def get_by_id(self, task_id: int) -> CleaningTask | None:
        row = await self._db.fetchrow(
            "SELECT * FROM cleaning_tasks WHERE id = $1",
            task_id,
        )
        return _row_to_task(row) if row else None

    async def get_active_for_toilet(self, toilet_id: int) -> CleaningTask | None:
        sql = f"""
            SELECT * FROM cleaning_tasks
            WHERE toilet_id = $1 AND {_ACTIVE_PREDICATE}
        """
        row = await self._db.fetchrow(sql, toilet_id)
        return _row_to_task(row) if row else None

    async def get_active_for_toilets(self, toilet_ids: list[int]) -> dict[int, CleaningTask]:
        if not toilet_ids:
            return {}
        sql = f"""
            SELECT * FROM cleaning_tasks
            WHERE toilet_id = ANY($1::int[]) AND {_ACTIVE_PREDICATE}
        """
        rows = await self._db.fetch(sql, toilet_ids)
        return {row["toilet_id"]: _row_to_task(row) for row in rows}

    async def get_last_completed_at(self, toilet_id: int) -> datetime | None:
        """Completion time of the toilet's most recent finished task."""
        return await self._db.fetchval(
            """
            SELECT MAX(completed_at) FROM cleaning_tasks
            WHERE toilet_id = $1 AND status = 'completed'
            """,
            toilet_id,
        )

    async def get_last_completed_for_toilets(self, toilet_ids: list[int]) -> dict[int, datetime]:
        if not toilet_ids:
            return {}
        sql = """
            SELECT toilet_id, MAX(completed_at) AS last_completed_at
            FROM cleaning_tasks
            WHERE toilet_id = ANY($1::int[]) AND status = 'completed'
            GROUP BY toilet_id
        """
        rows = await self._db.fetch(sql, toilet_ids)
        return {row["toilet_id"]: row["last_completed_at"] for row in rows}

    async def list_tasks(
        self,
        *,
        status: TaskStatus | None = None,
        toilet_id: int | None = None,
        cleaner_id: int | None = None,
        limit: int = 100,
    ) -> list[CleaningTask]:
        """List tasks newest first with optional filters.

        Args:
            status: Only tasks in this state.
            toilet_id: Only tasks for this toilet.
            cleaner_id: Only tasks assigned to this cleaner.
            limit: Maximum records to return.
        """
        conditions: list[str] = []
        params: list[Any] = []
        param_idx = 1

        if status is not None:
            conditions.append(f"status = ${param_idx}")
            params.append(status.value)
            param_idx += 1

        if toilet_id is not None:
            conditions.append(f"toilet_id = ${param_idx}")
            params.append(toilet_id)
            param_idx += 1

        if cleaner_id is not None:
            conditions.append(f"cleaner_id = ${param_idx}")
            params.append(cleaner_id)
            param_idx += 1

        where_clause = ""
        if conditions:
            where_clause = "WHERE " + " AND ".join(conditions)

        sql = f"""
            SELECT * FROM cleaning_tasks
            {where_clause}
            ORDER BY created_at DESC, id DESC
            LIMIT ${param_idx}
        """
        params.append(limit)
        rows = await self._db.fetch(sql, *params)
        return [_row_to_task(row) for row in rows]

    async def get_task_counts(self, completed_since: datetime) -> dict[str, int]:
        """System-wide ongoing tasks and tasks completed since a cutoff."""
        sql = f"""
            SELECT
                COUNT(*) FILTER (
                    WHERE status = 'completed' AND completed_at >= $1
                ) AS completed_since,
                COUNT(*) FILTER (WHERE {_ACTIVE_PREDICATE}) AS ongoing
            FROM cleaning_tasks
        """
        row = await self._db.fetchrow(sql, completed_since)
        return {
            "completed_since": row["completed_since"] or 0,
            "ongoing": row["ongoing"] or 0,
        }

    async def get_cleaner_stats(
        self,
        *,
        week_start: datetime,
        month_start: datetime,
    ) -> list[dict[str, Any]]:
        """Per-cleaner task counts and cleaning durations.

        Cleaners are those appearing in the task history; the name is the
        one used on their most recent claim.

        Returns:
            List of stat dicts ordered by cleaner_id.
        """
        sql = f"""
            SELECT
                cleaner_id,
                (ARRAY_AGG(cleaner_name ORDER BY created_at DESC))[1] AS cleaner_name,
                COUNT(*) FILTER (WHERE status = 'completed') AS completed_tasks,
                AVG({_DURATION_MINUTES}) FILTER (WHERE status = 'completed') AS avg_minutes,
                MIN({_DURATION_MINUTES}) FILTER (WHERE status = 'completed') AS min_minutes,
                MAX({_DURATION_MINUTES}) FILTER (WHERE status = 'completed') AS max_minutes,
                SUM({_DURATION_MINUTES}) FILTER (WHERE status = 'completed') AS total_minutes,
                COUNT(*) FILTER (
                    WHERE status = 'completed' AND completed_at >= $1
                ) AS last_week_tasks,
                COUNT(*) FILTER (
                    WHERE status = 'completed' AND completed_at >= $2
                ) AS last_month_tasks,
                COUNT(*) FILTER (WHERE {_ACTIVE_PREDICATE}) AS ongoing_tasks
            FROM cleaning_tasks
            GROUP BY cleaner_id
            ORDER BY cleaner_id
        """
        rows = await self._db.fetch(sql, week_start, month_start)
        return [_row_to_cleaner_stats(row) for row in rows]


def _row_to_task(row: Any) -> CleaningTask:
    """Convert an asyncpg Record to a CleaningTask."""
    return CleaningTask(
        id=row["id"],
        toilet_id=row["toilet_id"],
        cleaner_id=row["cleaner_id"],
        cleaner_name=row["cleaner_name"],
        status=TaskStatus(row["status"]),
        created_at=row["created_at"],
        started_at=row.get("started_at"),
        completed_at=row.get("completed_at"),
    )


def _optional_float(value: Any) -> float | None:
    return float(value) if value is not None else None


def _row_to_cleaner_stats(row: Any) -> dict[str, Any]:
    """Convert an asyncpg Record to a cleaner stats dict."""
    return {
        "cleaner_id": row["cleaner_id"],
        "cleaner_name": row["cleaner_name"],
        "completed_tasks": row["completed_tasks"] or 0,
        "average_cleaning_minutes": _optional_float(row["avg_minutes"]),
        "fastest_cleaning_minutes": _optional_float(row["min_minutes"]),
        "slowest_cleaning_minutes": _optional_float(row["max_minutes"]),
        "total_cleaning_minutes": _optional_float(row["total_minutes"]) or 0.0,
        "last_week_tasks": row["last_week_tasks"] or 0,
        "last_month_tasks": row["last_month_tasks"] or 0,
        "ongoing_tasks": row["ongoing_tasks"] or 0,
    }
