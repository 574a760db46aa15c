"""Status aggregator: per-toilet status derived on read.

Combines the latest rating, rating summary, active task and last
completion time for each toilet. There is no cache; each call reads the
stores, so results reflect every write committed before the call.
"""

import time
from datetime import datetime

import structlog

from src.cleaning.repository import TaskRepository
from src.cleaning.schemas import CleaningTask, allowed_actions
from src.errors import NotFound
from src.observability.metrics import get_metrics
from src.ratings.repository import RatingRepository
from src.ratings.schemas import Rating, RatingSummary
from src.status.schemas import DerivedToiletStatus
from src.toilets.repository import ToiletRepository
from src.toilets.schemas import Toilet

logger = structlog.get_logger(__name__)


def has_unresolved_problems(
    latest: Rating | None,
    last_completed_at: datetime | None,
) -> bool:
    """True iff the latest rating reports problems and no task completed after it."""
    if latest is None or not latest.problems:
        return False
    if last_completed_at is None:
        return True
    return last_completed_at <= latest.created_at


def derive_status(
    toilet: Toilet,
    latest: Rating | None,
    summary: RatingSummary,
    active_task: CleaningTask | None,
    last_completed_at: datetime | None,
) -> DerivedToiletStatus:
    """Pure derivation of a toilet's status from its source records."""
    unresolved = has_unresolved_problems(latest, last_completed_at)
    return DerivedToiletStatus(
        toilet=toilet,
        last_rating=latest,
        has_problems=unresolved,
        problem_count=len(set(latest.problems)) if unresolved else 0,
        cleaning_task=active_task,
        average_rating=summary.average if summary.count else None,
        total_ratings=summary.count,
        last_cleaned_at=last_completed_at,
        allowed_actions=allowed_actions(active_task),
    )


class StatusAggregator:
    """Read-only view over ratings and tasks, one status per active toilet."""

    def __init__(
        self,
        toilets: ToiletRepository,
        ratings: RatingRepository,
        tasks: TaskRepository,
    ) -> None:
        self._toilets = toilets
        self._ratings = ratings
        self._tasks = tasks
        self._metrics = get_metrics()

    async def get_status(self, toilet_id: int) -> DerivedToiletStatus:
        """Status of one active toilet.

        Raises:
            NotFound: Toilet missing or inactive.
        """
        toilet = await self._toilets.get_active(toilet_id)
        if toilet is None:
            raise NotFound(f"Toilet {toilet_id} not found")

        latest = await self._ratings.get_latest(toilet_id)
        summary = await self._ratings.get_summary(toilet_id)
        active = await self._tasks.get_active_for_toilet(toilet_id)
        last_completed_at = await self._tasks.get_last_completed_at(toilet_id)
        return derive_status(toilet, latest, summary, active, last_completed_at)

    async def get_all_statuses(self) -> list[DerivedToiletStatus]:
        """Status of every active toilet, ordered by toilet id."""
        start = time.perf_counter()

        toilets = await self._toilets.list_active()
        ids = [t.id for t in toilets]

        latest = await self._ratings.get_latest_for_toilets(ids)
        summaries = await self._ratings.get_summaries(ids)
        active = await self._tasks.get_active_for_toilets(ids)
        completed = await self._tasks.get_last_completed_for_toilets(ids)

        statuses = [
            derive_status(
                toilet,
                latest.get(toilet.id),
                summaries.get(toilet.id, RatingSummary(toilet_id=toilet.id)),
                active.get(toilet.id),
                completed.get(toilet.id),
            )
            for toilet in toilets
        ]

        with_problems = sum(1 for s in statuses if s.has_problems)
        self._metrics.set_toilets_with_problems(with_problems)
        self._metrics.record_storage_latency(
            "status_bulk", time.perf_counter() - start
        )
        logger.debug(
            "Toilet statuses derived",
            toilets=len(statuses),
            with_problems=with_problems,
        )
        return statuses
