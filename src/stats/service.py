"""Administrative statistics over toilets, ratings and cleaning history.

System figures come from the stores directly except "toilets with
problems", which is taken from the status aggregator so it always agrees
with the per-toilet ``has_problems`` flag.
"""

from datetime import datetime, timedelta, timezone
from typing import Any

import structlog

from src.cleaning.repository import TaskRepository
from src.ratings.repository import RatingRepository
from src.status.aggregator import StatusAggregator
from src.toilets.repository import ToiletRepository

logger = structlog.get_logger(__name__)


class CleaningStatsService:
    """Builds the admin statistics report."""

    def __init__(
        self,
        toilets: ToiletRepository,
        ratings: RatingRepository,
        tasks: TaskRepository,
        aggregator: StatusAggregator,
    ) -> None:
        self._toilets = toilets
        self._ratings = ratings
        self._tasks = tasks
        self._aggregator = aggregator

    async def get_system_stats(self, now: datetime | None = None) -> dict[str, Any]:
        """Facility-wide counts.

        Args:
            now: Reference time (UTC); "today" starts at its midnight.
        """
        now = now or datetime.now(timezone.utc)
        today_start = now.replace(hour=0, minute=0, second=0, microsecond=0)

        toilet_counts = await self._toilets.count()
        rating_summary = await self._ratings.get_global_summary()
        task_counts = await self._tasks.get_task_counts(today_start)
        statuses = await self._aggregator.get_all_statuses()

        return {
            "total_toilets": toilet_counts["total"],
            "active_toilets": toilet_counts["active"],
            "toilets_with_problems": sum(1 for s in statuses if s.has_problems),
            "total_ratings": rating_summary["total_ratings"],
            "average_rating": rating_summary["average_rating"],
            "completed_tasks_today": task_counts["completed_since"],
            "ongoing_tasks": task_counts["ongoing"],
        }

    async def get_cleaner_stats(self, now: datetime | None = None) -> list[dict[str, Any]]:
        """Per-cleaner counts and cleaning durations in minutes."""
        now = now or datetime.now(timezone.utc)
        return await self._tasks.get_cleaner_stats(
            week_start=now - timedelta(days=7),
            month_start=now - timedelta(days=30),
        )

    async def get_report(self, now: datetime | None = None) -> dict[str, Any]:
        """System and cleaner statistics together."""
        now = now or datetime.now(timezone.utc)
        system = await self.get_system_stats(now)
        cleaners = await self.get_cleaner_stats(now)
        logger.info(
            "Stats report built",
            cleaners=len(cleaners),
            toilets_with_problems=system["toilets_with_problems"],
        )
        return {"system_stats": system, "cleaner_stats": cleaners}
