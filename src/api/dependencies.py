"""
Dependency injection for FastAPI endpoints.
"""

from src.cleaning.lifecycle import TaskLifecycleController
from src.cleaning.repository import TaskRepository
from src.ratings.config import RatingConfig
from src.ratings.repository import RatingRepository
from src.ratings.service import RatingService
from src.stats.service import CleaningStatsService
from src.status.aggregator import StatusAggregator
from src.storage.database import Database
from src.toilets.repository import ToiletRepository

# Global instances (initialized on first request)
_database: Database | None = None
_rating_service: RatingService | None = None
_lifecycle_controller: TaskLifecycleController | None = None
_status_aggregator: StatusAggregator | None = None
_stats_service: CleaningStatsService | None = None


async def get_database() -> Database:
    """Get the shared, connected Database."""
    global _database

    if _database is None:
        _database = Database()
        await _database.connect()

    return _database


async def get_toilet_repository() -> ToiletRepository:
    return ToiletRepository(await get_database())


async def get_rating_service() -> RatingService:
    """
    Get rating service instance.

    Creates a singleton service backed by the shared database.
    """
    global _rating_service

    if _rating_service is None:
        db = await get_database()
        _rating_service = RatingService(
            ratings=RatingRepository(db),
            toilets=ToiletRepository(db),
            config=RatingConfig(),
        )

    return _rating_service


async def get_lifecycle_controller() -> TaskLifecycleController:
    """Get the cleaning task lifecycle controller."""
    global _lifecycle_controller

    if _lifecycle_controller is None:
        db = await get_database()
        _lifecycle_controller = TaskLifecycleController(
            tasks=TaskRepository(db),
            toilets=ToiletRepository(db),
        )

    return _lifecycle_controller


async def get_status_aggregator() -> StatusAggregator:
    """Get the toilet status aggregator."""
    global _status_aggregator

    if _status_aggregator is None:
        db = await get_database()
        _status_aggregator = StatusAggregator(
            toilets=ToiletRepository(db),
            ratings=RatingRepository(db),
            tasks=TaskRepository(db),
        )

    return _status_aggregator


async def get_stats_service() -> CleaningStatsService:
    """Get the admin statistics service."""
    global _stats_service

    if _stats_service is None:
        db = await get_database()
        _stats_service = CleaningStatsService(
            toilets=ToiletRepository(db),
            ratings=RatingRepository(db),
            tasks=TaskRepository(db),
            aggregator=await get_status_aggregator(),
        )

    return _stats_service


async def cleanup_dependencies() -> None:
    """Clean up global dependencies on shutdown."""
    global _database, _rating_service, _lifecycle_controller, _status_aggregator, _stats_service

    _rating_service = None
    _lifecycle_controller = None
    _status_aggregator = None
    _stats_service = None

    if _database is not None:
        await _database.close()
        _database = None
