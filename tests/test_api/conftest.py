"""Shared fixtures for API tests."""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from src.api.app import create_app
from src.api.dependencies import (
    get_database,
    get_lifecycle_controller,
    get_rating_service,
    get_stats_service,
    get_status_aggregator,
    get_toilet_repository,
)
from src.cleaning.lifecycle import TaskLifecycleController
from src.cleaning.schemas import TaskStatus
from src.ratings.service import RatingService
from src.stats.service import CleaningStatsService
from src.status.aggregator import StatusAggregator
from src.toilets.repository import ToiletRepository
from tests.test_api.factories import (
    make_page,
    make_rating,
    make_status,
    make_task,
    make_toilet,
)


@pytest.fixture
def mock_toilet_repo():
    """Mock ToiletRepository."""
    repo = AsyncMock(spec=ToiletRepository)
    repo.list_active = AsyncMock(return_value=[make_toilet()])
    return repo


@pytest.fixture
def mock_rating_service():
    """Mock RatingService."""
    service = AsyncMock(spec=RatingService)
    service.submit_rating = AsyncMock(return_value=make_rating())
    service.list_ratings = AsyncMock(return_value=make_page())
    service.list_toilet_ratings = AsyncMock(return_value=[make_rating()])
    service.list_recent = AsyncMock(return_value=[])
    service.get_rating = AsyncMock(return_value=make_rating())
    return service


@pytest.fixture
def mock_lifecycle():
    """Mock TaskLifecycleController."""
    controller = AsyncMock(spec=TaskLifecycleController)
    controller.start_task = AsyncMock(return_value=make_task())
    controller.begin_task = AsyncMock(return_value=make_task(status=TaskStatus.IN_PROGRESS))
    controller.complete_task = AsyncMock(return_value=make_task(status=TaskStatus.COMPLETED))
    controller.list_tasks = AsyncMock(return_value=[])
    return controller


@pytest.fixture
def mock_status_aggregator():
    """Mock StatusAggregator."""
    aggregator = AsyncMock(spec=StatusAggregator)
    aggregator.get_all_statuses = AsyncMock(return_value=[make_status()])
    aggregator.get_status = AsyncMock(return_value=make_status())
    return aggregator


@pytest.fixture
def mock_stats_service():
    """Mock CleaningStatsService."""
    service = AsyncMock(spec=CleaningStatsService)
    service.get_report = AsyncMock(return_value={
        "system_stats": {
            "total_toilets": 5,
            "active_toilets": 4,
            "toilets_with_problems": 1,
            "total_ratings": 12,
            "average_rating": 3.25,
            "completed_tasks_today": 3,
            "ongoing_tasks": 1,
        },
        "cleaner_stats": [{
            "cleaner_id": 7,
            "cleaner_name": "Dana",
            "completed_tasks": 2,
            "average_cleaning_minutes": 15.0,
            "fastest_cleaning_minutes": 10.0,
            "slowest_cleaning_minutes": 20.0,
            "total_cleaning_minutes": 30.0,
            "last_week_tasks": 1,
            "last_month_tasks": 2,
            "ongoing_tasks": 1,
        }],
    })
    return service


@pytest.fixture
def mock_database():
    db = AsyncMock()
    db.health_check = AsyncMock(return_value=True)
    return db


@pytest.fixture
def client(
    mock_toilet_repo,
    mock_rating_service,
    mock_lifecycle,
    mock_status_aggregator,
    mock_stats_service,
    mock_database,
):
    """FastAPI TestClient with dependency overrides."""
    app = create_app()

    app.dependency_overrides[get_database] = lambda: mock_database
    app.dependency_overrides[get_toilet_repository] = lambda: mock_toilet_repo
    app.dependency_overrides[get_rating_service] = lambda: mock_rating_service
    app.dependency_overrides[get_lifecycle_controller] = lambda: mock_lifecycle
    app.dependency_overrides[get_status_aggregator] = lambda: mock_status_aggregator
    app.dependency_overrides[get_stats_service] = lambda: mock_stats_service

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    """Reset cached settings and auth/rate-limit env vars around each test."""
    from src.config.settings import get_settings

    monkeypatch.delenv("API_TOKENS", raising=False)
    monkeypatch.setenv("RATE_LIMIT_ENABLED", "false")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
