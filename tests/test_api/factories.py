"""Builders and header sets shared by the API tests."""

from datetime import datetime, timedelta, timezone

from src.cleaning.schemas import CleaningTask, TaskStatus
from src.ratings.schemas import Rating, RatingPage
from src.status.schemas import DerivedToiletStatus
from src.toilets.schemas import Toilet


T0 = datetime(2026, 3, 2, 9, 0, 0, tzinfo=timezone.utc)

CLEANER_HEADERS = {
    "Authorization": "Bearer test-token",
    "X-User-ID": "7",
    "X-User-Name": "Dana",
    "X-User-Role": "cleaner",
}

ADMIN_HEADERS = {
    "Authorization": "Bearer test-token",
    "X-User-ID": "1",
    "X-User-Name": "Admin",
    "X-User-Role": "admin",
}


def make_toilet(toilet_id: int = 1, name: str = "Block A - Ground Floor") -> Toilet:
    """Helper to create a Toilet with sensible defaults."""
    return Toilet(id=toilet_id, name=name, location="Lobby", created_at=T0 - timedelta(days=30))


def make_rating(rating_id: int = 11, toilet_id: int = 1, rating: int = 2, problems=None, **kwargs) -> Rating:
    """Helper to create a Rating with sensible defaults."""
    return Rating(
        id=rating_id,
        toilet_id=toilet_id,
        rating=rating,
        problems=problems if problems is not None else [4, 5],
        other_text=kwargs.pop("other_text", ""),
        created_at=kwargs.pop("created_at", T0),
    )


def make_task(task_id: int = 21, status: TaskStatus = TaskStatus.ASSIGNED, **kwargs) -> CleaningTask:
    """Helper to create a CleaningTask with sensible defaults."""
    started_at = kwargs.pop("started_at", None)
    completed_at = kwargs.pop("completed_at", None)
    if status in (TaskStatus.IN_PROGRESS, TaskStatus.COMPLETED) and started_at is None:
        started_at = T0 + timedelta(minutes=5)
    if status == TaskStatus.COMPLETED and completed_at is None:
        completed_at = T0 + timedelta(minutes=20)
    return CleaningTask(
        id=task_id,
        toilet_id=kwargs.pop("toilet_id", 1),
        cleaner_id=kwargs.pop("cleaner_id", 7),
        cleaner_name=kwargs.pop("cleaner_name", "Dana"),
        status=status,
        created_at=kwargs.pop("created_at", T0 + timedelta(minutes=1)),
        started_at=started_at,
        completed_at=completed_at,
    )


def make_status(**kwargs) -> DerivedToiletStatus:
    """Helper to create a DerivedToiletStatus with a problem report."""
    return DerivedToiletStatus(
        toilet=kwargs.pop("toilet", make_toilet()),
        last_rating=kwargs.pop("last_rating", make_rating()),
        has_problems=kwargs.pop("has_problems", True),
        problem_count=kwargs.pop("problem_count", 2),
        cleaning_task=kwargs.pop("cleaning_task", None),
        average_rating=kwargs.pop("average_rating", 3.5),
        total_ratings=kwargs.pop("total_ratings", 4),
        last_cleaned_at=kwargs.pop("last_cleaned_at", None),
        allowed_actions=kwargs.pop("allowed_actions", ["start"]),
    )


def make_page(items=None, **kwargs) -> RatingPage:
    items = items if items is not None else [make_rating()]
    return RatingPage(
        toilet_id=kwargs.pop("toilet_id", 1),
        items=items,
        page=kwargs.pop("page", 1),
        page_size=kwargs.pop("page_size", 10),
        total_count=kwargs.pop("total_count", len(items)),
        total_pages=kwargs.pop("total_pages", 1),
        has_next=kwargs.pop("has_next", False),
        has_previous=kwargs.pop("has_previous", False),
    )


