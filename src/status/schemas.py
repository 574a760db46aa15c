"""Derived per-toilet status view.

Never persisted: recomputed from the rating store and task registry on
every read, so it cannot drift from its sources.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from src.cleaning.schemas import CleaningTask
from src.ratings.schemas import Rating
from src.toilets.schemas import Toilet


@dataclass
class DerivedToiletStatus:
    """What a toilet currently looks like to admins and cleaners.

    Attributes:
        toilet: The toilet itself.
        last_rating: Most recent rating, or None.
        has_problems: Latest rating reports problems not yet cleaned up.
        problem_count: Distinct problems on the latest rating while unresolved.
        cleaning_task: The active (non-completed) task, or None.
        average_rating: Exact mean of all scores, None without ratings.
        total_ratings: Number of ratings ever submitted.
        last_cleaned_at: Completion time of the most recent finished task.
        allowed_actions: Legal next lifecycle actions.
    """

    toilet: Toilet
    last_rating: Rating | None = None
    has_problems: bool = False
    problem_count: int = 0
    cleaning_task: CleaningTask | None = None
    average_rating: float | None = None
    total_ratings: int = 0
    last_cleaned_at: datetime | None = None
    allowed_actions: list[str] = field(default_factory=list)

    @property
    def last_checked(self) -> datetime | None:
        return self.last_rating.created_at if self.last_rating else None

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        return {
            "toilet": self.toilet.to_dict(),
            "last_rating": self.last_rating.to_dict() if self.last_rating else None,
            "has_problems": self.has_problems,
            "problem_count": self.problem_count,
            "cleaning_task": self.cleaning_task.to_dict() if self.cleaning_task else None,
            "average_rating": self.average_rating,
            "total_ratings": self.total_ratings,
            "last_checked": self.last_checked.isoformat() if self.last_checked else None,
            "last_cleaned_at": self.last_cleaned_at.isoformat() if self.last_cleaned_at else None,
            "allowed_actions": list(self.allowed_actions),
        }
