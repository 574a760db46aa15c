"""Schema definitions for rating records.

Maps 1:1 to the ``ratings`` database table. Each rating is a visitor's
1-5 score for a toilet plus an optional set of reported problems.
Ratings are immutable once written.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from src.errors import ValidationError
from src.ratings.problems import OTHER_PROBLEM_CODE, VALID_PROBLEM_CODES, describe, is_valid_code

MIN_SCORE = 1
MAX_SCORE = 5


@dataclass
class Rating:
    """A persisted rating from the ratings table.

    Attributes:
        toilet_id: The rated toilet.
        rating: Score from 1 (poor) to 5 (excellent).
        problems: Reported problem codes, deduplicated and sorted.
        other_text: Free-text description, required when code 6 is present.
        id: Database-assigned identifier (0 before insert).
        created_at: Submission time, stamped by the database on insert.
    """

    toilet_id: int
    rating: int
    problems: list[int] = field(default_factory=list)
    other_text: str = ""
    id: int = 0
    created_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    def __post_init__(self) -> None:
        if (
            not isinstance(self.rating, int)
            or isinstance(self.rating, bool)
            or not (MIN_SCORE <= self.rating <= MAX_SCORE)
        ):
            raise ValidationError(
                f"Invalid rating {self.rating!r}. "
                f"Must be between {MIN_SCORE} and {MAX_SCORE}."
            )

        unknown = [c for c in self.problems if not is_valid_code(c)]
        if unknown:
            raise ValidationError(
                f"Unknown problem codes {unknown!r}. "
                f"Must be one of: {sorted(VALID_PROBLEM_CODES)}"
            )
        self.problems = sorted(set(self.problems))

        if self.other_text is None:
            self.other_text = ""
        if OTHER_PROBLEM_CODE in self.problems and not self.other_text.strip():
            raise ValidationError(
                f"other_text is required when problem {OTHER_PROBLEM_CODE} (Other) is selected."
            )

    @property
    def has_problems(self) -> bool:
        return bool(self.problems)

    @property
    def problem_labels(self) -> list[str]:
        return describe(self.problems)

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        return {
            "id": self.id,
            "toilet_id": self.toilet_id,
            "rating": self.rating,
            "problems": list(self.problems),
            "problem_labels": self.problem_labels,
            "other_text": self.other_text,
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class RatingSummary:
    """Aggregate score statistics for one toilet.

    ``average`` is the exact arithmetic mean, or None when ``count`` is 0.
    """

    toilet_id: int
    count: int = 0
    average: float | None = None


@dataclass
class RatingPage:
    """One newest-first page of a toilet's ratings."""

    toilet_id: int
    items: list[Rating]
    page: int
    page_size: int
    total_count: int
    total_pages: int
    has_next: bool
    has_previous: bool
