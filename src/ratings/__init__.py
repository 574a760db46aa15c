"""Visitor ratings: problem catalog, append-only store and ingestion.

Components:
- PROBLEM_CATALOG: Fixed code -> label mapping (1-6)
- Rating / RatingSummary / RatingPage: Dataclasses for stored ratings and views
- RatingConfig: Pydantic settings for ingestion and pagination limits
- RatingRepository: Append-only persistence and aggregate queries
- RatingService: Validation, ingestion and paginated retrieval
"""

from src.ratings.config import RatingConfig
from src.ratings.problems import OTHER_PROBLEM_CODE, PROBLEM_CATALOG, VALID_PROBLEM_CODES
from src.ratings.repository import RatingRepository
from src.ratings.schemas import Rating, RatingPage, RatingSummary
from src.ratings.service import RatingService

__all__ = [
    "OTHER_PROBLEM_CODE",
    "PROBLEM_CATALOG",
    "VALID_PROBLEM_CODES",
    "Rating",
    "RatingConfig",
    "RatingPage",
    "RatingRepository",
    "RatingService",
    "RatingSummary",
]
