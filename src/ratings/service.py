"""Rating ingestion and retrieval.

RatingService validates visitor submissions against the problem catalog,
appends them to the rating store and serves newest-first pages. It never
touches cleaning tasks: a problem report arriving while a task is active
only changes what the status aggregator derives on its next read.
"""

import structlog

from src.errors import NotFound, ValidationError
from src.observability.metrics import get_metrics
from src.ratings.config import RatingConfig
from src.ratings.pagination import page_flags, resolve_window
from src.ratings.repository import RatingRepository
from src.ratings.schemas import Rating, RatingPage
from src.toilets.repository import ToiletRepository

logger = structlog.get_logger(__name__)


class RatingService:
    """Validates, stores and pages visitor ratings."""

    def __init__(
        self,
        ratings: RatingRepository,
        toilets: ToiletRepository,
        config: RatingConfig | None = None,
    ) -> None:
        self._ratings = ratings
        self._toilets = toilets
        self._config = config or RatingConfig()
        self._metrics = get_metrics()

    @property
    def config(self) -> RatingConfig:
        return self._config

    async def submit_rating(
        self,
        toilet_id: int,
        score: int,
        problem_codes: list[int] | None = None,
        other_text: str | None = None,
    ) -> Rating:
        """Validate and append a rating.

        Args:
            toilet_id: Rated toilet; must exist and be active.
            score: Integer score in [1, 5].
            problem_codes: Catalog codes; duplicates are collapsed.
            other_text: Required (non-blank) when code 6 is present.

        Returns:
            The stored Rating with its server-assigned id and timestamp.

        Raises:
            ValidationError: Bad score, unknown code, missing or oversized other_text.
            NotFound: Toilet does not exist or is inactive.
        """
        other_text = other_text or ""
        try:
            if len(other_text) > self._config.max_other_text_length:
                raise ValidationError(
                    f"other_text exceeds {self._config.max_other_text_length} characters."
                )
            rating = Rating(
                toilet_id=toilet_id,
                rating=score,
                problems=list(problem_codes or []),
                other_text=other_text,
            )
        except ValidationError as e:
            self._metrics.record_rating_rejected("validation")
            logger.info("Rating rejected", toilet_id=toilet_id, reason=e.message)
            raise

        toilet = await self._toilets.get_active(toilet_id)
        if toilet is None:
            self._metrics.record_rating_rejected("not_found")
            raise NotFound(f"Toilet {toilet_id} not found")

        created = await self._ratings.create(rating)
        self._metrics.record_rating(created.has_problems)

        logger.info(
            "Rating created",
            rating_id=created.id,
            toilet_id=created.toilet_id,
            rating=created.rating,
            problems=created.problems,
        )
        return created

    async def list_ratings(
        self,
        toilet_id: int,
        page: int = 1,
        page_size: int | None = None,
    ) -> RatingPage:
        """Newest-first page of a toilet's ratings.

        Pages are 1-based. A page past the end is returned empty with
        ``has_next`` False. ``page_size`` is clamped to the configured max.

        Raises:
            ValidationError: If ``page`` is below 1.
            NotFound: If the toilet does not exist.
        """
        window = resolve_window(
            page,
            page_size if page_size is not None else self._config.default_page_size,
            self._config.max_page_size,
        )
        await self._require_toilet(toilet_id)

        total_count = await self._ratings.count_for_toilet(toilet_id)
        flags = page_flags(window, total_count)
        items: list[Rating] = []
        if window.offset < total_count:
            items = await self._ratings.list_page(
                toilet_id, limit=window.limit, offset=window.offset
            )

        return RatingPage(
            toilet_id=toilet_id,
            items=items,
            page=window.page,
            page_size=window.page_size,
            total_count=total_count,
            total_pages=flags["total_pages"],
            has_next=flags["has_next"],
            has_previous=flags["has_previous"],
        )

    async def list_toilet_ratings(self, toilet_id: int) -> list[Rating]:
        """Every rating of a toilet, newest first."""
        await self._require_toilet(toilet_id)
        return await self._ratings.list_for_toilet(toilet_id)

    async def list_recent(self, limit: int | None = None) -> list[Rating]:
        """Most recent ratings across toilets, capped by config."""
        cap = self._config.recent_limit
        limit = cap if limit is None else max(1, min(limit, cap))
        return await self._ratings.list_recent(limit=limit)

    async def get_rating(self, rating_id: int) -> Rating:
        rating = await self._ratings.get_by_id(rating_id)
        if rating is None:
            raise NotFound(f"Rating {rating_id} not found")
        return rating

    async def _require_toilet(self, toilet_id: int) -> None:
        if await self._toilets.get_by_id(toilet_id) is None:
            raise NotFound(f"Toilet {toilet_id} not found")
