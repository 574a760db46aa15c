"""
Request and response models for the restroom tracker API.

Every response uses the same envelope: ``success``, an optional
``message`` and the payload under ``data`` (pagination fields sit next
to ``data``).
"""

from pydantic import BaseModel, Field, StrictInt


class ErrorResponse(BaseModel):
    """Response model for errors."""

    success: bool = Field(default=False, description="Always false for errors")
    message: str = Field(..., description="Human-readable error message")
    error_type: str = Field(
        default="error",
        description="Stable error kind: validation, not_found, conflict, forbidden, invalid_state, unauthorized, internal",
    )


class Envelope(BaseModel):
    """Fields shared by every successful response."""

    success: bool = Field(default=True, description="Whether the request succeeded")
    message: str | None = Field(default=None, description="Optional human-readable message")


# Toilet models


class ToiletItem(BaseModel):
    """Single toilet record."""

    id: int = Field(..., description="Toilet identifier")
    name: str = Field(..., description="Display name")
    location: str = Field(default="", description="Location description")
    is_active: bool = Field(default=True, description="Whether the toilet is in service")
    created_at: str = Field(..., description="Provisioning timestamp (ISO format)")


class ToiletsResponse(Envelope):
    """Response model for listing toilets."""

    data: list[ToiletItem] = Field(..., description="Active toilets")


# Rating models


class RatingRequest(BaseModel):
    """Request model for submitting a rating.

    Score and codes must be JSON integers; booleans and numeric strings are
    rejected here instead of being coerced to 1 or 0. Range and catalog
    checks happen in the rating service so failures are reported with the
    ``validation`` error kind.
    """

    toilet_id: int = Field(..., description="Rated toilet")
    rating: StrictInt = Field(..., description="Score from 1 (poor) to 5 (excellent)")
    problems: list[StrictInt] = Field(
        default_factory=list,
        description="Problem catalog codes (1-6)",
    )
    other_text: str | None = Field(
        default="",
        description="Free-text description, required when code 6 (Other) is selected",
    )


class RatingItem(BaseModel):
    """Single rating record."""

    id: int = Field(..., description="Rating identifier")
    toilet_id: int = Field(..., description="Rated toilet")
    rating: int = Field(..., ge=1, le=5, description="Score (1-5)")
    problems: list[int] = Field(default_factory=list, description="Problem codes")
    problem_labels: list[str] = Field(default_factory=list, description="Problem descriptions")
    other_text: str = Field(default="", description="Free-text 'Other' description")
    created_at: str = Field(..., description="Submission timestamp (ISO format)")


class RatingResponse(Envelope):
    """Response model for a single rating."""

    data: RatingItem = Field(..., description="Rating record")


class RatingsResponse(Envelope):
    """Response model for a rating list."""

    data: list[RatingItem] = Field(..., description="Ratings, newest first")
    count: int = Field(..., description="Number of ratings returned")
    toilet_id: int | None = Field(default=None, description="Toilet filter, if any")


class PaginatedRatingsResponse(Envelope):
    """Response model for a page of ratings."""

    data: list[RatingItem] = Field(..., description="Ratings on this page, newest first")
    toilet_id: int = Field(..., description="Toilet the ratings belong to")
    page: int = Field(..., description="1-based page number")
    page_size: int = Field(..., description="Effective (clamped) page size")
    total_pages: int = Field(..., description="Number of pages")
    total_count: int = Field(..., description="Total ratings for the toilet")
    has_next: bool = Field(..., description="Whether a later page exists")
    has_previous: bool = Field(..., description="Whether an earlier page exists")


class ProblemItem(BaseModel):
    """Problem catalog entry."""

    code: int = Field(..., description="Stable problem code")
    label: str = Field(..., description="Display label")


class ProblemsResponse(Envelope):
    """Response model for the problem catalog."""

    data: list[ProblemItem] = Field(..., description="Catalog entries ordered by code")


# Cleaning task models


class StartCleaningRequest(BaseModel):
    """Request model for claiming a toilet."""

    toilet_id: int = Field(..., description="Toilet to clean")


class CleaningTaskItem(BaseModel):
    """Single cleaning task record."""

    id: int = Field(..., description="Task identifier")
    toilet_id: int = Field(..., description="Toilet being cleaned")
    cleaner_id: int = Field(..., description="Assigned cleaner")
    cleaner_name: str = Field(..., description="Assigned cleaner's display name")
    status: str = Field(..., description="assigned, in_progress or completed")
    created_at: str = Field(..., description="Claim timestamp (ISO format)")
    started_at: str | None = Field(default=None, description="Begin timestamp (ISO format)")
    completed_at: str | None = Field(default=None, description="Completion timestamp (ISO format)")
    duration_minutes: float | None = Field(
        default=None,
        description="Minutes from begin to completion, once completed",
    )


class CleaningTaskResponse(Envelope):
    """Response model for a created or transitioned task."""

    task: CleaningTaskItem = Field(..., description="Cleaning task")


class CleaningTasksResponse(Envelope):
    """Response model for listing tasks."""

    data: list[CleaningTaskItem] = Field(..., description="Tasks, newest first")
    total: int = Field(..., description="Number of tasks returned")


# Status models


class ToiletStatusItem(BaseModel):
    """Derived status of one toilet."""

    toilet: ToiletItem = Field(..., description="The toilet")
    last_rating: RatingItem | None = Field(default=None, description="Most recent rating")
    has_problems: bool = Field(..., description="Latest rating reports problems not cleaned since")
    problem_count: int = Field(..., description="Distinct unresolved problems")
    cleaning_task: CleaningTaskItem | None = Field(default=None, description="Active task, if any")
    average_rating: float | None = Field(default=None, description="Mean score, null without ratings")
    total_ratings: int = Field(..., description="Number of ratings")
    last_checked: str | None = Field(default=None, description="Latest rating timestamp")
    last_cleaned_at: str | None = Field(default=None, description="Latest completed cleaning")
    allowed_actions: list[str] = Field(default_factory=list, description="Legal next actions")


class ToiletStatusesResponse(Envelope):
    """Response model for all toilet statuses."""

    data: list[ToiletStatusItem] = Field(..., description="One status per active toilet")


class ToiletStatusResponse(Envelope):
    """Response model for one toilet status."""

    data: ToiletStatusItem = Field(..., description="Toilet status")


# Statistics models


class SystemStatsItem(BaseModel):
    """Facility-wide statistics."""

    total_toilets: int
    active_toilets: int
    toilets_with_problems: int
    total_ratings: int
    average_rating: float | None = None
    completed_tasks_today: int
    ongoing_tasks: int


class CleanerStatsItem(BaseModel):
    """Per-cleaner statistics. Durations are in minutes, null when unmeasured."""

    cleaner_id: int
    cleaner_name: str
    completed_tasks: int
    average_cleaning_minutes: float | None = None
    fastest_cleaning_minutes: float | None = None
    slowest_cleaning_minutes: float | None = None
    total_cleaning_minutes: float = 0.0
    last_week_tasks: int
    last_month_tasks: int
    ongoing_tasks: int


class StatsResponse(Envelope):
    """Response model for admin statistics."""

    system_stats: SystemStatsItem = Field(..., description="Facility-wide figures")
    cleaner_stats: list[CleanerStatsItem] = Field(..., description="Per-cleaner figures")
    latency_ms: float = Field(..., description="Processing latency in milliseconds")


# Health models


class ComponentHealth(BaseModel):
    """Health of a single dependency."""

    status: str = Field(..., description="healthy or unhealthy")
    latency_ms: float | None = Field(default=None, description="Check latency in milliseconds")
    details: dict = Field(default_factory=dict, description="Extra diagnostics")


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str = Field(..., description="Overall service status: healthy or unhealthy")
    components: dict[str, ComponentHealth] = Field(
        default_factory=dict,
        description="Per-dependency health",
    )
