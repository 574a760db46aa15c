"""Rating endpoints: submission, retrieval, pagination and the problem catalog."""

import time

import structlog
from fastapi import APIRouter, Depends, HTTPException, Path, Query, Request, status

from src.api.dependencies import get_rating_service
from src.api.models import (
    ErrorResponse,
    PaginatedRatingsResponse,
    ProblemItem,
    ProblemsResponse,
    RatingItem,
    RatingRequest,
    RatingResponse,
    RatingsResponse,
)
from src.api.rate_limit import limiter
from src.config.settings import get_settings
from src.errors import TrackerError
from src.ratings.problems import catalog_entries
from src.ratings.service import RatingService

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.post(
    "/rating",
    response_model=RatingResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        404: {"model": ErrorResponse, "description": "Toilet not found"},
        422: {"model": ErrorResponse, "description": "Invalid rating"},
        500: {"model": ErrorResponse, "description": "Server error"},
    },
    summary="Submit a rating",
    description=(
        "Submit a 1-5 score for a toilet with optional problem codes. "
        "Code 6 (Other) requires a non-empty other_text."
    ),
)
@limiter.limit(lambda: get_settings().rate_limit_default)
async def create_rating(
    request: Request,
    payload: RatingRequest,
    rating_service: RatingService = Depends(get_rating_service),
) -> RatingResponse:
    start_time = time.perf_counter()

    try:
        created = await rating_service.submit_rating(
            toilet_id=payload.toilet_id,
            score=payload.rating,
            problem_codes=payload.problems,
            other_text=payload.other_text,
        )

        logger.info(
            "Rating submitted",
            rating_id=created.id,
            toilet_id=created.toilet_id,
            latency_ms=round((time.perf_counter() - start_time) * 1000, 2),
        )
        return RatingResponse(
            message="Rating saved",
            data=RatingItem(**created.to_dict()),
        )

    except TrackerError:
        raise
    except Exception as e:
        logger.error("create_rating_failed", error=str(e), exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save rating",
        )


@router.get(
    "/ratings",
    response_model=RatingsResponse,
    responses={500: {"model": ErrorResponse, "description": "Server error"}},
    summary="List recent ratings",
)
async def list_recent_ratings(
    limit: int | None = Query(default=None, ge=1, description="Maximum ratings to return"),
    rating_service: RatingService = Depends(get_rating_service),
) -> RatingsResponse:
    try:
        ratings = await rating_service.list_recent(limit)
        items = [RatingItem(**r.to_dict()) for r in ratings]
        return RatingsResponse(data=items, count=len(items))

    except Exception as e:
        logger.error("list_recent_ratings_failed", error=str(e), exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to list ratings",
        )


@router.get(
    "/rating/{rating_id}",
    response_model=RatingResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Rating not found"},
        500: {"model": ErrorResponse, "description": "Server error"},
    },
    summary="Get a rating",
)
async def get_rating(
    rating_id: int = Path(..., description="Rating identifier"),
    rating_service: RatingService = Depends(get_rating_service),
) -> RatingResponse:
    try:
        rating = await rating_service.get_rating(rating_id)
        return RatingResponse(data=RatingItem(**rating.to_dict()))

    except TrackerError:
        raise
    except Exception as e:
        logger.error("get_rating_failed", rating_id=rating_id, error=str(e), exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get rating",
        )


@router.get(
    "/toilet/{toilet_id}/ratings",
    response_model=RatingsResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Toilet not found"},
        500: {"model": ErrorResponse, "description": "Server error"},
    },
    summary="List all ratings of a toilet",
)
async def list_toilet_ratings(
    toilet_id: int = Path(..., description="Toilet identifier"),
    rating_service: RatingService = Depends(get_rating_service),
) -> RatingsResponse:
    try:
        ratings = await rating_service.list_toilet_ratings(toilet_id)
        items = [RatingItem(**r.to_dict()) for r in ratings]
        return RatingsResponse(data=items, count=len(items), toilet_id=toilet_id)

    except TrackerError:
        raise
    except Exception as e:
        logger.error("list_toilet_ratings_failed", toilet_id=toilet_id, error=str(e), exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to list ratings",
        )


@router.get(
    "/toilet/{toilet_id}/ratings/paginated",
    response_model=PaginatedRatingsResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Toilet not found"},
        422: {"model": ErrorResponse, "description": "Invalid page"},
        500: {"model": ErrorResponse, "description": "Server error"},
    },
    summary="Page through a toilet's ratings",
    description=(
        "Newest-first page of ratings. Pages are 1-based; a page past the end "
        "is empty with has_next=false. limit is clamped to the server maximum."
    ),
)
async def list_toilet_ratings_paginated(
    toilet_id: int = Path(..., description="Toilet identifier"),
    page: int = Query(default=1, description="1-based page number"),
    limit: int | None = Query(default=None, description="Page size"),
    rating_service: RatingService = Depends(get_rating_service),
) -> PaginatedRatingsResponse:
    try:
        result = await rating_service.list_ratings(toilet_id, page=page, page_size=limit)
        return PaginatedRatingsResponse(
            data=[RatingItem(**r.to_dict()) for r in result.items],
            toilet_id=result.toilet_id,
            page=result.page,
            page_size=result.page_size,
            total_pages=result.total_pages,
            total_count=result.total_count,
            has_next=result.has_next,
            has_previous=result.has_previous,
        )

    except TrackerError:
        raise
    except Exception as e:
        logger.error("list_ratings_paginated_failed", toilet_id=toilet_id, error=str(e), exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to list ratings",
        )


@router.get(
    "/problems",
    response_model=ProblemsResponse,
    summary="Problem catalog",
)
async def list_problems() -> ProblemsResponse:
    return ProblemsResponse(data=[ProblemItem(**entry) for entry in catalog_entries()])
