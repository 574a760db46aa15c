"""Toilet listing and derived status endpoints."""

import time

import structlog
from fastapi import APIRouter, Depends, HTTPException, Path, status

from src.api.dependencies import get_status_aggregator, get_toilet_repository
from src.api.models import (
    ErrorResponse,
    ToiletItem,
    ToiletsResponse,
    ToiletStatusesResponse,
    ToiletStatusItem,
    ToiletStatusResponse,
)
from src.errors import TrackerError
from src.status.aggregator import StatusAggregator
from src.toilets.repository import ToiletRepository

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.get(
    "/toilets",
    response_model=ToiletsResponse,
    responses={500: {"model": ErrorResponse, "description": "Server error"}},
    summary="List active toilets",
)
async def list_toilets(
    toilet_repo: ToiletRepository = Depends(get_toilet_repository),
) -> ToiletsResponse:
    try:
        toilets = await toilet_repo.list_active()
        return ToiletsResponse(data=[ToiletItem(**t.to_dict()) for t in toilets])

    except Exception as e:
        logger.error("list_toilets_failed", error=str(e), exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to list toilets",
        )


@router.get(
    "/toilets/status",
    response_model=ToiletStatusesResponse,
    responses={500: {"model": ErrorResponse, "description": "Server error"}},
    summary="Get status of all toilets",
    description=(
        "Derived status for every active toilet: latest rating, unresolved "
        "problems, average score and the active cleaning task."
    ),
)
async def get_toilets_status(
    aggregator: StatusAggregator = Depends(get_status_aggregator),
) -> ToiletStatusesResponse:
    start_time = time.perf_counter()

    try:
        statuses = await aggregator.get_all_statuses()
        items = [ToiletStatusItem(**s.to_dict()) for s in statuses]

        logger.info(
            "Toilet statuses retrieved",
            toilets=len(items),
            latency_ms=round((time.perf_counter() - start_time) * 1000, 2),
        )
        return ToiletStatusesResponse(data=items)

    except Exception as e:
        logger.error("get_toilets_status_failed", error=str(e), exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get toilet statuses",
        )


@router.get(
    "/toilets/{toilet_id}/status",
    response_model=ToiletStatusResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Toilet not found"},
        500: {"model": ErrorResponse, "description": "Server error"},
    },
    summary="Get status of one toilet",
)
async def get_toilet_status(
    toilet_id: int = Path(..., description="Toilet identifier"),
    aggregator: StatusAggregator = Depends(get_status_aggregator),
) -> ToiletStatusResponse:
    try:
        derived = await aggregator.get_status(toilet_id)
        return ToiletStatusResponse(data=ToiletStatusItem(**derived.to_dict()))

    except TrackerError:
        raise
    except Exception as e:
        logger.error("get_toilet_status_failed", toilet_id=toilet_id, error=str(e), exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get toilet status",
        )
