"""Admin statistics endpoint."""

import time

import structlog
from fastapi import APIRouter, Depends, HTTPException, status

from src.api.auth import Caller, require_admin
from src.api.dependencies import get_stats_service
from src.api.models import CleanerStatsItem, ErrorResponse, StatsResponse, SystemStatsItem
from src.errors import TrackerError
from src.stats.service import CleaningStatsService

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.get(
    "/admin/stats",
    response_model=StatsResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Missing or invalid credentials"},
        403: {"model": ErrorResponse, "description": "Admin role required"},
        500: {"model": ErrorResponse, "description": "Server error"},
    },
    summary="Facility and cleaner statistics",
    description=(
        "Toilet, rating and task totals plus per-cleaner counts and "
        "cleaning durations over the last 7 and 30 days."
    ),
)
async def get_admin_stats(
    caller: Caller = Depends(require_admin),
    stats_service: CleaningStatsService = Depends(get_stats_service),
) -> StatsResponse:
    start_time = time.perf_counter()

    try:
        report = await stats_service.get_report()
        latency_ms = (time.perf_counter() - start_time) * 1000

        logger.info(
            "Admin stats retrieved",
            admin_id=caller.id,
            cleaners=len(report["cleaner_stats"]),
            latency_ms=round(latency_ms, 2),
        )
        return StatsResponse(
            system_stats=SystemStatsItem(**report["system_stats"]),
            cleaner_stats=[CleanerStatsItem(**c) for c in report["cleaner_stats"]],
            latency_ms=round(latency_ms, 2),
        )

    except TrackerError:
        raise
    except Exception as e:
        logger.error("get_admin_stats_failed", error=str(e), exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to compute statistics",
        )
