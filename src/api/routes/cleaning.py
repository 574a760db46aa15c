"""
Cleaning task endpoints.

A cleaner claims a toilet (``start``), begins work (``begin``) and marks
it done (``complete``). Writes require an authenticated caller; only the
assigned cleaner can move their own task forward.
"""

import time

import structlog
from fastapi import APIRouter, Depends, HTTPException, Path, Query, status

from src.api.auth import Caller, verify_caller
from src.api.dependencies import get_lifecycle_controller
from src.api.models import (
    CleaningTaskItem,
    CleaningTaskResponse,
    CleaningTasksResponse,
    ErrorResponse,
    StartCleaningRequest,
)
from src.cleaning.lifecycle import TaskLifecycleController
from src.errors import TrackerError

logger = structlog.get_logger(__name__)
router = APIRouter()

_TRANSITION_RESPONSES = {
    401: {"model": ErrorResponse, "description": "Missing or invalid credentials"},
    403: {"model": ErrorResponse, "description": "Caller is not the assigned cleaner"},
    404: {"model": ErrorResponse, "description": "Task not found"},
    409: {"model": ErrorResponse, "description": "Task is not in the required state"},
    500: {"model": ErrorResponse, "description": "Server error"},
}


@router.post(
    "/cleaning/start",
    response_model=CleaningTaskResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        401: {"model": ErrorResponse, "description": "Missing or invalid credentials"},
        404: {"model": ErrorResponse, "description": "Toilet not found"},
        409: {"model": ErrorResponse, "description": "Toilet already has an active task"},
        500: {"model": ErrorResponse, "description": "Server error"},
    },
    summary="Claim a toilet for cleaning",
    description="Create an assigned task for the caller. At most one task per toilet may be active.",
)
async def start_cleaning(
    payload: StartCleaningRequest,
    caller: Caller = Depends(verify_caller),
    controller: TaskLifecycleController = Depends(get_lifecycle_controller),
) -> CleaningTaskResponse:
    start_time = time.perf_counter()

    try:
        task = await controller.start_task(
            toilet_id=payload.toilet_id,
            cleaner_id=caller.id,
            cleaner_name=caller.name,
        )

        logger.info(
            "Cleaning started via API",
            task_id=task.id,
            toilet_id=task.toilet_id,
            latency_ms=round((time.perf_counter() - start_time) * 1000, 2),
        )
        return CleaningTaskResponse(
            message="Cleaning task created",
            task=CleaningTaskItem(**task.to_dict()),
        )

    except HTTPException:
        raise
    except TrackerError:
        raise
    except Exception as e:
        logger.error("start_cleaning_failed", toilet_id=payload.toilet_id, error=str(e), exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to start cleaning",
        )


@router.put(
    "/cleaning/begin/{task_id}",
    response_model=CleaningTaskResponse,
    responses=_TRANSITION_RESPONSES,
    summary="Begin cleaning",
)
async def begin_cleaning(
    task_id: int = Path(..., description="Task identifier"),
    caller: Caller = Depends(verify_caller),
    controller: TaskLifecycleController = Depends(get_lifecycle_controller),
) -> CleaningTaskResponse:
    try:
        task = await controller.begin_task(task_id, caller.id)
        return CleaningTaskResponse(
            message="Cleaning in progress",
            task=CleaningTaskItem(**task.to_dict()),
        )

    except TrackerError:
        raise
    except Exception as e:
        logger.error("begin_cleaning_failed", task_id=task_id, error=str(e), exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to begin cleaning",
        )


@router.put(
    "/cleaning/complete/{task_id}",
    response_model=CleaningTaskResponse,
    responses=_TRANSITION_RESPONSES,
    summary="Complete cleaning",
    description="Mark the task completed. Problems reported before this moment count as resolved.",
)
async def complete_cleaning(
    task_id: int = Path(..., description="Task identifier"),
    caller: Caller = Depends(verify_caller),
    controller: TaskLifecycleController = Depends(get_lifecycle_controller),
) -> CleaningTaskResponse:
    try:
        task = await controller.complete_task(task_id, caller.id)
        return CleaningTaskResponse(
            message="Cleaning completed",
            task=CleaningTaskItem(**task.to_dict()),
        )

    except TrackerError:
        raise
    except Exception as e:
        logger.error("complete_cleaning_failed", task_id=task_id, error=str(e), exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to complete cleaning",
        )


@router.get(
    "/cleaning/tasks",
    response_model=CleaningTasksResponse,
    responses={
        422: {"model": ErrorResponse, "description": "Invalid filter"},
        500: {"model": ErrorResponse, "description": "Server error"},
    },
    summary="List cleaning tasks",
)
async def list_cleaning_tasks(
    task_status: str | None = Query(
        default=None,
        alias="status",
        description="Filter by status: assigned, in_progress, completed",
    ),
    toilet_id: int | None = Query(default=None, description="Filter by toilet"),
    cleaner_id: int | None = Query(default=None, description="Filter by cleaner"),
    limit: int = Query(default=100, ge=1, le=500, description="Maximum tasks to return"),
    controller: TaskLifecycleController = Depends(get_lifecycle_controller),
) -> CleaningTasksResponse:
    try:
        tasks = await controller.list_tasks(
            status=task_status,
            toilet_id=toilet_id,
            cleaner_id=cleaner_id,
            limit=limit,
        )
        items = [CleaningTaskItem(**t.to_dict()) for t in tasks]
        return CleaningTasksResponse(data=items, total=len(items))

    except TrackerError:
        raise
    except Exception as e:
        logger.error("list_cleaning_tasks_failed", error=str(e), exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to list cleaning tasks",
        )
