"""Task lifecycle controller.

Enforces the cleaning task state machine on top of the task registry:

- start:    NoActiveTask -> assigned     (exclusivity gate, any cleaner)
- begin:    assigned     -> in_progress  (assignee only)
- complete: in_progress  -> completed    (assignee only)

Completing a task is what clears a toilet's "has problems" flag; the
status aggregator compares completion and rating timestamps on read.
"""

import structlog

from src.cleaning.repository import TaskRepository
from src.cleaning.schemas import CleaningTask, TaskStatus, TRANSITIONS, check_transition
from src.errors import Conflict, NotFound, TrackerError, ValidationError
from src.observability.metrics import get_metrics
from src.observability.tracing import get_tracer, traced
from src.toilets.repository import ToiletRepository

logger = structlog.get_logger(__name__)
_tracer = get_tracer(__name__)

MAX_LIST_LIMIT = 500


class TaskLifecycleController:
    """Creates and transitions cleaning tasks."""

    def __init__(self, tasks: TaskRepository, toilets: ToiletRepository) -> None:
        self._tasks = tasks
        self._toilets = toilets
        self._metrics = get_metrics()

    async def start_task(
        self,
        toilet_id: int,
        cleaner_id: int,
        cleaner_name: str,
    ) -> CleaningTask:
        """Claim a toilet for cleaning.

        Args:
            toilet_id: Toilet to claim; must exist and be active.
            cleaner_id: Identity of the claiming cleaner.
            cleaner_name: Display name recorded on the task.

        Returns:
            The new task in ``assigned`` state.

        Raises:
            ValidationError: Blank cleaner name.
            NotFound: Toilet missing or inactive.
            Conflict: The toilet already has an active task.
        """
        with traced(_tracer, "cleaning.start", {"toilet_id": toilet_id, "cleaner_id": cleaner_id}):
            return await self._claim(toilet_id, cleaner_id, cleaner_name)

    async def _claim(self, toilet_id: int, cleaner_id: int, cleaner_name: str) -> CleaningTask:
        cleaner_name = (cleaner_name or "").strip()
        try:
            if not cleaner_name:
                raise ValidationError("cleaner_name must not be empty")

            if await self._toilets.get_active(toilet_id) is None:
                raise NotFound(f"Toilet {toilet_id} not found")

            task = await self._tasks.create_if_idle(
                CleaningTask(
                    toilet_id=toilet_id,
                    cleaner_id=cleaner_id,
                    cleaner_name=cleaner_name,
                )
            )
            if task is None:
                raise Conflict(
                    f"Toilet {toilet_id} already has an active cleaning task"
                )
        except TrackerError as e:
            self._reject("start", e, toilet_id=toilet_id, cleaner_id=cleaner_id)
            raise

        self._metrics.record_transition(task.status.value)
        logger.info(
            "Cleaning task assigned",
            task_id=task.id,
            toilet_id=task.toilet_id,
            cleaner_id=task.cleaner_id,
        )
        return task

    async def begin_task(self, task_id: int, caller_id: int) -> CleaningTask:
        """Move an assigned task to in_progress.

        Raises:
            NotFound: Unknown task.
            Forbidden: Caller is not the assignee.
            InvalidState: Task is not ``assigned``.
        """
        return await self._transition("begin", task_id, caller_id)

    async def complete_task(self, task_id: int, caller_id: int) -> CleaningTask:
        """Move an in-progress task to completed.

        Raises:
            NotFound: Unknown task.
            Forbidden: Caller is not the assignee.
            InvalidState: Task is not ``in_progress``.
        """
        task = await self._transition("complete", task_id, caller_id)
        self._metrics.record_cleaning_duration(task.duration_minutes)
        return task

    async def get_task(self, task_id: int) -> CleaningTask:
        task = await self._tasks.get_by_id(task_id)
        if task is None:
            raise NotFound(f"Cleaning task {task_id} not found")
        return task

    async def list_tasks(
        self,
        *,
        status: str | None = None,
        toilet_id: int | None = None,
        cleaner_id: int | None = None,
        limit: int = 100,
    ) -> list[CleaningTask]:
        """List tasks newest first.

        Raises:
            ValidationError: Unknown status filter.
        """
        status_filter = None
        if status is not None:
            try:
                status_filter = TaskStatus(status)
            except ValueError:
                raise ValidationError(
                    f"Invalid status {status!r}. "
                    f"Must be one of: {[s.value for s in TaskStatus]}"
                ) from None
        return await self._tasks.list_tasks(
            status=status_filter,
            toilet_id=toilet_id,
            cleaner_id=cleaner_id,
            limit=max(1, min(limit, MAX_LIST_LIMIT)),
        )

    async def _transition(self, action: str, task_id: int, caller_id: int) -> CleaningTask:
        with traced(_tracer, f"cleaning.{action}", {"task_id": task_id, "cleaner_id": caller_id}):
            return await self._apply_transition(action, task_id, caller_id)

    async def _apply_transition(self, action: str, task_id: int, caller_id: int) -> CleaningTask:
        from_status, to_status = TRANSITIONS[action]
        try:
            task = await self.get_task(task_id)
            check_transition(task, caller_id, action)

            updated = await self._tasks.transition(
                task_id,
                caller_id,
                from_status,
                to_status,
            )
            if updated is None:
                # Lost a race with a concurrent transition; report the
                # precise reason against the current row.
                current = await self.get_task(task_id)
                check_transition(current, caller_id, action)
                raise Conflict(f"Cleaning task {task_id} changed concurrently")
        except TrackerError as e:
            self._reject(action, e, task_id=task_id, cleaner_id=caller_id)
            raise

        self._metrics.record_transition(updated.status.value)
        logger.info(
            "Cleaning task transitioned",
            task_id=updated.id,
            toilet_id=updated.toilet_id,
            action=action,
            status=updated.status.value,
        )
        return updated

    def _reject(self, operation: str, error: TrackerError, **context) -> None:
        self._metrics.record_task_rejection(operation, error.kind)
        logger.info(
            "Cleaning task operation rejected",
            operation=operation,
            reason=error.kind,
            message=error.message,
            **context,
        )
