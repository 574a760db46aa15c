"""Tests for TaskLifecycleController."""

import asyncio
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from src.cleaning.lifecycle import TaskLifecycleController
from src.cleaning.repository import TaskRepository
from src.cleaning.schemas import CleaningTask, TaskStatus
from src.errors import Conflict, Forbidden, InvalidState, NotFound, ValidationError
from src.toilets.repository import ToiletRepository
from src.toilets.schemas import Toilet
from tests.fakes import InMemoryFacility

START = datetime(2026, 3, 2, 9, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def mock_task_repo(sample_task):
    repo = AsyncMock(spec=TaskRepository)
    repo.create_if_idle = AsyncMock(side_effect=lambda t: replace(t, id=21))
    repo.get_by_id = AsyncMock(return_value=sample_task)
    return repo


@pytest.fixture
def mock_toilet_repo(sample_toilet):
    repo = AsyncMock(spec=ToiletRepository)
    repo.get_active = AsyncMock(return_value=sample_toilet)
    return repo


@pytest.fixture
def controller(mock_task_repo, mock_toilet_repo):
    return TaskLifecycleController(tasks=mock_task_repo, toilets=mock_toilet_repo)


# ── start ──────────────────────────────────────────────────


class TestStartTask:
    """Tests for TaskLifecycleController.start_task()."""

    @pytest.mark.asyncio
    async def test_creates_assigned_task(self, controller, mock_task_repo):
        task = await controller.start_task(1, 7, "Dana")

        assert task.id == 21
        assert task.status is TaskStatus.ASSIGNED
        assert task.cleaner_id == 7
        assert task.cleaner_name == "Dana"
        assert task.started_at is None
        assert task.completed_at is None

    @pytest.mark.asyncio
    async def test_cleaner_name_trimmed(self, controller, mock_task_repo):
        await controller.start_task(1, 7, "  Dana  ")
        assert mock_task_repo.create_if_idle.call_args[0][0].cleaner_name == "Dana"

    @pytest.mark.asyncio
    async def test_blank_name_rejected(self, controller, mock_task_repo):
        with pytest.raises(ValidationError):
            await controller.start_task(1, 7, "   ")
        mock_task_repo.create_if_idle.assert_not_called()

    @pytest.mark.asyncio
    async def test_inactive_toilet(self, controller, mock_toilet_repo, mock_task_repo):
        mock_toilet_repo.get_active.return_value = None

        with pytest.raises(NotFound):
            await controller.start_task(1, 7, "Dana")
        mock_task_repo.create_if_idle.assert_not_called()

    @pytest.mark.asyncio
    async def test_active_task_conflict(self, controller, mock_task_repo):
        mock_task_repo.create_if_idle.side_effect = None
        mock_task_repo.create_if_idle.return_value = None

        with pytest.raises(Conflict, match="already has an active cleaning task"):
            await controller.start_task(1, 8, "Lee")


# ── begin / complete ───────────────────────────────────────


class TestTransitions:
    """Tests for begin_task() and complete_task()."""

    @pytest.mark.asyncio
    async def test_begin(self, controller, mock_task_repo, sample_task):
        mock_task_repo.transition.return_value = replace(
            sample_task, status=TaskStatus.IN_PROGRESS, started_at=START
        )

        task = await controller.begin_task(21, 7)

        assert task.status is TaskStatus.IN_PROGRESS
        task_id, cleaner_id, from_status, to_status = mock_task_repo.transition.call_args[0]
        assert (task_id, cleaner_id) == (21, 7)
        assert from_status is TaskStatus.ASSIGNED
        assert to_status is TaskStatus.IN_PROGRESS

    @pytest.mark.asyncio
    async def test_complete(self, controller, mock_task_repo, sample_task):
        in_progress = replace(sample_task, status=TaskStatus.IN_PROGRESS, started_at=START)
        mock_task_repo.get_by_id.return_value = in_progress
        mock_task_repo.transition.return_value = replace(
            in_progress, status=TaskStatus.COMPLETED, completed_at=START + timedelta(minutes=9)
        )

        task = await controller.complete_task(21, 7)

        assert task.status is TaskStatus.COMPLETED
        assert task.duration_minutes == 9.0

    @pytest.mark.asyncio
    async def test_unknown_task(self, controller, mock_task_repo):
        mock_task_repo.get_by_id.return_value = None

        with pytest.raises(NotFound):
            await controller.begin_task(404, 7)
        mock_task_repo.transition.assert_not_called()

    @pytest.mark.asyncio
    async def test_other_cleaner_forbidden(self, controller, mock_task_repo):
        with pytest.raises(Forbidden):
            await controller.begin_task(21, 8)
        mock_task_repo.transition.assert_not_called()

    @pytest.mark.asyncio
    async def test_complete_before_begin(self, controller, mock_task_repo):
        with pytest.raises(InvalidState):
            await controller.complete_task(21, 7)
        mock_task_repo.transition.assert_not_called()

    @pytest.mark.asyncio
    async def test_lost_race_reports_current_state(self, controller, mock_task_repo, sample_task):
        # Guard misses because another request already began the task
        mock_task_repo.get_by_id.side_effect = [
            sample_task,
            replace(sample_task, status=TaskStatus.IN_PROGRESS, started_at=START),
        ]
        mock_task_repo.transition.return_value = None

        with pytest.raises(InvalidState):
            await controller.begin_task(21, 7)


class TestListTasks:
    @pytest.mark.asyncio
    async def test_status_filter_parsed(self, controller, mock_task_repo):
        mock_task_repo.list_tasks.return_value = []

        await controller.list_tasks(status="in_progress", limit=10)

        kwargs = mock_task_repo.list_tasks.call_args.kwargs
        assert kwargs["status"] is TaskStatus.IN_PROGRESS
        assert kwargs["limit"] == 10

    @pytest.mark.asyncio
    async def test_invalid_status(self, controller):
        with pytest.raises(ValidationError, match="Invalid status"):
            await controller.list_tasks(status="paused")

    @pytest.mark.asyncio
    async def test_limit_capped(self, controller, mock_task_repo):
        mock_task_repo.list_tasks.return_value = []
        await controller.list_tasks(limit=10_000)
        assert mock_task_repo.list_tasks.call_args.kwargs["limit"] == 500


# ── Concurrency ────────────────────────────────────────────


@pytest_asyncio.fixture
async def facility():
    facility = InMemoryFacility()
    await facility.toilets.create(Toilet(name="Block A"))
    return facility


class TestExclusivity:
    """Concurrent claims on one toilet: exactly one wins."""

    @pytest.mark.asyncio
    async def test_parallel_starts(self, facility):
        controller = TaskLifecycleController(tasks=facility.tasks, toilets=facility.toilets)

        results = await asyncio.gather(
            *(controller.start_task(1, cleaner_id, f"Cleaner {cleaner_id}") for cleaner_id in range(10)),
            return_exceptions=True,
        )

        winners = [r for r in results if isinstance(r, CleaningTask)]
        losers = [r for r in results if isinstance(r, Exception)]
        assert len(winners) == 1
        assert len(losers) == 9
        assert all(isinstance(e, Conflict) for e in losers)
        assert facility.tasks.active_count(1) == 1

    @pytest.mark.asyncio
    async def test_parallel_begins_by_owner(self, facility):
        controller = TaskLifecycleController(tasks=facility.tasks, toilets=facility.toilets)
        task = await controller.start_task(1, 7, "Dana")

        results = await asyncio.gather(
            *(controller.begin_task(task.id, 7) for _ in range(5)),
            return_exceptions=True,
        )

        assert sum(isinstance(r, CleaningTask) for r in results) == 1
        assert all(
            isinstance(r, (InvalidState, Conflict)) for r in results if not isinstance(r, CleaningTask)
        )

    @pytest.mark.asyncio
    async def test_new_claim_after_completion(self, facility):
        controller = TaskLifecycleController(tasks=facility.tasks, toilets=facility.toilets)
        first = await controller.start_task(1, 7, "Dana")
        await controller.begin_task(first.id, 7)
        await controller.complete_task(first.id, 7)

        second = await controller.start_task(1, 8, "Lee")

        assert second.id != first.id
        assert second.status is TaskStatus.ASSIGNED
        assert (await facility.tasks.get_by_id(first.id)).status is TaskStatus.COMPLETED
