"""Schema definitions for cleaning tasks and their state machine.

A CleaningTask is one cleaner's claim on resolving a toilet's reported
problems. Tasks only move forward:

    assigned -> in_progress -> completed

``completed`` is terminal; completed tasks are kept for statistics. At most
one non-completed task may exist per toilet.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from src.errors import Forbidden, InvalidState


class TaskStatus(str, Enum):
    """Lifecycle state of a cleaning task."""

    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


ACTIVE_STATUSES: frozenset[TaskStatus] = frozenset({
    TaskStatus.ASSIGNED,
    TaskStatus.IN_PROGRESS,
})

# action -> (required current status, resulting status)
TRANSITIONS: dict[str, tuple[TaskStatus, TaskStatus]] = {
    "begin": (TaskStatus.ASSIGNED, TaskStatus.IN_PROGRESS),
    "complete": (TaskStatus.IN_PROGRESS, TaskStatus.COMPLETED),
}

# Timestamp column stamped when a task enters a status.
TIMESTAMP_FIELDS: dict[TaskStatus, str] = {
    TaskStatus.IN_PROGRESS: "started_at",
    TaskStatus.COMPLETED: "completed_at",
}


@dataclass
class CleaningTask:
    """A persisted cleaning task from the cleaning_tasks table.

    Attributes:
        toilet_id: Toilet the task belongs to.
        cleaner_id: Identity of the assigned cleaner.
        cleaner_name: Display name of the assigned cleaner at claim time.
        status: Current lifecycle state.
        id: Database-assigned identifier (0 before insert).
        created_at: When the toilet was claimed (stamped by the database).
        started_at: When the cleaner began work.
        completed_at: When the cleaner finished.
    """

    toilet_id: int
    cleaner_id: int
    cleaner_name: str
    status: TaskStatus = TaskStatus.ASSIGNED
    id: int = 0
    created_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    started_at: datetime | None = None
    completed_at: datetime | None = None

    def __post_init__(self) -> None:
        self.status = TaskStatus(self.status)

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    @property
    def duration_minutes(self) -> float | None:
        """Minutes between begin and complete, None until both are set."""
        if self.started_at is None or self.completed_at is None:
            return None
        return (self.completed_at - self.started_at).total_seconds() / 60.0

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        return {
            "id": self.id,
            "toilet_id": self.toilet_id,
            "cleaner_id": self.cleaner_id,
            "cleaner_name": self.cleaner_name,
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_minutes": self.duration_minutes,
        }


def allowed_actions(task: CleaningTask | None) -> list[str]:
    """Legal next actions for a toilet given its active task (if any)."""
    if task is None or task.status == TaskStatus.COMPLETED:
        return ["start"]
    return [
        action
        for action, (required, _) in TRANSITIONS.items()
        if required == task.status
    ]


def check_transition(task: CleaningTask, caller_id: int, action: str) -> TaskStatus:
    """Validate ``action`` on ``task`` for ``caller_id``.

    Ownership is checked before state, so a non-assignee always gets
    Forbidden regardless of the task's status.

    Returns:
        The status the task will move to.

    Raises:
        Forbidden: Caller is not the assigned cleaner.
        InvalidState: Task is not in the status the action requires.
    """
    required, target = TRANSITIONS[action]
    if task.cleaner_id != caller_id:
        raise Forbidden(f"Task {task.id} is assigned to another cleaner")
    if task.status != required:
        raise InvalidState(
            f"Cannot {action} task {task.id}: status is {task.status.value!r}, "
            f"expected {required.value!r}"
        )
    return target
