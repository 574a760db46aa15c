"""Cleaning tasks: registry and lifecycle state machine.

Components:
- CleaningTask / TaskStatus: Dataclass and enum mapping to cleaning_tasks
- TaskRepository: Atomic claim and conditional transitions
- TaskLifecycleController: start / begin / complete with ownership checks
"""

from src.cleaning.lifecycle import TaskLifecycleController
from src.cleaning.repository import TaskRepository
from src.cleaning.schemas import (
    ACTIVE_STATUSES,
    TRANSITIONS,
    CleaningTask,
    TaskStatus,
    allowed_actions,
    check_transition,
)

__all__ = [
    "ACTIVE_STATUSES",
    "TRANSITIONS",
    "CleaningTask",
    "TaskLifecycleController",
    "TaskRepository",
    "TaskStatus",
    "allowed_actions",
    "check_transition",
]
