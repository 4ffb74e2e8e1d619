"""Local file-backed store for tracking asynchronous remote API tasks."""

from .tasks.task_models import LoadOutcome, StoreState, Task, TaskStatus
from .tasks.task_store import StoreDirectoryError, TaskStore

__all__ = [
    "LoadOutcome",
    "StoreDirectoryError",
    "StoreState",
    "Task",
    "TaskStatus",
    "TaskStore",
]
