# src/kie_task_store/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, StrEnum


class TaskStatus(StrEnum):
    """
    Conventional task statuses.

    Notes:
    - the store does not constrain status values; any string round-trips unchanged
    - members are str, so they can be passed wherever a status string is expected
    """

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class StoreState(str, Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"


class LoadOutcome(str, Enum):
    """How the in-memory database was obtained on lazy initialization."""

    LOADED = "loaded"
    CREATED_FRESH = "created_fresh"
    RECOVERED_FRESH = "recovered_fresh"  # existing file was unreadable; data abandoned


@dataclass(slots=True)
class Task:
    id: int
    task_id: str
    api_type: str
    status: str

    created_at: float
    updated_at: float

    result_url: str | None = None
    error_message: str | None = None
