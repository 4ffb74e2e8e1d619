# src/kie_task_store/tasks/task_api.py

from __future__ import annotations

import logging
from datetime import datetime

from ..core.ports import TaskRepo
from .task_models import Task, TaskStatus

logger = logging.getLogger(__name__)

_UNKNOWN_ERROR = "unknown error"


async def record_submission(repo: TaskRepo, task_id: str, api_type: str) -> None:
    """
    Convenience helper: remember that a task was submitted to the remote API.
    Duplicate task_id errors propagate to the caller.
    """
    await repo.create_task(task_id=task_id, api_type=api_type, status=TaskStatus.PENDING)
    logger.info("Recorded submission task_id=%s api_type=%s", task_id, api_type)


async def mark_processing(repo: TaskRepo, task_id: str) -> None:
    await repo.update_task(task_id, status=TaskStatus.PROCESSING)


async def mark_completed(repo: TaskRepo, task_id: str, result_url: str | None = None) -> None:
    await repo.update_task(task_id, status=TaskStatus.COMPLETED, result_url=result_url)
    logger.info("Task completed task_id=%s result_url=%s", task_id, result_url)


async def mark_failed(repo: TaskRepo, task_id: str, error_message: str | None) -> None:
    # An empty message would be dropped by the update; keep the failure visible.
    message = (error_message or "").strip() or _UNKNOWN_ERROR
    await repo.update_task(task_id, status=TaskStatus.FAILED, error_message=message)
    logger.warning("Task failed task_id=%s error=%s", task_id, message)


def _ts_local(ts: float) -> str:
    return datetime.fromtimestamp(ts).astimezone().strftime("%Y-%m-%d %H:%M:%S")


def format_task(task: Task) -> str:
    """One-line summary: "<task_id> [<api_type>] <status> created=... updated=..."."""
    line = (
        f"{task.task_id} [{task.api_type}] {task.status} "
        f"created={_ts_local(task.created_at)} updated={_ts_local(task.updated_at)}"
    )
    if task.result_url:
        line += f" result={task.result_url}"
    if task.error_message:
        line += f" error={task.error_message}"
    return line
