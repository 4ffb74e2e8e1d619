# src/kie_task_store/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by helpers and front ends.

Lifecycle helpers and the CLI depend on this Protocol rather than on TaskStore,
so tests and host applications can swap the storage.
"""

from typing import Any, Protocol


class TaskRepo(Protocol):
    # Mutations
    async def create_task(
            self,
            *,
            task_id: str,
            api_type: str,
            status: str = "pending",
            result_url: str | None = None,
            error_message: str | None = None,
    ) -> None: ...

    async def update_task(
            self,
            task_id: str,
            *,
            status: str | None = None,
            result_url: str | None = None,
            error_message: str | None = None,
    ) -> None: ...

    # Queries
    async def get_task(self, task_id: str) -> Any | None: ...
    async def get_all_tasks(self, limit: int = 100) -> list[Any]: ...
    async def get_tasks_by_status(self, status: str, limit: int = 50) -> list[Any]: ...
    async def count_tasks(self) -> int: ...

    async def close(self) -> None: ...
