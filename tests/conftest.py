# tests/conftest.py

from __future__ import annotations

from collections.abc import AsyncIterator
from pathlib import Path

import pytest
import pytest_asyncio

from kie_task_store.tasks.task_store import TaskStore


@pytest.fixture()
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "data" / "tasks.db"


@pytest_asyncio.fixture()
async def store(db_path: Path) -> AsyncIterator[TaskStore]:
    """
    Real TaskStore on a per-test file.

    NOTE: the SQLite snapshot behaviour is what we want to test, so no fakes here.
    """
    s = TaskStore(db_path)
    try:
        yield s
    finally:
        await s.close()
