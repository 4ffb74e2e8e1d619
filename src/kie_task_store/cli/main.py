# src/kie_task_store/cli/main.py

"""
CLI entrypoint.

Initializes logging, opens the task store, runs one slash command and prints
the reply:

    kie-tasks list 20
    kie-tasks status failed
    kie-tasks get <task_id>
"""

from __future__ import annotations

import asyncio
import logging
import sys

from ..cli.commands import registry
from ..config import get_settings
from ..logging_setup import setup_logging
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


async def run_command(store: TaskStore, argv: list[str]) -> str:
    line = "/" + " ".join(argv or ["help"])
    try:
        reply = await registry.handle(store, line)
    finally:
        await store.close()
    return reply or ""


def main(argv: list[str] | None = None) -> int:
    settings = get_settings()

    level_name = str(settings.log_level).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    store = TaskStore.from_settings(settings)
    logger.debug("Using task database %s", store.db_path)

    args = sys.argv[1:] if argv is None else argv
    print(asyncio.run(run_command(store, args)))
    return 0


if __name__ == "__main__":
    sys.exit(main())
