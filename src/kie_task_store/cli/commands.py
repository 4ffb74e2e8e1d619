# src/kie_task_store/cli/commands.py

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from ..config import get_settings
from ..core.ports import TaskRepo
from ..tasks.task_api import format_task

CommandHandler = Callable[[TaskRepo, list[str]], Awaitable[str]]

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the CLI (/help, /list, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    async def handle(self, repo: TaskRepo, line: str) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        logger.debug("Command /%s args=%s", name, args)
        return await handler(repo, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _parse_limit(args: list[str], default: int) -> int | None:
    if not args:
        return default
    try:
        n = int(args[0])
    except ValueError:
        return None
    return n if n > 0 else None


def _format_list(title: str, tasks: list) -> str:
    if not tasks:
        return f"{title}: none."
    lines = [f"{title}:"]
    for i, t in enumerate(tasks, start=1):
        lines.append(f"{i}. {format_task(t)}")
    return "\n".join(lines)


async def cmd_help(repo: TaskRepo, args: list[str]) -> str:
    return registry.build_help()


async def cmd_list(repo: TaskRepo, args: list[str]) -> str:
    """
    /list        -> most recent tasks (default limit)
    /list 20     -> at most 20
    """
    limit = _parse_limit(args, get_settings().list_limit)
    if limit is None:
        return "Usage: /list [limit]"
    return _format_list("Recent tasks", await repo.get_all_tasks(limit))


async def cmd_status(repo: TaskRepo, args: list[str]) -> str:
    """
    /status failed      -> tasks with status "failed"
    /status failed 10   -> at most 10
    """
    if not args:
        return "Usage: /status <status> [limit]"
    status = args[0]
    limit = _parse_limit(args[1:], 50)
    if limit is None:
        return "Usage: /status <status> [limit]"
    return _format_list(f"Tasks with status {status}", await repo.get_tasks_by_status(status, limit))


async def cmd_get(repo: TaskRepo, args: list[str]) -> str:
    if not args:
        return "Usage: /get <task_id>"
    task = await repo.get_task(args[0])
    if task is None:
        return f"No task with task_id={args[0]}."
    return format_task(task)


async def cmd_stat(repo: TaskRepo, args: list[str]) -> str:
    total = await repo.count_tasks()
    return f"Total tasks: {total}"


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("list", cmd_list, help_text="Most recent tasks: /list [limit].", aliases=["ls"])
registry.register("status", cmd_status, help_text="Tasks in a status: /status <status> [limit].")
registry.register("get", cmd_get, help_text="One task by id: /get <task_id>.")
registry.register("stat", cmd_stat, help_text="Total number of stored tasks.")
