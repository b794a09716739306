# src/taskdesk/cli/commands.py

from __future__ import annotations

import json
import logging
import shlex
from collections.abc import Callable

from ..core.state import AppState
from ..tasks import task_api
from ..tasks.errors import TaskStorageError, TaskValidationError
from ..tasks.task_models import Task

CommandHandler = Callable[[AppState, list[str]], str]

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /add, /list, ...)."""

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

    def handle(self, state: AppState, line: str) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.

        Validation problems are returned as their message; storage faults
        become a generic reply (details go to the log only).
        """
        if not line.startswith("/"):
            return None

        try:
            parts = shlex.split(line[1:])
        except ValueError as e:
            return f"Cannot parse command: {e}."
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            return handler(state, args)
        except TaskValidationError as e:
            return f"Validation error: {e}"
        except TaskStorageError:
            logger.warning("Command /%s failed on storage error.", name)
            return "Internal error while handling a command."

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _split_options(args: list[str]) -> tuple[list[str], dict[str, str]]:
    """Split ["Buy milk", "status=done"] into positional words and key=value options."""
    positional: list[str] = []
    options: dict[str, str] = {}
    for arg in args:
        key, sep, value = arg.partition("=")
        if sep and key and " " not in key:
            options[key.strip().lower()] = value
        else:
            positional.append(arg)
    return positional, options


def _int_option(options: dict[str, str], key: str) -> int | None:
    raw = options.get(key)
    if raw is None or raw.strip() == "":
        return None
    try:
        return int(raw)
    except ValueError:
        raise TaskValidationError(f"{key} must be an integer") from None


def _format_task(task: Task) -> str:
    desc = f" - {task.description}" if task.description else ""
    return f"[{task.status.value}] {task.title}{desc} (id={task.id})"


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    store = state.task_store
    return (
        "Status:\n"
        f"  Backend: {store.backend_name}\n"
        f"  Tasks: {store.count()}"
    )


def cmd_add(state: AppState, args: list[str]) -> str:
    """
    /add Buy milk
    /add "Buy milk" description="2 liters" status=in_progress
    """
    positional, options = _split_options(args)
    title = " ".join(positional) or options.get("title")
    if not title:
        return "Usage: /add <title> [description=...] [status=...]"
    task = task_api.create_task(
        state.task_store,
        title=title,
        description=options.get("description"),
        status=options.get("status"),
    )
    return f"Created: {_format_task(task)}"


def cmd_list(state: AppState, args: list[str]) -> str:
    """/list [status=..] [search=..] [sort=..] [order=..] [page=..] [limit=..]"""
    positional, options = _split_options(args)
    search = options.get("search") or (" ".join(positional) or None)
    page = _int_option(options, "page")
    limit = _int_option(options, "limit")
    if page is not None and limit is None:
        limit = int(getattr(state.settings, "page_limit", 10))

    result = task_api.list_tasks(
        state.task_store,
        status=options.get("status"),
        search=search,
        sort_by=options.get("sort"),
        order=options.get("order"),
        page=page,
        limit=limit,
    )
    if not result.items:
        return f"No tasks found (total={result.total})."

    lines = [f"{i}. {_format_task(t)}" for i, t in enumerate(result.items, start=1)]
    if result.page is not None:
        lines.append(f"Page {result.page}/{result.total_pages} (total={result.total})")
    else:
        lines.append(f"Total: {result.total}")
    return "\n".join(lines)


def cmd_show(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /show <id>"
    task = task_api.get_task(state.task_store, args[0])
    if task is None:
        return f"Task not found: {args[0]}"
    return json.dumps(task.to_dict(), ensure_ascii=False, indent=2)


def cmd_update(state: AppState, args: list[str]) -> str:
    """/update <id> [title=..] [description=..] [status=..]"""
    positional, options = _split_options(args)
    if len(positional) != 1:
        return "Usage: /update <id> [title=...] [description=...] [status=...]"
    task = task_api.update_task(state.task_store, positional[0], options)
    if task is None:
        return f"Task not found: {positional[0]}"
    return f"Updated: {_format_task(task)}"


def cmd_done(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /done <id>"
    task = task_api.update_task(state.task_store, args[0], {"status": "COMPLETED"})
    if task is None:
        return f"Task not found: {args[0]}"
    return f"Completed: {_format_task(task)}"


def cmd_delete(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /delete <id>"
    if task_api.delete_task(state.task_store, args[0]):
        return f"Deleted: {args[0]}"
    return f"Task not found: {args[0]}"


def cmd_stats(state: AppState, args: list[str]) -> str:
    stats = task_api.get_stats(state.task_store)
    return (
        "Stats:\n"
        f"  Total: {stats.total}\n"
        f"  Pending: {stats.pending}\n"
        f"  In progress: {stats.in_progress}\n"
        f"  Completed: {stats.completed}\n"
        f"  Completion rate: {stats.completion_rate:.2f}%"
    )


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show backend and task count.")
registry.register("add", cmd_add, help_text="Create a task: /add <title> [description=..] [status=..].")
registry.register(
    "list",
    cmd_list,
    help_text="List tasks: /list [status=..] [search=..] [sort=..] [order=..] [page=..] [limit=..].",
    aliases=["ls"],
)
registry.register("show", cmd_show, help_text="Show one task: /show <id>.")
registry.register(
    "update", cmd_update, help_text="Patch a task: /update <id> [title=..] [description=..] [status=..]."
)
registry.register("done", cmd_done, help_text="Mark a task completed: /done <id>.")
registry.register("delete", cmd_delete, help_text="Delete a task: /delete <id>.", aliases=["rm"])
registry.register("stats", cmd_stats, help_text="Per-status counts and completion rate.")
