# src/taskdesk/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- picks the task backend named by settings and wires it into AppState.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from ..config import get_settings
from ..core.ports import TaskRepo
from ..core.state import AppState
from ..tasks.memory_store import InMemoryTaskStore
from ..tasks.task_store import SqliteTaskStore

logger = logging.getLogger(__name__)

StoreFactory = Callable[[object], TaskRepo]

_STORE_FACTORIES: dict[str, StoreFactory] = {
    "memory": lambda settings: InMemoryTaskStore(),
    "sqlite": lambda settings: SqliteTaskStore(settings.tasks_db_path),  # type: ignore[attr-defined]
}

_STORE_ALIASES = {
    "volatile": "memory",
    "durable": "sqlite",
}


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_db_path.parent.mkdir(parents=True, exist_ok=True)


def available_backends() -> list[str]:
    return sorted([*_STORE_FACTORIES, *_STORE_ALIASES])


def create_task_store(settings) -> TaskRepo:
    """
    Build the store selected by settings.store_backend.

    Raises ValueError for an unknown backend name and TaskStorageError when
    the durable store cannot be opened; both are fatal at startup.
    """
    raw = str(getattr(settings, "store_backend", "sqlite") or "sqlite").strip().lower()
    name = _STORE_ALIASES.get(raw, raw)
    factory = _STORE_FACTORIES.get(name)
    if factory is None:
        raise ValueError(
            f"Unknown store backend '{raw}'. Available backends: {', '.join(available_backends())}"
        )
    store = factory(settings)
    logger.info("Task store backend selected: %s", store.backend_name)
    return store


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    return AppState(
        settings=settings,
        task_store=create_task_store(settings),
    )
