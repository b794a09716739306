# tests/conftest.py

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from types import SimpleNamespace

import pytest

from taskdesk.core.ports import TaskRepo
from taskdesk.core.state import AppState
from taskdesk.tasks.memory_store import InMemoryTaskStore
from taskdesk.tasks.task_store import SqliteTaskStore


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the bootstrap.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="taskdesk-test",
        log_level="DEBUG",
        store_backend="sqlite",
        data_dir=tmp_path,
        tasks_db_path=tmp_path / "tasks.sqlite3",
        page_limit=10,
    )


@pytest.fixture(params=["memory", "sqlite"])
def store(request: pytest.FixtureRequest, tmp_path: Path) -> Iterator[TaskRepo]:
    """Every contract test runs once per backend."""
    if request.param == "memory":
        repo: TaskRepo = InMemoryTaskStore()
    else:
        repo = SqliteTaskStore(tmp_path / "tasks.sqlite3")
    yield repo
    repo.close()


@pytest.fixture()
def state(settings: SimpleNamespace) -> AppState:
    """AppState wired with a fresh volatile store."""
    return AppState(settings=settings, task_store=InMemoryTaskStore())
