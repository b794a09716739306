# src/taskdesk/tasks/task_api.py

from __future__ import annotations

"""
Operation surface consumed by outer layers (console today, HTTP elsewhere).

Each helper takes the store explicitly, turns raw caller input into the typed
request objects and delegates to the backend.
"""

import logging
from collections.abc import Mapping
from typing import Any

from ..core.ports import TaskRepo
from .task_models import Task, TaskPatch, TaskStatus, new_task
from .task_query import PageRequest, TaskFilter, TaskPage, TaskSort
from .task_stats import TaskStats, compute_stats

logger = logging.getLogger(__name__)


def create_task(
    store: TaskRepo,
    *,
    title: str,
    description: str | None = None,
    status: str | TaskStatus | None = None,
) -> Task:
    """Validate fields, generate id/timestamps and store the new task."""
    task = new_task(title=title, description=description, status=status)
    created = store.create(task)
    logger.info("Task created id=%s", created.id)
    return created


def list_tasks(
    store: TaskRepo,
    *,
    status: str | TaskStatus | None = None,
    search: str | None = None,
    sort_by: str | None = None,
    order: str | None = None,
    page: int | None = None,
    limit: int | None = None,
) -> TaskPage:
    task_filter = TaskFilter(status=status, search=search)
    sort_kwargs: dict[str, str] = {}
    if sort_by is not None:
        sort_kwargs["by"] = sort_by
    if order is not None:
        sort_kwargs["order"] = order
    return store.list(task_filter, TaskSort(**sort_kwargs), PageRequest(page=page, limit=limit))


def get_task(store: TaskRepo, task_id: str) -> Task | None:
    return store.get(task_id)


def update_task(store: TaskRepo, task_id: str, fields: Mapping[str, Any]) -> Task | None:
    """
    Apply a sparse patch. Only keys present in `fields` change.
    Returns None when the task does not exist.
    """
    patch = TaskPatch.from_fields(fields)
    updated = store.update(task_id, patch)
    if updated is None:
        logger.debug("Update skipped, task not found id=%s", task_id)
    else:
        logger.info("Task updated id=%s", task_id)
    return updated


def delete_task(store: TaskRepo, task_id: str) -> bool:
    removed = store.delete(task_id)
    if removed:
        logger.info("Task deleted id=%s", task_id)
    return removed


def get_stats(store: TaskRepo) -> TaskStats:
    """Statistics over the whole collection, independent of any list filter."""
    return compute_stats(store.all())
