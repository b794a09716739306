# src/taskdesk/tasks/memory_store.py

from __future__ import annotations

import logging
import threading

from .task_models import Task, TaskPatch, merge_patch
from .task_query import PageRequest, TaskFilter, TaskPage, TaskSort, run_query

logger = logging.getLogger(__name__)


class InMemoryTaskStore:
    """
    Volatile task store.

    State lives in an insertion-ordered dict owned by this instance and is
    lost when the process exits. Each public method holds an internal lock for
    its whole duration, so an update's read-merge-write cannot interleave with
    another mutation. Records are copied on the way in and out.
    """

    backend_name = "memory"

    def __init__(self) -> None:
        self._tasks: dict[str, Task] = {}
        self._lock = threading.Lock()
        logger.info("InMemoryTaskStore ready (volatile, state is lost on restart)")

    def close(self) -> None:
        return

    def create(self, task: Task) -> Task:
        with self._lock:
            self._tasks[task.id] = task.copy()
        logger.debug("Task added id=%s status=%s", task.id, task.status.value)
        return task

    def get(self, task_id: str) -> Task | None:
        with self._lock:
            task = self._tasks.get(task_id)
            return task.copy() if task is not None else None

    def all(self) -> list[Task]:
        with self._lock:
            return [t.copy() for t in self._tasks.values()]

    def list(
        self,
        task_filter: TaskFilter | None = None,
        sort: TaskSort | None = None,
        page: PageRequest | None = None,
    ) -> TaskPage:
        return run_query(self.all(), task_filter, sort, page)

    def update(self, task_id: str, patch: TaskPatch) -> Task | None:
        with self._lock:
            current = self._tasks.get(task_id)
            if current is None:
                return None
            # merge into a copy: a rejected patch must leave the stored record untouched
            merged = merge_patch(current.copy(), patch)
            self._tasks[task_id] = merged
            logger.debug("Task updated id=%s fields=%s", task_id, sorted(patch.supplied()))
            return merged.copy()

    def delete(self, task_id: str) -> bool:
        with self._lock:
            removed = self._tasks.pop(task_id, None) is not None
        if removed:
            logger.debug("Task deleted id=%s", task_id)
        return removed

    def count(self) -> int:
        with self._lock:
            return len(self._tasks)

    def clear(self) -> None:
        with self._lock:
            self._tasks.clear()
        logger.debug("All tasks cleared")
