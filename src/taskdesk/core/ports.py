# src/taskdesk/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The task API depends on this Protocol instead of a concrete backend, so the
volatile and durable stores are interchangeable and tests can build isolated
instances.
"""

from typing import Protocol, runtime_checkable

from ..tasks.task_models import Task, TaskPatch
from ..tasks.task_query import PageRequest, TaskFilter, TaskPage, TaskSort


@runtime_checkable
class TaskRepo(Protocol):
    """
    Store contract shared by every backend.

    Not-found is signalled by return values (None / False), never raised.
    Every method is one atomic unit of work.
    """

    @property
    def backend_name(self) -> str: ...

    def create(self, task: Task) -> Task: ...
    def get(self, task_id: str) -> Task | None: ...

    def list(
            self,
            task_filter: TaskFilter | None = None,
            sort: TaskSort | None = None,
            page: PageRequest | None = None,
    ) -> TaskPage: ...

    def all(self) -> list[Task]: ...
    def update(self, task_id: str, patch: TaskPatch) -> Task | None: ...
    def delete(self, task_id: str) -> bool: ...
    def count(self) -> int: ...
    def clear(self) -> None: ...
    def close(self) -> None: ...
