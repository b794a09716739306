# src/taskdesk/tasks/task_stats.py

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from .task_models import Task, TaskStatus


@dataclass(frozen=True, slots=True)
class TaskStats:
    total: int
    pending: int
    in_progress: int
    completed: int
    completion_rate: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "pending": self.pending,
            "inProgress": self.in_progress,
            "completed": self.completed,
            "completionRate": self.completion_rate,
        }


def compute_stats(tasks: Iterable[Task]) -> TaskStats:
    """
    Per-status counts over the whole collection.

    completion_rate is a percentage rounded to two decimals, 0.0 for an empty
    collection.
    """
    counts = Counter(t.status for t in tasks)
    total = sum(counts.values())
    completed = counts[TaskStatus.COMPLETED]
    rate = round(completed / total * 100, 2) if total else 0.0
    return TaskStats(
        total=total,
        pending=counts[TaskStatus.PENDING],
        in_progress=counts[TaskStatus.IN_PROGRESS],
        completed=completed,
        completion_rate=rate,
    )
