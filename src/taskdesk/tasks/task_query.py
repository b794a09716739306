# src/taskdesk/tasks/task_query.py

from __future__ import annotations

"""
Query engine shared by every backend.

A backend hands over one snapshot of records in insertion order; run_query
filters, sorts (stable) and slices it, and reports the filtered total from
that same snapshot.
"""

import math
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from .errors import TaskValidationError
from .task_models import Task, TaskStatus


class SortField(StrEnum):
    CREATED_AT = "createdAt"
    UPDATED_AT = "updatedAt"
    TITLE = "title"
    STATUS = "status"

    @classmethod
    def normalize(cls, raw: str | SortField | None) -> SortField | None:
        if raw is None:
            return cls.CREATED_AT
        if isinstance(raw, SortField):
            return raw
        key = str(raw).strip().replace("_", "").lower()
        for member in cls:
            if member.value.lower() == key:
                return member
        return None


class SortOrder(StrEnum):
    ASC = "asc"
    DESC = "desc"

    @classmethod
    def normalize(cls, raw: str | SortOrder | None) -> SortOrder | None:
        if raw is None:
            return cls.DESC
        if isinstance(raw, SortOrder):
            return raw
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            return None


_SORT_KEYS: dict[SortField, Callable[[Task], Any]] = {
    SortField.CREATED_AT: lambda t: t.created_at,
    SortField.UPDATED_AT: lambda t: t.updated_at,
    SortField.TITLE: lambda t: t.title.casefold(),
    SortField.STATUS: lambda t: t.status.value,
}


@dataclass(frozen=True, slots=True)
class TaskFilter:
    """
    AND of an optional status match and an optional title substring search.

    Blank values (e.g. `status=` on the console) mean "no filter".
    """

    status: str | TaskStatus | None = None
    search: str | None = None

    def __post_init__(self) -> None:
        if isinstance(self.status, str) and not self.status.strip():
            object.__setattr__(self, "status", None)
        if self.search is not None and not self.search:
            object.__setattr__(self, "search", None)

    def canonical_status(self) -> TaskStatus | None:
        return TaskStatus.normalize(self.status)

    def is_satisfiable(self) -> bool:
        # a status filter outside the enum can never match
        return self.status is None or self.canonical_status() is not None

    def matches(self, task: Task) -> bool:
        if self.status is not None:
            wanted = self.canonical_status()
            if wanted is None or task.status != wanted:
                return False
        if self.search:
            if self.search.casefold() not in task.title.casefold():
                return False
        return True


@dataclass(frozen=True, slots=True)
class TaskSort:
    by: str | SortField = SortField.CREATED_AT
    order: str | SortOrder = SortOrder.DESC

    def resolve(self) -> tuple[SortField, SortOrder] | None:
        f = SortField.normalize(self.by)
        o = SortOrder.normalize(self.order)
        if f is None or o is None:
            return None
        return f, o


@dataclass(frozen=True, slots=True)
class PageRequest:
    """
    1-indexed page request. Slicing happens only when both page and limit
    are given; with either one missing the whole result is returned.
    """

    page: int | None = None
    limit: int | None = None

    def __post_init__(self) -> None:
        if self.page is not None and int(self.page) < 1:
            raise TaskValidationError("Page must be at least 1")
        if self.limit is not None and int(self.limit) < 1:
            raise TaskValidationError("Limit must be at least 1")

    @property
    def is_unbounded(self) -> bool:
        return self.page is None or self.limit is None

    def resolved(self) -> tuple[int, int]:
        if self.page is None or self.limit is None:
            raise TaskValidationError("Page and limit must both be set")
        return int(self.page), int(self.limit)


@dataclass(slots=True)
class TaskPage:
    items: list[Task] = field(default_factory=list)
    total: int = 0
    page: int | None = None
    limit: int | None = None
    total_pages: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "items": [t.to_dict() for t in self.items],
            "total": self.total,
            "page": self.page,
            "limit": self.limit,
            "totalPages": self.total_pages,
        }


def sort_tasks(tasks: Iterable[Task], sort: TaskSort | None = None) -> list[Task] | None:
    """Stable sort. Returns None when the sort field/order is not recognized."""
    resolved = (sort or TaskSort()).resolve()
    if resolved is None:
        return None
    sort_field, order = resolved
    # sorted() stays stable with reverse=True: equal keys keep insertion order
    return sorted(tasks, key=_SORT_KEYS[sort_field], reverse=order is SortOrder.DESC)


def paginate(tasks: list[Task], total: int, page: PageRequest | None = None) -> TaskPage:
    if page is None or page.is_unbounded:
        return TaskPage(items=list(tasks), total=total)

    page_no, limit = page.resolved()
    start = (page_no - 1) * limit
    return TaskPage(
        items=tasks[start : start + limit],
        total=total,
        page=page_no,
        limit=limit,
        total_pages=math.ceil(total / limit),
    )


def run_query(
    tasks: Iterable[Task],
    task_filter: TaskFilter | None = None,
    sort: TaskSort | None = None,
    page: PageRequest | None = None,
) -> TaskPage:
    """
    Filter, then sort, then paginate one snapshot of records.

    Unknown status filters and unknown sort fields/orders yield an empty
    result instead of an error.
    """
    flt = task_filter or TaskFilter()
    matched = [t for t in tasks if flt.matches(t)]

    ordered = sort_tasks(matched, sort)
    if ordered is None:
        ordered = []

    return paginate(ordered, len(ordered), page)
