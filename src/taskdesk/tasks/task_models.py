# src/taskdesk/tasks/task_models.py

from __future__ import annotations

import uuid
from collections.abc import Mapping
from dataclasses import dataclass, replace
from datetime import UTC, datetime, timedelta
from enum import StrEnum
from typing import Any

from .errors import TaskValidationError

TITLE_MAX_LEN = 100
DESCRIPTION_MAX_LEN = 500

# Marks a patch field the caller did not supply.
UNSET: Any = object()


class TaskStatus(StrEnum):
    """Task lifecycle status. Values are the canonical (persisted) spelling."""

    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"

    @classmethod
    def normalize(cls, raw: str | TaskStatus | None) -> TaskStatus | None:
        """
        Canonicalize user input ("completed", " In_Progress ") to a status.

        Returns None for anything that is not one of the enumerated values.
        """
        if raw is None:
            return None
        if isinstance(raw, TaskStatus):
            return raw
        key = str(raw).strip().upper()
        try:
            return cls(key)
        except ValueError:
            return None

    @classmethod
    def parse(cls, raw: str | TaskStatus) -> TaskStatus:
        status = cls.normalize(raw)
        if status is None:
            allowed = ", ".join(s.value for s in cls)
            raise TaskValidationError(f"Status must be one of: {allowed}")
        return status

    @classmethod
    def from_db(cls, raw: str | None) -> TaskStatus:
        return cls.normalize(raw) or cls.PENDING


def utc_now() -> datetime:
    return datetime.now(UTC)


def next_timestamp(previous: datetime, now: datetime | None = None) -> datetime:
    """Return a timestamp strictly after `previous` (coarse clocks can repeat)."""
    ts = now if now is not None else utc_now()
    if ts <= previous:
        ts = previous + timedelta(microseconds=1)
    return ts


def validate_title(title: Any) -> str:
    if title is None:
        raise TaskValidationError("Title is required")
    if not isinstance(title, str):
        raise TaskValidationError("Title must be a string")
    if not title:
        raise TaskValidationError("Title cannot be empty")
    if len(title) > TITLE_MAX_LEN:
        raise TaskValidationError(f"Title must be at most {TITLE_MAX_LEN} characters")
    return title


def validate_description(description: Any) -> str:
    if description is None:
        return ""
    if not isinstance(description, str):
        raise TaskValidationError("Description must be a string")
    if len(description) > DESCRIPTION_MAX_LEN:
        raise TaskValidationError(
            f"Description must be at most {DESCRIPTION_MAX_LEN} characters"
        )
    return description


@dataclass(slots=True)
class Task:
    id: str
    title: str
    description: str
    status: TaskStatus
    created_at: datetime
    updated_at: datetime

    def copy(self) -> Task:
        return replace(self)

    def to_dict(self) -> dict[str, Any]:
        """Serialized record: camelCase keys, ISO-8601 timestamps."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status.value,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Task:
        return cls(
            id=str(data["id"]),
            title=str(data["title"]),
            description=str(data.get("description") or ""),
            status=TaskStatus.from_db(data.get("status")),
            created_at=parse_timestamp(data["createdAt"]),
            updated_at=parse_timestamp(data["updatedAt"]),
        )


def parse_timestamp(raw: str | datetime) -> datetime:
    ts = raw if isinstance(raw, datetime) else datetime.fromisoformat(str(raw))
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=UTC)
    return ts


def new_task(
    *,
    title: str,
    description: str | None = None,
    status: str | TaskStatus | None = None,
    now: datetime | None = None,
) -> Task:
    """
    Build a fully-formed Task: fresh UUID, validated fields,
    created_at == updated_at.
    """
    ts = now if now is not None else utc_now()
    return Task(
        id=str(uuid.uuid4()),
        title=validate_title(title),
        description=validate_description(description),
        status=TaskStatus.PENDING if status is None else TaskStatus.parse(status),
        created_at=ts,
        updated_at=ts,
    )


@dataclass(frozen=True, slots=True)
class TaskPatch:
    """
    Sparse update. Fields left at UNSET are not touched by merge_patch.

    id / created_at / updated_at have no field here, so they cannot be patched.
    """

    title: Any = UNSET
    description: Any = UNSET
    status: Any = UNSET

    _FIELDS = ("title", "description", "status")
    _IMMUTABLE = frozenset({"id", "createdAt", "created_at", "updatedAt", "updated_at"})

    @classmethod
    def from_fields(cls, fields: Mapping[str, Any]) -> TaskPatch:
        unknown = [k for k in fields if k not in cls._FIELDS]
        if unknown:
            immutable = [k for k in unknown if k in cls._IMMUTABLE]
            if immutable:
                raise TaskValidationError(f"Field cannot be updated: {immutable[0]}")
            raise TaskValidationError(f"Unknown field: {unknown[0]}")
        return cls(**dict(fields))

    def supplied(self) -> dict[str, Any]:
        return {name: getattr(self, name) for name in self._FIELDS if getattr(self, name) is not UNSET}

    def is_empty(self) -> bool:
        return not self.supplied()


def merge_patch(record: Task, patch: TaskPatch, *, now: datetime | None = None) -> Task:
    """
    Apply `patch` onto `record` in place and return it.

    Precedence: a supplied field overrides, an absent field is preserved.
    Everything is validated before the record is touched, so a rejected patch
    leaves the record unchanged. updated_at always advances, even for an
    empty patch.
    """
    changes = patch.supplied()
    if "title" in changes:
        changes["title"] = validate_title(changes["title"])
    if "description" in changes:
        changes["description"] = validate_description(changes["description"])
    if "status" in changes:
        if changes["status"] is None:
            raise TaskValidationError("Status cannot be null")
        changes["status"] = TaskStatus.parse(changes["status"])

    for name, value in changes.items():
        setattr(record, name, value)
    record.updated_at = next_timestamp(record.updated_at, now)
    return record
