# src/taskdesk/tasks/errors.py

from __future__ import annotations


class TaskValidationError(ValueError):
    """Raised when task fields, patches or page requests are malformed."""


class TaskStorageError(RuntimeError):
    """
    Raised when the durable backend fails.

    The message is generic; the underlying error is chained
    as __cause__ and logged by the store.
    """
