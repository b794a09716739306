# src/taskdesk/tasks/task_store.py

from __future__ import annotations

import contextlib
import logging
import sqlite3
from collections.abc import Iterator
from pathlib import Path

from .errors import TaskStorageError
from .task_models import Task, TaskPatch, merge_patch
from .task_query import PageRequest, TaskFilter, TaskPage, TaskSort, run_query

logger = logging.getLogger(__name__)


class SqliteTaskStore:
    """
    Durable SQLite task store.

    Layout: one table `tasks` keyed by `id`, timestamps stored as ISO-8601
    strings. Insertion order is the implicit rowid, which gives list() its
    stable tie-break.

    Thread-safety:
    - each method opens its own SQLite connection
    - update() runs read-merge-write inside one BEGIN IMMEDIATE transaction
    - list() derives the page and the filtered total from a single SELECT
    """

    backend_name = "sqlite"

    def __init__(self, db_path: str | Path = "tasks.sqlite3") -> None:
        self._db_path = Path(db_path)
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            self._ensure_schema()
        except (OSError, sqlite3.Error) as e:
            logger.exception("TaskStore init failed db=%s", self._db_path)
            raise TaskStorageError("Task storage failure") from e
        logger.info("SqliteTaskStore ready db=%s total=%s", self._db_path, self.count())

    def close(self) -> None:
        """Compatibility hook for shutdown (no persistent connections to close)."""
        return

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        # autocommit mode: transactions are opened explicitly where needed
        conn = sqlite3.connect(str(self._db_path), timeout=30.0, isolation_level=None)
        conn.row_factory = sqlite3.Row
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")

    @contextlib.contextmanager
    def _connect(self, op: str) -> Iterator[sqlite3.Connection]:
        """Short-lived connection; sqlite3 errors surface as TaskStorageError."""
        conn: sqlite3.Connection | None = None
        try:
            conn = self._get_conn()
            yield conn
        except sqlite3.Error as e:
            logger.exception("TaskStore %s failed db=%s", op, self._db_path)
            raise TaskStorageError("Task storage failure") from e
        finally:
            if conn is not None:
                conn.close()

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS tasks (
                    id TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    description TEXT NOT NULL DEFAULT '',
                    status TEXT NOT NULL,
                    createdAt TEXT NOT NULL,
                    updatedAt TEXT NOT NULL
                )
                """
            )
            conn.execute("CREATE INDEX IF NOT EXISTS idx_tasks_status ON tasks(status)")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_tasks_title ON tasks(title)")
        finally:
            conn.close()

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> Task:
        return Task.from_dict(dict(row))

    @staticmethod
    def _fetch(conn: sqlite3.Connection, task_id: str) -> Task | None:
        row = conn.execute("SELECT * FROM tasks WHERE id = ?", (task_id,)).fetchone()
        return SqliteTaskStore._row_to_task(row) if row else None

    # ---- public API ----

    def count(self) -> int:
        with self._connect("count") as conn:
            (n,) = conn.execute("SELECT COUNT(*) FROM tasks").fetchone()
            return int(n)

    def create(self, task: Task) -> Task:
        rec = task.to_dict()
        with self._connect("create") as conn:
            conn.execute(
                """
                INSERT INTO tasks(id, title, description, status, createdAt, updatedAt)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    rec["id"],
                    rec["title"],
                    rec["description"],
                    rec["status"],
                    rec["createdAt"],
                    rec["updatedAt"],
                ),
            )
        logger.debug("Task added id=%s status=%s", task.id, task.status.value)
        return task

    def get(self, task_id: str) -> Task | None:
        with self._connect("get") as conn:
            return self._fetch(conn, task_id)

    def all(self) -> list[Task]:
        with self._connect("all") as conn:
            rows = conn.execute("SELECT * FROM tasks ORDER BY rowid ASC").fetchall()
            return [self._row_to_task(r) for r in rows]

    def list(
        self,
        task_filter: TaskFilter | None = None,
        sort: TaskSort | None = None,
        page: PageRequest | None = None,
    ) -> TaskPage:
        """
        Single read: candidate rows (narrowed by the status index when a
        status filter is present) go through the shared query engine, which
        computes the page and the filtered total from the same rows.
        """
        flt = task_filter or TaskFilter()
        if not flt.is_satisfiable():
            return run_query([], flt, sort, page)

        sql = "SELECT * FROM tasks"
        params: list[str] = []
        status = flt.canonical_status()
        if status is not None:
            sql += " WHERE status = ?"
            params.append(status.value)
        sql += " ORDER BY rowid ASC"

        with self._connect("list") as conn:
            rows = conn.execute(sql, params).fetchall()
        return run_query((self._row_to_task(r) for r in rows), flt, sort, page)

    def update(self, task_id: str, patch: TaskPatch) -> Task | None:
        with self._connect("update") as conn:
            # take the write lock before reading so concurrent updates serialize
            conn.execute("BEGIN IMMEDIATE")
            try:
                current = self._fetch(conn, task_id)
                if current is None:
                    conn.execute("ROLLBACK")
                    return None
                merged = merge_patch(current, patch)
                rec = merged.to_dict()
                conn.execute(
                    """
                    UPDATE tasks
                    SET title = ?, description = ?, status = ?, updatedAt = ?
                    WHERE id = ?
                    """,
                    (rec["title"], rec["description"], rec["status"], rec["updatedAt"], task_id),
                )
                conn.execute("COMMIT")
            except BaseException:
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                raise
        logger.debug("Task updated id=%s fields=%s", task_id, sorted(patch.supplied()))
        return merged

    def delete(self, task_id: str) -> bool:
        with self._connect("delete") as conn:
            cur = conn.execute("DELETE FROM tasks WHERE id = ?", (task_id,))
            removed = cur.rowcount > 0
        if removed:
            logger.debug("Task deleted id=%s", task_id)
        return removed

    def clear(self) -> None:
        with self._connect("clear") as conn:
            conn.execute("DELETE FROM tasks")
        logger.debug("All tasks cleared")
