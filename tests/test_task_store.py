# tests/test_task_store.py

from __future__ import annotations

import sqlite3
from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from taskdesk.core.ports import TaskRepo
from taskdesk.tasks.errors import TaskStorageError, TaskValidationError
from taskdesk.tasks.task_models import TaskPatch, TaskStatus, new_task
from taskdesk.tasks.task_query import PageRequest, TaskFilter, TaskSort
from taskdesk.tasks.task_store import SqliteTaskStore


def test_store_satisfies_protocol(store: TaskRepo) -> None:
    assert isinstance(store, TaskRepo)
    assert store.backend_name in {"memory", "sqlite"}


def test_create_then_get_round_trip(store: TaskRepo) -> None:
    task = new_task(title="Write docs", description="API section", status="in_progress")

    returned = store.create(task)
    assert returned is task

    fetched = store.get(task.id)
    assert fetched == task
    assert fetched is not task
    assert fetched.created_at == fetched.updated_at


def test_get_missing_returns_none(store: TaskRepo) -> None:
    assert store.get("does-not-exist") is None


def test_returned_records_are_detached(store: TaskRepo) -> None:
    task = store.create(new_task(title="original"))
    fetched = store.get(task.id)
    assert fetched is not None
    fetched.title = "mutated by caller"
    task.title = "mutated input"

    again = store.get(task.id)
    assert again is not None
    assert again.title == "original"


def test_delete_is_true_exactly_once(store: TaskRepo) -> None:
    task = store.create(new_task(title="temp"))

    assert store.delete(task.id) is True
    assert store.delete(task.id) is False
    assert store.delete("unknown") is False
    assert store.get(task.id) is None


def test_count_and_clear(store: TaskRepo) -> None:
    for i in range(4):
        store.create(new_task(title=f"t{i}"))
    assert store.count() == 4

    store.clear()
    assert store.count() == 0
    assert store.list().items == []


def test_update_keeps_description_and_advances_updated_at(store: TaskRepo) -> None:
    task = store.create(new_task(title="Ship", description="v1 release"))

    updated = store.update(task.id, TaskPatch(status="COMPLETED"))

    assert updated is not None
    assert updated.status is TaskStatus.COMPLETED
    assert updated.description == "v1 release"
    assert updated.title == "Ship"
    assert updated.created_at == task.created_at
    assert updated.updated_at > task.updated_at
    assert store.get(task.id) == updated


def test_empty_patch_is_a_valid_mutation(store: TaskRepo) -> None:
    task = store.create(new_task(title="noop"))
    updated = store.update(task.id, TaskPatch())
    assert updated is not None
    assert updated.updated_at > task.updated_at
    assert updated.title == "noop"


def test_update_missing_returns_none(store: TaskRepo) -> None:
    assert store.update("missing", TaskPatch(title="x")) is None


def test_invalid_patch_leaves_stored_record_unchanged(store: TaskRepo) -> None:
    task = store.create(new_task(title="keep", description="same"))

    with pytest.raises(TaskValidationError):
        store.update(task.id, TaskPatch(description="changed", title=""))

    assert store.get(task.id) == task


def test_scenario_filter_completed_and_stats_source(store: TaskRepo) -> None:
    store.create(new_task(title="A"))
    store.create(new_task(title="B"))
    c = store.create(new_task(title="C", status="COMPLETED"))

    result = store.list(TaskFilter(status=TaskStatus.COMPLETED))
    assert [t.id for t in result.items] == [c.id]
    assert result.total == 1

    assert len(store.all()) == 3


def test_list_pagination_twenty_five(store: TaskRepo) -> None:
    created = [store.create(new_task(title=f"task {i:02d}")) for i in range(1, 26)]

    result = store.list(
        sort=TaskSort(by="createdAt", order="asc"),
        page=PageRequest(page=3, limit=10),
    )

    assert [t.id for t in result.items] == [t.id for t in created[20:]]
    assert len(result.items) == 5
    assert result.total == 25
    assert result.total_pages == 3


def test_list_total_counts_filtered_set(store: TaskRepo) -> None:
    for i in range(12):
        store.create(new_task(title=f"report {i}" if i % 2 else f"misc {i}"))

    result = store.list(TaskFilter(search="REPORT"), page=PageRequest(page=2, limit=4))
    assert result.total == 6
    assert len(result.items) == 2
    assert result.total_pages == 2


def test_list_unknown_status_or_sort_matches_nothing(store: TaskRepo) -> None:
    store.create(new_task(title="A"))
    assert store.list(TaskFilter(status="archived")).total == 0
    assert store.list(sort=TaskSort(by="priority")).items == []


def test_list_blank_status_returns_everything(store: TaskRepo) -> None:
    store.create(new_task(title="A"))
    store.create(new_task(title="B", status="COMPLETED"))

    result = store.list(TaskFilter(status=""))
    assert result.total == 2
    assert {t.title for t in result.items} == {"A", "B"}


def test_list_sorts_by_updated_at(store: TaskRepo) -> None:
    t0 = datetime(2020, 1, 1, tzinfo=UTC)
    older = store.create(new_task(title="older", now=t0))
    newer = store.create(new_task(title="newer", now=t0 + timedelta(minutes=1)))

    touched = store.update(older.id, TaskPatch(description="touched"))
    assert touched is not None
    assert touched.updated_at > newer.updated_at

    desc = store.list(sort=TaskSort(by="updatedAt", order="desc"))
    assert [t.id for t in desc.items] == [older.id, newer.id]

    asc = store.list(sort=TaskSort(by="updatedAt", order="asc"))
    assert [t.id for t in asc.items] == [newer.id, older.id]

    # createdAt ordering is unaffected by the update
    by_created = store.list(sort=TaskSort(by="createdAt", order="desc"))
    assert [t.id for t in by_created.items] == [newer.id, older.id]


def test_all_preserves_insertion_order(store: TaskRepo) -> None:
    created = [store.create(new_task(title=f"t{i}")) for i in range(5)]
    assert [t.id for t in store.all()] == [t.id for t in created]


@pytest.mark.parametrize("workers", [4])
def test_concurrent_updates_to_one_id_lose_nothing(store: TaskRepo, workers: int) -> None:
    task = store.create(new_task(title="shared"))
    patches = [
        TaskPatch(title="renamed"),
        TaskPatch(description="described"),
        TaskPatch(status="IN_PROGRESS"),
        TaskPatch(),
    ]

    with ThreadPoolExecutor(max_workers=workers) as pool:
        results = list(pool.map(lambda p: store.update(task.id, p), patches))

    assert all(r is not None for r in results)
    final = store.get(task.id)
    assert final is not None
    assert final.title == "renamed"
    assert final.description == "described"
    assert final.status is TaskStatus.IN_PROGRESS
    assert final.updated_at == max(r.updated_at for r in results if r is not None)


def test_sqlite_store_survives_reopen(tmp_path: Path) -> None:
    db = tmp_path / "tasks.sqlite3"
    first = SqliteTaskStore(db)
    task = first.create(new_task(title="persist me", description="across restarts"))
    first.update(task.id, TaskPatch(status="completed"))
    first.close()

    second = SqliteTaskStore(db)
    again = second.get(task.id)
    assert again is not None
    assert again.title == "persist me"
    assert again.status is TaskStatus.COMPLETED
    assert again.created_at == task.created_at
    assert second.count() == 1


def test_sqlite_persists_expected_layout(tmp_path: Path) -> None:
    db = tmp_path / "tasks.sqlite3"
    store = SqliteTaskStore(db)
    task = store.create(new_task(title="layout"))

    conn = sqlite3.connect(str(db))
    try:
        cols = [row[1] for row in conn.execute("PRAGMA table_info(tasks)")]
        row = conn.execute("SELECT createdAt, status FROM tasks WHERE id = ?", (task.id,)).fetchone()
    finally:
        conn.close()

    assert cols == ["id", "title", "description", "status", "createdAt", "updatedAt"]
    assert row[0] == task.created_at.isoformat()
    assert row[1] == "PENDING"


def test_sqlite_init_failure_is_storage_error(tmp_path: Path) -> None:
    # a directory where the database file should be cannot be opened
    bad = tmp_path / "as_dir.sqlite3"
    bad.mkdir()
    with pytest.raises(TaskStorageError):
        SqliteTaskStore(bad)


def test_sqlite_operation_failure_is_storage_error(tmp_path: Path) -> None:
    db = tmp_path / "tasks.sqlite3"
    store = SqliteTaskStore(db)

    conn = sqlite3.connect(str(db))
    conn.execute("DROP TABLE tasks")
    conn.commit()
    conn.close()

    with pytest.raises(TaskStorageError, match="Task storage failure"):
        store.count()
