# tests/test_task_store.py

from __future__ import annotations

from datetime import timedelta

import pytest

from tasknest.errors import ValidationError
from tasknest.storage.durable_store import DurableStore
from tasknest.storage.kv_store import SqliteKeyValueStore
from tasknest.tasks.task_models import TaskPriority, TaskStatus
from tasknest.tasks.task_store import TaskRepository

from .conftest import T0, make_draft


def test_create_assigns_id_and_timestamps(repo: TaskRepository) -> None:
    task = repo.create(make_draft("  Buy milk  ", tags=["home", "home", " "]))

    assert task.id
    assert task.title == "Buy milk"
    assert task.tags == ["home"]
    assert task.created_at == task.updated_at == T0
    assert task.completed_at is None
    assert task.priority == TaskPriority.MEDIUM
    assert task.status == TaskStatus.TODO
    assert repo.get_by_id(task.id) == task


def test_create_completed_task_stamps_completed_at(repo: TaskRepository) -> None:
    task = repo.create(make_draft(status="completed"))
    assert task.completed_at == T0


@pytest.mark.parametrize(
    "overrides",
    [
        {"title": ""},
        {"title": "   "},
        {"title": "x" * 101},
        {"description": "x" * 501},
        {"priority": "urgent"},
        {"status": "done"},
        {"tags": "work"},
    ],
)
def test_create_rejects_invalid_fields(repo: TaskRepository, overrides: dict) -> None:
    fields = dict(overrides)
    title = fields.pop("title", "Valid title")
    with pytest.raises(ValidationError):
        repo.create(make_draft(title, **fields))
    assert repo.list_all() == []


def test_create_accepts_boundary_lengths(repo: TaskRepository) -> None:
    task = repo.create(make_draft("x" * 100, description="y" * 500))
    assert len(task.title) == 100
    assert len(task.description) == 500


def test_create_requires_owner(repo: TaskRepository) -> None:
    with pytest.raises(ValidationError):
        repo.create(make_draft(owner_id=""))


def test_complete_sets_completed_at_to_update_instant(repo: TaskRepository, clock) -> None:
    task = repo.create(make_draft())
    clock.advance(hours=2)

    updated = repo.update(task.id, {"status": TaskStatus.COMPLETED})

    assert updated is not None
    assert updated.completed_at is not None
    assert updated.completed_at == updated.updated_at == T0 + timedelta(hours=2)
    assert updated.created_at == T0


def test_reopening_keeps_completed_at(repo: TaskRepository, clock) -> None:
    task = repo.create(make_draft())
    clock.advance(hours=1)
    done = repo.update(task.id, {"status": "completed"})
    clock.advance(hours=1)

    reopened = repo.update(task.id, {"status": "todo"})

    assert reopened is not None
    assert reopened.status == TaskStatus.TODO
    assert reopened.completed_at == done.completed_at


def test_update_unknown_id_returns_none(repo: TaskRepository) -> None:
    assert repo.update("missing", {"title": "x"}) is None


def test_update_rejects_read_only_fields(repo: TaskRepository) -> None:
    task = repo.create(make_draft())
    with pytest.raises(ValidationError):
        repo.update(task.id, {"owner_id": "someone-else"})
    with pytest.raises(ValidationError):
        repo.update(task.id, {"title": ""})
    assert repo.get_by_id(task.id) == task


def test_delete_then_get_returns_none(repo: TaskRepository) -> None:
    task = repo.create(make_draft())

    assert repo.delete(task.id) is True
    assert repo.get_by_id(task.id) is None
    assert repo.delete(task.id) is False
    assert repo.delete("never-existed") is False


def test_search_is_case_insensitive_over_title_description_and_tags(repo: TaskRepository) -> None:
    milk = repo.create(make_draft("Buy Milk"))
    report = repo.create(make_draft("Quarterly report", description="Send to MILKY WAY inc"))
    tagged = repo.create(make_draft("Gym", tags=["Health"]))
    repo.create(make_draft("Someone else's milk", owner_id="u2"))

    assert {t.id for t in repo.search("u1", "milk")} == {milk.id, report.id}
    assert [t.id for t in repo.search("u1", "health")] == [tagged.id]
    assert len(repo.search("u1", "  ")) == 3


def test_search_query_is_matched_as_typed(repo: TaskRepository) -> None:
    repo.create(make_draft("Buy Milk"))

    assert repo.search("u1", "milk ") == []
    assert len(repo.search("u1", "buy m")) == 1


def test_list_owned_and_shared(repo: TaskRepository) -> None:
    mine = repo.create(make_draft("Mine"))
    theirs = repo.create(make_draft("Theirs", owner_id="u2", shared_with=["u1"]))

    assert [t.id for t in repo.list_owned("u1")] == [mine.id]
    assert [t.id for t in repo.list_shared_with("u1")] == [theirs.id]
    assert repo.list_owned("") == []


def test_get_by_id_has_no_ownership_check(repo: TaskRepository) -> None:
    foreign = repo.create(make_draft("Private-ish", owner_id="u2"))
    assert repo.get_by_id(foreign.id) == foreign


def test_share_and_unshare_are_idempotent(repo: TaskRepository) -> None:
    task = repo.create(make_draft())

    repo.share(task.id, "u2")
    shared = repo.share(task.id, "u2")
    assert shared is not None and shared.shared_with == ["u2"]

    unshared = repo.unshare(task.id, "u2")
    assert unshared is not None and unshared.shared_with == []
    assert repo.share("missing", "u2") is None


def test_tasks_persist_across_sqlite_instances(tmp_path, clock) -> None:
    db = tmp_path / "kv.sqlite3"
    repo1 = TaskRepository(DurableStore(SqliteKeyValueStore(db)), clock=clock)
    task = repo1.create(make_draft("Persisted", tags=["a"], priority="high"))

    repo2 = TaskRepository(DurableStore(SqliteKeyValueStore(db)), clock=clock)
    loaded = repo2.get_by_id(task.id)

    assert loaded == task
