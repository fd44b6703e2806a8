# src/tasknest/tasks/task_store.py

from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping
from dataclasses import replace
from typing import Any

from ..errors import ValidationError
from ..storage.durable_store import DurableStore
from ..utils.datetime_helper import Clock, utc_now
from .task_models import (
    Task,
    TaskDraft,
    TaskStatus,
    matches_query,
    validate_draft,
    validate_task_fields,
)

logger = logging.getLogger(__name__)


class TaskRepository:
    """
    Task CRUD + queries over the persisted task collection.

    No caching: every call re-reads the whole collection through the DurableStore,
    and every write re-serializes the whole collection (last writer wins).

    Field invariants (title/description bounds, enums, tag shape) are enforced here,
    so a caller that skips form validation cannot persist a corrupt record.
    """

    def __init__(self, store: DurableStore, *, clock: Clock = utc_now) -> None:
        self._store = store
        self._clock = clock

    # ---- queries ----

    def list_all(self) -> list[Task]:
        return self._store.load_tasks()

    def list_owned(self, user_id: str) -> list[Task]:
        if not user_id:
            return []
        return [t for t in self._store.load_tasks() if t.owner_id == user_id]

    def list_shared_with(self, user_id: str) -> list[Task]:
        if not user_id:
            return []
        return [t for t in self._store.load_tasks() if user_id in t.shared_with]

    def get_by_id(self, task_id: str) -> Task | None:
        """
        Resolve a task by id with no ownership check.

        Knowing the id is the capability to read the task (unlisted-link sharing).
        """
        for t in self._store.load_tasks():
            if t.id == task_id:
                return t
        return None

    def search(self, user_id: str, query: str) -> list[Task]:
        """Case-insensitive substring match on title, description or any tag (owned tasks)."""
        return [t for t in self.list_owned(user_id) if matches_query(t, query)]

    # ---- commands ----

    def create(self, draft: TaskDraft) -> Task:
        fields = validate_draft(draft)
        owner_id = (draft.owner_id or "").strip()
        if not owner_id:
            raise ValidationError("owner_id is required", field="owner_id")

        now = self._clock()
        task = Task(
            id=uuid.uuid4().hex,
            owner_id=owner_id,
            created_at=now,
            updated_at=now,
            completed_at=now if fields["status"] == TaskStatus.COMPLETED else None,
            **fields,
        )

        tasks = self._store.load_tasks()
        tasks.append(task)
        self._store.save_tasks(tasks)
        logger.debug("Task created id=%s owner=%s status=%s", task.id, owner_id, task.status.value)
        return task

    def update(self, task_id: str, changes: Mapping[str, Any]) -> Task | None:
        """
        Merge changes into an existing task.

        Returns None if the id is unknown. Setting status to completed stamps
        completed_at with the same instant as updated_at; completed_at is never cleared.
        """
        fields = validate_task_fields(changes)

        tasks = self._store.load_tasks()
        for i, current in enumerate(tasks):
            if current.id != task_id:
                continue

            now = self._clock()
            completed_at = current.completed_at
            if fields.get("status") == TaskStatus.COMPLETED:
                completed_at = now

            updated = replace(current, **fields, updated_at=now, completed_at=completed_at)
            tasks[i] = updated
            self._store.save_tasks(tasks)
            logger.debug("Task updated id=%s fields=%s", task_id, sorted(fields))
            return updated

        logger.debug("Task update skipped, not found id=%s", task_id)
        return None

    def delete(self, task_id: str) -> bool:
        tasks = self._store.load_tasks()
        remaining = [t for t in tasks if t.id != task_id]
        if len(remaining) == len(tasks):
            return False
        self._store.save_tasks(remaining)
        logger.debug("Task deleted id=%s", task_id)
        return True

    def share(self, task_id: str, user_id: str) -> Task | None:
        task = self.get_by_id(task_id)
        if task is None:
            return None
        if user_id in task.shared_with:
            return task
        return self.update(task_id, {"shared_with": [*task.shared_with, user_id]})

    def unshare(self, task_id: str, user_id: str) -> Task | None:
        task = self.get_by_id(task_id)
        if task is None:
            return None
        if user_id not in task.shared_with:
            return task
        return self.update(task_id, {"shared_with": [u for u in task.shared_with if u != user_id]})
