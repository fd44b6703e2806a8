# src/tasknest/storage/durable_store.py

from __future__ import annotations

"""
Durable store adapter.

Reads and writes whole collections (tasks, current user, notifications) as JSON
blobs keyed by logical name. It is the only writer of persisted collections.

Failure policy:
- backend errors and corrupt JSON are wrapped as StorageError, logged and swallowed
- reads degrade to an empty-but-valid default (empty list / None)
- writes report False
Nothing is retried.
"""

import json
import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, TypeVar

from ..auth.user_models import User, UserPreferences
from ..core.ports import KeyValueStore
from ..errors import StorageError
from ..notifications.notification_models import Notification
from ..tasks.task_models import Task, TaskPriority, TaskStatus

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEMO_USER_ID = "user-123"


@dataclass(frozen=True, slots=True)
class StorageKeys:
    tasks: str
    user: str
    notifications: str
    initialized: str

    @classmethod
    def for_prefix(cls, prefix: str) -> StorageKeys:
        p = (prefix or "tasknest").strip()
        return cls(
            tasks=f"{p}_tasks",
            user=f"{p}_user",
            notifications=f"{p}_notifications",
            initialized=f"{p}_initialized",
        )

    def all(self) -> tuple[str, ...]:
        return (self.tasks, self.user, self.notifications, self.initialized)


class DurableStore:
    def __init__(self, kv: KeyValueStore, *, key_prefix: str = "tasknest") -> None:
        self._kv = kv
        self.key_prefix = (key_prefix or "tasknest").strip()
        self.keys = StorageKeys.for_prefix(self.key_prefix)

    def close(self) -> None:
        close = getattr(self._kv, "close", None)
        if callable(close):
            close()

    def key(self, name: str) -> str:
        """Build a namespaced key for an auxiliary collection (e.g. auth records)."""
        return f"{self.key_prefix}_{name}"

    # ---- low-level helpers ----

    def _get_raw(self, key: str) -> str | None:
        try:
            return self._kv.get(key)
        except Exception as exc:
            raise StorageError(f"read failed key={key}") from exc

    def _set_raw(self, key: str, value: str) -> None:
        try:
            self._kv.set(key, value)
        except Exception as exc:
            raise StorageError(f"write failed key={key}") from exc

    def read_json(self, key: str, default: Any = None) -> Any:
        try:
            raw = self._get_raw(key)
        except StorageError:
            logger.exception("Storage read failed; using default key=%s", key)
            return default
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except ValueError:
            logger.exception("Corrupt JSON in storage; using default key=%s", key)
            return default

    def write_json(self, key: str, value: Any) -> bool:
        try:
            payload = json.dumps(value, ensure_ascii=False)
            self._set_raw(key, payload)
            return True
        except (TypeError, ValueError):
            logger.exception("Failed to JSON-encode value key=%s", key)
            return False
        except StorageError:
            logger.exception("Storage write failed key=%s", key)
            return False

    def remove_key(self, key: str) -> bool:
        try:
            self._kv.remove(key)
            return True
        except Exception:
            logger.exception("Storage remove failed key=%s", key)
            return False

    def _load_records(self, key: str, decode: Callable[[dict[str, Any]], T]) -> list[T]:
        data = self.read_json(key, [])
        if not isinstance(data, list):
            logger.warning("Expected a JSON array key=%s got=%s", key, type(data).__name__)
            return []

        out: list[T] = []
        for item in data:
            if not isinstance(item, dict):
                continue
            try:
                out.append(decode(item))
            except Exception:
                logger.warning("Skipping undecodable record key=%s id=%s", key, item.get("id"))
        return out

    # ---- collections ----

    def load_tasks(self) -> list[Task]:
        return self._load_records(self.keys.tasks, Task.from_dict)

    def save_tasks(self, tasks: list[Task]) -> bool:
        return self.write_json(self.keys.tasks, [t.to_dict() for t in tasks])

    def load_notifications(self) -> list[Notification]:
        return self._load_records(self.keys.notifications, Notification.from_dict)

    def save_notifications(self, notifications: list[Notification]) -> bool:
        return self.write_json(self.keys.notifications, [n.to_dict() for n in notifications])

    def load_user(self) -> User | None:
        data = self.read_json(self.keys.user, None)
        if not isinstance(data, dict):
            return None
        try:
            return User.from_dict(data)
        except Exception:
            logger.warning("Stored user record is not decodable; ignoring.")
            return None

    def save_user(self, user: User) -> bool:
        return self.write_json(self.keys.user, user.to_dict())

    def remove_user(self) -> bool:
        return self.remove_key(self.keys.user)

    # ---- lifecycle ----

    def is_initialized(self) -> bool:
        return bool(self.read_json(self.keys.initialized, False))

    def mark_initialized(self) -> bool:
        return self.write_json(self.keys.initialized, True)

    def clear_all(self) -> None:
        for key in self.keys.all():
            self.remove_key(key)
        logger.info("All task data cleared prefix=%s", self.key_prefix)

    def seed_if_empty(self, now: datetime, *, with_demo_data: bool = True) -> bool:
        """
        First-run bootstrap.

        Writes the demo user and tasks (unless with_demo_data is False), an empty
        notification list and the initialized flag. Returns True if it seeded.
        """
        if self.is_initialized():
            return False

        if with_demo_data:
            user = User(
                id=DEMO_USER_ID,
                email="user@example.com",
                full_name="Demo User",
                created_at=now,
                preferences=UserPreferences(),
            )
            self.save_user(user)
            self.save_tasks(build_demo_tasks(user.id, now))

        self.save_notifications([])
        self.mark_initialized()
        logger.info("Storage seeded prefix=%s demo=%s", self.key_prefix, with_demo_data)
        return True


def build_demo_tasks(owner_id: str, now: datetime) -> list[Task]:
    day = timedelta(days=1)

    def task(
        title: str,
        description: str,
        *,
        due: timedelta,
        created: timedelta,
        priority: TaskPriority,
        status: TaskStatus,
        tags: list[str],
        shared_with: list[str] | None = None,
    ) -> Task:
        return Task(
            id=uuid.uuid4().hex,
            title=title,
            description=description,
            due_date=now + due,
            priority=priority,
            status=status,
            tags=tags,
            owner_id=owner_id,
            shared_with=shared_with or [],
            created_at=now - created,
            updated_at=now,
            completed_at=now if status == TaskStatus.COMPLETED else None,
        )

    return [
        task(
            "Finish the React project",
            "Complete every feature of the task system",
            due=3 * day,
            created=2 * day,
            priority=TaskPriority.HIGH,
            status=TaskStatus.IN_PROGRESS,
            tags=["work", "development"],
        ),
        task(
            "Study TypeScript",
            "Review advanced TypeScript concepts",
            due=7 * day,
            created=1 * day,
            priority=TaskPriority.MEDIUM,
            status=TaskStatus.TODO,
            tags=["study", "programming"],
        ),
        task(
            "Workout",
            "Go to the gym 3x a week",
            due=-1 * day,
            created=5 * day,
            priority=TaskPriority.MEDIUM,
            status=TaskStatus.COMPLETED,
            tags=["health", "fitness"],
        ),
        task(
            "Team meeting",
            "Discuss the product roadmap",
            due=1 * day,
            created=3 * day,
            priority=TaskPriority.HIGH,
            status=TaskStatus.TODO,
            tags=["work", "meeting"],
            shared_with=["user-456"],
        ),
    ]
