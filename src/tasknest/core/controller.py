# src/tasknest/core/controller.py

from __future__ import annotations

"""
Application state controller.

The single mutable state container the front-end talks to. It is constructed with
its collaborators (no module-level singleton) and publishes AppState to subscribers.

Policy:
- every mutating command flips loading on, delegates, then reloads the owned, shared
  and notification lists from storage (never an incremental patch) and flips loading off
- derived views (get_filtered_tasks) are recomputed on each call, never cached
"""

import contextlib
import logging
from collections.abc import Callable, Iterator, Mapping
from dataclasses import replace
from pathlib import Path
from typing import Any

from ..analytics.aggregator import AnalyticsAggregator, AnalyticsSnapshot
from ..auth.identity import IdentityProvider
from ..auth.user_models import apply_profile_changes
from ..errors import ValidationError
from ..notifications.notification_engine import NotificationEngine
from ..notifications.notification_models import Notification, NotificationType
from ..storage.durable_store import DurableStore
from ..tasks.task_models import Task, TaskDraft
from ..tasks.task_store import TaskRepository
from ..utils.datetime_helper import Clock, utc_now
from .export import build_export, write_export
from .ports import StateListener
from .state import AppState, filter_tasks

logger = logging.getLogger(__name__)


class TaskController:
    def __init__(
        self,
        store: DurableStore,
        repo: TaskRepository,
        notifications: NotificationEngine,
        analytics: AnalyticsAggregator,
        *,
        clock: Clock = utc_now,
        seed_demo_data: bool = True,
        identity: IdentityProvider | None = None,
    ) -> None:
        self._store = store
        self._repo = repo
        self._notifications = notifications
        self._analytics = analytics
        self._clock = clock
        self._seed_demo_data = seed_demo_data
        self._identity = identity
        self._listeners: list[StateListener] = []
        self.state = AppState()

    # ---- subscriptions ----

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a listener; returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            with contextlib.suppress(ValueError):
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self.state)
            except Exception:
                logger.exception("State listener failed: %r", listener)

    @contextlib.contextmanager
    def _mutation(self, name: str) -> Iterator[None]:
        logger.debug("Mutation start: %s", name)
        self.state.loading = True
        self._publish()
        try:
            yield
        finally:
            self._reload_lists()
            self.state.loading = False
            self._publish()
            logger.debug("Mutation done: %s", name)

    # ---- loading ----

    def _user_id(self) -> str | None:
        return self.state.user.id if self.state.user else None

    def _reload_lists(self) -> None:
        user_id = self._user_id()
        if user_id is None:
            self.state.tasks = []
            self.state.shared_tasks = []
            self.state.notifications = []
            return
        self.state.tasks = self._repo.list_owned(user_id)
        self.state.shared_tasks = self._repo.list_shared_with(user_id)
        self.state.notifications = self._notifications.list(user_id)

    def load_user(self) -> None:
        self.state.user = self._store.load_user()

    def initialize(self) -> None:
        """
        Bootstrap: seed storage on first run, then load user, tasks, shared tasks,
        notifications and run the due-task check. Safe to call repeatedly.
        """
        self._store.seed_if_empty(self._clock(), with_demo_data=self._seed_demo_data)
        self.load_user()
        self._reload_lists()
        self._check_due()
        self._publish()
        logger.info(
            "Controller initialized user=%s tasks=%d shared=%d notifications=%d",
            self._user_id(),
            len(self.state.tasks),
            len(self.state.shared_tasks),
            len(self.state.notifications),
        )

    def refresh_data(self) -> None:
        """Full refresh path used by the periodic timer."""
        self.load_user()
        self._reload_lists()
        self._check_due()
        self._publish()

    # ---- task commands ----

    def create_task(self, draft: TaskDraft) -> Task:
        user_id = self._user_id()
        if user_id is None:
            raise ValidationError("no user is signed in")
        with self._mutation("create_task"):
            return self._repo.create(replace(draft, owner_id=user_id, shared_with=[]))

    def update_task(self, task_id: str, changes: Mapping[str, Any]) -> Task | None:
        with self._mutation("update_task"):
            return self._repo.update(task_id, changes)

    def delete_task(self, task_id: str) -> bool:
        with self._mutation("delete_task"):
            return self._repo.delete(task_id)

    def share_task(self, task_id: str, user_id: str) -> Task | None:
        """Grant user_id read access and notify them. Returns None for unknown tasks."""
        recipient = (user_id or "").strip()
        if not recipient:
            raise ValidationError("user id is required", field="user_id")
        with self._mutation("share_task"):
            before = self._repo.get_by_id(task_id)
            task = self._repo.share(task_id, recipient)
            if task is not None and before is not None and recipient not in before.shared_with:
                owner = self.state.user.full_name if self.state.user else "Someone"
                self._notifications.add(
                    user_id=recipient,
                    title="Task shared with you",
                    message=f'{owner} shared the task "{task.title}"',
                    type=NotificationType.TASK_SHARED,
                    task_id=task.id,
                )
            return task

    def unshare_task(self, task_id: str, user_id: str) -> Task | None:
        """Revoke user_id's read access. Returns None for unknown tasks."""
        with self._mutation("unshare_task"):
            return self._repo.unshare(task_id, (user_id or "").strip())

    def resolve_shared_link(self, task_id: str) -> Task | None:
        """Open a task by id; the id alone grants read access."""
        return self._repo.get_by_id(task_id)

    # ---- search / filters ----

    def search_tasks(self, query: str) -> list[Task]:
        user_id = self._user_id()
        if user_id is None:
            return []
        if not query.strip():
            return list(self.state.tasks)
        return self._repo.search(user_id, query)

    def set_search_query(self, text: str) -> None:
        self.state.search_query = text or ""
        self._publish()

    def set_filters(
        self,
        *,
        status: str | None = None,
        priority: str | None = None,
        tags: list[str] | None = None,
    ) -> None:
        self.state.filters = self.state.filters.merged(status=status, priority=priority, tags=tags)
        self._publish()

    def get_filtered_tasks(self) -> list[Task]:
        return filter_tasks(self.state.tasks, self.state.search_query, self.state.filters)

    # ---- notifications ----

    def _check_due(self) -> list[Notification]:
        user_id = self._user_id()
        if user_id is None:
            return []
        created = self._notifications.check_due_tasks(user_id)
        self.state.notifications = self._notifications.list(user_id)
        return created

    def check_due_tasks(self) -> list[Notification]:
        created = self._check_due()
        self._publish()
        return created

    def mark_notification_read(self, notification_id: str) -> None:
        with self._mutation("mark_notification_read"):
            self._notifications.mark_read(notification_id)

    def mark_all_notifications_read(self) -> None:
        user_id = self._user_id()
        if user_id is None:
            return
        with self._mutation("mark_all_notifications_read"):
            self._notifications.mark_all_read(user_id)

    # ---- analytics ----

    def get_analytics(self, window_days: int = 30) -> AnalyticsSnapshot:
        user_id = self._user_id()
        if user_id is None:
            return AnalyticsSnapshot.empty(window_days)
        return self._analytics.compute(user_id, window_days)

    # ---- user profile ----

    def update_user_profile(self, **changes: Any) -> None:
        """
        Merge profile changes into the current user record.

        Accepted keys: full_name, email, avatar_url, preferences (merged key-wise).
        When the user has a session, the identity provider applies the change so the
        stored profile and credentials stay in step with the current-user record.
        """
        user = self.state.user
        if user is None:
            return

        identity = self._identity
        session = identity.session() if identity is not None else None
        if identity is not None and session is not None and session.user_id == user.id:
            identity.update_profile(**changes)
        else:
            self._store.save_user(apply_profile_changes(user, changes))

        self.load_user()
        self._publish()

    # ---- data management ----

    def export_snapshot(self) -> dict[str, Any]:
        return build_export(
            self.state.user,
            self.state.tasks,
            self.state.notifications,
            now=self._clock(),
        )

    def export_to_file(self, export_dir: str | Path) -> Path:
        return write_export(self.export_snapshot(), export_dir, now=self._clock())

    def clear_all_data(self) -> None:
        """Wipe persisted collections and reset view state (subscribers are kept)."""
        self._store.clear_all()
        self.state = AppState()
        self._publish()
