# src/tasknest/notifications/notification_engine.py

from __future__ import annotations

"""
Notification engine.

Derives due-soon / overdue reminders from task state without duplicating them:
at most one task_due notification per task per UTC calendar day. A task can
legitimately get a "due soon" reminder one day and an "overdue" one the next.

Also owns plain CRUD over the notification collection (append, read flags, listing).
"""

import logging
import uuid
from datetime import timedelta

from ..core.ports import TaskRepo
from ..storage.durable_store import DurableStore
from ..tasks.task_models import Task
from ..utils.datetime_helper import Clock, calendar_date, utc_now
from .notification_models import Notification, NotificationType

logger = logging.getLogger(__name__)

DUE_SOON_TITLE = "Task due soon"
OVERDUE_TITLE = "Task overdue"


class NotificationEngine:
    def __init__(
        self,
        store: DurableStore,
        tasks: TaskRepo,
        *,
        clock: Clock = utc_now,
        due_soon_hours: float = 24.0,
    ) -> None:
        self._store = store
        self._tasks = tasks
        self._clock = clock
        self._due_soon = timedelta(hours=max(0.0, float(due_soon_hours)))

    # ---- queries ----

    def list(self, user_id: str) -> list[Notification]:
        """Notifications for user_id, newest first."""
        items = [n for n in self._store.load_notifications() if n.user_id == user_id]
        items.sort(key=lambda n: n.created_at, reverse=True)
        return items

    def unread_count(self, user_id: str) -> int:
        return sum(1 for n in self.list(user_id) if not n.read)

    # ---- commands ----

    def add(
        self,
        *,
        user_id: str,
        title: str,
        message: str,
        type: NotificationType,
        task_id: str | None = None,
    ) -> Notification:
        notification = self._build(user_id, title, message, type, task_id)
        items = self._store.load_notifications()
        items.append(notification)
        self._store.save_notifications(items)
        logger.debug(
            "Notification added id=%s user=%s type=%s task=%s",
            notification.id,
            user_id,
            type.value,
            task_id,
        )
        return notification

    def mark_read(self, notification_id: str) -> bool:
        """Flip one notification to read. Unknown ids are a no-op (returns False)."""
        items = self._store.load_notifications()
        for n in items:
            if n.id == notification_id:
                if not n.read:
                    n.read = True
                    self._store.save_notifications(items)
                return True
        return False

    def mark_all_read(self, user_id: str) -> int:
        items = self._store.load_notifications()
        flipped = 0
        for n in items:
            if n.user_id == user_id and not n.read:
                n.read = True
                flipped += 1
        if flipped:
            self._store.save_notifications(items)
        return flipped

    def check_due_tasks(self, user_id: str) -> list[Notification]:
        """
        Create task_due reminders for the user's open tasks that are due soon or overdue.

        - due soon: now < due_date <= now + due_soon window
        - overdue:  due_date < now
        A task is skipped if a task_due notification for it was already created
        on today's (UTC) calendar date. Returns only the notifications created by this call.
        """
        if not user_id:
            return []

        now = self._clock()
        today = calendar_date(now)
        horizon = now + self._due_soon

        items = self._store.load_notifications()
        sent_today = {
            n.task_id
            for n in items
            if n.user_id == user_id
            and n.type == NotificationType.TASK_DUE
            and n.task_id
            and calendar_date(n.created_at) == today
        }

        created: list[Notification] = []
        for task in self._tasks.list_owned(user_id):
            if task.is_completed or task.id in sent_today:
                continue

            if now < task.due_date <= horizon:
                title, message = DUE_SOON_TITLE, _due_soon_message(task, self._due_soon)
            elif task.due_date < now:
                title, message = OVERDUE_TITLE, _overdue_message(task)
            else:
                continue

            created.append(self._build(user_id, title, message, NotificationType.TASK_DUE, task.id))
            sent_today.add(task.id)

        if created:
            items.extend(created)
            self._store.save_notifications(items)
            logger.info("Due-task check user=%s created=%d", user_id, len(created))
        return created

    # ---- helpers ----

    def _build(
        self,
        user_id: str,
        title: str,
        message: str,
        type: NotificationType,
        task_id: str | None,
    ) -> Notification:
        return Notification(
            id=uuid.uuid4().hex,
            user_id=user_id,
            title=title,
            message=message,
            type=type,
            read=False,
            task_id=task_id,
            created_at=self._clock(),
        )


def _due_soon_message(task: Task, window: timedelta) -> str:
    hours = window.total_seconds() / 3600
    return f'Task "{task.title}" is due within {hours:g} hours'


def _overdue_message(task: Task) -> str:
    return f'Task "{task.title}" is overdue'
