# src/tasknest/core/state.py

from __future__ import annotations

from dataclasses import dataclass, field

from ..auth.user_models import User
from ..notifications.notification_models import Notification
from ..tasks.task_models import Task, TaskPriority, TaskStatus, matches_query, normalize_tags

FILTER_ALL = "all"


@dataclass(slots=True)
class TaskFilters:
    status: str = FILTER_ALL
    priority: str = FILTER_ALL
    tags: list[str] = field(default_factory=list)

    def merged(
        self,
        *,
        status: str | None = None,
        priority: str | None = None,
        tags: list[str] | None = None,
    ) -> TaskFilters:
        """Return a copy with the given fields replaced (validated)."""
        return TaskFilters(
            status=self.status if status is None else _filter_value(status, TaskStatus),
            priority=(
                self.priority
                if priority is None
                else _filter_value(priority, TaskPriority)
            ),
            tags=list(self.tags) if tags is None else normalize_tags(tags),
        )


def _filter_value(raw: str, enum_cls: type[TaskStatus] | type[TaskPriority]) -> str:
    value = str(raw).strip().lower()
    if value == FILTER_ALL:
        return FILTER_ALL
    return enum_cls.parse(value).value


@dataclass
class AppState:
    """
    View state owned by the TaskController.

    Lists are replaced wholesale on every reload, never patched in place.
    """

    user: User | None = None
    tasks: list[Task] = field(default_factory=list)
    shared_tasks: list[Task] = field(default_factory=list)
    notifications: list[Notification] = field(default_factory=list)
    search_query: str = ""
    filters: TaskFilters = field(default_factory=TaskFilters)
    loading: bool = False

    @property
    def unread_notifications(self) -> int:
        return sum(1 for n in self.notifications if not n.read)


def filter_tasks(tasks: list[Task], search_query: str, filters: TaskFilters) -> list[Task]:
    """
    Derived task view: search, then status, then priority, then tags.

    The tag filter has OR semantics: a task matches if it carries at least one
    selected tag. Never mutates the input list.
    """
    out = list(tasks)

    if search_query.strip():
        out = [t for t in out if matches_query(t, search_query)]

    if filters.status != FILTER_ALL:
        out = [t for t in out if t.status.value == filters.status]

    if filters.priority != FILTER_ALL:
        out = [t for t in out if t.priority.value == filters.priority]

    if filters.tags:
        selected = set(filters.tags)
        out = [t for t in out if selected.intersection(t.tags)]

    return out
