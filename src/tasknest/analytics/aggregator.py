# src/tasknest/analytics/aggregator.py

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any

from ..core.ports import TaskRepo
from ..errors import ValidationError
from ..tasks.task_models import TaskPriority
from ..utils.datetime_helper import Clock, calendar_date, utc_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DayStat:
    date: date
    created: int
    completed: int

    def to_dict(self) -> dict[str, Any]:
        return {"date": self.date.isoformat(), "created": self.created, "completed": self.completed}


def _empty_priorities() -> dict[str, int]:
    return {p.value: 0 for p in (TaskPriority.HIGH, TaskPriority.MEDIUM, TaskPriority.LOW)}


@dataclass(frozen=True, slots=True)
class AnalyticsSnapshot:
    window_days: int
    total: int = 0
    completed: int = 0
    pending: int = 0
    overdue: int = 0
    completion_rate: float = 0.0
    by_priority: dict[str, int] = field(default_factory=_empty_priorities)
    tasks_by_day: list[DayStat] = field(default_factory=list)

    @classmethod
    def empty(cls, window_days: int = 30) -> AnalyticsSnapshot:
        return cls(window_days=window_days)

    def to_dict(self) -> dict[str, Any]:
        """Chart-ready shape."""
        return {
            "total": self.total,
            "completed": self.completed,
            "pending": self.pending,
            "overdue": self.overdue,
            "completionRate": self.completion_rate,
            "byPriority": dict(self.by_priority),
            "tasksByDay": [d.to_dict() for d in self.tasks_by_day],
        }


class AnalyticsAggregator:
    def __init__(self, tasks: TaskRepo, *, clock: Clock = utc_now) -> None:
        self._tasks = tasks
        self._clock = clock

    def compute(self, user_id: str, window_days: int = 30) -> AnalyticsSnapshot:
        """
        Statistics over the user's tasks created in the last window_days.

        tasks_by_day has one entry per UTC calendar day (today included), oldest first;
        "completed" per day is keyed on completed_at, not updated_at.
        """
        days = int(window_days)
        if days < 1:
            raise ValidationError("window_days must be >= 1", field="window_days")

        now = self._clock()
        start = now - timedelta(days=days)
        tasks = [t for t in self._tasks.list_owned(user_id) if t.created_at >= start]

        total = len(tasks)
        completed = sum(1 for t in tasks if t.is_completed)
        overdue = sum(1 for t in tasks if not t.is_completed and t.due_date < now)

        by_priority = _empty_priorities()
        for p, n in Counter(t.priority.value for t in tasks).items():
            by_priority[p] = n

        created_per_day = Counter(calendar_date(t.created_at) for t in tasks)
        completed_per_day = Counter(
            calendar_date(t.completed_at) for t in tasks if t.completed_at is not None
        )

        today = calendar_date(now)
        tasks_by_day = []
        for offset in range(days - 1, -1, -1):
            d = today - timedelta(days=offset)
            tasks_by_day.append(
                DayStat(date=d, created=created_per_day[d], completed=completed_per_day[d])
            )

        snapshot = AnalyticsSnapshot(
            window_days=days,
            total=total,
            completed=completed,
            pending=total - completed,
            overdue=overdue,
            completion_rate=(completed / total * 100.0) if total else 0.0,
            by_priority=by_priority,
            tasks_by_day=tasks_by_day,
        )
        logger.debug(
            "Analytics user=%s window=%d total=%d completed=%d", user_id, days, total, completed
        )
        return snapshot
