# src/tasknest/notifications/notification_models.py

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from typing import Any

from ..utils.datetime_helper import parse_iso, to_iso


class NotificationType(StrEnum):
    TASK_DUE = "task_due"
    TASK_SHARED = "task_shared"
    TASK_UPDATED = "task_updated"

    @classmethod
    def from_db(cls, raw: str | None) -> NotificationType:
        if not raw:
            return cls.TASK_UPDATED
        try:
            return cls(raw)
        except Exception:
            return cls.TASK_UPDATED


@dataclass(slots=True)
class Notification:
    id: str
    user_id: str
    title: str
    message: str
    type: NotificationType
    created_at: datetime
    read: bool = False
    task_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "title": self.title,
            "message": self.message,
            "type": self.type.value,
            "read": self.read,
            "taskId": self.task_id,
            "createdAt": to_iso(self.created_at),
        }

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> Notification:
        task_id = raw.get("taskId")
        return cls(
            id=str(raw["id"]),
            user_id=str(raw["userId"]),
            title=str(raw.get("title") or ""),
            message=str(raw.get("message") or ""),
            type=NotificationType.from_db(raw.get("type")),
            read=bool(raw.get("read", False)),
            task_id=str(task_id) if task_id else None,
            created_at=parse_iso(str(raw["createdAt"])),
        )
