# src/tasknest/tasks/task_models.py

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any

from ..errors import ValidationError
from ..utils.datetime_helper import ensure_utc, parse_iso, to_iso

TITLE_MAX_LEN = 100
DESCRIPTION_MAX_LEN = 500


class TaskStatus(StrEnum):
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"

    @classmethod
    def from_db(cls, raw: str | None) -> TaskStatus:
        if not raw:
            return cls.TODO
        try:
            return cls(raw)
        except Exception:
            return cls.TODO

    @classmethod
    def parse(cls, raw: Any) -> TaskStatus:
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            allowed = ", ".join(s.value for s in cls)
            raise ValidationError(f"status must be one of: {allowed}", field="status") from None


class TaskPriority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def from_db(cls, raw: str | None) -> TaskPriority:
        if not raw:
            return cls.MEDIUM
        try:
            return cls(raw)
        except Exception:
            return cls.MEDIUM

    @classmethod
    def parse(cls, raw: Any) -> TaskPriority:
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            allowed = ", ".join(p.value for p in cls)
            raise ValidationError(f"priority must be one of: {allowed}", field="priority") from None


@dataclass(slots=True)
class Task:
    id: str
    title: str
    description: str
    due_date: datetime
    priority: TaskPriority
    status: TaskStatus
    tags: list[str]
    owner_id: str
    shared_with: list[str]
    created_at: datetime
    updated_at: datetime
    completed_at: datetime | None = None

    @property
    def is_completed(self) -> bool:
        return self.status == TaskStatus.COMPLETED

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "dueDate": to_iso(self.due_date),
            "priority": self.priority.value,
            "status": self.status.value,
            "tags": list(self.tags),
            "ownerId": self.owner_id,
            "sharedWith": list(self.shared_with),
            "createdAt": to_iso(self.created_at),
            "updatedAt": to_iso(self.updated_at),
            "completedAt": to_iso(self.completed_at) if self.completed_at else None,
        }

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> Task:
        """
        Rehydrate a stored record.

        Enum values are read leniently (unknown -> default); a missing id, owner or
        unparseable date raises, and the caller decides whether to skip the record.
        """
        completed_raw = raw.get("completedAt")
        return cls(
            id=str(raw["id"]),
            title=str(raw.get("title") or ""),
            description=str(raw.get("description") or ""),
            due_date=parse_iso(str(raw["dueDate"])),
            priority=TaskPriority.from_db(raw.get("priority")),
            status=TaskStatus.from_db(raw.get("status")),
            tags=[str(t) for t in raw.get("tags") or []],
            owner_id=str(raw["ownerId"]),
            shared_with=[str(u) for u in raw.get("sharedWith") or []],
            created_at=parse_iso(str(raw["createdAt"])),
            updated_at=parse_iso(str(raw["updatedAt"])),
            completed_at=parse_iso(str(completed_raw)) if completed_raw else None,
        )


@dataclass(slots=True)
class TaskDraft:
    """Caller-supplied fields for a new task (id and timestamps are assigned on create)."""

    title: str
    due_date: datetime | str
    description: str = ""
    priority: TaskPriority | str = TaskPriority.MEDIUM
    status: TaskStatus | str = TaskStatus.TODO
    tags: list[str] = field(default_factory=list)
    owner_id: str = ""
    shared_with: list[str] = field(default_factory=list)


# ---- field validation ----


def validate_title(raw: Any) -> str:
    title = str(raw or "").strip()
    if not title:
        raise ValidationError("title is required", field="title")
    if len(title) > TITLE_MAX_LEN:
        raise ValidationError(f"title must be at most {TITLE_MAX_LEN} characters", field="title")
    return title


def validate_description(raw: Any) -> str:
    if raw is None:
        return ""
    description = str(raw).strip()
    if len(description) > DESCRIPTION_MAX_LEN:
        raise ValidationError(
            f"description must be at most {DESCRIPTION_MAX_LEN} characters", field="description"
        )
    return description


def coerce_due_date(raw: Any) -> datetime:
    if isinstance(raw, datetime):
        return ensure_utc(raw)
    if isinstance(raw, str) and raw.strip():
        try:
            return parse_iso(raw)
        except ValueError:
            raise ValidationError(f"invalid due date: {raw!r}", field="due_date") from None
    raise ValidationError("due date is required", field="due_date")


def _unique_strings(raw: Any, field_name: str) -> list[str]:
    if raw is None:
        return []
    if isinstance(raw, str) or not isinstance(raw, Iterable):
        raise ValidationError(f"{field_name} must be a list of strings", field=field_name)

    out: list[str] = []
    for item in raw:
        if not isinstance(item, str):
            raise ValidationError(f"{field_name} must be a list of strings", field=field_name)
        s = item.strip()
        if s and s not in out:
            out.append(s)
    return out


def normalize_tags(raw: Any) -> list[str]:
    return _unique_strings(raw, "tags")


def normalize_user_ids(raw: Any) -> list[str]:
    return _unique_strings(raw, "shared_with")


_VALIDATORS = {
    "title": validate_title,
    "description": validate_description,
    "due_date": coerce_due_date,
    "priority": TaskPriority.parse,
    "status": TaskStatus.parse,
    "tags": normalize_tags,
    "shared_with": normalize_user_ids,
}

UPDATABLE_FIELDS = frozenset(_VALIDATORS)


def validate_task_fields(fields: Mapping[str, Any]) -> dict[str, Any]:
    """
    Validate and normalize a partial set of task fields.

    Only fields in UPDATABLE_FIELDS are accepted; anything else (id, owner,
    timestamps, typos) is rejected rather than silently dropped.
    """
    unknown = sorted(set(fields) - UPDATABLE_FIELDS)
    if unknown:
        raise ValidationError(f"unknown or read-only task fields: {', '.join(unknown)}")
    return {name: _VALIDATORS[name](value) for name, value in fields.items()}


def validate_draft(draft: TaskDraft) -> dict[str, Any]:
    return validate_task_fields(
        {
            "title": draft.title,
            "description": draft.description,
            "due_date": draft.due_date,
            "priority": draft.priority,
            "status": draft.status,
            "tags": draft.tags,
            "shared_with": draft.shared_with,
        }
    )


def matches_query(task: Task, query: str) -> bool:
    """
    Case-insensitive substring match against title, description or any tag.

    A blank query matches everything; otherwise the query is matched as typed,
    surrounding whitespace included.
    """
    if not (query or "").strip():
        return True
    needle = query.lower()
    return (
        needle in task.title.lower()
        or needle in task.description.lower()
        or any(needle in tag.lower() for tag in task.tags)
    )
