# src/tasknest/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
This keeps storage backends swappable and makes testing easier.
"""

from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from ..tasks.task_models import Task, TaskDraft
    from .state import AppState


class KeyValueStore(Protocol):
    """
    Durable string key-value store (browser-local-storage semantics).

    Values are opaque strings; the DurableStore adapter puts JSON in them.
    """

    def get(self, key: str) -> str | None: ...
    def set(self, key: str, value: str) -> None: ...
    def remove(self, key: str) -> None: ...
    def clear(self) -> None: ...


class TaskRepo(Protocol):
    # Read API (controller, notification engine, analytics)
    def list_owned(self, user_id: str) -> list[Task]: ...
    def list_shared_with(self, user_id: str) -> list[Task]: ...
    def get_by_id(self, task_id: str) -> Task | None: ...
    def search(self, user_id: str, query: str) -> list[Task]: ...

    # Write API (controller)
    def create(self, draft: TaskDraft) -> Task: ...
    def update(self, task_id: str, changes: Mapping[str, Any]) -> Task | None: ...
    def delete(self, task_id: str) -> bool: ...


StateListener = Callable[["AppState"], None]
# Receives the controller state after every publish.
