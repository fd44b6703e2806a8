# src/tasknest/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires the key-value backend, repositories, engines and controller together.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any

from ..analytics.aggregator import AnalyticsAggregator
from ..auth.identity import IdentityProvider
from ..config import get_settings
from ..core.controller import TaskController
from ..core.ports import KeyValueStore
from ..notifications.notification_engine import NotificationEngine
from ..storage.durable_store import DurableStore
from ..storage.kv_store import SqliteKeyValueStore
from ..tasks.task_store import TaskRepository
from ..utils.datetime_helper import Clock, utc_now

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    # Settings object kept on the context for easy access in commands.
    settings: Any

    store: DurableStore
    repo: TaskRepository
    notifications: NotificationEngine
    analytics: AnalyticsAggregator
    identity: IdentityProvider
    controller: TaskController

    # Serializes console commands with the background refresh.
    lock: threading.Lock = field(default_factory=threading.Lock)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.db_path.parent.mkdir(parents=True, exist_ok=True)


def create_app_context(
    *,
    settings=None,
    kv: KeyValueStore | None = None,
    clock: Clock = utc_now,
) -> AppContext:
    """
    Build the object graph from the provided settings.

    Keeping settings, backend and clock injectable makes the app easy to test and
    avoids hidden global config reads. If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    if kv is None:
        _ensure_local_dirs(settings)
        kv = SqliteKeyValueStore(settings.db_path)

    store = DurableStore(kv, key_prefix=settings.storage_key_prefix)
    repo = TaskRepository(store, clock=clock)
    notifications = NotificationEngine(
        store, repo, clock=clock, due_soon_hours=settings.due_soon_hours
    )
    analytics = AnalyticsAggregator(repo, clock=clock)
    identity = IdentityProvider(store, clock=clock, session_days=settings.session_days)
    controller = TaskController(
        store,
        repo,
        notifications,
        analytics,
        clock=clock,
        seed_demo_data=settings.seed_demo_data,
        identity=identity,
    )

    return AppContext(
        settings=settings,
        store=store,
        repo=repo,
        notifications=notifications,
        analytics=analytics,
        identity=identity,
        controller=controller,
    )
