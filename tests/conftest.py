# tests/conftest.py

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path
from types import SimpleNamespace

import pytest

from tasknest.analytics.aggregator import AnalyticsAggregator
from tasknest.auth.user_models import User
from tasknest.cli.bootstrap import AppContext, create_app_context
from tasknest.core.controller import TaskController
from tasknest.notifications.notification_engine import NotificationEngine
from tasknest.storage.durable_store import DurableStore
from tasknest.storage.kv_store import InMemoryKeyValueStore
from tasknest.tasks.task_models import TaskDraft
from tasknest.tasks.task_store import TaskRepository

from .fakes import FrozenClock

# Noon UTC so "+/- a few hours" stays on the same calendar date.
T0 = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with the composition root.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="tasknest-test",
        log_level="DEBUG",
        file_log_level="DEBUG",
        log_dir=tmp_path / "logs",
        log_file="tasknest-test.log",
        data_dir=tmp_path,
        db_path=tmp_path / "tasknest.sqlite3",
        export_dir=tmp_path / "exports",
        storage_key_prefix="test",
        seed_demo_data=False,
        refresh_interval_seconds=0.01,
        due_soon_hours=24.0,
        analytics_window_days=30,
        session_days=7,
    )


@pytest.fixture()
def clock() -> FrozenClock:
    return FrozenClock(T0)


@pytest.fixture()
def kv() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture()
def store(kv: InMemoryKeyValueStore) -> DurableStore:
    return DurableStore(kv, key_prefix="test")


@pytest.fixture()
def repo(store: DurableStore, clock: FrozenClock) -> TaskRepository:
    return TaskRepository(store, clock=clock)


@pytest.fixture()
def engine(store: DurableStore, repo: TaskRepository, clock: FrozenClock) -> NotificationEngine:
    return NotificationEngine(store, repo, clock=clock)


@pytest.fixture()
def analytics(repo: TaskRepository, clock: FrozenClock) -> AnalyticsAggregator:
    return AnalyticsAggregator(repo, clock=clock)


@pytest.fixture()
def user(store: DurableStore) -> User:
    """Current user written straight into storage (no identity provider)."""
    u = User(id="u1", email="ana@example.com", full_name="Ana Lima", created_at=T0)
    store.save_user(u)
    return u


@pytest.fixture()
def ctx(settings: SimpleNamespace, kv: InMemoryKeyValueStore, clock: FrozenClock) -> AppContext:
    """
    AppContext wired with an in-memory backend and a frozen clock.

    NOTE: repositories and engines are the real ones; only the storage backend
    and the clock are swapped.
    """
    return create_app_context(settings=settings, kv=kv, clock=clock)


@pytest.fixture()
def controller(ctx: AppContext, user: User) -> TaskController:
    ctx.controller.initialize()
    return ctx.controller


def make_draft(title: str = "Buy milk", *, due_in: timedelta = timedelta(days=3), **kw) -> TaskDraft:
    kw.setdefault("owner_id", "u1")
    return TaskDraft(title=title, due_date=T0 + due_in, **kw)
