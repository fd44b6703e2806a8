# tests/fakes.py

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta

from tasknest.core.state import AppState


class FrozenClock:
    """
    Deterministic clock for unit tests.

    - Returns the same instant until advanced
    - advance(...) takes timedelta keyword arguments
    """

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class FailingKeyValueStore:
    """KeyValueStore whose every operation fails (quota exceeded, disk gone, ...)."""

    def get(self, key: str) -> str | None:
        raise OSError("storage unavailable")

    def set(self, key: str, value: str) -> None:
        raise OSError("quota exceeded")

    def remove(self, key: str) -> None:
        raise OSError("storage unavailable")

    def clear(self) -> None:
        raise OSError("storage unavailable")


@dataclass(slots=True)
class Published:
    loading: bool
    task_count: int
    search_query: str


@dataclass(slots=True)
class RecordingListener:
    """State listener that records what every publish looked like."""

    seen: list[Published] = field(default_factory=list)

    def __call__(self, state: AppState) -> None:
        self.seen.append(
            Published(
                loading=state.loading,
                task_count=len(state.tasks),
                search_query=state.search_query,
            )
        )


class FakeRefreshable:
    """Counts refresh calls; optionally fails the first N of them."""

    def __init__(self, fail_first: int = 0) -> None:
        self.calls = 0
        self._fail_first = fail_first

    def refresh_data(self) -> None:
        self.calls += 1
        if self.calls <= self._fail_first:
            raise RuntimeError("refresh failed")
