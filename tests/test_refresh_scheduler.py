# tests/test_refresh_scheduler.py

from __future__ import annotations

import asyncio
import threading
import time

import pytest

from tasknest.tasks.refresh_scheduler import run_refresh_loop, start_refresh_in_background

from .fakes import FakeRefreshable


@pytest.mark.asyncio
async def test_refresh_loop_runs_until_cancelled() -> None:
    controller = FakeRefreshable()

    runner = asyncio.create_task(run_refresh_loop(controller, interval_seconds=0.01))

    await asyncio.sleep(0.05)
    runner.cancel()
    with pytest.raises(asyncio.CancelledError):
        await runner

    assert controller.calls >= 1


@pytest.mark.asyncio
async def test_refresh_loop_survives_failures() -> None:
    controller = FakeRefreshable(fail_first=1)
    stop = asyncio.Event()

    runner = asyncio.create_task(
        run_refresh_loop(controller, interval_seconds=0.01, stop_event=stop)
    )
    await asyncio.sleep(0.1)
    stop.set()
    await asyncio.wait_for(runner, timeout=1.0)

    assert controller.calls >= 2


@pytest.mark.asyncio
async def test_refresh_loop_exits_when_stop_is_already_set() -> None:
    controller = FakeRefreshable()
    stop = asyncio.Event()
    stop.set()

    await run_refresh_loop(controller, interval_seconds=0.01, stop_event=stop)

    assert controller.calls == 0


def test_background_runner_stops_cleanly() -> None:
    controller = FakeRefreshable()
    lock = threading.Lock()

    runner = start_refresh_in_background(controller, interval_seconds=0.01, lock=lock)
    assert runner is not None

    deadline = time.monotonic() + 2.0
    while controller.calls == 0 and time.monotonic() < deadline:
        time.sleep(0.01)
    runner.stop()
    runner.join(timeout=2.0)

    assert not runner.thread.is_alive()
    assert controller.calls >= 1
    assert not lock.locked()
