# src/tasknest/tasks/refresh_scheduler.py

from __future__ import annotations

"""
Periodic refresh.

A small polling loop that re-runs the controller's full refresh path
(reload tasks / shared tasks / notifications + due-task check) every interval.
It is the only background activity; stop it by cancelling the coroutine, or via
RefreshRunner.stop() when it runs on its own thread.
"""

import asyncio
import contextlib
import logging
import threading
from dataclasses import dataclass
from typing import Protocol

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 300.0


class Refreshable(Protocol):
    def refresh_data(self) -> None: ...


async def run_refresh_loop(
    controller: Refreshable,
    *,
    interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
    stop_event: asyncio.Event | None = None,
) -> None:
    """
    Every interval_seconds: controller.refresh_data().

    Failures are logged and the loop keeps going; nothing is retried early.
    Returns when stop_event is set; otherwise runs until cancelled.
    """
    sleep_s = max(0.01, float(interval_seconds))

    while stop_event is None or not stop_event.is_set():
        try:
            controller.refresh_data()
            logger.debug("Periodic refresh done")
        except Exception:
            logger.exception("Periodic refresh failed")

        if stop_event is None:
            await asyncio.sleep(sleep_s)
            continue
        with contextlib.suppress(asyncio.TimeoutError):
            await asyncio.wait_for(stop_event.wait(), timeout=sleep_s)


@dataclass(slots=True)
class RefreshRunner:
    thread: threading.Thread
    loop: asyncio.AbstractEventLoop
    stop_event: asyncio.Event

    def stop(self) -> None:
        try:
            self.loop.call_soon_threadsafe(self.stop_event.set)
        except Exception:
            logger.debug("Failed to signal refresh stop.", exc_info=True)

    def join(self, timeout: float | None = None) -> None:
        self.thread.join(timeout=timeout)


def start_refresh_in_background(
    controller: Refreshable,
    *,
    interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
    lock: threading.Lock | None = None,
) -> RefreshRunner | None:
    """
    Run the refresh loop on its own event loop thread (the console REPL blocks on input()).

    If lock is given, each refresh holds it so it never interleaves with a console command.
    """
    target: Refreshable = controller if lock is None else _LockedRefresh(controller, lock)

    ready = threading.Event()
    holder: dict[str, object] = {}

    def runner() -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        stop_event = asyncio.Event()

        holder["loop"] = loop
        holder["stop_event"] = stop_event
        ready.set()

        try:
            loop.run_until_complete(
                run_refresh_loop(target, interval_seconds=interval_seconds, stop_event=stop_event)
            )
        finally:
            with contextlib.suppress(Exception):
                loop.close()

    t = threading.Thread(target=runner, name="tasknest-refresh", daemon=True)
    t.start()

    ready.wait(timeout=5.0)
    loop = holder.get("loop")
    stop_event = holder.get("stop_event")

    if not isinstance(loop, asyncio.AbstractEventLoop) or not isinstance(stop_event, asyncio.Event):
        logger.error("Refresh thread did not initialize properly.")
        return None

    logger.info("Refresh thread started interval=%ss", interval_seconds)
    return RefreshRunner(thread=t, loop=loop, stop_event=stop_event)


class _LockedRefresh:
    def __init__(self, inner: Refreshable, lock: threading.Lock) -> None:
        self._inner = inner
        self._lock = lock

    def refresh_data(self) -> None:
        with self._lock:
            self._inner.refresh_data()
