# src/tasknest/connectors/console_connector.py

from __future__ import annotations

import logging
from datetime import datetime

from ..cli.bootstrap import AppContext
from ..cli.commands import registry as command_registry
from ..core.state import AppState

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}")


class UnreadNotifier:
    """State listener that prints a line when the unread notification count grows."""

    def __init__(self) -> None:
        self._last_unread: int | None = None

    def __call__(self, state: AppState) -> None:
        unread = state.unread_notifications
        if self._last_unread is not None and unread > self._last_unread:
            _print_ts(f"[NOTIFY] {unread - self._last_unread} new notification(s). Use /notes.")
        self._last_unread = unread


def run_console_loop(ctx: AppContext) -> None:
    logger.info("Console connector started.")
    _print_ts("[CONSOLE] Type /help for commands. Use /exit to quit.\n")

    lock = ctx.lock
    unsubscribe = ctx.controller.subscribe(UnreadNotifier())

    def emit(text: str) -> None:
        print(f"[{_ts_local()}] {text}", flush=True)

    try:
        while True:
            try:
                line = input(">>> ").strip()
            except EOFError:
                logger.info("Console EOF received, exiting.")
                break
            except KeyboardInterrupt:
                logger.info("Console KeyboardInterrupt, exiting.")
                print()
                break

            if not line:
                continue

            if line.lower() in ("/exit", "/quit"):
                logger.info("Console exit command received.")
                break

            # Plain text is a quick add.
            command = line if line.startswith("/") else f"/add {line}"

            try:
                with lock:
                    reply = command_registry.handle(ctx, command, emit=emit)
            except Exception:
                logger.exception("Command failed: %s", command)
                _print_ts("[ERROR] Command failed; see the log for details.")
                continue

            if reply:
                print(reply)
    finally:
        unsubscribe()
