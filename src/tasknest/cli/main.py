# src/tasknest/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds the AppContext, bootstraps the controller, then:
- starts the periodic refresh in a background thread,
- runs the console REPL in the main thread.
"""

from __future__ import annotations

import logging

from ..cli.bootstrap import AppContext, create_app_context
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..logging_setup import setup_logging
from ..tasks.refresh_scheduler import start_refresh_in_background

logger = logging.getLogger(__name__)


def _shutdown(ctx: AppContext) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    try:
        ctx.store.close()
    except Exception:
        logger.debug("Store close failed.", exc_info=True)


def main() -> None:
    settings = get_settings()

    log_file = setup_logging(settings)

    logger.info("Starting %s... log=%s", settings.app_name, log_file)

    ctx = create_app_context(settings=settings)
    with ctx.lock:
        ctx.controller.initialize()

    runner = start_refresh_in_background(
        ctx.controller,
        interval_seconds=settings.refresh_interval_seconds,
        lock=ctx.lock,
    )

    try:
        run_console_loop(ctx)
    finally:
        if runner is not None:
            runner.stop()
            runner.join(timeout=10.0)

        _shutdown(ctx)
        logger.info("Bye.")


if __name__ == "__main__":
    main()
