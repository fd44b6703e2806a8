# src/tasknest/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path

APP_LOGGER = "tasknest"

# Background loggers that only reach the console at WARNING+.
QUIET_LOGGERS = ("tasknest.tasks.refresh_scheduler",)

LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def level_from_name(name: str | None, default: int = logging.INFO) -> int:
    """'debug' -> logging.DEBUG; unknown or empty names fall back to default."""
    level = logging.getLevelName(str(name or "").strip().upper())
    return level if isinstance(level, int) else default


class _ConsoleNoiseFilter(logging.Filter):
    """
    Keep the interactive console readable while the REPL waits on input().

    tasknest records pass, except the quiet background loggers below WARNING.
    Everything else (third-party, py.warnings) needs ERROR+.
    """

    def __init__(self, app_logger: str = APP_LOGGER, quiet: tuple[str, ...] = QUIET_LOGGERS) -> None:
        super().__init__()
        self._app_prefix = app_logger + "."
        self._quiet = quiet

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name
        if not name.startswith(self._app_prefix):
            return record.levelno >= logging.ERROR
        if any(name == q or name.startswith(q + ".") for q in self._quiet):
            return record.levelno >= logging.WARNING
        return True


def setup_logging(settings) -> Path:
    """
    Install the console + file handlers described by settings and return the log file path.

    Reads settings.log_dir, log_file, log_level (console) and file_log_level.
    Call this once, before the first log record; existing root handlers are replaced.
    """
    log_dir = Path(settings.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / settings.log_file

    console_level = level_from_name(settings.log_level, logging.INFO)
    file_level = level_from_name(settings.file_log_level, logging.DEBUG)

    root = logging.getLogger()
    root.setLevel(min(console_level, file_level))
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(fmt)
    console.addFilter(_ConsoleNoiseFilter())
    root.addHandler(console)

    file_handler = logging.FileHandler(str(log_file), encoding="utf-8")
    file_handler.setLevel(file_level)
    file_handler.setFormatter(fmt)
    root.addHandler(file_handler)

    # warnings.warn(...) arrives as 'py.warnings'.
    logging.captureWarnings(True)
    return log_file
