# tests/test_logging_setup.py

from __future__ import annotations

import logging

import pytest

from tasknest.logging_setup import _ConsoleNoiseFilter, level_from_name, setup_logging


@pytest.fixture()
def root_logging():
    """Restore the root logger after a test installs its own handlers."""
    root = logging.getLogger()
    saved_handlers = list(root.handlers)
    saved_level = root.level
    yield root
    for h in list(root.handlers):
        if h not in saved_handlers:
            root.removeHandler(h)
            h.close()
    for h in saved_handlers:
        if h not in root.handlers:
            root.addHandler(h)
    root.setLevel(saved_level)
    logging.captureWarnings(False)


def _record(name: str, level: int) -> logging.LogRecord:
    return logging.LogRecord(name, level, __file__, 1, "msg", None, None)


@pytest.mark.parametrize(
    ("name", "level", "shown"),
    [
        ("tasknest.core.controller", logging.DEBUG, True),
        ("tasknest.tasks.refresh_scheduler", logging.INFO, False),
        ("tasknest.tasks.refresh_scheduler", logging.WARNING, True),
        ("tasknest.tasks.task_store", logging.DEBUG, True),
        ("py.warnings", logging.WARNING, False),
        ("urllib3", logging.WARNING, False),
        ("urllib3", logging.ERROR, True),
    ],
)
def test_console_filter(name: str, level: int, shown: bool) -> None:
    assert _ConsoleNoiseFilter().filter(_record(name, level)) is shown


def test_level_from_name() -> None:
    assert level_from_name("warning") == logging.WARNING
    assert level_from_name(" Debug ") == logging.DEBUG
    assert level_from_name("nonsense", logging.ERROR) == logging.ERROR
    assert level_from_name(None) == logging.INFO


def test_setup_logging_writes_to_configured_file(settings, root_logging) -> None:
    settings.log_level = "WARNING"

    log_file = setup_logging(settings)
    logging.getLogger("tasknest.test").debug("hello file")
    for h in root_logging.handlers:
        h.flush()

    assert log_file == settings.log_dir / "tasknest-test.log"
    assert "hello file" in log_file.read_text("utf-8")
    console = [h for h in root_logging.handlers if type(h) is logging.StreamHandler]
    assert [h.level for h in console] == [logging.WARNING]
