# tests/test_console_connector.py

from __future__ import annotations

import pytest

from tasknest.cli.bootstrap import AppContext
from tasknest.connectors.console_connector import run_console_loop


def _feed(monkeypatch: pytest.MonkeyPatch, lines: list[str]) -> None:
    it = iter(lines)
    monkeypatch.setattr("builtins.input", lambda _prompt="": next(it))


def test_out_of_range_due_date_is_reported_and_loop_continues(
    ctx: AppContext, controller, monkeypatch: pytest.MonkeyPatch, capsys
) -> None:
    _feed(
        monkeypatch,
        [
            "pay rent --due 100000000",
            "/add pay rent --due 1e8",
            "pay rent --due 2",
            "/exit",
        ],
    )

    run_console_loop(ctx)

    out = capsys.readouterr().out
    assert out.count("Error: due date out of range") == 2
    assert "Command failed" not in out
    assert [t.title for t in controller.state.tasks] == ["pay rent"]


def test_plain_text_is_a_quick_add(
    ctx: AppContext, controller, monkeypatch: pytest.MonkeyPatch, capsys
) -> None:
    _feed(monkeypatch, ["Buy milk --tags home", "/tasks", "/quit"])

    run_console_loop(ctx)

    out = capsys.readouterr().out
    assert "Created:" in out
    assert "#home" in out
    assert len(controller.state.tasks) == 1
