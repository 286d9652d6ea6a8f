from __future__ import annotations

import importlib
from types import SimpleNamespace

import pytest


def _capture(monkeypatch: pytest.MonkeyPatch) -> tuple[object, list[dict]]:
    calls: list[dict] = []

    def fake_main(*, args: list[str], prog_name: str) -> None:  # click.Command.main signature
        calls.append({"args": args, "prog": prog_name})

    fake_get_command = lambda app: SimpleNamespace(main=fake_main)  # noqa: E731

    mod = importlib.import_module("clawcheck.cli.main")
    monkeypatch.setattr(mod, "get_command", fake_get_command)
    return mod, calls


def test_main_passes_arguments_through(monkeypatch: pytest.MonkeyPatch) -> None:
    mod, calls = _capture(monkeypatch)

    mod.main(["validate", "--full"])

    assert calls == [{"args": ["validate", "--full"], "prog": "clawcheck"}]


def test_main_uses_process_arguments_by_default(monkeypatch: pytest.MonkeyPatch) -> None:
    mod, calls = _capture(monkeypatch)
    monkeypatch.setattr("sys.argv", ["clawcheck", "diagnose", "--json"])

    mod.main()

    assert calls and calls[0]["args"] == ["diagnose", "--json"]


def test_main_empty_argv_is_not_replaced(monkeypatch: pytest.MonkeyPatch) -> None:
    mod, calls = _capture(monkeypatch)
    monkeypatch.setattr("sys.argv", ["clawcheck", "diagnose"])

    mod.main([])

    assert calls and calls[0]["args"] == []
