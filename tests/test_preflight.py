"""Preflight check tests."""

import pytest

from grapheditor import preflight


def test_skip_via_env(monkeypatch):
    monkeypatch.setenv("GRAPHEDITOR_SKIP_PREFLIGHT", "1")
    monkeypatch.delenv("DISPLAY", raising=False)
    monkeypatch.delenv("WAYLAND_DISPLAY", raising=False)
    assert preflight.run_preflight().ok


def test_missing_display(monkeypatch):
    monkeypatch.delenv("GRAPHEDITOR_SKIP_PREFLIGHT", raising=False)
    monkeypatch.delenv("DISPLAY", raising=False)
    monkeypatch.delenv("WAYLAND_DISPLAY", raising=False)
    result = preflight.run_preflight(check_deps=False)
    assert not result.ok
    assert "grapheditor-tool" in result.message


def test_display_present(monkeypatch):
    monkeypatch.delenv("GRAPHEDITOR_SKIP_PREFLIGHT", raising=False)
    monkeypatch.setenv("WAYLAND_DISPLAY", "wayland-0")
    assert preflight.run_preflight(check_deps=False).ok


def test_dependency_error_is_reported(monkeypatch):
    monkeypatch.delenv("GRAPHEDITOR_SKIP_PREFLIGHT", raising=False)
    monkeypatch.setattr(preflight, "_check_python_deps", lambda: "Missing GTK")
    result = preflight.run_preflight(require_display=False)
    assert result == preflight.PreflightResult(False, "Missing GTK")


def test_or_die_exits(monkeypatch, capsys):
    monkeypatch.delenv("GRAPHEDITOR_SKIP_PREFLIGHT", raising=False)
    monkeypatch.delenv("DISPLAY", raising=False)
    monkeypatch.delenv("WAYLAND_DISPLAY", raising=False)
    with pytest.raises(SystemExit):
        preflight.run_preflight_or_die(check_deps=False)
    assert "preflight check failed" in capsys.readouterr().err
