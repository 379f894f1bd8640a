"""Tests for lintcheck._console module."""

from __future__ import annotations

import pytest
from _pytest.capture import CaptureFixture

from lintcheck import _console


def test_no_color_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test NO_COLOR disables colour on new consoles."""
    monkeypatch.setenv("NO_COLOR", "1")
    assert _console._get_console().no_color is True


def test_color_enabled_without_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test an empty NO_COLOR leaves colour on."""
    monkeypatch.setenv("NO_COLOR", "")
    assert _console._get_console().no_color is False


def test_log_error_goes_to_stderr(capsys: CaptureFixture[str]) -> None:
    """Test errors are printed to stderr with a prefix."""
    _console.log_error("path does not exist: spec")
    captured = capsys.readouterr()
    assert captured.out == ""
    assert captured.err.strip() == "error: path does not exist: spec"


def test_log_raw_keeps_markup_characters(capsys: CaptureFixture[str]) -> None:
    """Test raw output is printed verbatim."""
    _console.log_raw('[{"rule": "[bold]"}]')
    assert capsys.readouterr().out.strip() == '[{"rule": "[bold]"}]'
