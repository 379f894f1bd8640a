"""Rich console wrapper for styled terminal output.

This module provides typed console functions for lint output.
All print statements in the codebase should use these functions instead.
Colour is disabled when the NO_COLOR environment variable is set.
"""

from __future__ import annotations

import os
from typing import Protocol

from rich.markup import escape


class _RichConsole(Protocol):
    """Protocol for rich.console.Console interface."""

    no_color: bool

    def print(
        self,
        *objects: str,
        style: str | None = None,
        highlight: bool = True,
        markup: bool | None = None,
    ) -> None:
        """Print styled output to console."""
        ...


def _get_console(stderr: bool = False) -> _RichConsole:
    """Get rich Console instance with strict typing."""
    rich_console_mod = __import__("rich.console", fromlist=["Console"])
    console_cls = rich_console_mod.Console
    console: _RichConsole = console_cls(
        stderr=stderr,
        no_color=os.environ.get("NO_COLOR", "") != "",
        highlight=False,
        soft_wrap=True,
        emoji=False,
    )
    return console


# Module-level console instances
_console: _RichConsole = _get_console()
_err_console: _RichConsole = _get_console(stderr=True)


# =============================================================================
# Style Constants
# =============================================================================

STYLE_FILE = "bold"
STYLE_LINE = "dim white"
STYLE_RULE = "magenta"
STYLE_WARNING = "yellow"
STYLE_ERROR = "bold red"
STYLE_SUCCESS = "bold green"
STYLE_INFO = "cyan"

SEVERITY_STYLES: dict[str, str] = {
    "error": STYLE_ERROR,
    "warning": STYLE_WARNING,
    "info": STYLE_INFO,
}


# =============================================================================
# Output Functions
# =============================================================================


def log_file(path: str) -> None:
    """Print the path heading a group of violations."""
    _console.print(f"\n{escape(path)}", style=STYLE_FILE)


def log_violation(line_no: int, severity: str, rule: str, message: str) -> None:
    """Print one violation line under its file heading."""
    style = SEVERITY_STYLES.get(severity, STYLE_INFO)
    _console.print(
        f"  [{STYLE_LINE}]{line_no}:[/{STYLE_LINE}] "
        f"[{style}]{severity}[/{style}] "
        f"[{STYLE_RULE}]{escape(rule)}[/{STYLE_RULE}] {escape(message)}"
    )


def log_summary(text: str, failed: bool) -> None:
    """Print the final summary line."""
    style = STYLE_ERROR if failed else STYLE_SUCCESS
    _console.print(f"\n[{style}]{escape(text)}[/{style}]")


def log_raw(text: str) -> None:
    """Print machine-readable text (JSON) without markup or styling."""
    _console.print(text, markup=False, highlight=False)


def log_warning(text: str) -> None:
    """Print a warning message to stderr."""
    _err_console.print(f"[{STYLE_WARNING}]warning:[/{STYLE_WARNING}] {escape(text)}")


def log_error(text: str) -> None:
    """Print an error message to stderr."""
    _err_console.print(f"[{STYLE_ERROR}]error:[/{STYLE_ERROR}] {escape(text)}")


__all__ = [
    "SEVERITY_STYLES",
    "log_error",
    "log_file",
    "log_raw",
    "log_summary",
    "log_violation",
    "log_warning",
]
