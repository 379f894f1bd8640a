#!/usr/bin/env python3
"""Command-line entry point: ``lintcheck <path>``.

Exit codes:
    0: no violation at or above the failing severity
    1: at least one failing violation
    2: fatal error (missing root path, invalid configuration); no report
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import TypedDict

import yaml

from lintcheck import _console
from lintcheck.config import LintConfig, find_config, load_config
from lintcheck.engine import RULE_NAMES, lint_path
from lintcheck.report import render_json, render_text, render_warnings
from lintcheck.rules import Severity

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_VIOLATIONS = 1
EXIT_FATAL = 2


class ParsedArgs(TypedDict):
    """Parsed command-line arguments."""

    path: str
    severity_fail: str
    output_format: str
    config: str | None
    jobs: int
    timeout: float | None
    suffixes: list[str]
    disabled: list[str]
    verbose: bool


def _extract_args(args: argparse.Namespace) -> ParsedArgs:
    """Extract and validate arguments from Namespace.

    Args:
        args: Parsed argparse.Namespace.

    Returns:
        TypedDict with validated arguments.

    Raises:
        TypeError: If argument types are incorrect.
    """
    path = args.path
    if not isinstance(path, str):
        msg = f"Expected str for path, got {type(path).__name__}"
        raise TypeError(msg)

    config = args.config
    if config is not None and not isinstance(config, str):
        msg = f"Expected str or None for config, got {type(config).__name__}"
        raise TypeError(msg)
    config_typed: str | None = config

    jobs = args.jobs
    if not isinstance(jobs, int):
        msg = f"Expected int for jobs, got {type(jobs).__name__}"
        raise TypeError(msg)

    timeout = args.timeout
    if timeout is not None and not isinstance(timeout, float):
        msg = f"Expected float or None for timeout, got {type(timeout).__name__}"
        raise TypeError(msg)
    timeout_typed: float | None = timeout

    suffixes: list[str] = [s for s in (args.suffix or []) if isinstance(s, str)]
    disabled: list[str] = [r for r in (args.disable or []) if isinstance(r, str)]

    return {
        "path": path,
        "severity_fail": str(args.severity_fail),
        "output_format": str(args.format),
        "config": config_typed,
        "jobs": jobs,
        "timeout": timeout_typed,
        "suffixes": suffixes,
        "disabled": disabled,
        "verbose": bool(args.verbose),
    }


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        msg = f"must be at least 1, got {number}"
        raise argparse.ArgumentTypeError(msg)
    return number


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="lintcheck",
        description="Check spec files against testing style conventions",
    )
    parser.add_argument("path", help="Spec file or directory to scan")
    parser.add_argument(
        "--severity-fail",
        choices=["error", "warning"],
        default="error",
        help="Lowest severity that makes the run fail (default: error)",
    )
    parser.add_argument(
        "--format",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="YAML configuration file (default: <path>/.lintcheck.yml if present)",
    )
    parser.add_argument(
        "--jobs",
        type=_positive_int,
        default=1,
        help="Number of files checked in parallel (default: 1)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help=(
            "Seconds allowed per file when --jobs > 1; slower files are skipped. "
            "A skipped file's worker thread is not interrupted, so the process "
            "still waits for it before exiting"
        ),
    )
    parser.add_argument(
        "--suffix",
        action="append",
        default=None,
        help="File suffix to scan; repeat for several (default: _spec.rb)",
    )
    parser.add_argument(
        "--disable",
        action="append",
        default=None,
        choices=list(RULE_NAMES),
        help="Rule to disable; repeat for several",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log debug output to stderr",
    )
    return parser


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.ERROR,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _resolve_config(args: ParsedArgs, root: Path) -> LintConfig:
    """Load the configuration file, then apply command-line overrides."""
    config_path = Path(args["config"]) if args["config"] is not None else find_config(root)
    config = load_config(config_path) if config_path is not None else LintConfig()
    if args["suffixes"]:
        config = config._replace(suffixes=tuple(args["suffixes"]))
    if args["disabled"]:
        config = config._replace(disabled_rules=config.disabled_rules | frozenset(args["disabled"]))
    return config


def main(argv: list[str] | None = None) -> int:
    """Entry point for the lintcheck command."""
    args = _extract_args(build_parser().parse_args(argv))
    _configure_logging(args["verbose"])
    root = Path(args["path"])

    if not root.exists():
        _console.log_error(f"path does not exist: {root}")
        return EXIT_FATAL

    try:
        config = _resolve_config(args, root)
    except (OSError, yaml.YAMLError, TypeError, KeyError, ValueError) as exc:
        logger.debug("configuration failed to load", exc_info=True)
        _console.log_error(f"invalid configuration: {exc}")
        return EXIT_FATAL

    try:
        report = lint_path(root, config, jobs=args["jobs"], timeout=args["timeout"])
    except OSError as exc:
        logger.debug("scan failed", exc_info=True)
        _console.log_error(f"cannot scan {root}: {exc}")
        return EXIT_FATAL

    fail_on = Severity(args["severity_fail"])
    render_warnings(report)
    if args["output_format"] == "json":
        render_json(report, root)
    else:
        render_text(report, root, fail_on)
    return report.exit_code(fail_on)


if __name__ == "__main__":
    raise SystemExit(main())
