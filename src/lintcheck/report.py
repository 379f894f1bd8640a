"""Report aggregation and rendering (text and JSON)."""

from __future__ import annotations

import json
from collections import Counter
from collections.abc import Sequence
from pathlib import Path
from typing import NamedTuple, TypedDict

from lintcheck import _console
from lintcheck.rules import RuleReport, Severity, Violation
from lintcheck.scanner import ScanWarning


class FileResult(NamedTuple):
    """Violations found in one file."""

    path: Path
    violations: list[Violation]


class ViolationJson(TypedDict):
    """Schema of one violation in JSON output."""

    file: str
    line: int
    rule: str
    severity: str
    message: str


def _sort_key(v: Violation) -> tuple[str, int, str]:
    return (v.file.as_posix(), v.line_no, v.rule)


class Report:
    """Violations of one lint run, grouped by file, plus scan warnings."""

    def __init__(
        self,
        results: Sequence[FileResult],
        warnings: Sequence[ScanWarning] = (),
    ) -> None:
        self.results = list(results)
        self.warnings = list(warnings)

    @property
    def files_scanned(self) -> int:
        return len(self.results)

    @property
    def violations(self) -> list[Violation]:
        """All violations sorted by (file path, line number, rule)."""
        out = [v for result in self.results for v in result.violations]
        return sorted(out, key=_sort_key)

    def grouped(self) -> list[tuple[Path, list[Violation]]]:
        """Violations grouped per file, files in path order."""
        groups: dict[Path, list[Violation]] = {}
        for v in self.violations:
            groups.setdefault(v.file, []).append(v)
        return list(groups.items())

    def counts(self) -> dict[Severity, int]:
        """Number of violations per severity (every severity present)."""
        counter = Counter(v.severity for result in self.results for v in result.violations)
        return {severity: counter.get(severity, 0) for severity in Severity}

    def rule_reports(self) -> list[RuleReport]:
        """Number of violations per rule, sorted by rule name."""
        counter = Counter(v.rule for result in self.results for v in result.violations)
        return [RuleReport(name=name, violations=count) for name, count in sorted(counter.items())]

    def has_failures(self, fail_on: Severity = Severity.ERROR) -> bool:
        return any(
            v.severity.at_least(fail_on) for result in self.results for v in result.violations
        )

    def exit_code(self, fail_on: Severity = Severity.ERROR) -> int:
        """Return 1 if any violation is at or above ``fail_on``, else 0."""
        return 1 if self.has_failures(fail_on) else 0


def _plural(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


def summary_line(report: Report) -> str:
    """Build the one-line summary: counts by severity and files scanned."""
    counts = report.counts()
    files_with = len(report.grouped())
    line = (
        f"{_plural(counts[Severity.ERROR], 'error')}, "
        f"{_plural(counts[Severity.WARNING], 'warning')}, "
        f"{counts[Severity.INFO]} info "
        f"in {_plural(files_with, 'file')} ({report.files_scanned} scanned)"
    )
    if report.warnings:
        line += f", {len(report.warnings)} skipped"
    return line


def _display_path(path: Path, root: Path | None) -> str:
    if root is not None and root.is_dir() and path.is_relative_to(root):
        return path.relative_to(root).as_posix()
    return path.as_posix()


def to_json(report: Report, root: Path | None = None) -> list[ViolationJson]:
    """Convert violations to JSON-ready objects in a stable field order."""
    return [
        {
            "file": _display_path(v.file, root),
            "line": v.line_no,
            "rule": v.rule,
            "severity": v.severity.value,
            "message": v.message,
        }
        for v in report.violations
    ]


def render_json(report: Report, root: Path | None = None) -> None:
    """Print violations as a JSON array."""
    _console.log_raw(json.dumps(to_json(report, root), indent=2))


def render_warnings(report: Report) -> None:
    """Print scan warnings to stderr."""
    for warning in report.warnings:
        _console.log_warning(f"skipped {warning.path}: {warning.reason}")


def render_text(
    report: Report,
    root: Path | None = None,
    fail_on: Severity = Severity.ERROR,
) -> None:
    """Print violations grouped per file followed by the summary."""
    for path, violations in report.grouped():
        _console.log_file(_display_path(path, root))
        for v in violations:
            _console.log_violation(v.line_no, v.severity.value, v.rule, v.message)
    _console.log_summary(summary_line(report), failed=report.has_failures(fail_on))


__all__ = [
    "FileResult",
    "Report",
    "ViolationJson",
    "render_json",
    "render_text",
    "render_warnings",
    "summary_line",
    "to_json",
]
