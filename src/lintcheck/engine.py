"""Rule engine: parse each source file and apply every rule to its block tree."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from pathlib import Path

from lintcheck.blocks import Block, iter_blocks
from lintcheck.config import LintConfig
from lintcheck.parser import ParseError, parse_source
from lintcheck.report import FileResult, Report
from lintcheck.rules import PARSE_ERROR_RULE, Rule, Severity, Violation
from lintcheck.rules.conventions import (
    ContextWordingRule,
    DescriptionLengthRule,
    DiscouragedSyntaxRule,
    DuplicateContextRule,
    NamingPrefixRule,
    ShouldDescriptionRule,
    SingleExpectationRule,
)
from lintcheck.scanner import ScanWarning, SourceFile, SourceScanner

logger = logging.getLogger(__name__)


def build_rules(config: LintConfig) -> list[Rule]:
    """Build the default rule set, minus the rules the config disables."""
    rules: list[Rule] = [
        NamingPrefixRule(config),
        SingleExpectationRule(config),
        DuplicateContextRule(config),
        DiscouragedSyntaxRule(config),
        ShouldDescriptionRule(),
        DescriptionLengthRule(config),
        ContextWordingRule(config),
    ]
    return [rule for rule in rules if rule.name not in config.disabled_rules]


RULE_NAMES: tuple[str, ...] = tuple(rule.name for rule in build_rules(LintConfig()))


class RuleEngine:
    """Apply a fixed set of rules to parsed spec files.

    The engine holds no per-file state, so one instance can check files from
    several worker threads at once.
    """

    def __init__(self, config: LintConfig, rules: Sequence[Rule] | None = None) -> None:
        self._config = config
        if rules is None:
            rules = build_rules(config)
        self._rules: tuple[Rule, ...] = tuple(rules)

    @property
    def config(self) -> LintConfig:
        return self._config

    @property
    def rules(self) -> tuple[Rule, ...]:
        return self._rules

    def check_tree(self, root: Block) -> list[Violation]:
        """Run every rule against every block of a parsed tree."""
        out: list[Violation] = []
        for block, ancestors in iter_blocks(root):
            for rule in self._rules:
                out.extend(rule.check(block, ancestors))
        return out

    def check_source(self, source: SourceFile) -> FileResult:
        """Parse one file and check it.

        A file that fails to parse yields a single parse-error violation and
        no rule results.
        """
        try:
            root = parse_source(source.text, source.path)
        except ParseError as exc:
            logger.debug("parse error in %s: %s", source.path, exc)
            violation = Violation(
                file=source.path,
                line_no=exc.line_no,
                rule=PARSE_ERROR_RULE,
                severity=Severity.ERROR,
                message=exc.message,
            )
            return FileResult(path=source.path, violations=[violation])

        violations = self.check_tree(root)
        logger.debug("checked %s: %d violations", source.path, len(violations))
        return FileResult(path=source.path, violations=violations)

    def run(
        self,
        sources: Iterable[SourceFile],
        jobs: int = 1,
        timeout: float | None = None,
    ) -> tuple[list[FileResult], list[ScanWarning]]:
        """Check many files, optionally on a thread pool.

        Args:
            sources: Files to check.
            jobs: Number of worker threads; 1 checks files in the caller.
            timeout: Seconds to wait for each file's result when running on
                a pool. A file that takes longer is discarded whole; its
                worker thread runs to completion, and interpreter exit still
                joins it.

        Returns:
            Tuple of (results in input order, timeout warnings).
        """
        if jobs <= 1:
            return [self.check_source(source) for source in sources], []

        results: list[FileResult] = []
        warnings: list[ScanWarning] = []
        executor = ThreadPoolExecutor(max_workers=jobs)
        try:
            pending: list[tuple[SourceFile, Future[FileResult]]] = [
                (source, executor.submit(self.check_source, source)) for source in sources
            ]
            for source, future in pending:
                try:
                    results.append(future.result(timeout=timeout))
                except FutureTimeoutError:
                    future.cancel()
                    logger.warning("discarding %s: timed out after %ss", source.path, timeout)
                    warnings.append(
                        ScanWarning(path=source.path, reason=f"timed out after {timeout}s")
                    )
        finally:
            executor.shutdown(wait=False, cancel_futures=True)
        return results, warnings


def lint_path(
    root: str | Path,
    config: LintConfig | None = None,
    jobs: int = 1,
    timeout: float | None = None,
) -> Report:
    """Scan a path, check every matching file and build the report.

    Raises:
        FileNotFoundError: If ``root`` does not exist.
    """
    cfg = config if config is not None else LintConfig()
    scanner = SourceScanner(root, cfg.suffixes)
    engine = RuleEngine(cfg)
    results, timeouts = engine.run(scanner, jobs=jobs, timeout=timeout)
    return Report(results=results, warnings=[*scanner.warnings, *timeouts])


__all__ = ["RULE_NAMES", "RuleEngine", "build_rules", "lint_path"]
