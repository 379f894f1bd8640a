"""Convention rules for behaviour-style spec files.

Each rule checks one convention from the testing style guide:

- naming-prefix: method descriptions start with `.` (class) or `#` (instance)
- single-expectation: an example makes at most one assertion
- duplicate-context: sibling contexts have distinct labels
- discouraged-syntax: low-readability matchers have a readable equivalent
- should-description: example descriptions do not start with "should"
- description-length: example descriptions stay short
- context-wording: context labels start with "when", "with" or "without"

The heuristics behind these rules are approximate and come from LintConfig,
never from module state.
"""

from __future__ import annotations

import re
from typing import ClassVar

from lintcheck.blocks import Block, BlockKind
from lintcheck.config import DeniedPattern, LintConfig
from lintcheck.parser import code_only
from lintcheck.rules import Severity, Violation


def _violation(
    block: Block, line_no: int, rule: str, severity: Severity, message: str
) -> Violation:
    return Violation(
        file=block.file,
        line_no=line_no,
        rule=rule,
        severity=severity,
        message=message,
    )


def _is_top_level_suite(block: Block, ancestors: tuple[Block, ...]) -> bool:
    """Check if block is an outermost ``describe`` (a direct child of the file)."""
    return block.kind is BlockKind.SUITE and len(ancestors) == 1


class NamingPrefixRule:
    """Method descriptions directly under the top-level suite need a prefix."""

    name = "naming-prefix"
    severity = Severity.WARNING
    _PREFIXES: ClassVar[tuple[str, ...]] = (".", "#")

    def __init__(self, config: LintConfig) -> None:
        self._method_label = re.compile(config.method_label_pattern)

    def check(self, block: Block, ancestors: tuple[Block, ...]) -> list[Violation]:
        if block.kind is BlockKind.CONTEXT or len(ancestors) < 2:
            return []
        if not _is_top_level_suite(ancestors[-1], ancestors[:-1]):
            return []
        label = block.label.strip()
        if not label or label.startswith(self._PREFIXES):
            return []
        if self._method_label.match(label) is None:
            return []
        return [
            _violation(
                block,
                block.start_line,
                self.name,
                self.severity,
                f"'{label}' looks like a method name; describe it as '.{label}' "
                f"(class method) or '#{label}' (instance method)",
            )
        ]


class SingleExpectationRule:
    """An example makes at most one assertion."""

    name = "single-expectation"
    severity = Severity.ERROR

    def __init__(self, config: LintConfig) -> None:
        self._marker: re.Pattern[str] | None = None
        if config.assertion_markers:
            self._marker = re.compile("|".join(f"(?:{m})" for m in config.assertion_markers))

    def count_assertions(self, block: Block) -> int:
        """Count assertion-marker occurrences in an example's statements.

        String literals are blanked first so that descriptions or messages
        mentioning ``expect`` are not counted. Empty matches never count, and
        a configuration without markers counts nothing.
        """
        if self._marker is None or not block.statements:
            return 0
        marker = self._marker
        return sum(
            1
            for stmt in block.statements
            for match in marker.finditer(code_only(stmt.text))
            if match.group(0)
        )

    def check(self, block: Block, ancestors: tuple[Block, ...]) -> list[Violation]:
        if not block.is_example:
            return []
        count = self.count_assertions(block)
        if count <= 1:
            return []
        return [
            _violation(
                block,
                block.start_line,
                self.name,
                self.severity,
                f"example makes {count} assertions; keep one expectation per example",
            )
        ]


class DuplicateContextRule:
    """Sibling contexts must have distinct labels.

    Labels are compared after trimming and collapsing whitespace. Comparison
    is case-sensitive unless the configuration turns it off.
    """

    name = "duplicate-context"
    severity = Severity.ERROR

    def __init__(self, config: LintConfig) -> None:
        self._case_sensitive = config.case_sensitive_contexts

    def _key(self, label: str) -> str:
        key = " ".join(label.split())
        return key if self._case_sensitive else key.casefold()

    def check(self, block: Block, ancestors: tuple[Block, ...]) -> list[Violation]:
        seen: dict[str, int] = {}
        out: list[Violation] = []
        for child in block.children:
            if child.kind is not BlockKind.CONTEXT:
                continue
            key = self._key(child.label)
            first_line = seen.get(key)
            if first_line is None:
                seen[key] = child.start_line
                continue
            out.append(
                _violation(
                    child,
                    child.start_line,
                    self.name,
                    self.severity,
                    f"context '{child.label}' duplicates the sibling context at line {first_line}",
                )
            )
        return out


class DiscouragedSyntaxRule:
    """Flag low-readability statements that have a readable equivalent."""

    name = "discouraged-syntax"
    severity = Severity.INFO

    def __init__(self, config: LintConfig) -> None:
        self._patterns: list[tuple[DeniedPattern, re.Pattern[str]]] = [
            (denied, re.compile(denied.pattern)) for denied in config.denied_patterns
        ]

    def check(self, block: Block, ancestors: tuple[Block, ...]) -> list[Violation]:
        if not block.is_example:
            return []
        out: list[Violation] = []
        for stmt in block.statements:
            code = code_only(stmt.text)
            for denied, pattern in self._patterns:
                if pattern.search(code) is None:
                    continue
                out.append(
                    _violation(
                        block,
                        stmt.line_no,
                        self.name,
                        self.severity,
                        f"{denied.name}: prefer {denied.preferred}",
                    )
                )
        return out


class ShouldDescriptionRule:
    """Example descriptions use the third person, not "should"."""

    name = "should-description"
    severity = Severity.WARNING
    _SHOULD = re.compile(r"^\s*should(?:n't|\s+not)?\b", re.IGNORECASE)

    def check(self, block: Block, ancestors: tuple[Block, ...]) -> list[Violation]:
        if not block.is_example or self._SHOULD.match(block.label) is None:
            return []
        return [
            _violation(
                block,
                block.start_line,
                self.name,
                self.severity,
                "do not start descriptions with 'should'; use the third person "
                "(e.g. 'does not change timings')",
            )
        ]


class DescriptionLengthRule:
    """Example descriptions stay short; longer ones belong in contexts."""

    name = "description-length"
    severity = Severity.INFO

    def __init__(self, config: LintConfig) -> None:
        self._limit = config.max_description_length

    def check(self, block: Block, ancestors: tuple[Block, ...]) -> list[Violation]:
        if not block.is_example or len(block.label) <= self._limit:
            return []
        return [
            _violation(
                block,
                block.start_line,
                self.name,
                self.severity,
                f"description is {len(block.label)} characters (limit {self._limit}); "
                "split it with a context",
            )
        ]


class ContextWordingRule:
    """Context labels describe a condition: "when", "with", "without"."""

    name = "context-wording"
    severity = Severity.INFO

    def __init__(self, config: LintConfig) -> None:
        self._prefixes = tuple(p.lower() for p in config.context_prefixes)

    def check(self, block: Block, ancestors: tuple[Block, ...]) -> list[Violation]:
        if block.kind is not BlockKind.CONTEXT or not self._prefixes:
            return []
        words = block.label.split()
        if words and words[0].lower() in self._prefixes:
            return []
        expected = ", ".join(f"'{p}'" for p in self._prefixes)
        return [
            _violation(
                block,
                block.start_line,
                self.name,
                self.severity,
                f"context '{block.label}' should start with one of {expected}",
            )
        ]


__all__ = [
    "ContextWordingRule",
    "DescriptionLengthRule",
    "DiscouragedSyntaxRule",
    "DuplicateContextRule",
    "NamingPrefixRule",
    "ShouldDescriptionRule",
    "SingleExpectationRule",
]
