"""Rule protocol and violation types shared by the rule engine and reporter."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import NamedTuple, Protocol

from lintcheck.blocks import Block

PARSE_ERROR_RULE = "parse-error"


class Severity(Enum):
    """Violation severity, ordered info < warning < error."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"

    @property
    def rank(self) -> int:
        return _RANKS[self]

    def at_least(self, other: Severity) -> bool:
        return self.rank >= other.rank


_RANKS: dict[Severity, int] = {Severity.INFO: 0, Severity.WARNING: 1, Severity.ERROR: 2}


class Violation(NamedTuple):
    """A single rule violation."""

    file: Path
    line_no: int
    rule: str
    severity: Severity
    message: str


class RuleReport(NamedTuple):
    """Summary of violations for a rule."""

    name: str
    violations: int


class Rule(Protocol):
    """Protocol for convention rules.

    A rule inspects one block together with its ancestors (root first) and
    returns the violations it finds. Rules keep no state between calls and
    never modify the tree.
    """

    @property
    def name(self) -> str: ...

    @property
    def severity(self) -> Severity: ...

    def check(self, block: Block, ancestors: tuple[Block, ...]) -> list[Violation]: ...


__all__ = ["PARSE_ERROR_RULE", "Rule", "RuleReport", "Severity", "Violation"]
