"""Rule-based linter for behaviour-style (RSpec) test suites."""

from lintcheck.blocks import Block, BlockKind, Statement
from lintcheck.config import LintConfig, load_config
from lintcheck.engine import RuleEngine, lint_path
from lintcheck.parser import ParseError, parse_source
from lintcheck.report import Report
from lintcheck.rules import Severity, Violation

__all__ = [
    "Block",
    "BlockKind",
    "LintConfig",
    "ParseError",
    "Report",
    "RuleEngine",
    "Severity",
    "Statement",
    "Violation",
    "lint_path",
    "load_config",
    "parse_source",
]
