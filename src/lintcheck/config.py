"""Lint configuration: heuristics and deny-lists passed explicitly to the engine.

Every heuristic the rules depend on (assertion markers, the method-name
pattern, discouraged syntax) lives here rather than in module state, so each
engine instance can run against its own rule set.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import NamedTuple

import yaml

from lintcheck._types import UnknownJson

CONFIG_FILENAME = ".lintcheck.yml"


class DeniedPattern(NamedTuple):
    """A low-readability statement pattern and what to write instead."""

    name: str
    pattern: str
    preferred: str


DEFAULT_SUFFIXES: tuple[str, ...] = ("_spec.rb",)

DEFAULT_ASSERTION_MARKERS: tuple[str, ...] = (
    r"\bexpect\b\s*(?:[({]|do\b)",
    r"\bis_expected\b",
    r"\.should(?:_not)?\b",
    r"\bassert(?:_\w+)?\b",
)

# Identifier-like token optionally followed by punctuation: `admin?`,
# `save!`, `name=`, `authenticate(user)`.
DEFAULT_METHOD_LABEL_PATTERN = r"^[a-z_][A-Za-z0-9_]*[?!=]?(?:\(.*\))?$"

DEFAULT_DENIED_PATTERNS: tuple[DeniedPattern, ...] = (
    DeniedPattern(
        name="should-syntax",
        pattern=r"\.should(?:_not)?\b",
        preferred="expect(...).to / expect(...).not_to",
    ),
    DeniedPattern(
        name="double-negative",
        pattern=(
            r"\.(?:not_to|to_not)\s+"
            r"(?:be_invalid|be_falsy|be_falsey|be_false\b|be\s*\(?\s*false\b)"
        ),
        preferred="a positive matcher such as .to be_valid or .to be_truthy",
    ),
    DeniedPattern(
        name="lambda-raise",
        pattern=r"(?:\blambda\b|\bproc\b|->)\s*(?:\{|do\b).*\braise_error\b",
        preferred="expect { ... }.to raise_error",
    ),
    DeniedPattern(
        name="expect-lambda",
        pattern=r"\bexpect\s*\(\s*(?:lambda\b|proc\b|->)",
        preferred="expect { ... }",
    ),
)

DEFAULT_CONTEXT_PREFIXES: tuple[str, ...] = ("when", "with", "without")

DEFAULT_MAX_DESCRIPTION_LENGTH = 40


class LintConfig(NamedTuple):
    """Immutable configuration handed to the rule engine."""

    suffixes: tuple[str, ...] = DEFAULT_SUFFIXES
    assertion_markers: tuple[str, ...] = DEFAULT_ASSERTION_MARKERS
    method_label_pattern: str = DEFAULT_METHOD_LABEL_PATTERN
    denied_patterns: tuple[DeniedPattern, ...] = DEFAULT_DENIED_PATTERNS
    context_prefixes: tuple[str, ...] = DEFAULT_CONTEXT_PREFIXES
    max_description_length: int = DEFAULT_MAX_DESCRIPTION_LENGTH
    case_sensitive_contexts: bool = True
    disabled_rules: frozenset[str] = frozenset()


def _expect_str(value: UnknownJson, key: str) -> str:
    if not isinstance(value, str):
        msg = f"Expected str for '{key}', got {type(value).__name__}"
        raise TypeError(msg)
    return value


def _expect_str_list(value: UnknownJson, key: str) -> tuple[str, ...]:
    if not isinstance(value, list):
        msg = f"Expected list for '{key}', got {type(value).__name__}"
        raise TypeError(msg)
    return tuple(_expect_str(item, f"{key}[{i}]") for i, item in enumerate(value))


def _expect_regex(value: str, key: str) -> str:
    try:
        re.compile(value)
    except re.error as exc:
        msg = f"Invalid regular expression for '{key}': {exc}"
        raise ValueError(msg) from exc
    return value


def _expect_nonempty_regex(value: str, key: str) -> str:
    """Validate a pattern that is searched for, so it must not match ''."""
    if re.compile(_expect_regex(value, key)).fullmatch("") is not None:
        msg = f"Regular expression for '{key}' matches the empty string: {value!r}"
        raise ValueError(msg)
    return value


def _decode_denied_patterns(raw: UnknownJson) -> tuple[DeniedPattern, ...]:
    """Decode the ``denied_patterns`` list of mappings."""
    if not isinstance(raw, list):
        msg = f"Expected list for 'denied_patterns', got {type(raw).__name__}"
        raise TypeError(msg)

    patterns: list[DeniedPattern] = []
    for i, item in enumerate(raw):
        key = f"denied_patterns[{i}]"
        if not isinstance(item, dict):
            msg = f"Expected mapping for '{key}', got {type(item).__name__}"
            raise TypeError(msg)
        for field in ("name", "pattern", "preferred"):
            if field not in item:
                msg = f"Missing required key '{key}.{field}'"
                raise KeyError(msg)
        patterns.append(
            DeniedPattern(
                name=_expect_str(item["name"], f"{key}.name"),
                pattern=_expect_nonempty_regex(_expect_str(item["pattern"], f"{key}.pattern"), key),
                preferred=_expect_str(item["preferred"], f"{key}.preferred"),
            )
        )
    return tuple(patterns)


_KNOWN_KEYS = frozenset(LintConfig._fields)


def decode_config(raw: UnknownJson, base: LintConfig | None = None) -> LintConfig:
    """Decode a parsed YAML mapping into a LintConfig.

    Keys missing from ``raw`` keep the value from ``base`` (the defaults when
    no base is given).

    Args:
        raw: Parsed YAML data; ``None`` (an empty file) means no overrides.
        base: Configuration to override.

    Returns:
        The merged configuration.

    Raises:
        TypeError: If the data or a value has the wrong type.
        ValueError: If a key is unknown or a pattern is not a valid regex.
    """
    config = base if base is not None else LintConfig()
    if raw is None:
        return config
    if not isinstance(raw, dict):
        msg = f"Expected mapping at top level, got {type(raw).__name__}"
        raise TypeError(msg)

    unknown = sorted(set(raw) - _KNOWN_KEYS)
    if unknown:
        msg = f"Unknown configuration keys: {', '.join(unknown)}"
        raise ValueError(msg)

    if "suffixes" in raw:
        config = config._replace(suffixes=_expect_str_list(raw["suffixes"], "suffixes"))
    if "assertion_markers" in raw:
        markers = _expect_str_list(raw["assertion_markers"], "assertion_markers")
        for i, marker in enumerate(markers):
            _expect_nonempty_regex(marker, f"assertion_markers[{i}]")
        config = config._replace(assertion_markers=markers)
    if "method_label_pattern" in raw:
        pattern = _expect_str(raw["method_label_pattern"], "method_label_pattern")
        config = config._replace(
            method_label_pattern=_expect_regex(pattern, "method_label_pattern")
        )
    if "denied_patterns" in raw:
        config = config._replace(denied_patterns=_decode_denied_patterns(raw["denied_patterns"]))
    if "context_prefixes" in raw:
        prefixes = _expect_str_list(raw["context_prefixes"], "context_prefixes")
        config = config._replace(context_prefixes=prefixes)
    if "max_description_length" in raw:
        length = raw["max_description_length"]
        if not isinstance(length, int) or isinstance(length, bool) or length <= 0:
            msg = f"Expected positive int for 'max_description_length', got {length!r}"
            raise TypeError(msg)
        config = config._replace(max_description_length=length)
    if "case_sensitive_contexts" in raw:
        flag = raw["case_sensitive_contexts"]
        if not isinstance(flag, bool):
            msg = f"Expected bool for 'case_sensitive_contexts', got {type(flag).__name__}"
            raise TypeError(msg)
        config = config._replace(case_sensitive_contexts=flag)
    if "disabled_rules" in raw:
        disabled = _expect_str_list(raw["disabled_rules"], "disabled_rules")
        config = config._replace(disabled_rules=frozenset(disabled))
    return config


def load_config(path: str | Path, base: LintConfig | None = None) -> LintConfig:
    """Load a YAML configuration file.

    Raises:
        OSError: If the file cannot be read.
        yaml.YAMLError: If the file is not valid YAML.
        TypeError: If a value has the wrong type.
        ValueError: If a key is unknown or a pattern is invalid.
    """
    with Path(path).open(encoding="utf-8") as f:
        raw: UnknownJson = yaml.safe_load(f)
    return decode_config(raw, base)


def find_config(root: Path) -> Path | None:
    """Return ``<root>/.lintcheck.yml`` when it exists."""
    directory = root if root.is_dir() else root.parent
    candidate = directory / CONFIG_FILENAME
    return candidate if candidate.is_file() else None


__all__ = [
    "CONFIG_FILENAME",
    "DEFAULT_ASSERTION_MARKERS",
    "DEFAULT_CONTEXT_PREFIXES",
    "DEFAULT_DENIED_PATTERNS",
    "DEFAULT_MAX_DESCRIPTION_LENGTH",
    "DEFAULT_METHOD_LABEL_PATTERN",
    "DEFAULT_SUFFIXES",
    "DeniedPattern",
    "LintConfig",
    "decode_config",
    "find_config",
    "load_config",
]
