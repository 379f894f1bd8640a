"""Source scanner: walk a directory tree and yield spec files as text."""

from __future__ import annotations

import logging
import os
from collections.abc import Generator, Iterator, Sequence
from pathlib import Path
from typing import NamedTuple

logger = logging.getLogger(__name__)

_SKIPPED_DIRS = frozenset({"node_modules", "vendor"})


class SourceFile(NamedTuple):
    """Path and decoded text of one file."""

    path: Path
    text: str


class ScanWarning(NamedTuple):
    """A file that was skipped without failing the run."""

    path: Path
    reason: str


def read_text(path: Path) -> str:
    """Read file contents as text.

    Uses utf-8-sig to handle optional BOM.
    """
    return path.read_text(encoding="utf-8-sig", errors="strict")


def _is_skipped(path: Path, root: Path) -> bool:
    parts = path.relative_to(root).parts[:-1]
    return any(part.startswith(".") or part in _SKIPPED_DIRS for part in parts)


def _iter_files(root: Path, suffixes: Sequence[str]) -> Generator[Path, None, None]:
    """Iterate over matching files under root in sorted order."""
    if root.is_file():
        yield root
        return
    for path in sorted(root.rglob("*")):
        if not path.name.endswith(tuple(suffixes)) or _is_skipped(path, root):
            continue
        if path.is_file():
            yield path


class SourceScanner:
    """Lazily yield spec files under a root path.

    Iterating the scanner walks the tree again, so it can be restarted; each
    iteration starts with an empty ``warnings`` list and appends one entry per
    file it had to skip.
    """

    def __init__(self, root: str | Path, suffixes: Sequence[str] = ("_spec.rb",)) -> None:
        self.root = Path(root)
        self.suffixes = tuple(suffixes)
        self.warnings: list[ScanWarning] = []
        self._check_root()

    def _check_root(self) -> None:
        if not self.root.exists():
            msg = f"path does not exist: {self.root}"
            raise FileNotFoundError(msg)
        if self.root.is_dir():
            # Raises PermissionError for an unreadable root directory.
            with os.scandir(self.root):
                pass

    def __iter__(self) -> Iterator[SourceFile]:
        self._check_root()
        self.warnings = []
        return self._scan()

    def _scan(self) -> Generator[SourceFile, None, None]:
        for path in _iter_files(self.root, self.suffixes):
            try:
                text = read_text(path)
            except (OSError, UnicodeDecodeError) as exc:
                logger.warning("skipping unreadable file %s: %s", path, exc)
                self.warnings.append(ScanWarning(path=path, reason=str(exc)))
                continue
            yield SourceFile(path=path, text=text)


__all__ = ["ScanWarning", "SourceFile", "SourceScanner", "read_text"]
