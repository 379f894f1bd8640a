"""Block tree produced by the example parser.

A parsed spec file is a tree of blocks: suites (``describe``) and contexts
(``context``) group other blocks, examples (``it``) hold the statement lines
of one test case.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import NamedTuple


class BlockKind(Enum):
    """Structural role of a block."""

    SUITE = "suite"
    CONTEXT = "context"
    EXAMPLE = "example"


class Statement(NamedTuple):
    """A single source line inside an example body."""

    line_no: int
    text: str


class Block(NamedTuple):
    """A describe/context/example block with its source location.

    Only example blocks carry statements and only suite/context blocks carry
    children; the parser never builds a block that breaks this.
    """

    kind: BlockKind
    label: str
    file: Path
    start_line: int
    end_line: int
    children: tuple[Block, ...] = ()
    statements: tuple[Statement, ...] = ()

    @property
    def is_example(self) -> bool:
        return self.kind is BlockKind.EXAMPLE


BlockOutline = tuple[str, str, tuple["BlockOutline", ...]]


def block_outline(block: Block) -> BlockOutline:
    """Return the (kind, label, children) structure of a block tree.

    Locations and statements are left out so that two trees parsed from
    differently formatted text compare equal when their nesting matches.
    """
    return (
        block.kind.value,
        block.label,
        tuple(block_outline(child) for child in block.children),
    )


def iter_blocks(root: Block) -> list[tuple[Block, tuple[Block, ...]]]:
    """Flatten a tree depth-first into (block, ancestors) pairs.

    Ancestors are ordered from the root down to the direct parent. The root
    itself is included with an empty ancestor chain.
    """
    out: list[tuple[Block, tuple[Block, ...]]] = []
    stack: list[tuple[Block, tuple[Block, ...]]] = [(root, ())]
    while stack:
        block, ancestors = stack.pop()
        out.append((block, ancestors))
        chain = (*ancestors, block)
        for child in reversed(block.children):
            stack.append((child, chain))
    return out


__all__ = ["Block", "BlockKind", "BlockOutline", "Statement", "block_outline", "iter_blocks"]
