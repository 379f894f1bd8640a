"""Example parser for RSpec-style spec files.

The parser makes a single pass over the lines of a file, keeping a stack of
open frames. A frame is opened by an explicit delimiter (``do`` or ``{``, or a
Ruby keyword that is closed by ``end``) and closed by the matching ``end`` or
``}``. Frames opened by ``describe``/``context``/``it`` lines become blocks;
every other frame (``before``, ``let``, ``if``, multi-line ``expect { }``)
only exists so that closing tokens balance.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import NamedTuple

from lintcheck.blocks import Block, BlockKind, Statement

KEYWORD_KINDS: dict[str, BlockKind] = {
    "describe": BlockKind.SUITE,
    "fdescribe": BlockKind.SUITE,
    "xdescribe": BlockKind.SUITE,
    "feature": BlockKind.SUITE,
    "ffeature": BlockKind.SUITE,
    "xfeature": BlockKind.SUITE,
    "example_group": BlockKind.SUITE,
    "shared_examples": BlockKind.SUITE,
    "shared_examples_for": BlockKind.SUITE,
    "shared_context": BlockKind.SUITE,
    "context": BlockKind.CONTEXT,
    "fcontext": BlockKind.CONTEXT,
    "xcontext": BlockKind.CONTEXT,
    "it": BlockKind.EXAMPLE,
    "fit": BlockKind.EXAMPLE,
    "xit": BlockKind.EXAMPLE,
    "specify": BlockKind.EXAMPLE,
    "fspecify": BlockKind.EXAMPLE,
    "xspecify": BlockKind.EXAMPLE,
    "example": BlockKind.EXAMPLE,
    "fexample": BlockKind.EXAMPLE,
    "xexample": BlockKind.EXAMPLE,
    "scenario": BlockKind.EXAMPLE,
    "fscenario": BlockKind.EXAMPLE,
    "xscenario": BlockKind.EXAMPLE,
    "its": BlockKind.EXAMPLE,
}

_KEYWORD_FOR_KIND: dict[BlockKind, str] = {
    BlockKind.SUITE: "describe",
    BlockKind.CONTEXT: "context",
    BlockKind.EXAMPLE: "it",
}

_OPENER = re.compile(r"^(?:RSpec\s*\.\s*)?(?P<keyword>[a-z_]+)(?P<rest>(?:[\s({].*)?)$")
# An opener keyword must be followed by something that can start its arguments
# or its block, otherwise `example = build(:x)` would look like an example.
_OPENER_ARGS = re.compile(r"""^(?:\(|\{|['"]|[A-Z]|:\w|do\b)""")
_LABEL = re.compile(
    r"""^\s*(?:'(?P<single>(?:[^'\\]|\\.)*)'"""
    r"""|"(?P<double>(?:[^"\\]|\\.)*)\""""
    r"""|(?P<const>[A-Z]\w*(?:::[A-Z]\w*)*)"""
    r"""|:(?P<symbol>\w+[?!=]?))"""
)
_STRING = re.compile(r"""'(?:[^'\\]|\\.)*'|"(?:[^"\\]|\\.)*\"""")
_BLOCK_ARGS = re.compile(r"^\s*(?:\|[^|]*\|)?\s*$")
_INLINE_DO_BODY = re.compile(r"^\s*(?:\|[^|]*\|)?(?P<body>.*?)\s*;?\s*\bend\s*$")
# `do:` and `end:` are keyword-argument labels, never delimiters.
_TOKEN = re.compile(r"(?<![.:\w])(?:do|end)\b(?!:(?!:))|[{}]")
_DO_AT = re.compile(r"(?<![.:\w])do\b(?!:(?!:))")
_TRAILING_END = re.compile(r"(?<![.:\w])end\s*;?\s*$")
_KEYWORD_OPENER = re.compile(
    r"^(?:if|unless|case|begin|while|until|for|def|class|module)\b(?!:)"
    r"|=\s*(?:if|unless|case|begin)\b"
)
_LOOP_OPENER = re.compile(r"^(?:while|until|for)\b")
_PURE_CLOSER = re.compile(r"^(?:end\b(?!:)|\})[\s)\]};]*(?:end\b[\s)\]};]*)*$")
_HEREDOC = re.compile(r"<<[~-]?(['\"]?)(?P<tag>[A-Z_][A-Z0-9_]*)\1")
_PERCENT_LITERAL = re.compile(r"%[qQwWiIrsx]?(?P<open>[^\w\s])")
_BRACKET_PAIRS: dict[str, str] = {"(": ")", "[": "]", "{": "}", "<": ">"}
_REGEX_PRECEDERS = frozenset("(,=~!|&{[;:?<>+-*%^")
_VALUE_ENDERS = frozenset(")]}'\"")


class ParseError(Exception):
    """Raised when block nesting is unbalanced or a label cannot be read."""

    def __init__(self, message: str, line_no: int) -> None:
        super().__init__(f"line {line_no}: {message}")
        self.message = message
        self.line_no = line_no


class _Frame:
    """An open delimiter on the parse stack.

    Block frames carry the data of the block being built; generic frames
    only record which token closes them.
    """

    def __init__(
        self,
        closer: str,
        line_no: int,
        kind: BlockKind | None = None,
        label: str = "",
    ) -> None:
        self.closer = closer
        self.line_no = line_no
        self.kind = kind
        self.label = label
        self.children: list[Block] = []
        self.statements: list[Statement] = []

    @property
    def is_block(self) -> bool:
        return self.kind is not None


class _Opener(NamedTuple):
    """A recognised describe/context/example line."""

    kind: BlockKind
    label: str | None
    delimiter: str
    inline_body: str | None


def _is_word_char(char: str) -> bool:
    return char.isalnum() or char == "_"


def _regex_allowed(text: str, idx: int) -> bool:
    """Check if the ``/`` at ``idx`` opens a regexp rather than dividing."""
    before = text[:idx]
    prev = before.rstrip()
    if not prev or prev[-1] in _REGEX_PRECEDERS:
        return True
    # `match /x/`, `when /x/`: a space before the slash and none after it.
    return before != prev and not text[idx + 1 : idx + 2].isspace()


def _percent_allowed(text: str, idx: int) -> bool:
    """Check if the ``%`` at ``idx`` starts a literal rather than a modulo."""
    before = text[:idx]
    prev = before.rstrip()
    if not prev:
        return True
    if not _is_word_char(prev[-1]) and prev[-1] not in _VALUE_ENDERS:
        return True
    return before != prev


def _closing_delimiter(text: str, start: int, opener: str) -> int:
    """Return the index of the delimiter closing a literal body, or -1.

    Bracket delimiters nest; any other delimiter closes at its next
    unescaped occurrence.
    """
    closer = _BRACKET_PAIRS.get(opener, opener)
    depth = 0
    idx = start
    while idx < len(text):
        char = text[idx]
        if char == "\\":
            idx += 2
            continue
        if char == closer and depth == 0:
            return idx
        if closer != opener and char == opener:
            depth += 1
        elif char == closer:
            depth -= 1
        idx += 1
    return -1


def _literal_body(text: str, idx: int) -> tuple[int, int] | None:
    """Return the (start, end) of the literal body opened at ``idx``, if any.

    Recognises quoted strings, ``/regexp/`` and ``%w[...]``-style literals.
    """
    char = text[idx]
    if char in "'\"":
        match = _STRING.match(text, idx)
        if match is None:
            return None
        return idx + 1, match.end() - 1
    if char == "/" and _regex_allowed(text, idx):
        end = _closing_delimiter(text, idx + 1, "/")
        return None if end < 0 else (idx + 1, end)
    if char == "%" and _percent_allowed(text, idx):
        percent = _PERCENT_LITERAL.match(text, idx)
        if percent is None:
            return None
        body_start = percent.end()
        end = _closing_delimiter(text, body_start, percent.group("open"))
        return None if end < 0 else (body_start, end)
    return None


def mask_strings(text: str) -> str:
    """Blank out literal contents, keeping the delimiters and the length.

    Quoted strings, regexp literals and percent literals (``%w[...]``,
    ``%r{...}``) are blanked. Offsets in the masked text line up with the
    original, so comment markers, braces and keywords can be located without
    matching inside literals.
    """
    out = list(text)
    idx = 0
    while idx < len(text):
        body = _literal_body(text, idx)
        if body is None:
            idx += 1
            continue
        start, end = body
        out[start:end] = " " * (end - start)
        idx = end + 1
    return "".join(out)


def strip_comment(text: str) -> str:
    """Remove a trailing ``#`` comment that is not inside a string."""
    idx = mask_strings(text).find("#")
    if idx < 0:
        return text.rstrip()
    return text[:idx].rstrip()


def code_only(text: str) -> str:
    """Return a line with its comment removed and string contents blanked."""
    return mask_strings(strip_comment(text))


def _unescape(label: str, quote: str) -> str:
    if quote == "'":
        return re.sub(r"\\([\\'])", r"\1", label)
    return re.sub(r"\\(.)", r"\1", label)


def _extract_label(args: str) -> str | None:
    """Read the first argument of an opener as a label."""
    text = args.strip()
    if text.startswith("("):
        text = text[1:]
    match = _LABEL.match(text)
    if match is None:
        return None
    single = match.group("single")
    if single is not None:
        return _unescape(single, "'")
    double = match.group("double")
    if double is not None:
        return _unescape(double, '"')
    const = match.group("const")
    if const is not None:
        return const
    return match.group("symbol")


def _find_delimiter(masked: str) -> int:
    """Locate the ``do`` or ``{`` that starts an opener's block.

    Parentheses and brackets are skipped, and a ``{`` following a comma,
    colon or ``=>`` is a hash argument rather than a block.
    """
    depth = 0
    for idx, char in enumerate(masked):
        if char in "([":
            depth += 1
        elif char in ")]}":
            depth -= 1
        elif char == "{":
            if depth > 0 or masked[:idx].rstrip().endswith((",", ":", ">")):
                depth += 1
            else:
                return idx
        elif depth <= 0 and _DO_AT.match(masked, idx):
            return idx
    return -1


def _matching_brace(masked: str, start: int) -> int:
    """Return the index of the ``}`` closing the ``{`` at ``start``, or -1."""
    depth = 0
    for idx in range(start, len(masked)):
        if masked[idx] == "{":
            depth += 1
        elif masked[idx] == "}":
            depth -= 1
            if depth == 0:
                return idx
    return -1


def _parse_opener(code: str, line_no: int) -> _Opener | None:
    """Recognise a block opener line, or return None for ordinary code."""
    match = _OPENER.match(code.lstrip())
    if match is None:
        return None
    kind = KEYWORD_KINDS.get(match.group("keyword"))
    if kind is None:
        return None
    rest = match.group("rest")
    if not _OPENER_ARGS.match(rest.lstrip()):
        return None

    masked = mask_strings(rest)
    delim_at = _find_delimiter(masked)
    args = rest if delim_at < 0 else rest[:delim_at]
    label = _extract_label(args)

    if delim_at < 0:
        return _Opener(kind=kind, label=label, delimiter="", inline_body=None)

    if masked[delim_at] == "{":
        close_at = _matching_brace(masked, delim_at)
        if close_at < 0:
            return _Opener(kind=kind, label=label, delimiter="}", inline_body=None)
        body = re.sub(r"^\|[^|]*\|", "", rest[delim_at + 1 : close_at].strip()).strip()
        return _Opener(kind=kind, label=label, delimiter="}", inline_body=body)

    after = rest[delim_at + 2 :]
    if _BLOCK_ARGS.match(after):
        return _Opener(kind=kind, label=label, delimiter="end", inline_body=None)
    inline = _INLINE_DO_BODY.match(mask_strings(after))
    if inline is None:
        msg = "unexpected text after block opener"
        raise ParseError(msg, line_no)
    start, stop = inline.span("body")
    return _Opener(kind=kind, label=label, delimiter="end", inline_body=after[start:stop].strip())


class _Parser:
    """Single-pass state for one file."""

    def __init__(self, path: Path, total_lines: int) -> None:
        self.path = path
        self.root = _Frame(closer="", line_no=1, kind=BlockKind.SUITE)
        self.stack: list[_Frame] = [self.root]
        self.total_lines = total_lines

    def _innermost_block(self) -> _Frame:
        for frame in reversed(self.stack):
            if frame.is_block:
                return frame
        return self.root

    def _close(self, closer: str, line_no: int) -> None:
        if len(self.stack) == 1:
            msg = f"unexpected '{closer}' with no open block"
            raise ParseError(msg, line_no)
        frame = self.stack[-1]
        if frame.closer != closer:
            msg = (
                f"'{closer}' closes block opened at line {frame.line_no} "
                f"(expected '{frame.closer}')"
            )
            raise ParseError(msg, line_no)
        self.stack.pop()
        if frame.kind is not None:
            self._innermost_block().children.append(self._freeze(frame, line_no))

    def _freeze(self, frame: _Frame, end_line: int) -> Block:
        return Block(
            kind=frame.kind if frame.kind is not None else BlockKind.SUITE,
            label=frame.label,
            file=self.path,
            start_line=frame.line_no,
            end_line=end_line,
            children=tuple(frame.children),
            statements=tuple(frame.statements),
        )

    def open_block(self, opener: _Opener, line_no: int) -> None:
        parent = self._innermost_block()
        if parent.kind is BlockKind.EXAMPLE:
            msg = f"block cannot be nested inside the example opened at line {parent.line_no}"
            raise ParseError(msg, line_no)

        label = opener.label
        if label is None:
            if opener.kind is not BlockKind.EXAMPLE:
                msg = f"cannot extract a label for this {opener.kind.value}"
                raise ParseError(msg, line_no)
            label = ""

        if opener.delimiter == "" and opener.kind is not BlockKind.EXAMPLE:
            msg = f"{opener.kind.value} '{label}' has no block body"
            raise ParseError(msg, line_no)

        if opener.delimiter == "" or opener.inline_body is not None:
            # Opened and closed on one line: a childless example.
            body = opener.inline_body
            statements = (Statement(line_no, body),) if body else ()
            parent.children.append(
                Block(
                    kind=BlockKind.EXAMPLE,
                    label=label,
                    file=self.path,
                    start_line=line_no,
                    end_line=line_no,
                    statements=statements,
                )
            )
            return

        self.stack.append(_Frame(opener.delimiter, line_no, kind=opener.kind, label=label))

    def process_code(self, raw: str, code: str, line_no: int) -> None:
        """Feed an ordinary code line: record statements, balance delimiters."""
        stripped = code.strip()
        owner = self._innermost_block()
        if owner.kind is BlockKind.EXAMPLE and not _PURE_CLOSER.match(stripped):
            owner.statements.append(Statement(line_no, raw.strip()))

        masked = mask_strings(stripped)
        is_loop = _LOOP_OPENER.match(masked) is not None
        # `def name; end` and `x = if a then b end` balance on their own line.
        inline_end = -1
        if _KEYWORD_OPENER.search(masked):
            trailing = _TRAILING_END.search(masked)
            if trailing is None:
                self.stack.append(_Frame("end", line_no))
            else:
                inline_end = trailing.start()
        for token in _TOKEN.finditer(masked):
            value = token.group(0)
            if value == "{":
                self.stack.append(_Frame("}", line_no))
            elif value == "do":
                if not is_loop:
                    self.stack.append(_Frame("end", line_no))
            elif token.start() != inline_end:
                self._close(value, line_no)

    def finish(self) -> Block:
        if len(self.stack) > 1:
            frame = self.stack[-1]
            msg = f"block opened here is never closed (missing '{frame.closer}')"
            raise ParseError(msg, frame.line_no)
        return self._freeze(self.root, max(self.total_lines, 1))


def parse_source(text: str, path: Path | str = "<string>") -> Block:
    """Parse the text of one spec file into its root block.

    Args:
        text: Full file contents.
        path: Path recorded on every block for reporting.

    Returns:
        The root block: a suite with an empty label spanning the file.

    Raises:
        ParseError: If block nesting is unbalanced or a label is missing.
    """
    file_path = Path(path)
    lines = text.splitlines()
    parser = _Parser(file_path, len(lines))
    heredoc_tag: str | None = None
    in_block_comment = False

    for idx, raw in enumerate(lines):
        line_no = idx + 1
        if heredoc_tag is not None:
            if raw.strip() == heredoc_tag:
                heredoc_tag = None
            continue
        if in_block_comment:
            if raw.startswith("=end"):
                in_block_comment = False
            continue
        if raw.startswith("=begin"):
            in_block_comment = True
            continue
        if raw.strip() == "__END__":
            break

        code = strip_comment(raw)
        if not code.strip():
            continue

        heredoc = _HEREDOC.search(mask_strings(code))
        opener = _parse_opener(code, line_no)
        if opener is not None:
            parser.open_block(opener, line_no)
        else:
            parser.process_code(raw, code, line_no)
        if heredoc is not None:
            heredoc_tag = heredoc.group("tag")

    return parser.finish()


def _quote(label: str) -> str:
    escaped = label.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def serialize_structure(root: Block) -> str:
    """Render the labels and nesting of a tree back to spec-file text.

    Statements are not emitted; parsing the result yields a tree with the
    same outline as ``root``.
    """
    out: list[str] = []

    def emit(block: Block, depth: int) -> None:
        indent = "  " * depth
        keyword = _KEYWORD_FOR_KIND[block.kind]
        if block.label:
            out.append(f"{indent}{keyword} {_quote(block.label)} do")
        else:
            out.append(f"{indent}{keyword} do")
        for child in block.children:
            emit(child, depth + 1)
        out.append(f"{indent}end")

    for child in root.children:
        emit(child, 0)
    return "\n".join(out) + ("\n" if out else "")


__all__ = [
    "KEYWORD_KINDS",
    "ParseError",
    "code_only",
    "mask_strings",
    "parse_source",
    "serialize_structure",
    "strip_comment",
]
