"""Lexer - turns template text into procedure source.

A template such as::

    Hello %{ write(name) }%!

becomes::

    write('Hello ')
    write(name)
    write('!')

Everything outside the delimiters is wrapped in a ``write('...')`` call and
everything inside them is passed through as Python statements. Because Python
blocks are indentation-based, a code section ending in ``:`` opens a block that
stays open until a section containing only ``end``::

    %{ for item in items: }%
      - %{ write(item) }%
    %{ end }%
"""

from __future__ import annotations

import io
import logging
import textwrap
import tokenize
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from blank.config import DEFAULT_END_DELIM, DEFAULT_START_DELIM
from blank.exceptions import TranspileError

logger = logging.getLogger(__name__)

INDENT = "    "

# Clauses that close the current block and open a sibling one
CONTINUATION_KEYWORDS = frozenset({"elif", "else", "except", "finally"})

_SKIP_TOKENS = frozenset(
    {
        tokenize.NEWLINE,
        tokenize.NL,
        tokenize.COMMENT,
        tokenize.INDENT,
        tokenize.DEDENT,
        tokenize.ENDMARKER,
    }
)


class CompiledSource(str):
    """Procedure source that remembers where each of its lines came from.

    ``line_map[n - 1]`` is the template line that generated line ``n`` was
    produced from.
    """

    line_map: Tuple[int, ...]

    def __new__(cls, source: str, line_map: Sequence[int] = ()) -> "CompiledSource":
        compiled = super().__new__(cls, source)
        compiled.line_map = tuple(line_map)
        return compiled


def transpile(
    text: str,
    suspending: bool = False,
    start_delim: str = DEFAULT_START_DELIM,
    end_delim: str = DEFAULT_END_DELIM,
    *,
    name: str | Path | None = None,
) -> CompiledSource:
    """Transpile template text into the body of a procedure.

    Args:
        text: Raw template text.
        suspending: If True, calls to ``include(...)`` inside code sections are
            awaited so the procedure can run as a coroutine.
        start_delim: Delimiter that enters a code section.
        end_delim: Delimiter that returns to literal text.
        name: Template name used in error messages.

    Returns:
        Python source for the procedure body, with its template line map.

    Raises:
        TranspileError: If a code section or block is left open.
    """
    return _Transpiler(text, suspending, start_delim, end_delim, name).run()


def _escape(ch: str) -> str:
    """Escape one literal character for a single-quoted Python string."""
    if ch == "\r":
        return "\\r"
    if ch == "\n":
        # Keep the generated source on the same lines as the template
        return "\\n\\\n"
    if ch == "\\" or ch == "'":
        return "\\" + ch
    code = ord(ch)
    # Control characters (NUL included) and lone surrogates cannot sit in source
    if (code < 0x20 and ch != "\t") or code == 0x7F:
        return f"\\x{code:02x}"
    if 0xD800 <= code <= 0xDFFF:
        return f"\\u{code:04x}"
    return ch


class _Transpiler:
    """Two-state (WRITE/CODE) scanner that accumulates procedure source."""

    def __init__(
        self,
        text: str,
        suspending: bool,
        start_delim: str,
        end_delim: str,
        name: str | Path | None,
    ):
        if not start_delim or not end_delim:
            raise ValueError("Delimiters must be non-empty strings")
        self.text = text
        self.suspending = suspending
        self.start_delim = start_delim
        self.end_delim = end_delim
        self.name = name
        self.parts: List[str] = []
        self.line_map: List[int] = []
        self.depth = 0

    def run(self) -> CompiledSource:
        text = self.text
        start, end = self.start_delim, self.end_delim
        in_write = True
        literal: List[str] = []
        line = literal_line = code_line = 1
        code_start = 0
        i = 0

        while i < len(text):
            if in_write:
                if text.startswith(start, i):
                    self._emit_literal("".join(literal), literal_line)
                    literal = []
                    in_write = False
                    line += start.count("\n")
                    code_line = line
                    i += len(start)
                    code_start = i
                    continue

                ch = text[i]
                if ch == "\n":
                    line += 1
                literal.append(_escape(ch))
                i += 1
            else:
                if text.startswith(end, i):
                    self._emit_code(
                        text[code_start:i], self._column(code_start), code_line
                    )
                    in_write = True
                    line += end.count("\n")
                    literal_line = line
                    i += len(end)
                    continue
                if text[i] == "\n":
                    line += 1
                i += 1

        if not in_write:
            raise TranspileError(self.name, f"has an un-paired {start}")
        if self.depth:
            raise TranspileError(
                self.name, f"has {self.depth} block(s) without a closing 'end'"
            )

        self._emit_literal("".join(literal), literal_line)
        source = "\n".join(self.parts) + "\n"
        logger.debug(
            "Transpiled %s (%d segments, suspending=%s)",
            self.name or "<template>",
            len(self.parts),
            self.suspending,
        )
        return CompiledSource(source, self.line_map)

    def _column(self, offset: int) -> int:
        return offset - (self.text.rfind("\n", 0, offset) + 1)

    def _append(self, part: str, line: int) -> None:
        self.parts.append(part)
        self.line_map.extend(line + n for n in range(part.count("\n") + 1))

    def _emit_literal(self, escaped: str, line: int) -> None:
        self._append(f"{INDENT * self.depth}write('{escaped}')", line)

    def _emit_code(self, code: str, column: int, line: int) -> None:
        lines, skipped = self._normalize(code, column)
        if not lines:
            return

        tokens = self._tokenize(lines)
        significant = _significant(tokens)

        if (
            len(significant) == 1
            and significant[0].type == tokenize.NAME
            and significant[0].string == "end"
        ):
            if self.depth == 0:
                raise TranspileError(self.name, "has an 'end' with no open block")
            self.depth -= 1
            return

        head = significant[0] if significant else None
        if head is not None and head.string in CONTINUATION_KEYWORDS:
            if self.depth == 0:
                raise TranspileError(
                    self.name, f"has '{head.string}' outside of a block"
                )
            self.depth -= 1

        header_column = _block_header_column(tokens)
        if header_column:
            raise TranspileError(
                self.name,
                "opens a block on an indented line; open nested blocks in their "
                f"own code section: {lines[0].strip()}",
            )

        if self.suspending:
            lines = _await_includes(lines, tokens)

        indent = INDENT * self.depth
        self._append(
            "\n".join(indent + row if row.strip() else "" for row in lines),
            line + skipped,
        )

        if header_column is not None:
            self.depth += 1

    def _normalize(self, code: str, column: int) -> Tuple[List[str], int]:
        # Lay the first line out at its template column so relative
        # indentation with the following lines survives dedent.
        code = code.replace("\r\n", "\n").replace("\r", "\n")
        lines = [
            line.rstrip() for line in textwrap.dedent(" " * column + code).split("\n")
        ]
        skipped = 0
        while lines and not lines[0].strip():
            lines.pop(0)
            skipped += 1
        while lines and not lines[-1].strip():
            lines.pop()
        return lines, skipped

    def _tokenize(self, lines: List[str]) -> List[tokenize.TokenInfo]:
        source = "\n".join(lines) + "\n"
        try:
            return list(tokenize.generate_tokens(io.StringIO(source).readline))
        except (tokenize.TokenError, SyntaxError) as exc:
            raise TranspileError(
                self.name, f"has an invalid code section ({exc}): {lines[0].strip()}"
            ) from exc


def _significant(tokens: List[tokenize.TokenInfo]) -> List[tokenize.TokenInfo]:
    return [tok for tok in tokens if tok.type not in _SKIP_TOKENS]


def _block_header_column(tokens: List[tokenize.TokenInfo]) -> Optional[int]:
    """Column of the statement that opens a block, or None if none is opened.

    A section opens a block when its last token is ``:``; the column is that
    of the first token on the same logical line.
    """
    header_column: Optional[int] = None
    at_line_start = True
    last: Optional[tokenize.TokenInfo] = None

    for tok in tokens:
        if tok.type == tokenize.NEWLINE:
            at_line_start = True
            continue
        if tok.type in _SKIP_TOKENS:
            continue
        if at_line_start:
            header_column = tok.start[1]
            at_line_start = False
        last = tok

    if last is not None and last.exact_type == tokenize.COLON:
        return header_column
    return None


def _await_includes(
    lines: List[str], tokens: List[tokenize.TokenInfo]
) -> List[str]:
    """Prefix bare ``include(`` calls with ``await``.

    Only NAME tokens are considered, so ``include(`` inside a string or a
    comment is left alone, as are attribute calls like ``obj.include(``.
    """
    significant = _significant(tokens)
    positions: List[Tuple[int, int]] = []
    previous: Optional[tokenize.TokenInfo] = None

    for index, tok in enumerate(significant):
        following = significant[index + 1] if index + 1 < len(significant) else None
        if (
            tok.type == tokenize.NAME
            and tok.string == "include"
            and following is not None
            and following.exact_type == tokenize.LPAR
            and not (previous is not None and previous.exact_type == tokenize.DOT)
            and not (previous is not None and previous.string in ("await", "def"))
        ):
            positions.append(tok.start)
        previous = tok

    rewritten = list(lines)
    for row, col in reversed(positions):
        line = rewritten[row - 1]
        rewritten[row - 1] = line[:col] + "await " + line[col:]
    return rewritten
