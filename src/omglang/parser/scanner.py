"""Character cursor with line/column tracking used by the OMG parser."""

from __future__ import annotations

import re

from omglang.ast.nodes import Position

_WORD_RE = re.compile(r"[a-zA-Z0-9_-]+")


class Scanner:
    """Low-level character stream over OMG source text.

    Every operation is a plain boolean/optional check; nothing raises.
    Lines and columns are 1-based and a ``\\n`` starts a new line.
    """

    def __init__(self, text: str) -> None:
        self._text = text
        self._offset = 0
        self._line = 1
        self._column = 1
        # End of the last character consumed outside whitespace skipping.
        self._mark_offset = 0
        self._mark = Position(1, 1)

    # -- state ---------------------------------------------------------------

    @property
    def text(self) -> str:
        return self._text

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def position(self) -> Position:
        return Position(self._line, self._column)

    @property
    def at_end(self) -> bool:
        return self._offset >= len(self._text)

    def mark(self) -> tuple[int, Position]:
        """Offset and position right after the last significant character."""
        return self._mark_offset, self._mark

    def save(self) -> tuple[int, int, int, int, Position]:
        return self._offset, self._line, self._column, self._mark_offset, self._mark

    def restore(self, state: tuple[int, int, int, int, Position]) -> None:
        self._offset, self._line, self._column, self._mark_offset, self._mark = state

    # -- probing -------------------------------------------------------------

    def peek(self) -> str | None:
        if self._offset >= len(self._text):
            return None
        return self._text[self._offset]

    def peek_at(self, distance: int) -> str | None:
        index = self._offset + distance
        if index >= len(self._text):
            return None
        return self._text[index]

    def startswith(self, literal: str) -> bool:
        return self._text.startswith(literal, self._offset)

    def peek_word(self) -> str | None:
        """Longest run of ``[a-zA-Z0-9_-]`` at the cursor."""
        match = _WORD_RE.match(self._text, self._offset)
        return match.group(0) if match else None

    # -- consuming -----------------------------------------------------------

    def advance(self) -> str | None:
        char = self._step()
        if char is not None:
            self._mark_offset = self._offset
            self._mark = Position(self._line, self._column)
        return char

    def consume(self, expected: str) -> bool:
        if self.peek() == expected:
            self.advance()
            return True
        return False

    def consume_literal(self, expected: str) -> bool:
        if not self.startswith(expected):
            return False
        for _ in expected:
            self.advance()
        return True

    def consume_word(self, expected: str) -> bool:
        """Consume *expected* only when it is the whole word at the cursor."""
        if self.peek_word() != expected:
            return False
        for _ in expected:
            self.advance()
        return True

    def match(self, pattern: re.Pattern[str]) -> str | None:
        """Consume and return the match of *pattern* anchored at the cursor."""
        found = pattern.match(self._text, self._offset)
        if not found or not found.group(0):
            return None
        for _ in found.group(0):
            self.advance()
        return found.group(0)

    def skip_whitespace(self) -> None:
        """Skip whitespace and ``#`` line comments."""
        while True:
            char = self.peek()
            if char is None:
                return
            if char.isspace():
                self._step()
            elif char == "#":
                while self.peek() not in (None, "\n"):
                    self._step()
            else:
                return

    def skip_line(self) -> None:
        """Advance past the next newline (or to the end of input)."""
        while True:
            char = self._step()
            if char is None or char == "\n":
                return

    # -- internal ------------------------------------------------------------

    def _step(self) -> str | None:
        if self._offset >= len(self._text):
            return None
        char = self._text[self._offset]
        self._offset += 1
        if char == "\n":
            self._line += 1
            self._column = 1
        else:
            self._column += 1
        return char
