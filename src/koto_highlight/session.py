"""Per-buffer highlighting state.

A :class:`HighlightSession` keeps the tokens and mode stacks of every line
in one editor buffer. After an edit only the lines whose incoming stack
actually changed are tokenized again.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from koto_highlight.grammar import CompiledGrammar
from koto_highlight.scanner import tokenize_line
from koto_highlight.tokens import INITIAL_STACK, ModeStack, Token

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LineState:
    stack_in: ModeStack
    tokens: tuple[Token, ...]
    stack_out: ModeStack


class HighlightSession:
    """Tokens for a buffer of lines, kept current across edits."""

    def __init__(self, grammar: CompiledGrammar, lines: Iterable[str] = ()) -> None:
        self.grammar = grammar
        self._lines: list[str] = []
        self._states: list[LineState | None] = []
        self.set_lines(lines)

    def __len__(self) -> int:
        return len(self._lines)

    @property
    def lines(self) -> list[str]:
        return list(self._lines)

    def set_lines(self, lines: Iterable[str]) -> int:
        self._lines = list(lines)
        self._states = [None] * len(self._lines)
        return self._retokenize_from(0)

    def set_text(self, text: str) -> int:
        return self.set_lines(text.splitlines())

    def update_line(self, row: int, text: str) -> int:
        """Replace one line; returns how many lines were tokenized again."""
        self._check_row(row)
        self._lines[row] = text
        self._states[row] = None
        return self._retokenize_from(row)

    def insert_lines(self, row: int, lines: Iterable[str]) -> int:
        if not 0 <= row <= len(self._lines):
            raise IndexError(f"row {row} out of range")
        new = list(lines)
        self._lines[row:row] = new
        self._states[row:row] = [None] * len(new)
        return self._retokenize_from(row)

    def delete_lines(self, row: int, count: int = 1) -> int:
        self._check_row(row)
        del self._lines[row:row + count]
        del self._states[row:row + count]
        return self._retokenize_from(row)

    def state(self, row: int) -> LineState:
        self._check_row(row)
        state = self._states[row]
        assert state is not None
        return state

    def tokens_for(self, row: int) -> list[Token]:
        return list(self.state(row).tokens)

    def stack_after(self, row: int) -> ModeStack:
        return self.state(row).stack_out

    def _check_row(self, row: int) -> None:
        if not 0 <= row < len(self._lines):
            raise IndexError(f"row {row} out of range")

    def _retokenize_from(self, row: int) -> int:
        stack = self._states[row - 1].stack_out if row > 0 else INITIAL_STACK
        r = row
        while r < len(self._lines):
            old = self._states[r]
            # Unchanged text with an unchanged incoming stack: the rest holds.
            if old is not None and old.stack_in == stack:
                break
            tokens, out = tokenize_line(self.grammar, self._lines[r], stack)
            self._states[r] = LineState(stack, tuple(tokens), out)
            stack = out
            r += 1
        logger.debug("retokenized %d line(s) from row %d", r - row, row)
        return r - row
