"""Per-line scanner.

:func:`tokenize_line` walks one line of text with the rules of the mode
on top of the stack. Rules are tried in order, anchored at the current
offset; the first match wins. Text no rule claims is emitted under the
mode's default kind, so the tokens always partition the whole line.
"""

from __future__ import annotations

from koto_highlight.grammar import CompiledGrammar, CompiledRule, Mode
from koto_highlight.rules import POP
from koto_highlight.tokens import INITIAL_STACK, START, ModeStack, Token


class _LineScanner:
    def __init__(self, grammar: CompiledGrammar, line: str, stack: ModeStack) -> None:
        self.grammar = grammar
        self.line = line
        self.stack = list(grammar.repair_stack(stack))
        self.tokens: list[Token] = []
        self.pos = 0
        # Start of the current run of unmatched characters.
        self._run_start: int | None = None

    @property
    def mode(self) -> Mode:
        return self.grammar.mode(self.stack[-1])

    def _emit(self, kind: str, start: int, end: int) -> None:
        if end > start:
            self.tokens.append(Token(kind, start, end, self.line[start:end]))

    def _flush_run(self) -> None:
        if self._run_start is not None:
            self._emit(self.grammar.default_kind(self.mode), self._run_start, self.pos)
            self._run_start = None

    def _consume_unmatched(self) -> None:
        if self._run_start is None:
            self._run_start = self.pos
        self.pos += 1

    def _emit_match(self, r: CompiledRule, start: int, end: int, match) -> None:
        if not r.multi:
            self._emit(r.kinds[0], start, end)
            return
        # One token per capturing group; text between groups is default text.
        gap_kind = self.grammar.default_kind(self.mode)
        cursor = start
        for i, kind in enumerate(r.kinds, 1):
            g_start, g_end = match.span(i)
            if g_start < 0:
                continue
            g_start = max(g_start, cursor)
            g_end = min(g_end, end)
            if g_end <= g_start:
                continue
            self._emit(gap_kind, cursor, g_start)
            self._emit(kind, g_start, g_end)
            cursor = g_end
        self._emit(gap_kind, cursor, end)

    def _transition(self, r: CompiledRule) -> None:
        if r.push is not None:
            self.stack.append(r.push)
        elif r.next == POP:
            if len(self.stack) > 1:
                self.stack.pop()
            else:
                self.stack = [START]
        elif r.next is not None:
            self.stack[-1] = r.next

    def scan(self) -> tuple[list[Token], ModeStack]:
        line = self.line
        while self.pos < len(line):
            for r in self.mode.rules:
                match = r.regex.match(line, self.pos)
                if match is not None:
                    break
            else:
                self._consume_unmatched()
                continue

            self._flush_run()
            start, end = self.pos, match.end()
            self._emit_match(r, start, end, match)
            self._transition(r)
            if end == start:
                # Zero-width match: step one character under the new mode.
                self._consume_unmatched()
            else:
                self.pos = end

        self._flush_run()
        return self.tokens, tuple(self.stack)


def tokenize_line(
    grammar: CompiledGrammar, line: str, stack: ModeStack = INITIAL_STACK
) -> tuple[list[Token], ModeStack]:
    """Tokenize one line, returning its tokens and the stack for the next line.

    ``line`` should not contain the line terminator. Any text is accepted;
    regions left open at the end of the line stay on the returned stack.
    """
    return _LineScanner(grammar, line, stack).scan()


def tokenize_lines(
    grammar: CompiledGrammar, lines, stack: ModeStack = INITIAL_STACK
) -> tuple[list[list[Token]], ModeStack]:
    """Tokenize consecutive lines, threading the mode stack through them."""
    result = []
    for line in lines:
        tokens, stack = tokenize_line(grammar, line, stack)
        result.append(tokens)
    return result, stack
