"""Shared test helpers for the koto-highlight test suite."""

from __future__ import annotations

from koto_highlight.grammar import CompiledGrammar
from koto_highlight.koto import get_grammar
from koto_highlight.scanner import tokenize_line
from koto_highlight.tokens import INITIAL_STACK, ModeStack, Token, token_pairs


def lex(line: str, stack: ModeStack = INITIAL_STACK,
        dialect: str = "default") -> list[tuple[str, str]]:
    """Tokenize one line with a built-in dialect, return (kind, value) pairs."""
    tokens, _ = tokenize_line(get_grammar(dialect), line, stack)
    return token_pairs(tokens)


def stack_after(line: str, stack: ModeStack = INITIAL_STACK,
                dialect: str = "default") -> ModeStack:
    _, out = tokenize_line(get_grammar(dialect), line, stack)
    return out


def assert_partition(tokens: list[Token], line: str) -> None:
    """The tokens cover ``line`` exactly: no gaps, overlaps or empty tokens."""
    pos = 0
    for tok in tokens:
        assert tok.start == pos, f"gap or overlap at {pos}: {tok}"
        assert tok.end > tok.start, f"empty token {tok}"
        assert line[tok.start:tok.end] == tok.value
        pos = tok.end
    assert pos == len(line)


def scan(grammar: CompiledGrammar, line: str,
         stack: ModeStack = INITIAL_STACK) -> tuple[list[tuple[str, str]], ModeStack]:
    tokens, out = tokenize_line(grammar, line, stack)
    assert_partition(tokens, line)
    return token_pairs(tokens), out
