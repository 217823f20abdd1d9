"""Rule-based, stateful syntax-highlighting tokenizer for Koto source."""

from koto_highlight.errors import ConfigError, GrammarError, KotoHighlightError
from koto_highlight.grammar import CompiledGrammar, compile_grammar
from koto_highlight.koto import build_grammar, get_grammar
from koto_highlight.scanner import tokenize_line, tokenize_lines
from koto_highlight.session import HighlightSession
from koto_highlight.tokens import INITIAL_STACK, START, TEXT, ModeStack, Token

__version__ = "0.1.0"

__all__ = [
    "INITIAL_STACK",
    "START",
    "TEXT",
    "CompiledGrammar",
    "ConfigError",
    "GrammarError",
    "HighlightSession",
    "KotoHighlightError",
    "ModeStack",
    "Token",
    "build_grammar",
    "compile_grammar",
    "get_grammar",
    "tokenize_line",
    "tokenize_lines",
]
