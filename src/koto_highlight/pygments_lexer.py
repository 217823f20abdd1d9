"""Pygments lexer for Koto, driven by the highlighting scanner."""

from pygments.lexer import Lexer
from pygments.token import Whitespace
from pygments.util import get_choice_opt

from koto_highlight.koto import DIALECTS, get_grammar
from koto_highlight.scanner import tokenize_line
from koto_highlight.styles import StyleMap
from koto_highlight.tokens import INITIAL_STACK


class KotoLexer(Lexer):
    """Pygments lexer for the Koto scripting language.

    Options: ``dialect`` selects one of the registered grammar dialects;
    ``grammar`` accepts an already compiled grammar instead.
    """

    name = "Koto"
    aliases = ["koto"]
    filenames = ["*.koto"]
    mimetypes = ["text/x-koto"]

    def __init__(self, **options):
        super().__init__(**options)
        grammar = options.get("grammar")
        if grammar is None:
            dialect = get_choice_opt(
                options, "dialect", sorted(DIALECTS), "default"
            )
            grammar = get_grammar(dialect)
        self.grammar = grammar
        self.style_map = options.get("style_map") or StyleMap()

    def get_tokens_unprocessed(self, text):
        stack = INITIAL_STACK
        offset = 0
        for line in text.splitlines(keepends=True):
            body = line.rstrip("\r\n")
            tokens, stack = tokenize_line(self.grammar, body, stack)
            for tok in tokens:
                yield offset + tok.start, self.style_map.token_type(tok.kind), tok.value
            if len(body) < len(line):
                yield offset + len(body), Whitespace, line[len(body):]
            offset += len(line)
