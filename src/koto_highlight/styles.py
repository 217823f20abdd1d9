"""Map token kinds onto Pygments token types.

Kinds are an open vocabulary of dotted names, so the mapping works on
prefixes: the longest registered prefix of a kind decides its style.
"""

from __future__ import annotations

from collections.abc import Mapping

from pygments.token import (
    Comment,
    Keyword,
    Name,
    Number,
    Operator,
    Punctuation,
    String,
    Text,
    Token,
)

TokenType = type(Token)

DEFAULT_STYLES: dict[str, TokenType] = {
    "comment": Comment,
    "comment.block": Comment.Multiline,
    "keyword.comment": Comment.Single,
    "constant.character.escape": String.Escape,
    "constant.language": Keyword.Constant,
    "constant.language.self": Name.Builtin.Pseudo,
    "constant.numeric": Number,
    "entity.name.function": Name.Function,
    "keyword": Keyword,
    "keyword.control.import": Keyword.Namespace,
    "keyword.operator": Operator,
    "keyword.other.function-definition": Keyword.Declaration,
    "punctuation": Punctuation,
    "punctuation.meta.decorator": Name.Decorator,
    "storage.type": Keyword.Type,
    "string": String,
    "string.quoted.double": String.Double,
    "string.quoted.single": String.Single,
    "support.function": Name.Builtin,
    "text": Text,
    "variable.other.member": Name.Attribute,
    "variable.parameter": String.Interpol,
}


class StyleMap:
    """Resolves kinds such as ``string.quoted.double.koto`` to token types."""

    def __init__(self, styles: Mapping[str, TokenType] | None = None,
                 fallback: TokenType = Text) -> None:
        self.styles = dict(DEFAULT_STYLES if styles is None else styles)
        self.fallback = fallback
        self._cache: dict[str, TokenType] = {}

    def token_type(self, kind: str) -> TokenType:
        cached = self._cache.get(kind)
        if cached is not None:
            return cached
        parts = kind.split(".")
        result = self.fallback
        for n in range(len(parts), 0, -1):
            prefix = ".".join(parts[:n])
            if prefix in self.styles:
                result = self.styles[prefix]
                break
        self._cache[kind] = result
        return result
