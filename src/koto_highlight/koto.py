"""Highlighting grammar for the Koto scripting language.

The grammar is built from one table; language revisions differ only in
the :class:`KotoDialect` flags passed to :func:`build_grammar`.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from koto_highlight.errors import ConfigError
from koto_highlight.grammar import CompiledGrammar, compile_grammar
from koto_highlight.rules import (
    POP,
    RuleGroup,
    default,
    group,
    include,
    rule,
    words,
)

IDENTIFIER = r"[A-Za-z_\u00a1-\uffff][A-Za-z0-9_\u00a1-\uffff]*"

# Token kinds
LINE_COMMENT = "keyword.comment.line.koto"
BLOCK_COMMENT = "comment.block.koto"
ESCAPE = "constant.character.escape.koto"
DOUBLE_QUOTED = "string.quoted.double.koto"
SINGLE_QUOTED = "string.quoted.single.koto"
TEMPLATE = "variable.parameter.koto"
CONSTANT = "constant.language.koto"
SELF = "constant.language.self.koto"
BUILTIN = "support.function.koto"
CONTROL = "keyword.control.koto"
FLOW = "keyword.control.flow.koto"
CONDITIONAL = "keyword.control.conditional.koto"
IMPORT = "keyword.control.import.koto"
OTHER_KEYWORD = "keyword.other"
NUMBER = "constant.numeric.koto"
OPERATOR = "keyword.operator.koto"
ASSIGNMENT = "keyword.operator.assignment.koto"
CURLY = "punctuation.brackets.curly.koto"
ROUND = "punctuation.brackets.round.koto"
SQUARE = "punctuation.brackets.square.koto"
DOT = "punctuation.dot.koto"
COMMA = "punctuation.comma.koto"
PARAMETERS = "punctuation.definition.parameters.koto"
DECORATOR = "punctuation.meta.decorator.koto"
MEMBER = "variable.other.member.koto"
FUNCTION_NAME = "entity.name.function.koto"
IDENTIFIER_KIND = "text.koto"
PUNCTUATION = "punctuation.koto"
STORAGE_TYPE = "storage.type.koto"
FUNCTION_DEF = "keyword.other.function-definition.koto"
ARGUMENTS_BEGIN = "punctuation.definition.arguments.begin.koto"
ARGUMENTS_END = "punctuation.definition.arguments.end.koto"
PARAM_SEPARATOR = "punctuation.separator.parameters.koto"


@dataclass(frozen=True)
class KotoDialect:
    name: str
    null_literal: bool = True
    flow_keywords: bool = True
    debug_keyword: bool = True
    decorators: bool = True
    sections: bool = True
    single_quoted: bool = True
    rich_escapes: bool = True
    nested_comments: bool = True
    typed_params: bool = True
    template_style: str = "dollar"  # "none", "brace" or "dollar"
    member_kind: str = MEMBER


DIALECTS: dict[str, KotoDialect] = {
    "legacy": KotoDialect(
        name="legacy",
        null_literal=False,
        flow_keywords=False,
        debug_keyword=False,
        decorators=False,
        sections=False,
        single_quoted=False,
        rich_escapes=False,
        typed_params=False,
        template_style="none",
        member_kind=FUNCTION_NAME,
    ),
    "playground": KotoDialect(
        name="playground",
        nested_comments=False,
        template_style="brace",
    ),
    "default": KotoDialect(name="default"),
}


def _keywords(d: KotoDialect) -> RuleGroup:
    constants = ["false", "true"] + (["null"] if d.null_literal else [])
    control = ["catch", "finally", "for", "in", "loop", "throw", "try",
               "until", "while"]
    flow = ["break", "continue", "return", "yield"]
    entries = [
        rule(CONSTANT, words(constants)),
        rule(SELF, r"\bself\b"),
        rule(BUILTIN, words(["assert", "assert_eq", "assert_ne", "assert_near"])),
    ]
    if d.flow_keywords:
        entries.append(rule(CONTROL, words(control)))
        entries.append(rule(FLOW, words(flow)))
    else:
        entries.append(rule(CONTROL, words(control + ["return", "yield"])))
    entries.append(rule(CONDITIONAL, words(["else", "if", "match", "switch", "then"])))
    entries.append(rule(IMPORT, words(["export", "from", "import"])))
    if d.debug_keyword:
        entries.append(rule(OTHER_KEYWORD, r"\bdebug\b"))
    return group(*entries)


def _numbers() -> RuleGroup:
    # Prefixed forms first, then fractions, so no form claims another's digits.
    return group(
        rule(NUMBER, r"-?\b0x[0-9a-fA-F]+\b"),
        rule(NUMBER, r"-?\b0o[0-7]+\b"),
        rule(NUMBER, r"-?\b0b[01]+\b"),
        rule(NUMBER, r"-?\b[0-9]+(?:\.[0-9]+(?:e[-+]?[0-9]+)?|e[-+]?[0-9]+)\b"),
        rule(NUMBER, r"-?\b[0-9]+\b"),
    )


def _operators() -> RuleGroup:
    return group(
        rule(OPERATOR, words(["and", "not", "or"])),
        rule(OPERATOR, r"\+=|-=|\*=|/=|%="),
        rule(OPERATOR, r"==?|!=|<=?|>=?"),
        rule(OPERATOR, r"\+|-|%|\*|/"),
        rule(OPERATOR, r"\.\.=?"),
    )


def _punctuation(d: KotoDialect) -> RuleGroup:
    entries = [rule(ROUND, r"\(|\)")]
    if not d.sections:
        entries.append(rule(CURLY, r"\{|\}"))
        entries.append(rule(SQUARE, r"\[|\]"))
    entries.append(rule(DOT, r"\."))
    entries.append(rule(COMMA, r","))
    if not d.typed_params:
        entries.append(rule(PARAMETERS, r"\|"))
    if d.decorators:
        entries.append(rule(DECORATOR, rf"@(?:{IDENTIFIER})?"))
    else:
        entries.append(rule(DECORATOR, r"@"))
    return group(*entries)


def _sections() -> RuleGroup:
    return group(
        rule(CURLY, r"\{", push=[
            rule(CURLY, r"\}", next=POP),
            include("#all"),
            default(CURLY),
        ]),
        rule(SQUARE, r"\[", push=[
            rule(SQUARE, r"\]", next=POP),
            include("#all"),
            default(SQUARE),
        ]),
    )


def _string(kind: str, quote: str, d: KotoDialect) -> RuleGroup:
    body = [rule(kind, quote, next=POP)]
    if d.rich_escapes:
        body.append(include("#string-escape"))
    else:
        body.append(rule(ESCAPE, r"\\."))
    if d.template_style != "none":
        body.append(include("#string-template"))
    body.append(default(kind))
    return group(rule(kind, quote, push=body))


def _string_escape(d: KotoDialect) -> RuleGroup:
    escaped = "'$rnt\"\\\\" + ("{" if d.template_style == "brace" else "")
    return group(
        rule(ESCAPE, rf"\\[{escaped}]"),
        rule(ESCAPE, r"\\$"),
        rule(ESCAPE, r"\\x[0-9a-fA-F]{2}"),
        rule(ESCAPE, r"\\u\{[0-9a-fA-F]{1,6}\}"),
    )


def _string_template(d: KotoDialect) -> RuleGroup:
    expression = [
        rule(TEMPLATE, r"\}", next=POP),
        include("#all"),
        default(TEMPLATE),
    ]
    if d.template_style == "brace":
        return group(rule(TEMPLATE, r"\{", push=expression))
    return group(
        rule(TEMPLATE, r"\$\{", push=expression),
        rule(TEMPLATE, rf"\${IDENTIFIER}"),
    )


def _typed_param_groups() -> dict[str, RuleGroup]:
    return {
        "#id_with_type": group(
            rule(
                (IDENTIFIER_KIND, PUNCTUATION, STORAGE_TYPE),
                rf"({IDENTIFIER})(?:(\s*:\s*)({IDENTIFIER}\??))?",
            ),
        ),
        "#let": group(
            rule(CONTROL, r"\blet\b", push=[
                rule(ASSIGNMENT, r"=", next=POP),
                include("#id_with_type"),
            ]),
        ),
        "#function": group(
            rule(FUNCTION_DEF, r"\|", push=[
                rule(FUNCTION_DEF, r"\|", next=POP),
                include("#function_arguments"),
                include("#return_type"),
            ]),
        ),
        "#function_arguments": group(
            rule(ARGUMENTS_BEGIN, r"\(", push=[
                rule(ARGUMENTS_END, r"\)", next=POP),
                include("#function_arguments"),
            ]),
            rule(PARAM_SEPARATOR, r","),
            include("#id_with_type"),
        ),
        "#return_type": group(
            rule(("text", STORAGE_TYPE), rf"(->\s*)({IDENTIFIER})"),
        ),
    }


def build_grammar(dialect: KotoDialect | str = "default") -> dict[str, RuleGroup]:
    """Return the uncompiled rule groups for a dialect."""
    d = dialect_named(dialect) if isinstance(dialect, str) else dialect

    comment_body = [
        rule(BLOCK_COMMENT, r"-#", next=POP),
        rule(ESCAPE, r"\\."),
    ]
    if d.nested_comments:
        comment_body.append(include("#comment-block"))
    comment_body.append(default(BLOCK_COMMENT))

    top = [
        include("#comment-block"),
        rule(LINE_COMMENT, r"#.*"),
        include("#keyword"),
        include("#number"),
    ]
    if d.typed_params:
        top.append(include("#return_type"))
    top += [include("#operator"), include("#punctuation")]
    if d.sections:
        top.append(include("#section"))
    top.append(include("#string"))
    if d.typed_params:
        top += [include("#let"), include("#function")]
    top.append(include("#identifier"))

    strings = []
    if d.single_quoted:
        strings.append(include("#string-single-quoted"))
    strings.append(include("#string-double-quoted"))

    groups: dict[str, RuleGroup] = {
        "start": group(include("#all")),
        "#all": group(*top),
        "#comment-block": group(
            rule(BLOCK_COMMENT, r"#-", push=comment_body),
        ),
        "#keyword": _keywords(d),
        "#number": _numbers(),
        "#operator": _operators(),
        "#punctuation": _punctuation(d),
        "#string": group(*strings),
        "#string-double-quoted": _string(DOUBLE_QUOTED, '"', d),
        "#identifier": group(
            rule(d.member_kind, rf"{IDENTIFIER}(?=:)"),
            rule(IDENTIFIER_KIND, IDENTIFIER),
        ),
    }
    if d.single_quoted:
        groups["#string-single-quoted"] = _string(SINGLE_QUOTED, "'", d)
    if d.rich_escapes:
        groups["#string-escape"] = _string_escape(d)
    if d.template_style != "none":
        groups["#string-template"] = _string_template(d)
    if d.sections:
        groups["#section"] = _sections()
    if d.typed_params:
        groups.update(_typed_param_groups())
    return groups


def dialect_named(name: str) -> KotoDialect:
    try:
        return DIALECTS[name]
    except KeyError:
        known = ", ".join(sorted(DIALECTS))
        raise ConfigError(f"unknown dialect {name!r} (known: {known})") from None


@lru_cache(maxsize=None)
def get_grammar(name: str = "default") -> CompiledGrammar:
    """Compiled grammar for a registered dialect. Compiled once per name."""
    return compile_grammar(build_grammar(dialect_named(name)))
