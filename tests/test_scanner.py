"""Tests for the per-line scanner, using small hand-written grammars."""

from __future__ import annotations

from koto_highlight.grammar import compile_grammar
from koto_highlight.rules import POP, default, group, include, rule
from koto_highlight.scanner import tokenize_line, tokenize_lines
from koto_highlight.tokens import INITIAL_STACK, START, TEXT
from tests.helpers import scan


def parens():
    return compile_grammar({
        "start": group(
            rule("open", r"\(", push=[
                rule("close", r"\)", next=POP),
                include("start"),
                default("inner"),
            ]),
            rule("num", r"[0-9]+"),
        ),
    })


class TestMatching:
    def test_first_rule_wins(self):
        g = compile_grammar({
            "start": group(rule("first", "ab"), rule("second", "abc")),
        })
        assert scan(g, "abc")[0] == [("first", "ab"), (TEXT, "c")]

    def test_rules_are_anchored(self):
        g = compile_grammar({"start": group(rule("b", "b"))})
        assert scan(g, "ab")[0] == [(TEXT, "a"), ("b", "b")]

    def test_lookbehind_sees_preceding_text(self):
        g = compile_grammar({"start": group(rule("after-a", r"(?<=a)b"))})
        assert scan(g, "ab")[0] == [(TEXT, "a"), ("after-a", "b")]
        assert scan(g, "cb")[0] == [(TEXT, "cb")]

    def test_unmatched_run_is_one_token(self):
        g = compile_grammar({"start": group(rule("num", r"[0-9]+"))})
        assert scan(g, "ab12cd")[0] == [(TEXT, "ab"), ("num", "12"), (TEXT, "cd")]

    def test_include_keeps_position(self):
        g = compile_grammar({
            "start": group(rule("a", "a"), include("g"), rule("late", "b")),
            "g": group(rule("early", "b")),
        })
        assert scan(g, "ab")[0] == [("a", "a"), ("early", "b")]

    def test_custom_fallback_kind(self):
        g = compile_grammar({"start": group(rule("x", "x"))}, fallback_kind="plain")
        assert scan(g, "yx")[0] == [("plain", "y"), ("x", "x")]

    def test_empty_line(self):
        assert scan(parens(), "") == ([], INITIAL_STACK)


class TestMultiKindRules:
    def test_one_token_per_group(self):
        g = compile_grammar({"start": group(rule(("a", "b"), r"(x)(y)"))})
        assert scan(g, "xy")[0] == [("a", "x"), ("b", "y")]

    def test_text_between_groups_gets_default(self):
        g = compile_grammar({"start": group(rule(("a", "b"), r"(x)-(y)"))})
        assert scan(g, "x-y")[0] == [("a", "x"), (TEXT, "-"), ("b", "y")]

    def test_missing_optional_group_emits_nothing(self):
        g = compile_grammar({"start": group(rule(("a", "b"), r"(x)(y)?"))})
        assert scan(g, "x")[0] == [("a", "x")]

    def test_group_in_lookahead_is_clipped(self):
        g = compile_grammar({"start": group(rule(("a", "b"), r"(x)(?=(y))"))})
        assert scan(g, "xy")[0] == [("a", "x"), (TEXT, "y")]


class TestModeStack:
    def test_balanced_region(self):
        tokens, out = scan(parens(), "(1)")
        assert tokens == [("open", "("), ("num", "1"), ("close", ")")]
        assert out == INITIAL_STACK

    def test_default_token_inside_region(self):
        tokens, _ = scan(parens(), "(a 1)")
        assert tokens == [("open", "("), ("inner", "a "), ("num", "1"), ("close", ")")]

    def test_recursive_regions(self):
        _, out = scan(parens(), "((")
        assert out == (START, "start/0", "start/0")
        _, out = scan(parens(), "))", out)
        assert out == INITIAL_STACK

    def test_open_region_persists_across_lines(self):
        g = parens()
        lines, out = tokenize_lines(g, ["(a", "b", "c)"])
        assert [t.kind for t in lines[1]] == ["inner"]
        assert out == INITIAL_STACK

    def test_pop_at_start_is_noop(self):
        g = compile_grammar({"start": group(rule("close", r"\)", next=POP))})
        tokens, out = scan(g, "))")
        assert tokens == [("close", ")"), ("close", ")")]
        assert out == INITIAL_STACK

    def test_push_named_group(self):
        g = compile_grammar({
            "start": group(rule("open", r"\(", push="paren")),
            "paren": group(rule("close", r"\)", next=POP), default("inner")),
        })
        assert scan(g, "(x")[1] == (START, "paren")
        assert scan(g, "(x)")[1] == INITIAL_STACK

    def test_next_replaces_top(self):
        g = compile_grammar({
            "start": group(rule("a", "a", next="other")),
            "other": group(rule("b", "b", next="start"), default("o")),
        })
        tokens, out = scan(g, "axb")
        assert tokens == [("a", "a"), ("o", "x"), ("b", "b")]
        assert out == INITIAL_STACK
        assert scan(g, "ax")[1] == ("other",)

    def test_unknown_modes_are_dropped(self):
        g = parens()
        assert scan(g, "1", ("gone",))[1] == INITIAL_STACK
        assert scan(g, "1", (START, "gone"))[1] == INITIAL_STACK

    def test_empty_stack_means_start(self):
        assert scan(parens(), "1", ())[0] == [("num", "1")]

    def test_input_stack_is_not_mutated(self):
        stack = (START, "start/0")
        tokenize_line(parens(), ")", stack)
        assert stack == (START, "start/0")


class TestZeroWidth:
    def test_zero_width_rule_terminates(self):
        g = compile_grammar({"start": group(rule("never", r"(?=x)"))})
        tokens, out = scan(g, "xx")
        assert "".join(v for _, v in tokens) == "xx"
        assert out == INITIAL_STACK

    def test_zero_width_push_consumes_under_new_mode(self):
        g = compile_grammar({
            "start": group(rule("open", r"(?=a)", push=[
                rule("close", "b", next=POP),
                default("inner"),
            ])),
        })
        tokens, out = scan(g, "ab")
        assert tokens == [("inner", "a"), ("close", "b")]
        assert out == INITIAL_STACK

    def test_zero_width_push_every_position(self):
        g = compile_grammar({
            "start": group(rule("open", r"(?=.)", push=[
                rule("open", r"(?=.)", push="start"),
            ])),
        })
        tokens, out = scan(g, "abc")
        assert len(out) == 4
