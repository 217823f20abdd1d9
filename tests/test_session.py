"""Tests for per-buffer highlighting sessions."""

from __future__ import annotations

import pytest

from koto_highlight import koto
from koto_highlight.session import HighlightSession
from koto_highlight.tokens import INITIAL_STACK, START, token_pairs

COMMENT_MODE = "#comment-block/0"


@pytest.fixture
def session(grammar):
    return HighlightSession(grammar, ["x = 1", "#- open", "inside", "-# y"])


class TestHighlightSession:
    def test_initial_tokenize(self, session):
        assert len(session) == 4
        assert session.state(0).stack_in == INITIAL_STACK
        assert session.stack_after(1) == (START, COMMENT_MODE)
        assert token_pairs(session.tokens_for(2)) == [(koto.BLOCK_COMMENT, "inside")]
        assert session.stack_after(3) == INITIAL_STACK

    def test_edit_without_stack_change_stops_early(self, session):
        assert session.update_line(0, "x = 2") == 1
        assert session.lines[0] == "x = 2"

    def test_removing_opener_retokenizes_following_lines(self, session):
        assert session.update_line(1, "x = 3") == 3
        assert token_pairs(session.tokens_for(2)) == [(koto.IDENTIFIER_KIND, "inside")]

    def test_insert_opener(self, grammar):
        s = HighlightSession(grammar, ["a", "b"])
        assert s.insert_lines(1, ["#- c"]) == 2
        assert s.lines == ["a", "#- c", "b"]
        assert token_pairs(s.tokens_for(2)) == [(koto.BLOCK_COMMENT, "b")]

    def test_delete_opener(self, session):
        session.delete_lines(1)
        assert session.lines == ["x = 1", "inside", "-# y"]
        assert token_pairs(session.tokens_for(1)) == [(koto.IDENTIFIER_KIND, "inside")]

    def test_set_text(self, grammar):
        s = HighlightSession(grammar)
        assert s.set_text('"a\nb"\n') == 2
        assert s.stack_after(0) == (START, "#string-double-quoted/0")
        assert s.stack_after(1) == INITIAL_STACK

    def test_row_out_of_range(self, session):
        with pytest.raises(IndexError):
            session.update_line(4, "")
        with pytest.raises(IndexError):
            session.insert_lines(6, [])
