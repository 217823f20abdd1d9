"""Shared pytest fixtures for the koto-highlight test suite."""

from __future__ import annotations

import pytest

from koto_highlight.grammar import CompiledGrammar
from koto_highlight.koto import get_grammar


@pytest.fixture
def grammar() -> CompiledGrammar:
    """The default Koto dialect."""
    return get_grammar("default")
