"""Token representation and mode stacks for the highlighting scanner."""

from __future__ import annotations

from dataclasses import dataclass

# Name of the initial rule group.
START = "start"

# Kind used for unmatched text in a mode that declares no default token.
TEXT = "text"

# Nested lexical regions currently open, innermost last.
ModeStack = tuple[str, ...]

INITIAL_STACK: ModeStack = (START,)


@dataclass(frozen=True)
class Token:
    """A classified span of one line: ``line[start:end]`` is ``value``."""

    kind: str
    start: int
    end: int
    value: str

    def __len__(self) -> int:
        return self.end - self.start


def token_pairs(tokens: list[Token]) -> list[tuple[str, str]]:
    """Return ``(kind, value)`` pairs, the form most callers compare against."""
    return [(t.kind, t.value) for t in tokens]
