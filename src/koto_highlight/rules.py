"""Declarative grammar data model.

A grammar is a mapping of group name to :class:`RuleGroup`. Each group is
an ordered list of entries:

* :class:`Rule` matches a pattern at the current offset and emits one
  token (or one per capturing group when ``kind`` is a tuple). It may
  ``push`` a nested group, or leave the current one with ``next="pop"``.
* :class:`Include` inlines another group's rules at its position.
* :class:`DefaultToken` names the kind given to unmatched text while the
  group is the active mode.

Grammars can also be written in the ace editor's dict form and read with
:func:`groups_from_dict`.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Union

from pygments.lexer import words as pygments_words

from koto_highlight.errors import (
    MALFORMED_RULE,
    Diagnostic,
    GrammarError,
    RuleLocation,
    Severity,
)

POP = "pop"


@dataclass(frozen=True)
class Rule:
    kind: str | tuple[str, ...]
    pattern: str | re.Pattern[str]
    push: tuple[Entry, ...] | str | None = None
    next: str | None = None

    @property
    def kinds(self) -> tuple[str, ...]:
        if isinstance(self.kind, str):
            return (self.kind,)
        return tuple(self.kind)


@dataclass(frozen=True)
class Include:
    group: str


@dataclass(frozen=True)
class DefaultToken:
    kind: str


Entry = Union[Rule, Include, DefaultToken]


@dataclass(frozen=True)
class RuleGroup:
    entries: tuple[Entry, ...] = field(default_factory=tuple)

    def __iter__(self):
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)


# ── Construction helpers ──────────────────────────────────────────


def rule(
    kind: str | Iterable[str],
    pattern: str | re.Pattern[str],
    *,
    push: Iterable[Entry] | str | None = None,
    next: str | None = None,
) -> Rule:
    if not isinstance(kind, str):
        kind = tuple(kind)
    if push is not None and not isinstance(push, str):
        push = tuple(push)
    return Rule(kind, pattern, push=push, next=next)


def include(group: str) -> Include:
    return Include(group)


def default(kind: str) -> DefaultToken:
    return DefaultToken(kind)


def group(*entries: Entry) -> RuleGroup:
    return RuleGroup(tuple(entries))


def words(
    items: Iterable[str], prefix: str = r"\b", suffix: str = r"\b"
) -> str:
    """Optimised pattern matching any of ``items`` as a whole word."""
    return pygments_words(tuple(items), prefix=prefix, suffix=suffix).get()


# ── ace-style dict reader ─────────────────────────────────────────


def _entry_from_dict(
    raw: Any, loc: RuleLocation, diags: list[Diagnostic]
) -> Entry | None:
    if not isinstance(raw, Mapping):
        diags.append(Diagnostic(
            Severity.ERROR, MALFORMED_RULE,
            f"malformed rule: expected an object, got {type(raw).__name__}",
            loc,
        ))
        return None

    if "include" in raw:
        return Include(str(raw["include"]))

    if "token" not in raw and "regex" not in raw:
        if "defaultToken" in raw:
            return DefaultToken(str(raw["defaultToken"]))
        diags.append(Diagnostic(
            Severity.ERROR, MALFORMED_RULE,
            "malformed rule: needs 'token' and 'regex', 'include' or 'defaultToken'",
            loc,
        ))
        return None

    token = raw.get("token", "")
    kind: str | tuple[str, ...]
    if isinstance(token, (list, tuple)):
        kind = tuple(str(t) for t in token)
    else:
        kind = str(token)

    regex = raw.get("regex", "")
    if not isinstance(regex, str):
        diags.append(Diagnostic(
            Severity.ERROR, MALFORMED_RULE,
            f"malformed rule: 'regex' must be a string, got {type(regex).__name__}",
            loc,
        ))
        return None

    push: tuple[Entry, ...] | str | None = None
    raw_push = raw.get("push")
    if isinstance(raw_push, str):
        push = raw_push
    elif isinstance(raw_push, (list, tuple)):
        nested = []
        for i, item in enumerate(raw_push):
            sub = RuleLocation(f"{loc}.push", i)
            entry = _entry_from_dict(item, sub, diags)
            if entry is not None:
                nested.append(entry)
        push = tuple(nested)
    elif raw_push is not None:
        diags.append(Diagnostic(
            Severity.ERROR, MALFORMED_RULE,
            f"malformed rule: 'push' must be a group name or a list of rules, "
            f"got {type(raw_push).__name__}",
            loc,
        ))
        return None

    next_ = raw.get("next")
    return Rule(kind, regex, push=push,
                next=None if next_ is None else str(next_))


def groups_from_dict(data: Mapping[str, Any]) -> dict[str, RuleGroup]:
    """Read an ace-style rules table (``{"start": [{"token": ..., ...}]}``).

    Raises GrammarError listing every malformed entry.
    """
    diags: list[Diagnostic] = []
    groups: dict[str, RuleGroup] = {}
    for name, raw_entries in data.items():
        if isinstance(raw_entries, RuleGroup):
            groups[name] = raw_entries
            continue
        if isinstance(raw_entries, (str, bytes)) or not isinstance(raw_entries, Iterable):
            diags.append(Diagnostic(
                Severity.ERROR, MALFORMED_RULE,
                f"malformed group {name}: expected a list of rules",
                RuleLocation(name),
            ))
            continue
        entries = []
        for i, raw in enumerate(raw_entries):
            if isinstance(raw, (Rule, Include, DefaultToken)):
                entries.append(raw)
                continue
            entry = _entry_from_dict(raw, RuleLocation(name, i), diags)
            if entry is not None:
                entries.append(entry)
        groups[name] = RuleGroup(tuple(entries))
    if diags:
        raise GrammarError(diags)
    return groups
