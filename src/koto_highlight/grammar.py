"""Grammar compiler.

Turns a table of rule groups into a :class:`CompiledGrammar` the scanner
can execute directly. Inline ``push`` lists become named anonymous groups,
includes are flattened in place, and every reference, pattern and
multi-kind rule is validated before anything is returned.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, replace
from types import MappingProxyType
from typing import Any

from koto_highlight.errors import (
    CIRCULAR_INCLUDE,
    INVALID_PATTERN,
    KIND_GROUP_MISMATCH,
    MALFORMED_RULE,
    UNKNOWN_GROUP,
    Diagnostic,
    GrammarError,
    RuleLocation,
    Severity,
)
from koto_highlight.rules import (
    POP,
    DefaultToken,
    Entry,
    Include,
    Rule,
    RuleGroup,
    groups_from_dict,
)
from koto_highlight.tokens import INITIAL_STACK, START, TEXT, ModeStack

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompiledRule:
    kinds: tuple[str, ...]
    regex: re.Pattern[str]
    push: str | None = None
    next: str | None = None

    @property
    def multi(self) -> bool:
        return len(self.kinds) > 1


@dataclass(frozen=True)
class Mode:
    """A flattened rule group, ready to scan with."""

    name: str
    rules: tuple[CompiledRule, ...]
    default_kind: str | None = None


@dataclass(frozen=True)
class CompiledGrammar:
    modes: Mapping[str, Mode]
    fallback_kind: str = TEXT

    def __contains__(self, name: object) -> bool:
        return name in self.modes

    def mode(self, name: str) -> Mode:
        return self.modes[name]

    def default_kind(self, mode: Mode) -> str:
        return mode.default_kind or self.fallback_kind

    def repair_stack(self, stack: ModeStack | list[str] | None) -> ModeStack:
        """Drop modes this grammar does not know; never return an empty stack."""
        if not stack:
            return INITIAL_STACK
        known = tuple(name for name in stack if name in self.modes)
        return known or INITIAL_STACK


def _push_name(parent: str, index: int) -> str:
    return f"{parent}/{index}"


class _Compiler:
    def __init__(self, groups: Mapping[str, RuleGroup]) -> None:
        self.groups = groups
        self.diagnostics: list[Diagnostic] = []
        # Every group, named or anonymous, with inline pushes replaced by names.
        self.hoisted: dict[str, tuple[Entry, ...]] = {}
        self.compiled: dict[tuple[str, int], CompiledRule] = {}
        self.flat: dict[str, list[CompiledRule]] = {}
        self._reported_cycles: set[frozenset[str]] = set()

    def _error(self, code: str, message: str, loc: RuleLocation | None = None,
               notes: list[str] | None = None) -> None:
        self.diagnostics.append(
            Diagnostic(Severity.ERROR, code, message, loc, notes or [])
        )

    # ── Phase 1: name inline push groups ─────────────────────────

    def hoist(self, name: str, entries: tuple[Entry, ...]) -> None:
        out: list[Entry] = []
        for i, entry in enumerate(entries):
            if isinstance(entry, Rule) and isinstance(entry.push, tuple):
                anon = _push_name(name, i)
                if anon in self.groups:
                    self._error(
                        MALFORMED_RULE,
                        f"malformed rule: group name {anon} clashes with a push group",
                        RuleLocation(name, i),
                    )
                self.hoist(anon, entry.push)
                entry = replace(entry, push=anon)
            out.append(entry)
        self.hoisted[name] = tuple(out)

    # ── Phase 2: validate and compile each rule once ─────────────

    def compile_rule(self, name: str, index: int, r: Rule) -> None:
        loc = RuleLocation(name, index)
        kinds = r.kinds

        if not kinds or any(not k for k in kinds):
            self._error(MALFORMED_RULE, "malformed rule: empty token kind", loc)
            return
        if r.push is not None and r.next is not None:
            self._error(
                MALFORMED_RULE, "malformed rule: 'push' and 'next' are exclusive", loc
            )
            return

        for target in (r.push, r.next):
            if target is not None and target != POP and target not in self.hoisted:
                self._error(UNKNOWN_GROUP, f"unknown group {target}", loc)
                return

        if isinstance(r.pattern, re.Pattern):
            regex = r.pattern
        elif not r.pattern:
            self._error(MALFORMED_RULE, "malformed rule: empty pattern", loc)
            return
        else:
            try:
                regex = re.compile(r.pattern)
            except (re.error, TypeError) as e:
                self._error(
                    INVALID_PATTERN, f"invalid pattern {r.pattern!r}: {e}", loc
                )
                return

        if len(kinds) > 1 and regex.groups != len(kinds):
            self._error(
                KIND_GROUP_MISMATCH,
                "kind/group mismatch",
                loc,
                [f"{len(kinds)} kinds but the pattern has "
                 f"{regex.groups} capturing group(s)"],
            )
            return

        self.compiled[(name, index)] = CompiledRule(kinds, regex, r.push, r.next)

    # ── Phase 3: flatten includes ────────────────────────────────

    def flatten(self, name: str, path: tuple[str, ...] = ()) -> list[CompiledRule]:
        if name in self.flat:
            return self.flat[name]

        rules: list[CompiledRule] = []
        for i, entry in enumerate(self.hoisted[name]):
            if isinstance(entry, Rule):
                compiled = self.compiled.get((name, i))
                if compiled is not None:
                    rules.append(compiled)
            elif isinstance(entry, Include):
                target = entry.group
                if target not in self.hoisted:
                    self._error(UNKNOWN_GROUP, f"unknown group {target}",
                                RuleLocation(name, i))
                    continue
                if target == name or target in path:
                    self._report_cycle(path + (name,), target, RuleLocation(name, i))
                    continue
                rules.extend(self.flatten(target, path + (name,)))

        self.flat[name] = rules
        return rules

    def _report_cycle(self, path: tuple[str, ...], target: str,
                      loc: RuleLocation) -> None:
        cycle = path[path.index(target):] + (target,)
        key = frozenset(cycle)
        if key in self._reported_cycles:
            return
        self._reported_cycles.add(key)
        self._error(CIRCULAR_INCLUDE,
                    f"circular include: {' -> '.join(cycle)}", loc)

    def run(self, fallback_kind: str) -> CompiledGrammar:
        for name, grp in self.groups.items():
            self.hoist(name, tuple(grp))

        if START not in self.hoisted:
            self._error(UNKNOWN_GROUP, f"unknown group {START}")

        for name, entries in self.hoisted.items():
            for i, entry in enumerate(entries):
                if isinstance(entry, Rule):
                    self.compile_rule(name, i, entry)

        for name in self.hoisted:
            self.flatten(name)

        if self.diagnostics:
            raise GrammarError(self.diagnostics)

        modes = {}
        for name, entries in self.hoisted.items():
            default_kind = None
            for entry in entries:
                if isinstance(entry, DefaultToken):
                    default_kind = entry.kind
                    break
            modes[name] = Mode(name, tuple(self.flat[name]), default_kind)
        return CompiledGrammar(MappingProxyType(modes), fallback_kind)


def compile_grammar(
    groups: Mapping[str, RuleGroup | Any], *, fallback_kind: str = TEXT
) -> CompiledGrammar:
    """Compile a rule-group table. Raises GrammarError on any problem.

    ``groups`` may mix :class:`RuleGroup` values with ace-style lists of
    dicts; the latter are read with :func:`groups_from_dict` first.
    """
    if not all(isinstance(g, RuleGroup) for g in groups.values()):
        groups = groups_from_dict(groups)

    compiler = _Compiler(groups)
    try:
        grammar = compiler.run(fallback_kind)
    except GrammarError as e:
        logger.debug("grammar rejected with %d diagnostic(s)", len(e.diagnostics))
        raise
    logger.debug(
        "compiled %d mode(s) from %d group(s)", len(grammar.modes), len(groups)
    )
    return grammar
