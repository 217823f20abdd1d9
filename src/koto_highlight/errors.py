"""Grammar diagnostics and their colored rendering."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"
    NOTE = "note"


# ANSI color codes
_COLORS = {
    Severity.ERROR: "\033[1;31m",    # bold red
    Severity.WARNING: "\033[1;33m",  # bold yellow
    Severity.NOTE: "\033[1;36m",     # bold cyan
}
_BOLD = "\033[1m"
_BLUE = "\033[1;34m"
_RESET = "\033[0m"

# Diagnostic codes
UNKNOWN_GROUP = "G001"
CIRCULAR_INCLUDE = "G002"
KIND_GROUP_MISMATCH = "G003"
INVALID_PATTERN = "G004"
MALFORMED_RULE = "G005"


@dataclass(frozen=True)
class RuleLocation:
    """Points at one entry of a rule group: ``group[index]``."""

    group: str
    index: int | None = None

    def __str__(self) -> str:
        if self.index is None:
            return self.group
        return f"{self.group}[{self.index}]"


@dataclass
class Diagnostic:
    """A single problem found while compiling a grammar."""

    severity: Severity
    code: str
    message: str
    location: RuleLocation | None = None
    notes: list[str] = field(default_factory=list)


class DiagnosticRenderer:
    """Renders diagnostics in a compact rustc-like format."""

    def __init__(self, *, color: bool = True, source: str = "<grammar>") -> None:
        self.color = color
        self.source = source

    def _c(self, code: str) -> str:
        return code if self.color else ""

    def render(self, diag: Diagnostic) -> str:
        lines: list[str] = []
        sev = diag.severity
        color = _COLORS[sev]

        # Header: error[G001]: message
        lines.append(
            f"{self._c(color)}{sev.value}[{diag.code}]{self._c(_RESET)}"
            f"{self._c(_BOLD)}: {diag.message}{self._c(_RESET)}"
        )

        if diag.location is not None:
            lines.append(
                f"  {self._c(_BLUE)}-->{self._c(_RESET)} "
                f"{self.source}: {diag.location}"
            )

        for note in diag.notes:
            lines.append(f"  {self._c(_BLUE)}={self._c(_RESET)} note: {note}")

        return "\n".join(lines)


class KotoHighlightError(Exception):
    """Base class for errors raised by this package."""


class GrammarError(KotoHighlightError):
    """Grammar construction failed; carries every diagnostic found."""

    def __init__(self, diagnostics: list[Diagnostic]) -> None:
        self.diagnostics = diagnostics
        messages = [d.message for d in diagnostics]
        if len(messages) == 1:
            super().__init__(messages[0])
        else:
            super().__init__(f"{messages[0]} (and {len(messages) - 1} more)")

    @property
    def codes(self) -> list[str]:
        return [d.code for d in self.diagnostics]


class ConfigError(KotoHighlightError):
    """A koto-highlight.toml file could not be used."""
