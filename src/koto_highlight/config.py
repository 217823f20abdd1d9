"""TOML config loading for koto-highlight.toml."""

from __future__ import annotations

import json
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from koto_highlight.errors import ConfigError
from koto_highlight.grammar import CompiledGrammar, compile_grammar
from koto_highlight.koto import DIALECTS, build_grammar, get_grammar
from koto_highlight.tokens import TEXT

CONFIG_NAME = "koto-highlight.toml"


@dataclass
class HighlightConfig:
    dialect: str = "default"
    grammar: Path | None = None
    fallback_kind: str = TEXT


@dataclass
class OutputConfig:
    style: str = "default"
    color: bool = True


@dataclass
class Config:
    highlight: HighlightConfig = field(default_factory=HighlightConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    def load_grammar(self) -> CompiledGrammar:
        """The configured grammar: a JSON grammar file, or a built-in dialect."""
        if self.highlight.grammar is not None:
            return load_grammar_file(
                self.highlight.grammar, fallback_kind=self.highlight.fallback_kind
            )
        if self.highlight.fallback_kind != TEXT:
            return compile_grammar(
                build_grammar(self.highlight.dialect),
                fallback_kind=self.highlight.fallback_kind,
            )
        return get_grammar(self.highlight.dialect)


def find_config(start_path: Path | None = None) -> Path:
    """Walk up directories to find koto-highlight.toml. Raises FileNotFoundError."""
    path = (start_path or Path.cwd()).resolve()
    if path.is_file():
        path = path.parent
    while True:
        candidate = path / CONFIG_NAME
        if candidate.exists():
            return candidate
        parent = path.parent
        if parent == path:
            raise FileNotFoundError(f"No {CONFIG_NAME} found in any parent directory")
        path = parent


def load_config(path: Path) -> Config:
    """Parse a koto-highlight.toml file into a Config."""
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"{path}: {e}") from e

    config = Config()

    if "highlight" in data:
        hl = data["highlight"]
        dialect = hl.get("dialect", "default")
        if dialect not in DIALECTS:
            known = ", ".join(sorted(DIALECTS))
            raise ConfigError(f"{path}: unknown dialect {dialect!r} (known: {known})")
        grammar = hl.get("grammar")
        config.highlight = HighlightConfig(
            dialect=dialect,
            grammar=(path.parent / grammar) if grammar else None,
            fallback_kind=hl.get("fallback_kind", TEXT),
        )

    if "output" in data:
        out = data["output"]
        config.output = OutputConfig(
            style=out.get("style", "default"),
            color=out.get("color", True),
        )

    return config


def load_config_or_default(start_path: Path | None = None) -> Config:
    try:
        return load_config(find_config(start_path))
    except FileNotFoundError:
        return Config()


def load_grammar_file(path: Path, *, fallback_kind: str = TEXT) -> CompiledGrammar:
    """Compile an ace-style JSON grammar file. Raises GrammarError or ConfigError."""
    try:
        data = json.loads(Path(path).read_text())
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"{path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: expected a JSON object of rule groups")
    return compile_grammar(data, fallback_kind=fallback_kind)
