"""koto-highlight command line interface."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from koto_highlight import __version__
from koto_highlight.config import (
    Config,
    load_config,
    load_config_or_default,
    load_grammar_file,
)
from koto_highlight.errors import ConfigError, DiagnosticRenderer, GrammarError
from koto_highlight.koto import DIALECTS
from koto_highlight.scanner import tokenize_line
from koto_highlight.tokens import INITIAL_STACK


def _config(ctx: click.Context) -> Config:
    return ctx.obj["config"]


def _report_grammar_error(e: GrammarError, source: str, color: bool) -> None:
    renderer = DiagnosticRenderer(color=color, source=source)
    for diag in e.diagnostics:
        click.echo(renderer.render(diag), err=True)


def _grammar_for(ctx: click.Context, dialect: str | None):
    config = _config(ctx)
    if dialect is not None:
        config.highlight.dialect = dialect
        config.highlight.grammar = None
    source = str(config.highlight.grammar or config.highlight.dialect)
    try:
        return config.load_grammar()
    except GrammarError as e:
        _report_grammar_error(e, source, config.output.color)
        raise SystemExit(1)
    except ConfigError as e:
        click.echo(f"error: {e}", err=True)
        raise SystemExit(1)


@click.group()
@click.version_option(__version__, prog_name="koto-highlight")
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False),
              help="Use this koto-highlight.toml instead of searching for one.")
@click.option("-v", "--verbose", is_flag=True, help="Log debug messages to stderr.")
@click.pass_context
def main(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """Syntax highlighting tokenizer for Koto source."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG, format="[%(levelname)s] %(name)s: %(message)s"
        )
    try:
        if config_path is not None:
            config = load_config(Path(config_path))
        else:
            config = load_config_or_default()
    except ConfigError as e:
        click.echo(f"error: {e}", err=True)
        raise SystemExit(1)
    ctx.ensure_object(dict)
    ctx.obj["config"] = config


_dialect_option = click.option(
    "--dialect", type=click.Choice(sorted(DIALECTS)), default=None,
    help="Grammar dialect (overrides the config file).",
)


@main.command()
@click.argument("file", type=click.File("r"))
@_dialect_option
@click.option("--stacks", is_flag=True, help="Show the mode stack after each line.")
@click.pass_context
def tokens(ctx: click.Context, file, dialect: str | None, stacks: bool) -> None:
    """Print the tokens of each line of FILE."""
    grammar = _grammar_for(ctx, dialect)
    stack = INITIAL_STACK
    for row, line in enumerate(file.read().splitlines(), 1):
        toks, stack = tokenize_line(grammar, line, stack)
        for tok in toks:
            click.echo(f"{row}:{tok.start}-{tok.end}\t{tok.kind}\t{tok.value!r}")
        if stacks:
            click.echo(f"{row}:\tstack\t{' > '.join(stack)}")


@main.command()
@click.argument("file", type=click.File("r"))
@_dialect_option
@click.option("--style", default=None, help="Pygments style name.")
@click.pass_context
def highlight(ctx: click.Context, file, dialect: str | None, style: str | None) -> None:
    """Print FILE with terminal colors."""
    from pygments import highlight as render
    from pygments.formatters import Terminal256Formatter
    from pygments.util import ClassNotFound

    from koto_highlight.pygments_lexer import KotoLexer

    config = _config(ctx)
    grammar = _grammar_for(ctx, dialect)
    try:
        formatter = Terminal256Formatter(style=style or config.output.style)
    except ClassNotFound as e:
        click.echo(f"error: {e}", err=True)
        raise SystemExit(1)
    sys.stdout.write(render(file.read(), KotoLexer(grammar=grammar), formatter))


@main.command(name="check-grammar")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def check_grammar(ctx: click.Context, file: str) -> None:
    """Compile the JSON grammar FILE and report any problems."""
    config = _config(ctx)
    try:
        grammar = load_grammar_file(Path(file))
    except GrammarError as e:
        _report_grammar_error(e, file, config.output.color)
        raise SystemExit(1)
    except ConfigError as e:
        click.echo(f"error: {e}", err=True)
        raise SystemExit(1)
    click.echo(f"{file}: ok ({len(grammar.modes)} modes)")


@main.command()
def dialects() -> None:
    """List the built-in grammar dialects."""
    for name in sorted(DIALECTS):
        d = DIALECTS[name]
        click.echo(f"{name}\ttemplates={d.template_style}")
