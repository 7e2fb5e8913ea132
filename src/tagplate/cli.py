"""Tagplate CLI

Usage:
    tagplate render page@main -c tagplate.yaml            # Render a template
    tagplate render page@main -d data.yaml -s title=Home  # With data
    tagplate render page.html --string                    # Render a file as raw source
    tagplate compile page@main -c tagplate.yaml           # Print compiled Jinja source
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, NoReturn, Optional

import typer
import yaml
from jinja2 import TemplateError
from rich.console import Console
from rich.logging import RichHandler

from tagplate._version import __version__
from tagplate.config import EngineConfig
from tagplate.engine import Engine
from tagplate.exceptions import TagplateError

console = Console(stderr=True)

app = typer.Typer(help="Compile and render tag templates.", no_args_is_help=True)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the tagplate CLI.

    Log levels:
    - Normal: Only warnings/errors shown
    - Verbose (-v): INFO level
    - Debug (TAGPLATE_DEBUG=1): DEBUG level - resolution, compile and cache traces
    """
    if os.environ.get("TAGPLATE_DEBUG"):
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    handler = RichHandler(
        console=console,
        show_time=verbose,
        show_path=bool(os.environ.get("TAGPLATE_DEBUG")),
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))

    logger = logging.getLogger("tagplate")
    logger.setLevel(level)
    logger.handlers = [handler]
    logger.propagate = False


def parse_assignments(items: Optional[List[str]]) -> Dict[str, Any]:
    """Parse KEY=VALUE pairs; values are read as YAML scalars."""
    data: Dict[str, Any] = {}
    for item in items or []:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"Expected KEY=VALUE, got '{item}'")
        data[key.strip()] = yaml.safe_load(value) if value else ""
    return data


def load_data(path: Optional[Path]) -> Dict[str, Any]:
    """Load template data from a YAML (or JSON) file."""
    if path is None:
        return {}
    if not path.exists():
        raise TagplateError(f"Data file not found: {path}")

    with open(path) as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise TagplateError(f"{path} must contain a mapping at the top level")
    return data


def build_engine(config_path: Optional[Path], debug: bool) -> Engine:
    config = EngineConfig.load(config_path) if config_path else EngineConfig()
    if debug:
        config.debug = True
    return Engine(config=config)


def _fail(exc: Exception) -> NoReturn:
    typer.secho(f"Error: {exc}", err=True, fg=typer.colors.RED)
    raise typer.Exit(code=1)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"tagplate {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    pass


@app.command()
def render(
    reference: str = typer.Argument(
        ..., help="Template reference (file@registry), or a file path with --string."
    ),
    config: Optional[Path] = typer.Option(
        None, "-c", "--config", help="Path to the engine YAML config."
    ),
    data: Optional[Path] = typer.Option(
        None, "-d", "--data", help="YAML or JSON file with template data."
    ),
    assignments: Optional[List[str]] = typer.Option(
        None, "-s", "--set", help="KEY=VALUE binding, repeatable."
    ),
    string: bool = typer.Option(
        False, "--string", help="Render the file at REFERENCE as raw source."
    ),
    output: Optional[Path] = typer.Option(
        None, "-o", "--output", help="Write output to file instead of stdout."
    ),
    debug: bool = typer.Option(False, "--debug", help="Bypass the artifact cache."),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose logging."),
) -> None:
    """Render a template."""
    setup_logging(verbose)

    try:
        engine = build_engine(config, debug)
        engine.assign(load_data(data))
        engine.assign(parse_assignments(assignments))

        if string:
            text = engine.render_string(Path(reference).read_text(encoding="utf-8"))
        else:
            text = engine.render_file(reference)
    except (TagplateError, TemplateError, OSError) as exc:
        _fail(exc)

    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(text, encoding="utf-8")
        typer.echo(f"Wrote rendered output to {output}")
    else:
        typer.echo(text, nl=False)


@app.command("compile")
def compile_(
    reference: str = typer.Argument(
        ..., help="Template reference (file@registry), or a file path with --string."
    ),
    config: Optional[Path] = typer.Option(
        None, "-c", "--config", help="Path to the engine YAML config."
    ),
    string: bool = typer.Option(
        False, "--string", help="Compile the file at REFERENCE as raw source."
    ),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose logging."),
) -> None:
    """Print the compiled Jinja source of a template."""
    setup_logging(verbose)

    try:
        engine = build_engine(config, debug=True)
        if string:
            text = engine.compile_string(Path(reference).read_text(encoding="utf-8"))
        else:
            text = engine.compile_file(reference)
    except (TagplateError, OSError) as exc:
        _fail(exc)

    typer.echo(text, nl=False)


if __name__ == "__main__":
    app()
