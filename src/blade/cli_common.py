"""Shared CLI helpers."""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from pathlib import Path

import click
import libcst as cst
from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax

from blade import config as config_module
from blade import logging_config
from blade.config import TransformConfig
from blade.transform import BladeError, TransformResult, transform_source


DEFAULT_OUTPUT_THEME = "github-dark"


logger = logging.getLogger("blade")


@dataclass
class CommonArgs:
    """Options shared by the transform and query commands."""

    files: list[str]
    config: str
    pretty: bool | None
    access_style: str | None
    strict_aliases: bool | None
    color_flag: bool | None
    out_theme: str


def should_use_color(color_flag: bool | None) -> bool:
    """Determine if color should be used based on flag and TTY detection.

    Args:
        color_flag: Explicit color preference (True/False) or None for auto-detect

    Returns:
        True if colors should be used, False otherwise
    """
    if color_flag is None:
        return sys.stdout.isatty()
    return color_flag


def build_console(color_enabled: bool, stderr: bool = False) -> Console:
    """Build a rich console writing to stdout or stderr."""
    return Console(
        stderr=stderr,
        force_terminal=color_enabled,
        no_color=not color_enabled,
        highlight=False,
        soft_wrap=True,
    )


def write_plain(console: Console, text: str) -> None:
    """Write plain output directly to console stream."""
    console.file.write(f"{text}\n")
    console.file.flush()


def print_code(
    console: Console, code: str, lexer: str, color_enabled: bool, out_theme: str
) -> None:
    """Print source text, highlighted when color is enabled."""
    if not color_enabled:
        write_plain(console, code.rstrip("\n"))
        return
    theme = out_theme.strip() or DEFAULT_OUTPUT_THEME
    console.print(Syntax(code.rstrip("\n"), lexer, theme=theme, background_color="default"))


def print_error(console: Console, message: str, color_enabled: bool) -> None:
    """Print an error message to the error console."""
    if color_enabled:
        console.print(f"[bold red]error:[/] {escape(message)}")
    else:
        write_plain(console, f"error: {message}")


def load_transform_config(args: CommonArgs) -> TransformConfig:
    """Resolve transform options from the command line and the config file."""
    defaults = config_module.load_config_defaults(args.config)
    if defaults.get("verbose") is True:
        logging_config.configure_logging(True)
    return config_module.build_transform_config(
        defaults,
        pretty=args.pretty,
        access_style=args.access_style,
        strict_aliases=args.strict_aliases,
    )


def read_source(path: str) -> str:
    """Read a Python module, rejecting unreadable files."""
    try:
        return Path(path).read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise click.UsageError(f"File not found: {path}") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise click.UsageError(f"Cannot read {path}: {exc}") from exc


def format_syntax_error(path: str, exc: cst.ParserSyntaxError) -> str:
    """Render a libcst parse failure as `path:line:col: message`."""
    return f"{path}:{exc.raw_line}:{exc.raw_column}: {exc.message}"


def run_transform(
    path: str, config: TransformConfig, error_console: Console, color_enabled: bool
) -> TransformResult | None:
    """Transform one file, printing any error; None when it failed."""
    source = read_source(path)
    try:
        result = transform_source(source, config, path)
    except cst.ParserSyntaxError as exc:
        print_error(error_console, format_syntax_error(path, exc), color_enabled)
        return None
    except BladeError as exc:
        print_error(error_console, str(exc), color_enabled)
        return None

    logger.info("Transformed %s: %d queries", path, len(result.documents))
    return result
