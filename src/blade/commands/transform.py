"""Transform command: rewrite modules with their inferred query documents."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import click
import typer

from blade import config as config_module
from blade.cli_common import (
    DEFAULT_OUTPUT_THEME,
    CommonArgs,
    build_console,
    load_transform_config,
    print_code,
    run_transform,
    should_use_color,
    write_plain,
)


logger = logging.getLogger("blade")


@dataclass
class TransformArgs(CommonArgs):
    """Arguments for the transform command."""

    in_place: bool
    check: bool


def run_transform_command(args: TransformArgs) -> None:
    """Run the transform command."""
    if args.in_place and args.check:
        raise click.UsageError("--in-place and --check cannot be used together")

    color_enabled = should_use_color(args.color_flag)
    console = build_console(color_enabled)
    error_console = build_console(color_enabled, stderr=True)
    transform_config = load_transform_config(args)

    failed = False
    pending: list[str] = []
    for path in args.files:
        result = run_transform(path, transform_config, error_console, color_enabled)
        if result is None:
            failed = True
            continue

        if args.check:
            if result.changed:
                pending.append(path)
                write_plain(console, f"would rewrite {path}")
            continue
        if args.in_place:
            if result.changed:
                Path(path).write_text(result.code, encoding="utf-8")
                logger.info("Rewrote %s", path)
                write_plain(console, f"rewrote {path}")
            continue

        if len(args.files) > 1:
            write_plain(console, f"# {path}")
        print_code(console, result.code, "python", color_enabled, args.out_theme)

    if failed or pending:
        raise typer.Exit(code=1)


def register(app: typer.Typer) -> None:
    """Register the transform command."""

    @app.command("transform")
    def transform_command(  # noqa: PLR0913
        files: list[str] = typer.Argument(  # noqa: B008
            ..., metavar="FILE", help="Python modules to transform"
        ),
        config: str = typer.Option(
            config_module.DEFAULT_CONFIG_NAME,
            "--config",
            metavar="FILE",
            help="Config file name to load from current directory",
        ),
        in_place: bool = typer.Option(
            False,
            "--in-place",
            "-i",
            help="Write rewritten modules back to their files",
        ),
        check: bool = typer.Option(
            False,
            "--check",
            help="Exit with status 1 if any module would be rewritten",
        ),
        pretty: bool | None = typer.Option(
            None,
            "--pretty/--compact",
            help="Emit indented multi-line documents instead of one-line documents",
        ),
        access_style: str | None = typer.Option(
            None,
            "--access-style",
            metavar="STYLE",
            help="Rewrite field access as 'attribute' (x.key) or 'subscript' (x[\"key\"])",
        ),
        strict_aliases: bool | None = typer.Option(
            None,
            "--strict-aliases/--no-strict-aliases",
            help="Require every response key to be unique across a document",
        ),
        color_flag: bool | None = typer.Option(
            None,
            "--color/--no-color",
            help="Force colored output",
        ),
        out_theme: str = typer.Option(
            DEFAULT_OUTPUT_THEME,
            "--out-theme",
            help="Syntax theme for highlighted output",
        ),
    ) -> None:
        """Replace query placeholders with literal documents."""
        args = TransformArgs(
            files=files,
            config=config,
            pretty=pretty,
            access_style=access_style,
            strict_aliases=strict_aliases,
            color_flag=color_flag,
            out_theme=out_theme,
            in_place=in_place,
            check=check,
        )
        config_module.log_command_arguments(args, "transform")
        run_transform_command(args)
