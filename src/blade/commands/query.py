"""Query command: print the documents a module would embed."""

from __future__ import annotations

import json
from dataclasses import dataclass

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
from blade.transform import QueryDocument


@dataclass
class QueryArgs(CommonArgs):
    """Arguments for the query command."""

    json_output: bool


def _document_payload(path: str, document: QueryDocument) -> dict[str, object]:
    location = document.location
    return {
        "file": path,
        "line": location.line if location is not None else None,
        "binding": document.binding,
        "name": document.name,
        "document": document.text,
    }


def run_query(args: QueryArgs) -> None:
    """Run the query command."""
    color_enabled = should_use_color(args.color_flag)
    console = build_console(color_enabled)
    error_console = build_console(color_enabled, stderr=True)
    transform_config = load_transform_config(args)

    failed = False
    payload: list[dict[str, object]] = []
    printed = 0
    for path in args.files:
        result = run_transform(path, transform_config, error_console, color_enabled)
        if result is None:
            failed = True
            continue

        for document in result.documents:
            if args.json_output:
                payload.append(_document_payload(path, document))
                continue
            if printed:
                write_plain(console, "")
            write_plain(console, f"# {document.location or path} {document.binding}")
            print_code(console, document.text, "graphql", color_enabled, args.out_theme)
            printed += 1

    if args.json_output:
        write_plain(console, json.dumps(payload, indent=2))
    elif not printed and not failed:
        write_plain(console, "No queries")

    if failed:
        raise typer.Exit(code=1)


def register(app: typer.Typer) -> None:
    """Register the query command."""

    @app.command("query")
    def query_command(  # noqa: PLR0913
        files: list[str] = typer.Argument(  # noqa: B008
            ..., metavar="FILE", help="Python modules to read queries from"
        ),
        config: str = typer.Option(
            config_module.DEFAULT_CONFIG_NAME,
            "--config",
            metavar="FILE",
            help="Config file name to load from current directory",
        ),
        pretty: bool | None = typer.Option(
            None,
            "--pretty/--compact",
            help="Print indented multi-line documents instead of one-line documents",
        ),
        strict_aliases: bool | None = typer.Option(
            None,
            "--strict-aliases/--no-strict-aliases",
            help="Require every response key to be unique across a document",
        ),
        json_output: bool = typer.Option(
            False,
            "--json",
            help="Print documents as a JSON list",
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
        """Print the query documents inferred from modules."""
        args = QueryArgs(
            files=files,
            config=config,
            pretty=pretty,
            access_style=None,
            strict_aliases=strict_aliases,
            color_flag=color_flag,
            out_theme=out_theme,
            json_output=json_output,
        )
        config_module.log_command_arguments(args, "query")
        run_query(args)
