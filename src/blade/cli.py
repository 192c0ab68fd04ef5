#!/usr/bin/env python
"""CLI interface for blade."""

from __future__ import annotations

import sys

import typer

from blade import config, logging_config
from blade.commands import query, transform


app = typer.Typer(
    help="Infer query documents from attribute access in Python modules.",
    no_args_is_help=True,
)


DEFAULT_VERBOSE: dict[str, bool] = {"value": False}


def _resolve_verbose(verbose: bool | None) -> bool:
    if verbose is None:
        return DEFAULT_VERBOSE["value"]
    return verbose


@app.callback()
def main_callback(
    verbose: bool | None = typer.Option(
        None,
        "--verbose",
        "-v",
        help="Enable verbose logging output",
    ),
) -> None:
    """Global CLI options."""
    logging_config.configure_logging(_resolve_verbose(verbose))


transform.register(app)
query.register(app)


def main() -> None:
    """Main CLI entry point."""
    defaults = config.load_cli_config(sys.argv)
    DEFAULT_VERBOSE["value"] = bool(defaults.get("verbose", False))

    command = typer.main.get_command(app)
    command.main(
        args=sys.argv[1:],
        prog_name="blade",
        standalone_mode=True,
    )


if __name__ == "__main__":
    main()
