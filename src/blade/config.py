"""Configuration handling for blade."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import TypeGuard

import typer


DEFAULT_CONFIG_NAME = ".blade.json"

ACCESS_STYLES = ("attribute", "subscript")

BOOL_OPTIONS = {"pretty", "strict_aliases", "remove_imports", "verify_documents", "verbose"}
LIST_OPTIONS = {"modules", "constructors"}
IDENTIFIER_OPTIONS = {"export_name"}
CHOICE_OPTIONS: dict[str, tuple[str, ...]] = {"access_style": ACCESS_STYLES}


logger = logging.getLogger("blade")


@dataclass(frozen=True)
class TransformConfig:
    """Options of one transform run."""

    modules: tuple[str, ...] = ("blade", "blade.runtime")
    constructors: tuple[str, ...] = ("create_query",)
    export_name: str = "QUERY"
    access_style: str = "attribute"
    pretty: bool = False
    strict_aliases: bool = False
    remove_imports: bool = True
    verify_documents: bool = True

    def __post_init__(self) -> None:
        if self.access_style not in ACCESS_STYLES:
            raise ValueError(
                f"access_style must be one of {', '.join(ACCESS_STYLES)}, got {self.access_style!r}"
            )
        if not self.export_name.isidentifier():
            raise ValueError(f"export_name must be an identifier, got {self.export_name!r}")

    def constructor_names(self) -> set[str]:
        """Qualified names a call must resolve to in order to create a query root."""
        return {
            f"{module}.{constructor}"
            for module in self.modules
            for constructor in self.constructors
        }


TRANSFORM_OPTION_NAMES = {item.name for item in fields(TransformConfig)}


def load_config(filepath: str) -> tuple[dict[str, object], bool]:
    """Load config from JSON file.

    Args:
        filepath: Path to config file

    Returns:
        Tuple of (config dict, malformed flag)
    """
    try:
        with open(filepath, encoding="utf-8") as f:
            config = json.load(f)
    except FileNotFoundError:
        return ({}, False)
    except OSError:
        return ({}, True)
    except json.JSONDecodeError:
        return ({}, True)

    if not isinstance(config, dict):
        return ({}, True)

    return (config, False)


def is_string_list(value: object) -> TypeGuard[list[str]]:
    """Check if value is list[str]."""
    return isinstance(value, list) and all(isinstance(item, str) for item in value)


def is_dotted_name(value: str) -> bool:
    """Check if value is a dotted Python name such as `pkg.module`."""
    return bool(value) and all(part.isidentifier() for part in value.split("."))


def validate_option(key: str, value: object) -> tuple[object, bool]:
    """Validate one config entry.

    Returns:
        Tuple of (normalized value, valid flag)
    """
    if key in BOOL_OPTIONS:
        return (value, isinstance(value, bool))
    if key in LIST_OPTIONS:
        if not is_string_list(value) or not value:
            return (None, False)
        if not all(is_dotted_name(item) for item in value):
            return (None, False)
        return (tuple(value), True)
    if key in IDENTIFIER_OPTIONS:
        return (value, isinstance(value, str) and value.isidentifier())
    if key in CHOICE_OPTIONS:
        return (value, value in CHOICE_OPTIONS[key])
    return (None, False)


def build_config_defaults(config: dict[str, object]) -> dict[str, object] | None:
    """Validate a loaded config mapping; None if any entry is unknown or invalid."""
    defaults: dict[str, object] = {}
    for key, value in config.items():
        normalized, valid = validate_option(key, value)
        if not valid:
            logger.info("Invalid config entry %s=%r", key, value)
            return None
        defaults[key] = normalized
    return defaults


def resolve_config_path(config_name: str) -> Path:
    """Resolve a config file name against the current directory."""
    config_path = Path(config_name)
    if not config_path.is_absolute():
        config_path = Path.cwd() / config_name
    return config_path


def load_config_defaults(config_name: str = DEFAULT_CONFIG_NAME) -> dict[str, object]:
    """Load and validate config defaults, raising BadParameter for malformed files."""
    config, load_error = load_config(str(resolve_config_path(config_name)))
    if load_error:
        raise typer.BadParameter("Malformed config")

    defaults = build_config_defaults(config)
    if defaults is None:
        raise typer.BadParameter("Malformed config")
    return defaults


def parse_config_argument(argv: list[str]) -> str:
    """Parse only the --config argument from argv."""
    for idx, arg in enumerate(argv[1:], start=1):
        if arg == "--config" and idx + 1 < len(argv):
            return argv[idx + 1]
        if arg.startswith("--config="):
            return arg.split("=", 1)[1]
    return DEFAULT_CONFIG_NAME


def load_cli_config(argv: list[str]) -> dict[str, object]:
    """Load config defaults from the file named on the command line."""
    return load_config_defaults(parse_config_argument(argv))


def build_transform_config(defaults: dict[str, object], **overrides: object) -> TransformConfig:
    """Merge config defaults with explicit command options into a TransformConfig.

    Overrides that are None were not given on the command line and fall back
    to the config file, then to the built-in defaults.
    """
    values = {key: value for key, value in defaults.items() if key in TRANSFORM_OPTION_NAMES}
    for key, value in overrides.items():
        if value is not None and key in TRANSFORM_OPTION_NAMES:
            values[key] = value
    try:
        return TransformConfig(**values)  # type: ignore[arg-type]
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _format_argument_log_entry(arg_name: str, value: object) -> str:
    """Format one argument/value pair for command argument logging."""
    return f"{arg_name}={value!r}"


def log_command_arguments(args: object, command_name: str) -> None:
    """Log all final argument values used to run a command."""
    if not logger.isEnabledFor(logging.INFO):
        return

    try:
        arg_items = vars(args).items()
    except TypeError:
        return

    entries = [
        _format_argument_log_entry(arg_name, arg_value)
        for arg_name, arg_value in sorted(arg_items, key=lambda item: item[0])
    ]
    logger.info("Command arguments (%s): %s", command_name, ", ".join(entries))
