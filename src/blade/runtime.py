"""Runtime stand-in for the query constructor.

`create_query` only exists so that modules importing it type-check and
import cleanly. The transform removes every call; reaching one at runtime
means the module was never transformed.
"""

from __future__ import annotations

from typing import Any, NoReturn

from blade.transform.errors import BladeError


class BladeRuntimeError(BladeError):
    """Raised when a query constructor runs in an untransformed module."""


def create_query(
    name: str | None = None,
    variables: dict[str, str] | None = None,
) -> Any:
    """Placeholder query handle; see blade.transform_source."""
    _fail(name)


def _fail(name: str | None) -> NoReturn:
    label = f"'{name}' " if name else ""
    raise BladeRuntimeError(
        f"Query {label}was not transformed; run `blade transform` on this module first"
    )
