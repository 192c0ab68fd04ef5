"""Errors raised while transforming a module."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class SourceLocation:
    """Position of a node in the transformed module (1-based line, 0-based column)."""

    path: str
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.path}:{self.line}:{self.column}"


class BladeError(Exception):
    """Base exception for transform failures."""

    def __init__(self, message: str, location: SourceLocation | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.location = location

    def __str__(self) -> str:
        if self.location is None:
            return self.message
        return f"{self.location}: {self.message}"


class InvalidArgumentError(BladeError):
    """Raised for malformed constructor or field arguments."""


class DuplicateAliasError(BladeError):
    """Raised when two selections of one document share a response key."""

    def __init__(
        self,
        message: str,
        location: SourceLocation | None = None,
        other: SourceLocation | None = None,
    ) -> None:
        super().__init__(message, location)
        self.other = other


class UndeclaredVariableError(BladeError):
    """Raised when an argument references a variable the root does not declare."""


class CyclicAliasError(BladeError):
    """Raised when an alias is defined in terms of itself."""


class UnresolvedReferenceError(BladeError):
    """Raised when a reference cannot be resolved to a single query node."""


class DocumentSyntaxError(BladeError):
    """Raised when query document text cannot be parsed."""


class ValidationError(BladeError):
    """Aggregate of every violation found after traversal."""

    def __init__(self, errors: Sequence[BladeError]) -> None:
        self.errors = tuple(errors)
        summary = "\n".join(str(error) for error in self.errors)
        count = len(self.errors)
        noun = "error" if count == 1 else "errors"
        super().__init__(f"{count} validation {noun}:\n{summary}")
