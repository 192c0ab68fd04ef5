"""AST nodes for query documents."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Value:
    """Base argument value type."""


@dataclass(frozen=True, slots=True)
class StringValue(Value):
    """Quoted string value."""

    value: str


@dataclass(frozen=True, slots=True)
class IntValue(Value):
    """Integer value."""

    value: int


@dataclass(frozen=True, slots=True)
class FloatValue(Value):
    """Floating point value."""

    value: float


@dataclass(frozen=True, slots=True)
class BooleanValue(Value):
    """Boolean value."""

    value: bool


@dataclass(frozen=True, slots=True)
class NullValue(Value):
    """Null value."""


@dataclass(frozen=True, slots=True)
class VariableValue(Value):
    """Variable reference `$name`."""

    name: str


@dataclass(frozen=True, slots=True)
class Argument:
    """Field argument `name: value`."""

    name: str
    value: Value


@dataclass(frozen=True, slots=True)
class Selection:
    """Field selection `alias: name(arguments) { selections }`."""

    name: str
    alias: str | None = None
    arguments: tuple[Argument, ...] = ()
    selections: tuple[Selection, ...] = ()

    @property
    def response_key(self) -> str:
        return self.alias if self.alias is not None else self.name


@dataclass(frozen=True, slots=True)
class VariableDefinition:
    """Variable declaration `$name: Type`."""

    name: str
    type: str


@dataclass(frozen=True, slots=True)
class Operation:
    """Operation `keyword name(variables) { selections }`."""

    keyword: str
    name: str | None
    variables: tuple[VariableDefinition, ...]
    selections: tuple[Selection, ...]


@dataclass(frozen=True, slots=True)
class Document:
    """A query document holding exactly one operation."""

    operation: Operation
