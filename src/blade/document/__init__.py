"""Query document model and parser."""

from blade.document.ast import (
    Argument,
    BooleanValue,
    Document,
    FloatValue,
    IntValue,
    NullValue,
    Operation,
    Selection,
    StringValue,
    Value,
    VariableDefinition,
    VariableValue,
)
from blade.document.parser import parse_document, parse_type


__all__ = [
    "Argument",
    "BooleanValue",
    "Document",
    "FloatValue",
    "IntValue",
    "NullValue",
    "Operation",
    "Selection",
    "StringValue",
    "Value",
    "VariableDefinition",
    "VariableValue",
    "parse_document",
    "parse_type",
]
