"""Render query trees as query-document text."""

from __future__ import annotations

import json

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
from blade.document.parser import OPERATION_KEYWORD
from blade.transform.errors import InvalidArgumentError
from blade.transform.model import ArgumentValue, QueryNode, QueryRoot, VariableRef


INDENT = "  "


def to_value(value: ArgumentValue) -> Value:
    """Convert an argument binding value to a document value."""
    if isinstance(value, VariableRef):
        return VariableValue(value.name)
    literal = value.value
    if literal is None:
        return NullValue()
    if isinstance(literal, bool):
        return BooleanValue(literal)
    if isinstance(literal, int):
        return IntValue(literal)
    if isinstance(literal, float):
        return FloatValue(literal)
    return StringValue(literal)


def to_selection(node: QueryNode) -> Selection:
    """Convert a node and its subtree (children first) into a Selection."""
    children = tuple(to_selection(child) for child in node.children)
    arguments = tuple(
        Argument(binding.name, to_value(binding.value)) for binding in node.arguments.values()
    )
    alias = node.alias if node.has_alias else None
    return Selection(node.field, alias, arguments, children)


def to_document(root: QueryRoot) -> Document:
    """Build the document AST for a query root."""
    if root.node.is_leaf:
        raise InvalidArgumentError(
            f"Query '{root.binding_name}' does not select any fields", root.location
        )
    variables = tuple(
        VariableDefinition(name, type_text) for name, type_text in root.variables.items()
    )
    selections = tuple(to_selection(child) for child in root.node.children)
    return Document(Operation(OPERATION_KEYWORD, root.name, variables, selections))


def print_value(value: Value) -> str:
    match value:
        case VariableValue(name):
            return f"${name}"
        case StringValue(text):
            return json.dumps(text, ensure_ascii=True)
        case BooleanValue(flag):
            return "true" if flag else "false"
        case IntValue(number):
            return str(number)
        case FloatValue(number):
            return repr(number)
        case NullValue():
            return "null"
    raise TypeError(f"Unsupported document value: {value!r}")


def _print_head(selection: Selection) -> str:
    head = selection.name
    if selection.alias is not None:
        head = f"{selection.alias}: {head}"
    if selection.arguments:
        rendered = ", ".join(
            f"{argument.name}: {print_value(argument.value)}" for argument in selection.arguments
        )
        head = f"{head}({rendered})"
    return head


def _print_compact(selections: tuple[Selection, ...]) -> str:
    parts: list[str] = []
    for selection in selections:
        head = _print_head(selection)
        if selection.selections:
            head = f"{head} {_print_compact(selection.selections)}"
        parts.append(head)
    return "{ " + " ".join(parts) + " }"


def _print_pretty(selections: tuple[Selection, ...], depth: int) -> list[str]:
    lines: list[str] = []
    indent = INDENT * depth
    for selection in selections:
        head = _print_head(selection)
        if selection.selections:
            lines.append(f"{indent}{head} {{")
            lines.extend(_print_pretty(selection.selections, depth + 1))
            lines.append(f"{indent}}}")
        else:
            lines.append(f"{indent}{head}")
    return lines


def print_document(document: Document, pretty: bool = False) -> str:
    """Print a document compactly on one line, or indented with one field per line."""
    operation = document.operation
    header = operation.keyword
    if operation.name is not None:
        header = f"{header} {operation.name}"
    if operation.variables:
        declared = ", ".join(
            f"${variable.name}: {variable.type}" for variable in operation.variables
        )
        header = f"{header}({declared})"

    if not pretty:
        return f"{header} {_print_compact(operation.selections)}"
    body = _print_pretty(operation.selections, 1)
    return "\n".join([f"{header} {{", *body, "}"])


def serialize_root(root: QueryRoot, pretty: bool = False) -> str:
    """Render the query document for a root."""
    return print_document(to_document(root), pretty)
