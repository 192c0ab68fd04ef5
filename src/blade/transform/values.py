"""Static evaluation of literal expressions."""

from __future__ import annotations

import libcst as cst

from blade.transform.model import Scalar


NOT_A_LITERAL = object()

_NAME_CONSTANTS: dict[str, Scalar] = {"True": True, "False": False, "None": None}


def string_value(node: cst.CSTNode | None) -> str | None:
    """Return the value of a plain (non-bytes, non-f) string literal, else None."""
    if isinstance(node, cst.SimpleString | cst.ConcatenatedString):
        value = node.evaluated_value
        if isinstance(value, str):
            return value
    return None


def literal_value(node: cst.BaseExpression) -> Scalar | object:
    """Evaluate a scalar literal, returning NOT_A_LITERAL for anything else."""
    text = string_value(node)
    if text is not None:
        return text
    if isinstance(node, cst.Name) and node.value in _NAME_CONSTANTS:
        return _NAME_CONSTANTS[node.value]
    if isinstance(node, cst.Integer | cst.Float):
        return node.evaluated_value
    if isinstance(node, cst.UnaryOperation) and isinstance(node.expression, cst.Integer | cst.Float):
        if isinstance(node.operator, cst.Minus):
            return -node.expression.evaluated_value
        if isinstance(node.operator, cst.Plus):
            return node.expression.evaluated_value
    return NOT_A_LITERAL
