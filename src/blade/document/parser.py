"""Parser for query documents and variable type strings."""

from __future__ import annotations

import json
from collections.abc import Generator
from typing import cast

from parsy import ParseError, Parser, eof, forward_declaration, generate, regex, seq, string

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
from blade.transform.errors import DocumentSyntaxError


OPERATION_KEYWORD = "query"
NAME_PATTERN = r"[_A-Za-z][_0-9A-Za-z]*"


def _parse_line_and_column(line_info: str) -> tuple[int, int]:
    """Parse line and column from parsy line info string."""
    line_text, sep, column_text = line_info.partition(":")
    if sep == "":
        return (0, 0)
    if not line_text.isdigit() or not column_text.isdigit():
        return (0, 0)
    return (int(line_text), int(column_text))


def _format_parse_error(text: str, exc: ParseError) -> str:
    """Build parse error message with a pointer under the failing column."""
    line_number, column_number = _parse_line_and_column(exc.line_info())
    lines = text.splitlines()
    if not lines:
        lines = [text]

    error_line = lines[line_number] if 0 <= line_number < len(lines) else text
    pointer = " " * max(column_number, 0) + "^"
    return f"Invalid query document: {exc}\n\n{error_line}\n{pointer}"


def _decode_string(token_value: str) -> str:
    """Decode a double-quoted, JSON-escaped string token."""
    try:
        decoded = json.loads(token_value)
    except ValueError as exc:
        raise DocumentSyntaxError(f"Invalid string literal: {token_value}") from exc
    if isinstance(decoded, str):
        return decoded
    raise DocumentSyntaxError(f"Invalid string literal: {token_value}")


def _number_value(token_value: str) -> Value:
    """Build an int or float value from a numeric token."""
    if any(marker in token_value for marker in ".eE"):
        return FloatValue(float(token_value))
    return IntValue(int(token_value))


def _keyword(name: str) -> Parser:
    """Build a keyword parser with identifier boundary."""
    return regex(rf"{name}(?![A-Za-z0-9_])").desc(name)


def _lexeme(parser: Parser) -> Parser:
    """Consume optional whitespace after parser."""
    ws = regex(r"\s*")
    return parser << ws


def _symbol(value: str) -> Parser:
    """Build a symbol token parser."""
    return _lexeme(string(value))


def _build_type_parser(name: Parser) -> Parser:
    """Build parser for `Name`, `[Type]` and their non-null `!` forms."""
    type_ref = forward_declaration()
    list_type = (_symbol("[") >> type_ref << _symbol("]")).map(lambda inner: f"[{inner}]")

    @generate
    def parser() -> Generator[Parser, object, str]:
        base = yield name | list_type
        bang = yield _symbol("!").optional()
        base_text = cast(str, base)
        return f"{base_text}!" if bang is not None else base_text

    type_ref.become(parser)
    return type_ref


def _build_value_parser(name: Parser) -> Parser:
    """Build parser for argument values."""
    true_value = _lexeme(_keyword("true")).result(BooleanValue(True))
    false_value = _lexeme(_keyword("false")).result(BooleanValue(False))
    null_value = _lexeme(_keyword("null")).result(NullValue())
    variable = (string("$") >> name).map(VariableValue)
    number = _lexeme(regex(r"-?\d+(?:\.\d+)?(?:[eE][+-]?\d+)?")).map(_number_value)
    string_value = _lexeme(regex(r'"(?:[^"\\]|\\.)*"')).map(
        lambda token: StringValue(_decode_string(token))
    )
    return variable | string_value | number | true_value | false_value | null_value


def _build_selection_set_parser(name: Parser, value: Parser) -> Parser:
    """Build parser for `{ selection+ }` blocks."""
    argument = seq(name << _symbol(":"), value).combine(Argument)
    arguments = _symbol("(") >> argument.sep_by(_symbol(","), min=1) << _symbol(")")
    selection_set = forward_declaration()

    @generate
    def selection() -> Generator[Parser, object, Selection]:
        first = yield name
        second = yield (_symbol(":") >> name).optional()
        args = yield arguments.optional()
        children = yield selection_set.optional()
        if second is None:
            alias, field = None, cast(str, first)
        else:
            alias, field = cast(str, first), cast(str, second)
        return Selection(
            field,
            alias,
            tuple(cast(list[Argument], args or [])),
            tuple(cast(list[Selection], children or [])),
        )

    selection_set.become(_symbol("{") >> selection.at_least(1) << _symbol("}"))
    return selection_set


def _make_parsers() -> tuple[Parser, Parser]:
    """Create the document parser and the standalone type parser."""
    ws = regex(r"\s*")
    name = _lexeme(regex(NAME_PATTERN))
    type_ref = _build_type_parser(name)
    value = _build_value_parser(name)
    selection_set = _build_selection_set_parser(name, value)

    variable_definition = seq(string("$") >> name << _symbol(":"), type_ref).combine(
        VariableDefinition
    )
    variable_definitions = (
        _symbol("(") >> variable_definition.sep_by(_symbol(","), min=1) << _symbol(")")
    )
    keyword = _lexeme(_keyword(OPERATION_KEYWORD))

    @generate
    def operation() -> Generator[Parser, object, Operation]:
        operation_keyword = yield keyword
        operation_name = yield name.optional()
        variables = yield variable_definitions.optional()
        selections = yield selection_set
        return Operation(
            cast(str, operation_keyword),
            cast(str | None, operation_name),
            tuple(cast(list[VariableDefinition], variables or [])),
            tuple(cast(list[Selection], selections)),
        )

    document = (ws >> operation << eof).map(Document)
    standalone_type = ws >> type_ref << eof
    return document, standalone_type


DOCUMENT_PARSER, TYPE_PARSER = _make_parsers()


def parse_document(text: str) -> Document:
    """Parse query document text into a Document."""
    try:
        result = DOCUMENT_PARSER.parse(text)
    except ParseError as exc:
        raise DocumentSyntaxError(_format_parse_error(text, exc)) from exc
    if isinstance(result, Document):
        return result
    raise DocumentSyntaxError("Parser did not produce a document")


def parse_type(text: str) -> str:
    """Parse a variable type string and return its whitespace-free form."""
    try:
        result = TYPE_PARSER.parse(text)
    except ParseError as exc:
        raise DocumentSyntaxError(_format_parse_error(text, exc)) from exc
    return cast(str, result)
