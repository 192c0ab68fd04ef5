"""Tests for rendering query trees as documents."""

from __future__ import annotations

import pytest

from blade.document import (
    BooleanValue,
    FloatValue,
    IntValue,
    NullValue,
    StringValue,
    VariableValue,
    parse_document,
)
from blade.transform.errors import InvalidArgumentError
from blade.transform.model import LiteralValue, QueryRoot, TreeBuilder, VariableRef
from blade.transform.serializer import print_value, serialize_root, to_document


def _movie_root() -> QueryRoot:
    builder = TreeBuilder()
    root = builder.add_root("movie_query", "Movie", {"id": "String"})
    movie = builder.child(root.node, "movie")
    builder.bind_argument(movie, "id", VariableRef("id"))
    builder.child(movie, "title")
    builder.child(movie, "description")
    return root


def test_serialize_root_compact() -> None:
    """Compact output should fit on one line."""
    assert (
        serialize_root(_movie_root())
        == "query Movie($id: String) { movie(id: $id) { title description } }"
    )


def test_serialize_root_pretty() -> None:
    """Pretty output should indent nested selections by two spaces."""
    assert serialize_root(_movie_root(), pretty=True) == (
        "query Movie($id: String) {\n"
        "  movie(id: $id) {\n"
        "    title\n"
        "    description\n"
        "  }\n"
        "}"
    )


def test_serialize_nested_selections() -> None:
    """Nested fields should render as nested selection sets."""
    builder = TreeBuilder()
    root = builder.add_root("q", "Q", {})
    movie = builder.child(root.node, "movie")
    builder.child(builder.child(movie, "test"), "title")
    builder.child(builder.child(builder.child(movie, "monkey"), "chimp"), "description")

    assert serialize_root(root) == (
        "query Q { movie { test { title } monkey { chimp { description } } } }"
    )


def test_serialize_alias_only_when_different() -> None:
    """`alias: field` should appear only for explicitly aliased nodes."""
    builder = TreeBuilder()
    root = builder.add_root("q", None, {})
    builder.child(builder.child(root.node, "movie", "film"), "title")
    builder.child(builder.child(root.node, "movie", "movie"), "year")

    assert serialize_root(root) == "query { film: movie { title } movie { year } }"


def test_serialize_literal_arguments() -> None:
    """Literal arguments should render in query-language syntax."""
    builder = TreeBuilder()
    root = builder.add_root("q", "Q", {})
    search = builder.child(root.node, "search")
    for name, value in (
        ("text", "say \"hi\"\n"),
        ("limit", 10),
        ("score", 0.5),
        ("exact", False),
        ("after", None),
    ):
        builder.bind_argument(search, name, LiteralValue(value))
    builder.child(search, "id")

    assert serialize_root(root) == (
        'query Q { search(text: "say \\"hi\\"\\n", limit: 10, score: 0.5,'
        " exact: false, after: null) { id } }"
    )


def test_serialize_root_without_fields_fails() -> None:
    """A root that selects nothing cannot become a document."""
    builder = TreeBuilder()
    root = builder.add_root("empty", "Empty", {})

    with pytest.raises(InvalidArgumentError, match="does not select any fields"):
        serialize_root(root)


def test_to_document_round_trips_through_parser() -> None:
    """Printed documents should parse back to the same AST."""
    root = _movie_root()

    assert parse_document(serialize_root(root)) == to_document(root)
    assert parse_document(serialize_root(root, pretty=True)) == to_document(root)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (VariableValue("id"), "$id"),
        (StringValue("café"), '"caf\\u00e9"'),
        (IntValue(-4), "-4"),
        (FloatValue(2.5), "2.5"),
        (BooleanValue(True), "true"),
        (NullValue(), "null"),
    ],
)
def test_print_value(value: object, expected: str) -> None:
    """Values should print in their query-language form."""
    assert print_value(value) == expected  # type: ignore[arg-type]
