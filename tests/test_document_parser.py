"""Tests for the query document parser."""

from __future__ import annotations

import pytest

from blade.document import (
    Argument,
    BooleanValue,
    FloatValue,
    IntValue,
    NullValue,
    Selection,
    StringValue,
    VariableDefinition,
    VariableValue,
    parse_document,
    parse_type,
)
from blade.transform.errors import DocumentSyntaxError


@pytest.mark.parametrize(
    "text",
    [
        "query { movie }",
        "query Movie { movie { title } }",
        "query Movie($id: String) { movie(id: $id) { title description } }",
        "query ($id: ID!, $tags: [String!]!) { search(id: $id, tags: $tags) { hits } }",
        'query { movie(title: "Alien", year: 1979, score: 8.5, draft: false, cut: null) { id } }',
        "query { first: movie(id: 1) { title } second: movie(id: 2) { title } }",
        "query Movie {\n  movie {\n    title\n  }\n}",
    ],
)
def test_parse_document_accepts_valid_documents(text: str) -> None:
    """Valid documents should parse without error."""
    parse_document(text)


@pytest.mark.parametrize(
    "text",
    [
        "",
        "query",
        "query { }",
        "mutation { movie }",
        "query { movie(id: ) }",
        "query { movie(id $id) }",
        "query ($id String) { movie }",
        "query { movie { title }",
        "query { movie } trailing",
    ],
)
def test_parse_document_rejects_invalid_documents(text: str) -> None:
    """Malformed documents should raise DocumentSyntaxError."""
    with pytest.raises(DocumentSyntaxError):
        parse_document(text)


def test_parse_document_builds_operation() -> None:
    """Operation name, variables and selections should be captured."""
    document = parse_document("query Movie($id: String) { movie(id: $id) { title description } }")
    operation = document.operation

    assert operation.keyword == "query"
    assert operation.name == "Movie"
    assert operation.variables == (VariableDefinition("id", "String"),)
    assert operation.selections == (
        Selection(
            "movie",
            None,
            (Argument("id", VariableValue("id")),),
            (Selection("title"), Selection("description")),
        ),
    )


def test_parse_document_reads_alias() -> None:
    """`alias: field` should split into alias and field name."""
    document = parse_document("query { film: movie { title } }")
    selection = document.operation.selections[0]

    assert selection.alias == "film"
    assert selection.name == "movie"
    assert selection.response_key == "film"


def test_parse_document_reads_literal_values() -> None:
    """Each literal kind should map to its value class."""
    document = parse_document(
        'query { movie(title: "A \\"quoted\\" title", year: -3, score: 1.5e2, draft: true, cut: null) }'
    )
    values = [argument.value for argument in document.operation.selections[0].arguments]

    assert values == [
        StringValue('A "quoted" title'),
        IntValue(-3),
        FloatValue(150.0),
        BooleanValue(True),
        NullValue(),
    ]


def test_parse_document_error_has_pointer() -> None:
    """Parse errors should point at the failing column."""
    with pytest.raises(DocumentSyntaxError) as exc_info:
        parse_document("query { movie(id: ) }")

    message = str(exc_info.value)
    assert "Invalid query document" in message
    assert "query { movie(id: ) }" in message
    assert "^" in message


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("String", "String"),
        ("ID!", "ID!"),
        ("[String]", "[String]"),
        ("[ String! ] !", "[String!]!"),
        ("[[Int]]", "[[Int]]"),
    ],
)
def test_parse_type_normalizes(text: str, expected: str) -> None:
    """Type strings should parse and come back without whitespace."""
    assert parse_type(text) == expected


@pytest.mark.parametrize("text", ["", "String!!", "[String", "1Int", "String Int"])
def test_parse_type_rejects_invalid(text: str) -> None:
    """Malformed type strings should raise DocumentSyntaxError."""
    with pytest.raises(DocumentSyntaxError):
        parse_type(text)
