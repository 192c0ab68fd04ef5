"""Tests for malformed query usage."""

from __future__ import annotations

import textwrap

import pytest

from blade import TransformConfig, transform_source
from blade.transform.errors import (
    BladeError,
    DuplicateAliasError,
    InvalidArgumentError,
    SourceLocation,
    UnresolvedReferenceError,
)


def _transform(source: str) -> None:
    transform_source(textwrap.dedent(source), TransformConfig(), "movies.py")


@pytest.mark.parametrize(
    ("constructor", "message"),
    [
        ('create_query("Q", ["id"])', "dict literal"),
        ('create_query("Q", {"id": 3})', "string names to type strings"),
        ('create_query("Q", {"id": {"type": "ID"}})', "string names to type strings"),
        ('create_query("Q", {"id": "String!!"})', "Invalid type"),
        ('create_query("Q", {"id": "ID", "$id": "ID"})', "declared twice"),
        ('create_query("Q", {"1d": "ID"})', "Invalid variable name"),
        ('create_query("Q", {**base})', "cannot be unpacked"),
        ("create_query(name=title)", "Operation name"),
        ('create_query("not valid")', "Operation name"),
        ('create_query("Q", {}, {})', "at most"),
        ('create_query("Q", name="R")', "given twice"),
        ('create_query("Q", mode="fast")', "Unknown query constructor argument"),
        ("create_query(*args)", "star arguments"),
    ],
)
def test_malformed_constructor_arguments(constructor: str, message: str) -> None:
    """Constructor arguments must be literal names and flat type mappings."""
    with pytest.raises(InvalidArgumentError, match=message):
        _transform(
            f"""
            from blade import create_query

            q = {constructor}
            print(q(result).title)
            """
        )


def test_constructor_must_be_assigned() -> None:
    """A constructor passed straight to another call has nothing to bind."""
    with pytest.raises(InvalidArgumentError, match="assigned to a single name"):
        _transform(
            """
            from blade import create_query


            def render(client):
                return client.execute(create_query("Q"))
            """
        )


@pytest.mark.parametrize(
    ("usage", "message"),
    [
        ('data.movie({"filter": {"year": 1979}}).title', "Nested object value"),
        ("data.movie(id=movie_id).title", "must be a literal"),
        ('data.movie(ids=["a", "b"]).title', "must be a literal"),
        ('data.movie({"id": "$1"}).title', "Invalid variable reference"),
        ('data.movie({"id": 1}, {"id": 2}).title', "one dict literal"),
        ('data.movie({"id": 1}, id=1).title', "given twice"),
        ("data.movie(**options).title", "cannot be unpacked"),
        ('data.movie({key: 1}).title', "string literals"),
        ('data.movie({"not-a-name": 1}).title', "not a valid argument name"),
        ('data["not a field"]', "not a valid field name"),
        ("data(id=1)", "only be attached to fields"),
    ],
)
def test_malformed_field_arguments(usage: str, message: str) -> None:
    """Field arguments must be flat literals or variable references."""
    with pytest.raises(InvalidArgumentError, match=message):
        _transform(
            f"""
            from blade import create_query

            q = create_query("Q", {{"id": "ID"}})


            def render(result):
                data = q(result)
                return {usage}
            """
        )


def test_conflicting_argument_values() -> None:
    """One field cannot be given two different values for one argument."""
    with pytest.raises(InvalidArgumentError, match="already bound"):
        _transform(
            """
            from blade import create_query

            q = create_query("Q")


            def render(result):
                data = q(result)
                return data.movie(id=1).title, data.movie(id=2).year
            """
        )


@pytest.mark.parametrize(
    "usage",
    ["q(result, extra).title", "q({'id': 1}).title", "q().title", "q.movie", "q[0]"],
)
def test_root_handle_misuse(usage: str) -> None:
    """A root handle must be marked with the response data before use."""
    with pytest.raises(InvalidArgumentError):
        _transform(
            f"""
            from blade import create_query

            q = create_query("Q")


            def render(result, extra):
                return {usage}
            """
        )


def test_use_before_binding() -> None:
    """A data name used before it is bound cannot be resolved."""
    with pytest.raises(UnresolvedReferenceError, match="used before it is bound") as exc_info:
        _transform(
            """
            from blade import create_query

            q = create_query("Q")


            def render(result):
                print(data.movie)
                data = q(result)
                return data.title
            """
        )

    assert exc_info.value.location == SourceLocation("movies.py", 8, 10)


def test_shadowed_binding() -> None:
    """Reassigning a data name to an unrelated value is rejected."""
    with pytest.raises(UnresolvedReferenceError, match="not part of the query"):
        _transform(
            """
            from blade import create_query

            q = create_query("Q")


            def render(result, other):
                data = q(result)
                title = data.movie.title
                data = other
                return title
            """
        )


def test_name_bound_to_root_and_field() -> None:
    """One name cannot stand for both the response root and a field."""
    with pytest.raises(UnresolvedReferenceError, match="bound to both"):
        _transform(
            """
            from blade import create_query

            q = create_query("Q")


            def render(result):
                x = q(result)
                print(x.count)
                x = q(result).movie
                return x.title
            """
        )


def test_name_bound_to_two_fields_in_one_scope() -> None:
    """Rebinding one name to another field reuses its alias."""
    with pytest.raises(DuplicateAliasError, match="already used for 'movie'") as exc_info:
        _transform(
            """
            from blade import create_query

            q = create_query("Q")


            def render(result):
                x = q(result).movie
                x = q(result).book
                return x.title
            """
        )

    assert exc_info.value.location is not None
    assert exc_info.value.other is not None
    assert (exc_info.value.location.line, exc_info.value.other.line) == (9, 8)


def test_query_without_fields() -> None:
    """A query whose data is never read cannot produce a document."""
    with pytest.raises(InvalidArgumentError, match="does not select any fields"):
        _transform(
            """
            from blade import create_query

            q = create_query("Q")
            """
        )


def test_errors_render_with_location() -> None:
    """Errors should render as `path:line:col: message`."""
    with pytest.raises(BladeError) as exc_info:
        _transform(
            """
            from blade import create_query

            q = create_query("Q", {"id": 3})
            """
        )

    assert str(exc_info.value).startswith("movies.py:4:")
