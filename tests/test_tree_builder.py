"""Tests for the query tree builder."""

from __future__ import annotations

import pytest

from blade.transform.errors import InvalidArgumentError
from blade.transform.model import ROOT_FIELD, LiteralValue, TreeBuilder, VariableRef


def test_add_root_creates_empty_root_node() -> None:
    """A new root should own a childless node with the root marker."""
    builder = TreeBuilder()
    root = builder.add_root("movie_query", "Movie", {"id": "String"})

    assert builder.roots == [root]
    assert root.node.field == ROOT_FIELD
    assert root.node.alias == ROOT_FIELD
    assert root.node.is_root
    assert root.node.is_leaf
    assert root.node.root is root
    assert root.variables == {"id": "String"}


def test_child_reuses_node_for_same_alias_and_field() -> None:
    """Requesting the same selection twice should return one node."""
    builder = TreeBuilder()
    root = builder.add_root("q", "Q", {})

    first = builder.child(root.node, "movie")
    second = builder.child(root.node, "movie")

    assert first is second
    assert root.node.children == [first]


def test_child_creates_distinct_nodes_for_different_aliases() -> None:
    """Two aliases of one field should be separate nodes."""
    builder = TreeBuilder()
    root = builder.add_root("q", "Q", {})

    plain = builder.child(root.node, "movie")
    aliased = builder.child(root.node, "movie", "film")

    assert plain is not aliased
    assert aliased.alias == "film"
    assert aliased.has_alias
    assert not plain.has_alias
    assert [node.alias for node in root.node.children] == ["movie", "film"]


def test_child_keeps_conflicting_alias_for_validation() -> None:
    """An alias taken by another field should still append a node."""
    builder = TreeBuilder()
    root = builder.add_root("q", "Q", {})

    builder.child(root.node, "movie", "x")
    builder.child(root.node, "actor", "x")

    assert [(node.alias, node.field) for node in root.node.children] == [
        ("x", "movie"),
        ("x", "actor"),
    ]


def test_children_keep_discovery_order() -> None:
    """Children should appear in the order they were first requested."""
    builder = TreeBuilder()
    root = builder.add_root("q", "Q", {})

    for name in ("zeta", "alpha", "mid", "alpha"):
        builder.child(root.node, name)

    assert [node.field for node in root.node.children] == ["zeta", "alpha", "mid"]


def test_node_path_and_walk() -> None:
    """Paths should use response keys and walk should be pre-order."""
    builder = TreeBuilder()
    root = builder.add_root("q", "Q", {})
    movie = builder.child(root.node, "movie")
    film = builder.child(movie, "sequel", "next")
    title = builder.child(film, "title")
    year = builder.child(movie, "year")

    assert title.path() == "movie.next.title"
    assert root.node.path() == ROOT_FIELD
    assert root.node.walk() == [movie, film, title, year]
    assert title.root is root


def test_bind_argument_accepts_identical_rebinding() -> None:
    """Binding the same value twice should keep one argument."""
    builder = TreeBuilder()
    root = builder.add_root("q", "Q", {"id": "ID"})
    movie = builder.child(root.node, "movie")

    first = builder.bind_argument(movie, "id", VariableRef("id"))
    second = builder.bind_argument(movie, "id", VariableRef("id"))

    assert first is second
    assert list(movie.arguments) == ["id"]


def test_bind_argument_rejects_conflicting_value() -> None:
    """Rebinding an argument to another value should fail."""
    builder = TreeBuilder()
    root = builder.add_root("q", "Q", {})
    movie = builder.child(root.node, "movie")
    builder.bind_argument(movie, "limit", LiteralValue(1))

    with pytest.raises(InvalidArgumentError, match="already bound"):
        builder.bind_argument(movie, "limit", LiteralValue(2))


def test_bind_argument_distinguishes_bool_from_int() -> None:
    """True and 1 are different argument values."""
    builder = TreeBuilder()
    root = builder.add_root("q", "Q", {})
    movie = builder.child(root.node, "movie")
    builder.bind_argument(movie, "flag", LiteralValue(1))

    with pytest.raises(InvalidArgumentError):
        builder.bind_argument(movie, "flag", LiteralValue(True))


def test_frozen_tree_rejects_new_children() -> None:
    """No selections can be added after the fixed point."""
    builder = TreeBuilder()
    root = builder.add_root("q", "Q", {})
    builder.freeze()

    assert builder.frozen
    with pytest.raises(RuntimeError, match="frozen"):
        builder.child(root.node, "movie")
