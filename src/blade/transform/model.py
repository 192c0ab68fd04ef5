"""In-memory query tree built while propagating query bindings."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TypeAlias

from blade.transform.errors import InvalidArgumentError, SourceLocation


ROOT_FIELD = "<root>"

Scalar: TypeAlias = str | int | float | bool | None


logger = logging.getLogger("blade")


@dataclass(frozen=True, slots=True)
class LiteralValue:
    """Argument value baked into the document as-is."""

    value: Scalar


@dataclass(frozen=True, slots=True)
class VariableRef:
    """Argument value referencing a declared operation variable."""

    name: str


ArgumentValue: TypeAlias = LiteralValue | VariableRef


@dataclass(frozen=True, slots=True)
class ArgumentBinding:
    """One `name: value` argument attached to a field."""

    name: str
    value: ArgumentValue
    location: SourceLocation | None = None


@dataclass(eq=False, slots=True)
class QueryNode:
    """One selected field of a query tree.

    Nodes compare by identity: every binding that aliases a field shares the
    same node, so children discovered through one alias are visible through all.
    """

    field: str
    alias: str
    root: QueryRoot | None = None
    parent: QueryNode | None = None
    location: SourceLocation | None = None
    arguments: dict[str, ArgumentBinding] = field(default_factory=dict)
    children: list[QueryNode] = field(default_factory=list)

    @property
    def is_root(self) -> bool:
        return self.field == ROOT_FIELD

    @property
    def is_leaf(self) -> bool:
        return not self.children

    @property
    def has_alias(self) -> bool:
        return self.alias != self.field

    def path(self) -> str:
        """Dotted response-key path from the root, for messages."""
        keys: list[str] = []
        current: QueryNode | None = self
        while current is not None and not current.is_root:
            keys.append(current.alias)
            current = current.parent
        return ".".join(reversed(keys)) or ROOT_FIELD

    def walk(self) -> list[QueryNode]:
        """Return every descendant in pre-order (excluding self)."""
        nodes: list[QueryNode] = []
        stack = list(reversed(self.children))
        while stack:
            node = stack.pop()
            nodes.append(node)
            stack.extend(reversed(node.children))
        return nodes


@dataclass(eq=False, slots=True)
class QueryRoot:
    """A query document under construction, created by one constructor call."""

    binding_name: str
    name: str | None
    variables: dict[str, str]
    node: QueryNode
    location: SourceLocation | None = None
    exported: bool = False


class BindingTag(Enum):
    """Role of an identifier bound to a query node."""

    ROOT = "root"
    NODE = "node"
    ALIAS = "alias"


@dataclass(eq=False, slots=True)
class Binding:
    """Identifier declaration (scope, name) bound to a query node."""

    key: tuple[object, str]
    node: QueryNode
    tag: BindingTag
    location: SourceLocation | None = None
    exported: bool = False
    declaration: object | None = None

    @property
    def name(self) -> str:
        return self.key[1]


def _same_value(left: ArgumentValue, right: ArgumentValue) -> bool:
    if isinstance(left, LiteralValue) and isinstance(right, LiteralValue):
        return type(left.value) is type(right.value) and left.value == right.value
    return left == right


class TreeBuilder:
    """Owns the query roots of one module and enforces child deduplication."""

    def __init__(self) -> None:
        self.roots: list[QueryRoot] = []
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def add_root(
        self,
        binding_name: str,
        name: str | None,
        variables: dict[str, str],
        location: SourceLocation | None = None,
        exported: bool = False,
    ) -> QueryRoot:
        """Create a query root with an empty selection set."""
        self._ensure_open()
        node = QueryNode(ROOT_FIELD, ROOT_FIELD, location=location)
        root = QueryRoot(binding_name, name, dict(variables), node, location, exported)
        node.root = root
        self.roots.append(root)
        return root

    def child(
        self,
        parent: QueryNode,
        field_name: str,
        alias: str | None = None,
        location: SourceLocation | None = None,
    ) -> QueryNode:
        """Return the child of parent selected as `alias: field_name`, creating it if needed.

        A request reusing an alias already taken by a different field appends a
        second node under that alias; the validator reports both sites.
        """
        self._ensure_open()
        key = alias if alias is not None else field_name
        for existing in parent.children:
            if existing.alias == key and existing.field == field_name:
                return existing

        node = QueryNode(field_name, key, root=parent.root, parent=parent, location=location)
        parent.children.append(node)
        logger.info("Selected field %s at %s", node.path(), location)
        return node

    def bind_argument(
        self,
        node: QueryNode,
        name: str,
        value: ArgumentValue,
        location: SourceLocation | None = None,
    ) -> ArgumentBinding:
        """Attach an argument to node; rebinding to a different value is an error."""
        self._ensure_open()
        existing = node.arguments.get(name)
        if existing is not None:
            if not _same_value(existing.value, value):
                raise InvalidArgumentError(
                    f"Argument '{name}' of '{node.path()}' is already bound to a different value"
                    f" at {existing.location}",
                    location,
                )
            return existing

        binding = ArgumentBinding(name, value, location)
        node.arguments[name] = binding
        return binding

    def freeze(self) -> None:
        """Mark the traversal fixed point; the tree is read-only afterwards."""
        self._frozen = True

    def _ensure_open(self) -> None:
        if self._frozen:
            raise RuntimeError("Query tree is frozen after traversal reached its fixed point")
