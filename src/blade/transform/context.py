"""Per-module state shared by the transform passes."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import libcst as cst
from libcst.metadata import (
    CodeRange,
    MetadataWrapper,
    ParentNodeProvider,
    PositionProvider,
    QualifiedName,
    QualifiedNameProvider,
    Scope,
    ScopeProvider,
)

from blade.transform.errors import SourceLocation
from blade.transform.model import QueryNode, QueryRoot


if TYPE_CHECKING:
    from blade.config import TransformConfig


@dataclass
class RewritePlan:
    """Edits collected during analysis, applied once every document is final."""

    removed_statements: set[cst.CSTNode] = field(default_factory=set)
    exported_statements: dict[cst.CSTNode, QueryRoot] = field(default_factory=dict)
    constructor_imports: set[cst.ImportAlias] = field(default_factory=set)
    literal_sites: dict[cst.Name, QueryRoot] = field(default_factory=dict)
    marking_calls: set[cst.Call] = field(default_factory=set)
    stripped_calls: set[cst.Call] = field(default_factory=set)
    field_sites: dict[cst.CSTNode, QueryNode] = field(default_factory=dict)


class UnitContext(cst.MetadataDependent):
    """Resolved libcst metadata for one module plus the pending rewrite plan.

    Lookups go through `get_metadata`, so they are only valid inside
    `with context.resolve(wrapper):`.
    """

    METADATA_DEPENDENCIES = (
        ScopeProvider,
        ParentNodeProvider,
        PositionProvider,
        QualifiedNameProvider,
    )

    def __init__(self, wrapper: MetadataWrapper, config: TransformConfig, path: str) -> None:
        super().__init__()
        self.module = wrapper.module
        self.config = config
        self.path = path
        self.plan = RewritePlan()

    def parent(self, node: cst.CSTNode) -> cst.CSTNode | None:
        return self.get_metadata(ParentNodeProvider, node, None)

    def scope_of(self, node: cst.CSTNode) -> Scope | None:
        return self.get_metadata(ScopeProvider, node, None)

    def scope(self, node: cst.CSTNode) -> Scope:
        scope = self.scope_of(node)
        if scope is None:
            raise KeyError(f"No scope recorded for node at {self.location(node)}")
        return scope

    def all_scopes(self) -> set[Scope]:
        scopes = (self.scope_of(node) for node in self.metadata[ScopeProvider])
        return {scope for scope in scopes if scope is not None}

    def qualified_names(self, node: cst.CSTNode) -> set[QualifiedName]:
        return self.get_metadata(QualifiedNameProvider, node, set())

    def position_key(self, node: cst.CSTNode) -> tuple[int, int]:
        code_range: CodeRange | None = self.get_metadata(PositionProvider, node, None)
        if code_range is None:
            return (0, 0)
        return (code_range.start.line, code_range.start.column)

    def location(self, node: cst.CSTNode) -> SourceLocation:
        line, column = self.position_key(node)
        return SourceLocation(self.path, line, column)
