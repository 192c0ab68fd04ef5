"""Apply the collected rewrite plan to a module."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING

import libcst as cst

from blade.transform.context import RewritePlan
from blade.transform.model import QueryRoot


if TYPE_CHECKING:
    from blade.config import TransformConfig


def python_string(text: str) -> str:
    """Python source literal for a document; multi-line documents use triple quotes."""
    if "\n" in text and '"""' not in text and "\\" not in text and not text.endswith('"'):
        return f'"""{text}"""'
    return repr(text)


def _key_element(key: str) -> cst.SubscriptElement:
    return cst.SubscriptElement(slice=cst.Index(value=cst.SimpleString(f'"{key}"')))


class Rewriter(cst.CSTTransformer):
    """Replace query scaffolding with document literals and plain data access.

    All decisions are keyed by nodes of the analyzed module, so the
    transformer must visit that same module instance.
    """

    def __init__(
        self,
        plan: RewritePlan,
        documents: Mapping[QueryRoot, str],
        config: TransformConfig,
    ) -> None:
        super().__init__()
        self.plan = plan
        self.documents = documents
        self.config = config
        self._dropped: set[cst.CSTNode] = set(plan.removed_statements)

    def _literal(self, root: QueryRoot) -> cst.SimpleString:
        return cst.SimpleString(python_string(self.documents[root]))

    def leave_Name(
        self, original_node: cst.Name, updated_node: cst.Name
    ) -> cst.BaseExpression:
        root = self.plan.literal_sites.get(original_node)
        if root is None:
            return updated_node
        return self._literal(root)

    def leave_Attribute(
        self, original_node: cst.Attribute, updated_node: cst.Attribute
    ) -> cst.BaseExpression:
        node = self.plan.field_sites.get(original_node)
        if node is None:
            return updated_node
        if self.config.access_style == "subscript":
            return cst.Subscript(
                value=updated_node.value,
                slice=[_key_element(node.alias)],
                lpar=updated_node.lpar,
                rpar=updated_node.rpar,
            )
        if node.alias == original_node.attr.value:
            return updated_node
        return updated_node.with_changes(attr=cst.Name(node.alias))

    def leave_Subscript(
        self, original_node: cst.Subscript, updated_node: cst.Subscript
    ) -> cst.BaseExpression:
        node = self.plan.field_sites.get(original_node)
        if node is None:
            return updated_node
        if node.alias == node.field:
            return updated_node
        return updated_node.with_changes(slice=[_key_element(node.alias)])

    def leave_Call(
        self, original_node: cst.Call, updated_node: cst.Call
    ) -> cst.BaseExpression:
        if original_node in self.plan.marking_calls:
            return updated_node.args[0].value
        if original_node in self.plan.stripped_calls:
            return updated_node.func
        return updated_node

    def leave_Expr(self, original_node: cst.Expr, updated_node: cst.Expr) -> cst.BaseSmallStatement:
        root = self.plan.exported_statements.get(original_node)
        if root is None:
            return updated_node
        return cst.Assign(
            targets=[cst.AssignTarget(target=cst.Name(self.config.export_name))],
            value=self._literal(root),
            semicolon=updated_node.semicolon,
        )

    def leave_ImportFrom(
        self, original_node: cst.ImportFrom, updated_node: cst.ImportFrom
    ) -> cst.ImportFrom:
        if isinstance(original_node.names, cst.ImportStar) or isinstance(
            updated_node.names, cst.ImportStar
        ):
            return updated_node
        kept = [
            updated
            for original, updated in zip(original_node.names, updated_node.names, strict=True)
            if original not in self.plan.constructor_imports
        ]
        if len(kept) == len(updated_node.names):
            return updated_node
        if not kept:
            self._dropped.add(original_node)
            return updated_node
        kept[-1] = kept[-1].with_changes(comma=cst.MaybeSentinel.DEFAULT)
        return updated_node.with_changes(names=kept)

    def leave_SimpleStatementLine(
        self, original_node: cst.SimpleStatementLine, updated_node: cst.SimpleStatementLine
    ) -> cst.SimpleStatementLine | cst.RemovalSentinel:
        body = [
            updated
            for original, updated in zip(original_node.body, updated_node.body, strict=True)
            if original not in self._dropped
        ]
        if len(body) == len(updated_node.body):
            return updated_node
        if not body:
            return cst.RemoveFromParent()
        body[-1] = body[-1].with_changes(semicolon=cst.MaybeSentinel.DEFAULT)
        return updated_node.with_changes(body=body)

    def leave_IndentedBlock(
        self, original_node: cst.IndentedBlock, updated_node: cst.IndentedBlock
    ) -> cst.IndentedBlock:
        if updated_node.body:
            return updated_node
        return updated_node.with_changes(body=[cst.SimpleStatementLine(body=[cst.Pass()])])

    def leave_Module(self, original_node: cst.Module, updated_node: cst.Module) -> cst.Module:
        # A module whose opening statement was removed should not start with blank lines.
        first = original_node.body[0] if original_node.body else None
        if not isinstance(first, cst.SimpleStatementLine) or not updated_node.body:
            return updated_node
        if not all(statement in self._dropped for statement in first.body):
            return updated_node
        head = updated_node.body[0]
        lines = list(head.leading_lines)
        while lines and lines[0].comment is None:
            lines.pop(0)
        return updated_node.with_changes(
            body=[head.with_changes(leading_lines=lines), *updated_node.body[1:]]
        )
