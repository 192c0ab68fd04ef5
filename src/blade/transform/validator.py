"""Whole-document checks run once propagation reaches its fixed point."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from blade.transform.errors import (
    BladeError,
    DuplicateAliasError,
    UndeclaredVariableError,
    ValidationError,
)
from blade.transform.model import QueryNode, QueryRoot, VariableRef


logger = logging.getLogger("blade")


@dataclass
class ValidationReport:
    """Violations and warnings collected over every root of a module."""

    errors: list[BladeError] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def raise_for_errors(self) -> None:
        """Raise a lone violation as-is, several as one ValidationError."""
        if len(self.errors) == 1:
            raise self.errors[0]
        if self.errors:
            raise ValidationError(self.errors)


def validate(roots: list[QueryRoot], strict_aliases: bool = False) -> ValidationReport:
    """Check alias uniqueness, variable closure and variable use for every root.

    Args:
        roots: Query roots of one module, after propagation
        strict_aliases: Require every response key to be unique across the whole document

    Returns:
        Report with every violation found; nothing is raised here
    """
    report = ValidationReport()
    for root in roots:
        nodes = root.node.walk()
        _check_sibling_aliases(root, nodes, report)
        _check_document_aliases(root, nodes, strict_aliases, report)
        _check_variables(root, nodes, report)
    return report


def check(roots: list[QueryRoot], strict_aliases: bool = False) -> ValidationReport:
    """Validate, log warnings, and raise ValidationError if anything is violated."""
    report = validate(roots, strict_aliases)
    for warning in report.warnings:
        logger.warning(warning)
    report.raise_for_errors()
    return report


def _duplicate(root: QueryRoot, first: QueryNode, second: QueryNode) -> DuplicateAliasError:
    return DuplicateAliasError(
        f"Alias '{second.alias}' of query '{root.binding_name}' selects"
        f" '{second.field}' at {second.location} but is already used for"
        f" '{first.field}' at {first.location}",
        second.location,
        first.location,
    )


def _check_sibling_aliases(
    root: QueryRoot, nodes: list[QueryNode], report: ValidationReport
) -> None:
    for parent in [root.node, *nodes]:
        seen: dict[str, QueryNode] = {}
        for child in parent.children:
            first = seen.setdefault(child.alias, child)
            if first is not child:
                report.errors.append(_duplicate(root, first, child))


def _check_document_aliases(
    root: QueryRoot, nodes: list[QueryNode], strict_aliases: bool, report: ValidationReport
) -> None:
    """Explicit aliases (or, when strict, all response keys) are unique per document."""
    by_alias: dict[str, QueryNode] = {}
    for node in nodes:
        if not strict_aliases and not node.has_alias:
            continue
        first = by_alias.setdefault(node.alias, node)
        if first is node or first.parent is node.parent:
            continue
        report.errors.append(_duplicate(root, first, node))


def _check_variables(root: QueryRoot, nodes: list[QueryNode], report: ValidationReport) -> None:
    used: set[str] = set()
    for node in nodes:
        for argument in node.arguments.values():
            if not isinstance(argument.value, VariableRef):
                continue
            name = argument.value.name
            used.add(name)
            if name not in root.variables:
                report.errors.append(
                    UndeclaredVariableError(
                        f"Argument '{argument.name}' of '{node.path()}' references"
                        f" undeclared variable '${name}' of query '{root.binding_name}'",
                        argument.location,
                    )
                )

    prefix = f"{root.location}: " if root.location is not None else ""
    for name in root.variables:
        if name not in used:
            report.warnings.append(
                f"{prefix}Variable '${name}' of query '{root.binding_name}' is declared but never used"
            )
