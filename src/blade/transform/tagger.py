"""Find query-root constructor calls and seed their bindings."""

from __future__ import annotations

import logging
import re

import libcst as cst
from libcst.helpers import get_full_name_for_node
from libcst.metadata import GlobalScope

from blade.document.parser import NAME_PATTERN, parse_type
from blade.transform.context import UnitContext
from blade.transform.errors import DocumentSyntaxError, InvalidArgumentError
from blade.transform.model import Binding, BindingTag, TreeBuilder
from blade.transform.values import string_value


CONSTRUCTOR_KEYWORDS = ("name", "variables")
NAME_RE = re.compile(rf"{NAME_PATTERN}\Z")


logger = logging.getLogger("blade")


class _CallCollector(cst.CSTVisitor):
    """Collect call and from-import nodes in source order."""

    def __init__(self) -> None:
        self.calls: list[cst.Call] = []
        self.imports: list[cst.ImportFrom] = []

    def visit_Call(self, node: cst.Call) -> None:
        self.calls.append(node)

    def visit_ImportFrom(self, node: cst.ImportFrom) -> None:
        self.imports.append(node)


def tag_roots(context: UnitContext, builder: TreeBuilder) -> list[Binding]:
    """Create a QueryRoot for every constructor call and return the seed bindings."""
    collector = _CallCollector()
    context.module.visit(collector)

    constructors = context.config.constructor_names()
    seeds = [
        _tag_call(context, builder, call)
        for call in collector.calls
        if _is_constructor(context, call, constructors)
    ]
    if seeds and context.config.remove_imports:
        _record_constructor_imports(context, collector.imports)
    return seeds


def _is_constructor(context: UnitContext, call: cst.Call, constructors: set[str]) -> bool:
    qualified = context.qualified_names(call.func)
    return any(name.name in constructors for name in qualified)


def _tag_call(context: UnitContext, builder: TreeBuilder, call: cst.Call) -> Binding:
    """Register one constructor call as a query root."""
    location = context.location(call)
    name, variables = _read_arguments(context, call)
    parent = context.parent(call)

    target: cst.Name | None = None
    if isinstance(parent, cst.Assign) and parent.value is call:
        if len(parent.targets) == 1 and isinstance(parent.targets[0].target, cst.Name):
            target = parent.targets[0].target
    elif isinstance(parent, cst.AnnAssign) and parent.value is call:
        if isinstance(parent.target, cst.Name):
            target = parent.target

    if target is not None:
        root = builder.add_root(target.value, name or target.value, variables, location)
        context.plan.removed_statements.add(parent)
        logger.info("Tagged query root '%s' at %s", target.value, location)
        return Binding(
            (context.scope(target), target.value),
            root.node,
            BindingTag.ROOT,
            context.location(target),
            declaration=target,
        )

    if isinstance(parent, cst.Expr) and isinstance(context.scope_of(call), GlobalScope):
        export_name = context.config.export_name
        root = builder.add_root(export_name, name, variables, location, exported=True)
        context.plan.exported_statements[parent] = root
        logger.info("Tagged exported query root '%s' at %s", export_name, location)
        return Binding(
            (context.scope(call), export_name),
            root.node,
            BindingTag.ROOT,
            location,
            exported=True,
            declaration=parent,
        )

    raise InvalidArgumentError(
        "Query constructor must be assigned to a single name or used as a module-level statement",
        location,
    )


def _read_arguments(context: UnitContext, call: cst.Call) -> tuple[str | None, dict[str, str]]:
    """Split constructor arguments into operation name and variable declarations."""
    location = context.location(call)
    name_node: cst.BaseExpression | None = None
    variables_node: cst.BaseExpression | None = None

    positional: list[cst.Arg] = []
    for arg in call.args:
        if arg.star:
            raise InvalidArgumentError("Query constructor does not accept star arguments", location)
        if arg.keyword is None:
            positional.append(arg)

    if len(positional) > 2:
        raise InvalidArgumentError("Query constructor takes at most a name and variables", location)
    if positional:
        first = positional[0].value
        if isinstance(first, cst.Dict):
            if len(positional) > 1:
                raise InvalidArgumentError("Variables must follow the operation name", location)
            variables_node = first
        else:
            name_node = first
            if len(positional) == 2:
                variables_node = positional[1].value

    for arg in call.args:
        if arg.keyword is None:
            continue
        keyword = arg.keyword.value
        if keyword not in CONSTRUCTOR_KEYWORDS:
            raise InvalidArgumentError(f"Unknown query constructor argument '{keyword}'", location)
        if keyword == "name":
            if name_node is not None:
                raise InvalidArgumentError("Operation name given twice", location)
            name_node = arg.value
        else:
            if variables_node is not None:
                raise InvalidArgumentError("Variables given twice", location)
            variables_node = arg.value

    return _read_name(context, name_node), _read_variables(context, variables_node)


def _is_none_literal(node: cst.BaseExpression) -> bool:
    return isinstance(node, cst.Name) and node.value == "None"


def _read_name(context: UnitContext, node: cst.BaseExpression | None) -> str | None:
    if node is None or _is_none_literal(node):
        return None
    name = string_value(node)
    if name is None or not NAME_RE.match(name):
        raise InvalidArgumentError(
            "Operation name must be a string literal naming a valid identifier",
            context.location(node),
        )
    return name


def _read_variables(context: UnitContext, node: cst.BaseExpression | None) -> dict[str, str]:
    """Read a flat `{"name": "Type"}` dict literal."""
    if node is None or _is_none_literal(node):
        return {}
    if not isinstance(node, cst.Dict):
        raise InvalidArgumentError(
            "Variable declarations must be a dict literal of name to type string",
            context.location(node),
        )

    variables: dict[str, str] = {}
    for element in node.elements:
        location = context.location(element)
        if not isinstance(element, cst.DictElement):
            raise InvalidArgumentError("Variable declarations cannot be unpacked", location)
        key = string_value(element.key)
        type_text = string_value(element.value)
        if key is None or type_text is None:
            raise InvalidArgumentError(
                "Variable declarations must map string names to type strings", location
            )

        name = key.removeprefix("$")
        if not NAME_RE.match(name):
            raise InvalidArgumentError(f"Invalid variable name '{key}'", location)
        if name in variables:
            raise InvalidArgumentError(f"Variable '${name}' declared twice", location)
        try:
            parse_type(type_text)
        except DocumentSyntaxError as exc:
            raise InvalidArgumentError(
                f"Invalid type '{type_text}' for variable '${name}'", location
            ) from exc
        variables[name] = type_text
    return variables


def _record_constructor_imports(context: UnitContext, imports: list[cst.ImportFrom]) -> None:
    """Remember `from <module> import <constructor>` aliases for removal."""
    modules = set(context.config.modules)
    constructors = set(context.config.constructors)
    for statement in imports:
        if statement.module is None or statement.relative:
            continue
        if get_full_name_for_node(statement.module) not in modules:
            continue
        if isinstance(statement.names, cst.ImportStar):
            continue
        for alias in statement.names:
            if get_full_name_for_node(alias.name) in constructors:
                context.plan.constructor_imports.add(alias)
