"""Worklist propagation of query bindings through references."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import TypeAlias, cast

import libcst as cst
from libcst.metadata import Access, ComprehensionScope, Scope

from blade.document.parser import NAME_PATTERN
from blade.transform.context import UnitContext
from blade.transform.errors import (
    CyclicAliasError,
    DuplicateAliasError,
    InvalidArgumentError,
    SourceLocation,
    UnresolvedReferenceError,
)
from blade.transform.model import (
    ArgumentValue,
    Binding,
    BindingTag,
    LiteralValue,
    QueryNode,
    TreeBuilder,
    VariableRef,
)
from blade.transform.values import NOT_A_LITERAL, literal_value, string_value


VARIABLE_SIGIL = "$"
NAME_RE = re.compile(rf"{NAME_PATTERN}\Z")


logger = logging.getLogger("blade")


@dataclass(frozen=True, slots=True)
class FieldStep:
    """`value.field` or `value["field"]`."""

    node: cst.Attribute | cst.Subscript
    field: str


@dataclass(frozen=True, slots=True)
class ItemStep:
    """`value[index]` into a list field; selects nothing new."""

    node: cst.Subscript


@dataclass(frozen=True, slots=True)
class CallStep:
    """`value(...)` attaching arguments or initializing a root."""

    node: cst.Call


ChainStep: TypeAlias = FieldStep | ItemStep | CallStep


@dataclass(slots=True)
class _Frame:
    binding: Binding
    references: list[Access]
    index: int = 0


class Propagator:
    """Explore every reference reachable from the seed bindings.

    Bindings are keyed by declaration site `(scope, name)` and explored
    depth-first with an explicit stack. A binding whose key is already on the
    stack means an alias defined in terms of itself.
    """

    def __init__(self, context: UnitContext, builder: TreeBuilder) -> None:
        self.context = context
        self.builder = builder
        self.bindings: dict[tuple[object, str], Binding] = {}
        self._declarations: set[object] = set()

    def run(self, seeds: list[Binding]) -> dict[tuple[object, str], Binding]:
        """Propagate every seed to the fixed point and return all bindings."""
        for seed in seeds:
            existing = self.bindings.get(seed.key)
            if existing is not None:
                raise UnresolvedReferenceError(
                    f"'{seed.name}' is bound to more than one query root", seed.location
                )
            self._explore(seed)
        self._check_shadowing()
        return self.bindings

    def _explore(self, seed: Binding) -> None:
        self._register(seed)
        stack = [_Frame(seed, self._references(seed))]
        active = {seed.key}
        while stack:
            frame = stack[-1]
            if frame.index >= len(frame.references):
                stack.pop()
                active.discard(frame.binding.key)
                continue

            access = frame.references[frame.index]
            frame.index += 1
            discovered = self._visit_reference(frame.binding, access)
            if discovered is None:
                continue

            self._declarations.add(discovered.declaration)
            if discovered.key in active:
                raise CyclicAliasError(
                    f"'{discovered.name}' is defined in terms of itself", discovered.location
                )
            existing = self.bindings.get(discovered.key)
            if existing is not None:
                if existing.node is not discovered.node:
                    if _shares_alias(existing.node, discovered.node):
                        raise DuplicateAliasError(
                            f"Alias '{discovered.name}' selects '{discovered.node.field}'"
                            f" at {discovered.node.location} but is already used for"
                            f" '{existing.node.field}' at {existing.node.location}",
                            discovered.node.location,
                            existing.node.location,
                        )
                    raise UnresolvedReferenceError(
                        f"'{discovered.name}' is bound to both '{existing.node.path()}'"
                        f" and '{discovered.node.path()}'",
                        discovered.location,
                    )
                continue

            self._register(discovered)
            stack.append(_Frame(discovered, self._references(discovered)))
            active.add(discovered.key)

    def _register(self, binding: Binding) -> None:
        self._check_use_before_binding(binding)
        self.bindings[binding.key] = binding
        self._declarations.add(binding.declaration)
        logger.info(
            "Bound '%s' to %s (%s) at %s",
            binding.name,
            binding.node.path(),
            binding.tag.value,
            binding.location,
        )

    def _references(self, binding: Binding) -> list[Access]:
        """Accesses of the bound name in source order."""
        scope = cast(Scope, binding.key[0])
        name = binding.name
        if binding.exported:
            accesses = {
                access
                for candidate in self.context.all_scopes()
                for access in candidate.accesses[name]
                if not access.referents
            }
        else:
            accesses = {
                access
                for assignment in scope.assignments[name]
                for access in assignment.references
            }
        return sorted(accesses, key=lambda access: self.context.position_key(access.node))

    def _declared_at(self, binding: Binding) -> tuple[int, int]:
        if binding.exported:
            return self.context.position_key(cast(cst.CSTNode, binding.declaration))
        scope = cast(Scope, binding.key[0])
        return min(
            self.context.position_key(assignment.node)
            for assignment in scope.assignments[binding.name]
        )

    def _check_use_before_binding(self, binding: Binding) -> None:
        """Accesses in the declaring scope must come after the declaration.

        Comprehension targets are exempt since the element precedes its `for`.
        """
        scope = cast(Scope, binding.key[0])
        if isinstance(scope, ComprehensionScope):
            return
        declared = self._declared_at(binding)
        for access in scope.accesses[binding.name]:
            if not isinstance(access.node, cst.Name):
                continue
            if self.context.position_key(access.node) < declared:
                raise UnresolvedReferenceError(
                    f"'{binding.name}' is used before it is bound",
                    self.context.location(access.node),
                )

    def _visit_reference(self, binding: Binding, access: Access) -> Binding | None:
        """Classify one reference; return a new binding when the use declares one."""
        node = access.node
        if not isinstance(node, cst.Name):
            return None

        steps, top = self._walk_chain(node)
        target = self._assignment_target(top)
        loop_target = self._loop_target(top)
        if binding.tag is BindingTag.ROOT and not steps and not binding.exported:
            root = binding.node.root
            if root is not None:
                self.context.plan.literal_sites[node] = root

        current = binding.node
        tag = BindingTag.ROOT if binding.tag is BindingTag.ROOT else BindingTag.ALIAS
        last_field = max(
            (index for index, step in enumerate(steps) if isinstance(step, FieldStep)),
            default=-1,
        )
        for index, step in enumerate(steps):
            if isinstance(step, FieldStep):
                if tag is BindingTag.ROOT:
                    raise InvalidArgumentError(
                        f"Query '{binding.name}' must be called with the response data"
                        " before selecting fields",
                        self.context.location(step.node),
                    )
                alias = step.field
                if target is not None and index == last_field:
                    alias = target.value
                current = self._select(current, step, alias)
                tag = BindingTag.NODE
            elif isinstance(step, CallStep):
                tag = self._visit_call(step.node, current, tag)
            elif tag is BindingTag.ROOT:
                raise InvalidArgumentError(
                    f"Query '{binding.name}' must be called with the response data"
                    " before indexing",
                    self.context.location(step.node),
                )

        declared = target if target is not None else loop_target
        if declared is None:
            return None
        return Binding(
            (self.context.scope(declared), declared.value),
            current,
            tag,
            self.context.location(declared),
            declaration=declared,
        )

    def _select(self, parent: QueryNode, step: FieldStep, alias: str) -> QueryNode:
        location = self.context.location(step.node)
        for name in (step.field, alias):
            if not NAME_RE.match(name):
                raise InvalidArgumentError(f"'{name}' is not a valid field name", location)
        node = self.builder.child(parent, step.field, alias, location)
        self.context.plan.field_sites[step.node] = node
        return node

    def _walk_chain(self, name: cst.Name) -> tuple[list[ChainStep], cst.CSTNode]:
        """Follow attribute, subscript and call parents outward from a reference."""
        steps: list[ChainStep] = []
        current: cst.CSTNode = name
        while True:
            parent = self.context.parent(current)
            if isinstance(parent, cst.Attribute) and parent.value is current:
                steps.append(FieldStep(parent, parent.attr.value))
            elif isinstance(parent, cst.Subscript) and parent.value is current:
                key = _subscript_key(parent)
                steps.append(FieldStep(parent, key) if key is not None else ItemStep(parent))
            elif isinstance(parent, cst.Call) and parent.func is current:
                steps.append(CallStep(parent))
            else:
                return steps, current
            current = parent

    def _assignment_target(self, expression: cst.CSTNode) -> cst.Name | None:
        parent = self.context.parent(expression)
        if isinstance(parent, cst.Assign) and parent.value is expression:
            if len(parent.targets) == 1 and isinstance(parent.targets[0].target, cst.Name):
                return parent.targets[0].target
        elif isinstance(parent, cst.AnnAssign) and parent.value is expression:
            if isinstance(parent.target, cst.Name):
                return parent.target
        return None

    def _loop_target(self, expression: cst.CSTNode) -> cst.Name | None:
        parent = self.context.parent(expression)
        if isinstance(parent, cst.For | cst.CompFor) and parent.iter is expression:
            if isinstance(parent.target, cst.Name):
                return parent.target
        return None

    def _visit_call(self, call: cst.Call, node: QueryNode, tag: BindingTag) -> BindingTag:
        location = self.context.location(call)
        if tag is BindingTag.ROOT:
            if _is_marking_call(call):
                self.context.plan.marking_calls.add(call)
                return BindingTag.ALIAS
            raise InvalidArgumentError(
                "A query root takes exactly one positional argument holding the response data",
                location,
            )
        if node.is_root:
            raise InvalidArgumentError("Arguments can only be attached to fields", location)

        for name, value_node in self._call_arguments(call):
            value = _argument_value(name, value_node, self.context.location(value_node))
            self.builder.bind_argument(node, name, value, location)
        self.context.plan.stripped_calls.add(call)
        return tag

    def _call_arguments(self, call: cst.Call) -> list[tuple[str, cst.BaseExpression]]:
        """Read `({"name": value})` or `(name=value)` argument forms."""
        location = self.context.location(call)
        if any(arg.star for arg in call.args):
            raise InvalidArgumentError("Field arguments cannot be unpacked", location)

        positional = [arg for arg in call.args if arg.keyword is None]
        pairs: list[tuple[str, cst.BaseExpression]] = []
        if positional:
            mapping = positional[0].value
            if len(positional) > 1 or not isinstance(mapping, cst.Dict):
                raise InvalidArgumentError(
                    "Field arguments must be one dict literal or keyword arguments", location
                )
            for element in mapping.elements:
                if not isinstance(element, cst.DictElement):
                    raise InvalidArgumentError("Field arguments cannot be unpacked", location)
                key = string_value(element.key)
                if key is None:
                    raise InvalidArgumentError(
                        "Argument names must be string literals", self.context.location(element)
                    )
                pairs.append((key, element.value))
        for arg in call.args:
            if arg.keyword is not None:
                pairs.append((arg.keyword.value, arg.value))

        seen: set[str] = set()
        for name, _value in pairs:
            if not NAME_RE.match(name):
                raise InvalidArgumentError(f"'{name}' is not a valid argument name", location)
            if name in seen:
                raise InvalidArgumentError(f"Argument '{name}' given twice", location)
            seen.add(name)
        return pairs

    def _check_shadowing(self) -> None:
        """Every assignment of a bound name must itself be a query binding."""
        for binding in self.bindings.values():
            if binding.exported:
                continue
            scope = cast(Scope, binding.key[0])
            for assignment in scope.assignments[binding.name]:
                if assignment.node in self._declarations:
                    continue
                raise UnresolvedReferenceError(
                    f"'{binding.name}' is also assigned a value that is not part of the query",
                    self.context.location(assignment.node),
                )


def _subscript_key(subscript: cst.Subscript) -> str | None:
    if len(subscript.slice) != 1:
        return None
    element = subscript.slice[0].slice
    if not isinstance(element, cst.Index):
        return None
    return string_value(element.value)


def _shares_alias(first: QueryNode, second: QueryNode) -> bool:
    return not first.is_root and not second.is_root and first.alias == second.alias


def _is_marking_call(call: cst.Call) -> bool:
    if len(call.args) != 1:
        return False
    arg = call.args[0]
    return arg.keyword is None and not arg.star and not isinstance(arg.value, cst.Dict)


def _argument_value(
    name: str, node: cst.BaseExpression, location: SourceLocation
) -> ArgumentValue:
    """Convert one argument expression into a literal or a variable reference."""
    if isinstance(node, cst.Dict):
        raise InvalidArgumentError(
            f"Nested object value for argument '{name}' is not supported", location
        )
    value = literal_value(node)
    if value is NOT_A_LITERAL:
        raise InvalidArgumentError(
            f"Argument '{name}' must be a literal or a '{VARIABLE_SIGIL}variable' string",
            location,
        )
    # A reference keeps the declared variable name, which may differ from the argument name.
    if isinstance(value, str) and value.startswith(VARIABLE_SIGIL):
        variable = value.removeprefix(VARIABLE_SIGIL) or name
        if not NAME_RE.match(variable):
            raise InvalidArgumentError(f"Invalid variable reference '{value}'", location)
        return VariableRef(variable)
    return LiteralValue(cast(str | int | float | bool | None, value))
