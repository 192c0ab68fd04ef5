"""Run the transform passes over one module."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import libcst as cst
from libcst.metadata import MetadataWrapper

from blade.config import TransformConfig
from blade.document.parser import parse_document
from blade.transform.context import UnitContext
from blade.transform.errors import SourceLocation
from blade.transform.model import QueryRoot, TreeBuilder
from blade.transform.propagator import Propagator
from blade.transform.rewriter import Rewriter
from blade.transform.serializer import serialize_root
from blade.transform.tagger import tag_roots
from blade.transform.validator import check


DEFAULT_PATH = "<string>"


logger = logging.getLogger("blade")


@dataclass(frozen=True, slots=True)
class QueryDocument:
    """Document text emitted for one query root."""

    binding: str
    name: str | None
    text: str
    location: SourceLocation | None = None


@dataclass(frozen=True)
class TransformOutcome:
    """Rewritten module tree plus the documents it now embeds."""

    module: cst.Module
    documents: tuple[QueryDocument, ...] = ()
    warnings: tuple[str, ...] = ()

    @property
    def changed(self) -> bool:
        return bool(self.documents)


@dataclass(frozen=True)
class TransformResult:
    """Rewritten source code plus the documents it now embeds."""

    code: str
    documents: tuple[QueryDocument, ...] = ()
    warnings: tuple[str, ...] = field(default_factory=tuple)

    @property
    def changed(self) -> bool:
        return bool(self.documents)


def _render(root: QueryRoot, config: TransformConfig) -> str:
    text = serialize_root(root, config.pretty)
    if config.verify_documents:
        parse_document(text)
    return text


def transform_module(
    module: cst.Module,
    config: TransformConfig | None = None,
    path: str = DEFAULT_PATH,
) -> TransformOutcome:
    """Infer the query documents of a parsed module and rewrite it.

    Args:
        module: Parsed module; it is not modified
        config: Transform options, defaults when omitted
        path: File name used in error locations

    Returns:
        Outcome with the rewritten tree; the input tree when nothing was tagged

    Raises:
        BladeError: On the first tagging or propagation error, or with every
            validation error aggregated in a ValidationError
    """
    config = config if config is not None else TransformConfig()
    wrapper = MetadataWrapper(module)
    context = UnitContext(wrapper, config, path)
    builder = TreeBuilder()

    with context.resolve(wrapper):
        seeds = tag_roots(context, builder)
        if not seeds:
            logger.info("No query roots in %s", path)
            return TransformOutcome(module)
        Propagator(context, builder).run(seeds)
    builder.freeze()
    report = check(builder.roots, config.strict_aliases)

    rendered = {root: _render(root, config) for root in builder.roots}
    for root, text in rendered.items():
        logger.info("Query '%s' at %s:\n%s", root.binding_name, root.location, text)

    rewritten = wrapper.module.visit(Rewriter(context.plan, rendered, config))
    documents = tuple(
        QueryDocument(root.binding_name, root.name, text, root.location)
        for root, text in rendered.items()
    )
    return TransformOutcome(rewritten, documents, tuple(report.warnings))


def transform_source(
    source: str,
    config: TransformConfig | None = None,
    path: str = DEFAULT_PATH,
) -> TransformResult:
    """Transform module source text; see transform_module."""
    outcome = transform_module(cst.parse_module(source), config, path)
    if not outcome.changed:
        return TransformResult(source, (), outcome.warnings)
    return TransformResult(outcome.module.code, outcome.documents, outcome.warnings)


def extract_documents(
    source: str,
    config: TransformConfig | None = None,
    path: str = DEFAULT_PATH,
) -> tuple[QueryDocument, ...]:
    """Return the documents a module would embed, without keeping the rewrite."""
    return transform_source(source, config, path).documents
