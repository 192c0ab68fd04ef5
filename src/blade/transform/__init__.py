"""Public API for the query transform passes."""

from blade.transform.errors import (
    BladeError,
    CyclicAliasError,
    DocumentSyntaxError,
    DuplicateAliasError,
    InvalidArgumentError,
    SourceLocation,
    UndeclaredVariableError,
    UnresolvedReferenceError,
    ValidationError,
)
from blade.transform.pipeline import (
    QueryDocument,
    TransformOutcome,
    TransformResult,
    extract_documents,
    transform_module,
    transform_source,
)


__all__ = [
    "BladeError",
    "CyclicAliasError",
    "DocumentSyntaxError",
    "DuplicateAliasError",
    "InvalidArgumentError",
    "QueryDocument",
    "SourceLocation",
    "TransformOutcome",
    "TransformResult",
    "UndeclaredVariableError",
    "UnresolvedReferenceError",
    "ValidationError",
    "extract_documents",
    "transform_module",
    "transform_source",
]
