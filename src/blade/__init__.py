"""blade - Infer query documents from attribute access on placeholder data."""

from blade.config import TransformConfig
from blade.runtime import BladeRuntimeError, create_query
from blade.transform import (
    BladeError,
    CyclicAliasError,
    DocumentSyntaxError,
    DuplicateAliasError,
    InvalidArgumentError,
    QueryDocument,
    SourceLocation,
    TransformOutcome,
    TransformResult,
    UndeclaredVariableError,
    UnresolvedReferenceError,
    ValidationError,
    extract_documents,
    transform_module,
    transform_source,
)


__version__ = "0.1.0"

__all__ = [
    "BladeError",
    "BladeRuntimeError",
    "CyclicAliasError",
    "DocumentSyntaxError",
    "DuplicateAliasError",
    "InvalidArgumentError",
    "QueryDocument",
    "SourceLocation",
    "TransformConfig",
    "TransformOutcome",
    "TransformResult",
    "UndeclaredVariableError",
    "UnresolvedReferenceError",
    "ValidationError",
    "__version__",
    "create_query",
    "extract_documents",
    "transform_module",
    "transform_source",
]
