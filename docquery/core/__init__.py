"""
Core types for docquery: tagged values, decoded documents, cancellation
and the exception hierarchy.
"""

from .values import (
    Value,
    ValueKind,
    NUMERIC_KINDS,
    SCALAR_KINDS,
    to_plain,
)

from .document import Document

from .context import CancellationToken

from .exceptions import (
    DocQueryError,
    CatalogError,
    QueryError,
    FieldNotFoundError,
    ExecutionError,
    QueryCancelledError,
    ValidationError,
    StorageError,
    SerializationError,
)

__all__ = [
    # Values
    "Value",
    "ValueKind",
    "NUMERIC_KINDS",
    "SCALAR_KINDS",
    "to_plain",
    # Documents
    "Document",
    "CancellationToken",
    # Exceptions
    "DocQueryError",
    "CatalogError",
    "QueryError",
    "FieldNotFoundError",
    "ExecutionError",
    "QueryCancelledError",
    "ValidationError",
    "StorageError",
    "SerializationError",
]
