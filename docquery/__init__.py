"""
docquery - Query planning and execution over document-store backends.

Example:
    >>> from docquery import IndexCatalog, IndexDescription, MemoryStore
    >>> from docquery import FilterBuilder, QueryExecutor
    >>>
    >>> catalog = IndexCatalog(IndexDescription("Game", "Player"))
    >>> store = MemoryStore(catalog)
    >>> store.put({"Game": "Zork", "Player": "ann", "Score": 10})
    >>>
    >>> query = FilterBuilder().field("Game").eq("Zork").build()
    >>> for doc in QueryExecutor(store).run_query(query):
    ...     print(doc["Player"])
"""

from .core import (
    Value,
    ValueKind,
    Document,
    CancellationToken,
    # Exceptions
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

from .query import (
    Filter,
    FilterBuilder,
    FilterOperator,
    Query,
    IndexCatalog,
    IndexDescription,
    IndexKind,
    Projection,
    ProjectionType,
    SecondaryIndex,
    QueryPlanner,
    Plan,
    PlanKind,
    PlannerConfig,
    NativeQuery,
    DocumentIterator,
    QueryExecutor,
    QueryResult,
)

from .storage import (
    BaseStore,
    MemoryStore,
    MemoryStoreConfig,
    StreamStore,
    StreamConfig,
)

__version__ = "0.1.0"

__all__ = [
    # Values and documents
    "Value",
    "ValueKind",
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
    # Queries
    "Filter",
    "FilterBuilder",
    "FilterOperator",
    "Query",
    # Catalog
    "IndexCatalog",
    "IndexDescription",
    "IndexKind",
    "Projection",
    "ProjectionType",
    "SecondaryIndex",
    # Planning and execution
    "QueryPlanner",
    "Plan",
    "PlanKind",
    "PlannerConfig",
    "NativeQuery",
    "DocumentIterator",
    "QueryExecutor",
    "QueryResult",
    # Backends
    "BaseStore",
    "MemoryStore",
    "MemoryStoreConfig",
    "StreamStore",
    "StreamConfig",
]
