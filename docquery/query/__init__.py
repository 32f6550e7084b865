"""
Query processing module for docquery.

This module provides:
- Filters and queries
- The index catalog
- Query planning (scan, table query or index query)
- Lazy execution with local filter evaluation

Example:
    >>> from docquery.query import QueryExecutor, FilterBuilder
    >>>
    >>> query = (
    ...     FilterBuilder()
    ...     .field("Game").eq("Zork")
    ...     .field("Score").gte(100)
    ...     .build()
    ... )
    >>>
    >>> executor = QueryExecutor(store)
    >>> executor.explain(query)
    'Index: "by-score"'
"""

from .filters import (
    Filter,
    FilterBuilder,
    FilterOperator,
    Query,
    parse_field_path,
    field_path_str,
)

from .catalog import (
    IndexCatalog,
    IndexDescription,
    IndexKind,
    Projection,
    ProjectionType,
    SecondaryIndex,
)

from .compare import (
    compare_values,
    evaluate_filter,
    filters_match,
)

from .splitter import split_filters

from .expressions import Expressions, ExpressionBuilder

from .planner import (
    QueryPlanner,
    Plan,
    PlanKind,
    PlannerConfig,
    NativeQuery,
    plan_query,
)

from .iterator import DocumentIterator, IteratorStats

from .executor import QueryExecutor, QueryResult

__all__ = [
    # Filters
    "Filter",
    "FilterBuilder",
    "FilterOperator",
    "Query",
    "parse_field_path",
    "field_path_str",
    # Catalog
    "IndexCatalog",
    "IndexDescription",
    "IndexKind",
    "Projection",
    "ProjectionType",
    "SecondaryIndex",
    # Comparison
    "compare_values",
    "evaluate_filter",
    "filters_match",
    "split_filters",
    # Planner
    "Expressions",
    "ExpressionBuilder",
    "QueryPlanner",
    "Plan",
    "PlanKind",
    "PlannerConfig",
    "NativeQuery",
    "plan_query",
    # Execution
    "DocumentIterator",
    "IteratorStats",
    "QueryExecutor",
    "QueryResult",
]
