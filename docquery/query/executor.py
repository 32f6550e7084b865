"""
Query execution for docquery.

Plans queries against a backend's catalog, dispatches the native part and
wraps the result stream in a DocumentIterator.

Features:
- Plan-based execution
- Streaming results
- Execution statistics
- Cancellation and timeouts
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple
import time

from ..core.context import CancellationToken
from ..core.document import Document
from ..utils.logging import get_logger
from .filters import Query
from .iterator import DocumentIterator, IteratorStats
from .planner import Plan, PlannerConfig, QueryPlanner


logger = get_logger(__name__)


@dataclass
class QueryResult:
    """
    Materialized result of a query.
    """

    items: List[Document] = field(default_factory=list)
    plan: Optional[str] = None
    stats: Optional[IteratorStats] = None
    total_time_ms: float = 0.0

    def __iter__(self):
        return iter(self.items)

    def __len__(self):
        return len(self.items)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "items": [d.to_dict() for d in self.items],
            "plan": self.plan,
            "stats": self.stats.to_dict() if self.stats else None,
            "total_time_ms": self.total_time_ms,
        }


class QueryExecutor:
    """
    Executes queries against one backend collection.

    Example:
        >>> executor = QueryExecutor(store)
        >>>
        >>> # Stream results
        >>> with executor.run_query(query) as it:
        ...     for doc in it:
        ...         ...
        >>>
        >>> # Or use convenience methods
        >>> result = executor.get_all(query)
        >>> executor.explain(query)
        'Table'
    """

    def __init__(
        self,
        store,
        planner_config: Optional[PlannerConfig] = None,
        timeout_seconds: Optional[float] = None,
    ):
        """
        Initialize executor with a backend.

        Args:
            store: Backend implementing BaseStore
            planner_config: Overrides the backend's planning options
            timeout_seconds: Deadline for queries run without their own
                cancellation token (None = no deadline)
        """
        self.store = store
        self.timeout_seconds = timeout_seconds
        self.catalog = store.describe_indexes()
        self.planner = QueryPlanner(self.catalog, planner_config or store.planner_config)

    def plan(self, query: Query) -> Plan:
        return self.planner.plan(query)

    def explain(self, query: Query) -> str:
        """Describe the access path the query would use."""
        return self.plan(query).describe()

    def run_query(
        self,
        query: Query,
        cancel: Optional[CancellationToken] = None,
    ) -> DocumentIterator:
        """
        Start running a query.

        The query's ``before_query`` hook, if any, gets a copy of the native
        request and may change it or raise to abort before dispatch.

        Args:
            query: The query
            cancel: Optional cancellation token; without one the query gets
                a fresh token carrying the executor's timeout

        Returns:
            A DocumentIterator; stop it (or use it as a context manager) if
            it is abandoned before exhaustion
        """
        plan = self.plan(query)
        request = plan.native_query.copy()
        if query.before_query is not None:
            query.before_query(request)

        logger.debug("dispatching %s: %s", plan.describe(), request.to_dict())
        if cancel is None and self.timeout_seconds is not None:
            cancel = CancellationToken(timeout_seconds=self.timeout_seconds)
        source = self.store.open_pages(request)
        return DocumentIterator(plan, source, cancel=cancel)

    # =========================================================================
    # CONVENIENCE METHODS
    # =========================================================================

    def get_all(
        self,
        query: Query,
        cancel: Optional[CancellationToken] = None,
    ) -> QueryResult:
        """
        Run a query and collect every result.

        Returns:
            QueryResult object
        """
        start_time = time.time()
        with self.run_query(query, cancel=cancel) as it:
            items = list(it)
        result = QueryResult(
            items=items,
            plan=it.plan.describe(),
            stats=it.stats,
            total_time_ms=(time.time() - start_time) * 1000,
        )
        logger.debug(
            "%s returned %d documents in %.2fms",
            result.plan, len(items), result.total_time_ms,
        )
        return result

    def count(self, query: Query, cancel: Optional[CancellationToken] = None) -> int:
        """
        Count documents matching a query.

        Only the table keys are fetched.
        """
        keys_query = Query(
            field_paths=self._key_paths(),
            filters=query.filters,
            limit=query.limit,
        )
        n = 0
        with self.run_query(keys_query, cancel=cancel) as it:
            for _ in it:
                n += 1
        return n

    def delete(self, query: Query, cancel: Optional[CancellationToken] = None) -> int:
        """
        Delete every document matching a query.

        Returns:
            Number of documents deleted
        """
        key_paths = self._key_paths()
        keys_query = Query(field_paths=key_paths, filters=query.filters, limit=query.limit)
        keys: List[Tuple[Any, ...]] = []
        with self.run_query(keys_query, cancel=cancel) as it:
            for doc in it:
                keys.append(tuple(doc.get_raw(fp) for fp in key_paths))

        deleted = self.store.delete_keys(keys) if keys else 0
        logger.debug("deleted %d of %d matched documents", deleted, len(keys))
        return deleted

    def _key_paths(self) -> Tuple[Tuple[str, ...], ...]:
        return tuple((k,) for k in self.catalog.table.key_fields)
