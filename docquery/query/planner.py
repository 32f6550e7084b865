"""
Query planning for docquery.

Chooses how to run a query against one collection:

- Full scan, when no partition key has an equality filter
- Table query, keyed on the table's partition (and sort) key
- Index query, keyed on a secondary index

Filters the backend cannot take are kept aside as local filters and are
evaluated over the result stream by the iterator.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

from ..core.exceptions import QueryError, ValidationError
from ..core.values import Value, ValueKind
from ..utils.logging import get_logger
from .catalog import IndexCatalog, SecondaryIndex
from .expressions import Expressions, render
from .filters import FieldPath, Filter, Query, field_path_str
from .splitter import split_filters


logger = get_logger(__name__)


DEFAULT_REVISION_FIELD = "DocstoreRevision"


class PlanKind(str, Enum):
    """Access paths."""

    FULL_SCAN = "scan"
    PRIMARY_QUERY = "table"
    INDEX_QUERY = "index"


@dataclass(frozen=True)
class PlannerConfig:
    """
    Per-backend planning options.

    Attributes:
        revision_field: Name of the document revision field
        include_revision_field: Always request the revision field when the
            query selects fields, and require indexes to carry it
        single_inequality_field: The backend accepts inequality filters on
            one field path only; the rest are evaluated locally
    """

    revision_field: str = DEFAULT_REVISION_FIELD
    include_revision_field: bool = True
    single_inequality_field: bool = False


@dataclass
class NativeQuery:
    """
    The request a backend runs for a plan.

    Mutable so that a query's ``before_query`` hook can adjust it; hooks
    always receive a copy.
    """

    kind: PlanKind
    index_name: Optional[str] = None
    key_conditions: List[Filter] = field(default_factory=list)
    filter_expressions: List[Filter] = field(default_factory=list)
    projection: Optional[List[FieldPath]] = None
    limit: int = 0

    @property
    def filters(self) -> List[Filter]:
        """Every filter the backend evaluates."""
        return self.key_conditions + self.filter_expressions

    def copy(self) -> "NativeQuery":
        return NativeQuery(
            kind=self.kind,
            index_name=self.index_name,
            key_conditions=list(self.key_conditions),
            filter_expressions=list(self.filter_expressions),
            projection=list(self.projection) if self.projection is not None else None,
            limit=self.limit,
        )

    def expressions(self) -> Expressions:
        """Render placeholder expressions for key/attribute backends."""
        return render(self)

    def to_dict(self) -> Dict[str, Any]:
        out = {"kind": self.kind.value, "limit": self.limit}
        if self.index_name is not None:
            out["index_name"] = self.index_name
        out.update(self.expressions().to_dict())
        return out


@dataclass(frozen=True)
class Plan:
    """
    Complete plan for one query.

    Attributes:
        kind: Access path
        index_name: Secondary index queried, for INDEX_QUERY
        native_filters: Filters sent to the backend
        local_filters: Filters evaluated in-process
        projection_hint: Fields to request from the backend (None = all)
        native_query: The backend request
        query: The planned query
    """

    kind: PlanKind
    index_name: Optional[str]
    native_filters: Tuple[Filter, ...]
    local_filters: Tuple[Filter, ...]
    projection_hint: Optional[Tuple[FieldPath, ...]]
    native_query: NativeQuery
    query: Query
    result_fields: Optional[Tuple[FieldPath, ...]] = None

    def describe(self) -> str:
        """Short, deterministic description of the access path."""
        if self.kind == PlanKind.FULL_SCAN:
            return "Scan"
        if self.kind == PlanKind.INDEX_QUERY:
            return f'Index: "{self.index_name}"'
        return "Table"

    def explain(self) -> str:
        """Generate explain output."""
        exprs = self.native_query.expressions()
        lines = [
            "Query Plan",
            "=" * 40,
            f"Access: {self.describe()}",
            f"Key Condition: {exprs.key_condition or '-'}",
            f"Filter Expression: {exprs.filter_expression or '-'}",
            f"Projection: {exprs.projection or '*'}",
            f"Names: {exprs.names}",
            f"Local Filters: {list(self.local_filters) or '-'}",
            f"Limit: {self.native_query.limit or 'none'}",
        ]
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "plan": self.describe(),
            "native_query": self.native_query.to_dict(),
            "local_filters": [f.to_dict() for f in self.local_filters],
            "projection_hint": (
                [field_path_str(fp) for fp in self.projection_hint]
                if self.projection_hint is not None else None
            ),
        }


class QueryPlanner:
    """
    Access-path selection for one collection.

    Planning is pure: it does no I/O and keeps no state beyond the read-only
    catalog, so one planner may be shared between threads.

    Example:
        >>> planner = QueryPlanner(catalog)
        >>> plan = planner.plan(query)
        >>> plan.describe()
        'Table'
    """

    def __init__(self, catalog: IndexCatalog, config: Optional[PlannerConfig] = None):
        self.catalog = catalog
        self.config = config or PlannerConfig()

    def plan(self, query: Query) -> Plan:
        """
        Create a plan for a query.

        Raises:
            QueryError: If a filter cannot be expressed for the backend
        """
        for f in query.filters:
            _check_filter(f)

        if self.config.single_inequality_field:
            native, local = split_filters(query.filters)
        else:
            native, local = list(query.filters), []

        index, pkey, skey = self._best_queryable(query, native)

        if pkey is None:
            kind = PlanKind.FULL_SCAN
            key_conditions: List[Filter] = []
            filter_expressions = list(native)
        else:
            kind = PlanKind.INDEX_QUERY if index is not None else PlanKind.PRIMARY_QUERY
            key_conditions, filter_expressions = _split_key_conditions(native, pkey, skey)

        hint = self._projection_hint(query, local)
        limit = query.limit if not local and not filter_expressions else 0

        native_query = NativeQuery(
            kind=kind,
            index_name=index.name if index is not None else None,
            key_conditions=key_conditions,
            filter_expressions=filter_expressions,
            projection=list(hint) if hint is not None else None,
            limit=limit,
        )
        plan = Plan(
            kind=kind,
            index_name=native_query.index_name,
            native_filters=tuple(native),
            local_filters=tuple(local),
            projection_hint=hint,
            native_query=native_query,
            query=query,
            result_fields=self._result_fields(query),
        )
        logger.debug(
            "planned %s: %d native, %d local filters",
            plan.describe(), len(native), len(local),
        )
        return plan

    # =========================================================================
    # ACCESS PATH SELECTION
    # =========================================================================

    def _best_queryable(
        self,
        query: Query,
        filters: Sequence[Filter],
    ) -> Tuple[Optional[SecondaryIndex], Optional[str], Optional[str]]:
        """
        Return (index, partition key, sort key) for the best queryable.

        The index is None for the table; the partition key is None when
        nothing can be queried and the collection must be scanned.

        - Only candidates with an equality filter on their partition key
          qualify.
        - A candidate whose sort key is also filtered beats one that only
          matches the partition key: table first, then local indexes, then
          global indexes.
        - Among partition-only matches the table wins over global indexes.
        - Global indexes must carry every field the query returns.
        - Ties go to the first index declared.
        """
        cat = self.catalog

        if _has_equality_filter(filters, cat.partition_key):
            if _has_filter(filters, cat.sort_key):
                return None, cat.partition_key, cat.sort_key
            # Local indexes all share the table partition key
            for li in cat.local_indexes:
                if _has_filter(filters, li.sort_key) and self.local_fields_included(query, li):
                    return li, li.partition_key, li.sort_key

        for gi in cat.global_indexes:
            if not gi.sort_key:
                continue  # visited below
            if (
                _has_equality_filter(filters, gi.partition_key)
                and _has_filter(filters, gi.sort_key)
                and self.global_fields_included(query, gi)
            ):
                return gi, gi.partition_key, gi.sort_key

        # No match on both keys; a partition-only match still beats a scan
        if _has_equality_filter(filters, cat.partition_key):
            return None, cat.partition_key, cat.sort_key

        for gi in cat.global_indexes:
            if _has_equality_filter(filters, gi.partition_key) and self.global_fields_included(query, gi):
                return gi, gi.partition_key, gi.sort_key

        return None, None, None

    def local_fields_included(self, query: Query, index: SecondaryIndex) -> bool:
        """
        Report whether a local index can serve the query's fields.

        The backend reads explicitly selected fields it does not project
        from the table, so only a whole-document query needs an ALL
        projection.
        """
        return bool(query.field_paths) or index.projection.is_all

    def global_fields_included(self, query: Query, index: SecondaryIndex) -> bool:
        """
        Report whether a global index holds every field the query reads.

        That is every returned field and every filtered field; filters
        that the backend or the iterator evaluate after the key condition
        read the index's copy of the document. The table keys and the
        index keys are always in the index. Nested paths need their
        top-level attribute projected.
        """
        proj = index.projection
        if proj.is_all:
            return True
        if not query.field_paths:
            # The whole document is wanted; the index may not have it
            return False

        cat = self.catalog
        index_fields: Set[str] = {cat.partition_key, index.partition_key}
        if cat.sort_key:
            index_fields.add(cat.sort_key)
        if index.sort_key:
            index_fields.add(index.sort_key)
        index_fields.update(proj.fields)

        read = list(self._required_fields(query)) + [f.field_path for f in query.filters]
        return all(fp[0] in index_fields for fp in read)

    # =========================================================================
    # PROJECTION
    # =========================================================================

    def _required_fields(self, query: Query) -> List[FieldPath]:
        fields = list(query.field_paths)
        if fields and self.config.include_revision_field:
            rev = (self.config.revision_field,)
            if rev not in fields:
                fields.append(rev)
        return fields

    def _result_fields(self, query: Query) -> Optional[Tuple[FieldPath, ...]]:
        if not query.field_paths:
            return None
        return tuple(self._required_fields(query))

    def _projection_hint(
        self,
        query: Query,
        local: Sequence[Filter],
    ) -> Optional[Tuple[FieldPath, ...]]:
        """Caller fields, the revision field, then local filter fields."""
        if not query.field_paths:
            return None
        fields = self._required_fields(query)
        for f in local:
            if f.field_path not in fields:
                fields.append(f.field_path)
        return tuple(fields)


def plan_query(
    query: Query,
    catalog: IndexCatalog,
    config: Optional[PlannerConfig] = None,
) -> Plan:
    """Plan a query against a catalog."""
    return QueryPlanner(catalog, config).plan(query)


def _check_filter(f: Filter) -> None:
    try:
        v = Value.of(f.value)
    except ValidationError as e:
        raise QueryError(f"{f!r}: {e}") from None
    if not v.is_scalar:
        raise QueryError(f"{f!r}: filter value must be a scalar, got {v.kind.value}")
    if (v.kind == ValueKind.NULL or v.is_nan) and not f.is_equality:
        raise QueryError(f"must use '=' when comparing {f.value!r}")


def _has_filter(filters: Sequence[Filter], key: Optional[str]) -> bool:
    if not key:
        return False
    return any(f.path == key for f in filters)


def _has_equality_filter(filters: Sequence[Filter], key: Optional[str]) -> bool:
    if not key:
        return False
    return any(f.is_equality and f.path == key for f in filters)


def _split_key_conditions(
    filters: Sequence[Filter],
    pkey: str,
    skey: Optional[str],
) -> Tuple[List[Filter], List[Filter]]:
    """
    Take the first equality on the partition key and the first filter on
    the sort key as the key condition; the rest become filter expressions.
    """
    keys: List[Filter] = []
    rest: List[Filter] = []
    have_pkey = have_skey = False
    for f in filters:
        if not have_pkey and f.is_equality and f.path == pkey:
            keys.append(f)
            have_pkey = True
        elif not have_skey and skey and f.path == skey:
            keys.append(f)
            have_skey = True
        else:
            rest.append(f)
    return keys, rest
