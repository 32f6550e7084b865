"""
Filters and queries.

Supports:
- Comparison operators (=, <, <=, >, >=)
- Nested field access (field.subfield)
- Projection of selected field paths
- Result limits

Example:
    >>> # Single filter
    >>> f = Filter.of("score", ">=", 100)
    >>>
    >>> # Using builder
    >>> query = (
    ...     FilterBuilder()
    ...     .field("game").eq("Praise All Monsters")
    ...     .field("score").gte(100).lt(200)
    ...     .select("player", "score")
    ...     .limit(10)
    ...     .build()
    ... )
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

from ..core.exceptions import ValidationError
from ..utils.validation import validate_field_path, validate_limit


FieldPath = Tuple[str, ...]
FieldPathLike = Union[str, Sequence[str]]


class FilterOperator(str, Enum):
    """Filter comparison operators."""

    EQ = "="
    LT = "<"
    LTE = "<="
    GT = ">"
    GTE = ">="

    @property
    def is_equality(self) -> bool:
        return self is FilterOperator.EQ

    @classmethod
    def parse(cls, op: Union[str, "FilterOperator"]) -> "FilterOperator":
        """Accept "=", "==", "eq", "$gte" and friends."""
        if isinstance(op, FilterOperator):
            return op
        key = op.strip().lstrip("$").lower()
        if key in _OPERATOR_ALIASES:
            return _OPERATOR_ALIASES[key]
        raise ValidationError(f"invalid operator {op!r}")


_OPERATOR_ALIASES = {
    "=": FilterOperator.EQ,
    "==": FilterOperator.EQ,
    "eq": FilterOperator.EQ,
    "<": FilterOperator.LT,
    "lt": FilterOperator.LT,
    "<=": FilterOperator.LTE,
    "lte": FilterOperator.LTE,
    ">": FilterOperator.GT,
    "gt": FilterOperator.GT,
    ">=": FilterOperator.GTE,
    "gte": FilterOperator.GTE,
}


def parse_field_path(fp: FieldPathLike) -> FieldPath:
    """Turn "a.b" or ["a", "b"] into ("a", "b")."""
    if isinstance(fp, str):
        fp = fp.split(".")
    return validate_field_path(tuple(fp))


def field_path_str(fp: Sequence[str]) -> str:
    return ".".join(fp)


@dataclass(frozen=True)
class Filter:
    """
    A single comparison on a field path.

    Filters are immutable; build them with ``Filter.of`` to get field path
    and operator normalisation.
    """

    field_path: FieldPath
    op: FilterOperator
    value: Any

    def __post_init__(self):
        object.__setattr__(self, "field_path", validate_field_path(tuple(self.field_path)))
        object.__setattr__(self, "op", FilterOperator.parse(self.op))

    @classmethod
    def of(cls, field_path: FieldPathLike, op: Union[str, FilterOperator], value: Any) -> "Filter":
        return cls(parse_field_path(field_path), FilterOperator.parse(op), value)

    @property
    def path(self) -> str:
        return field_path_str(self.field_path)

    @property
    def is_equality(self) -> bool:
        return self.op.is_equality

    def to_dict(self) -> Dict[str, Any]:
        return {
            "field": self.path,
            "operator": self.op.value,
            "value": self.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Filter":
        return cls.of(data["field"], data["operator"], data["value"])

    def __repr__(self) -> str:
        return f"Filter({self.path} {self.op.value} {self.value!r})"


@dataclass(frozen=True)
class Query:
    """
    A backend-agnostic query over one collection.

    Attributes:
        field_paths: Field paths to return (empty = entire document)
        filters: Filters, combined with AND
        limit: Maximum number of results (0 = unbounded)
        before_query: Called with the backend request just before dispatch
    """

    field_paths: Tuple[FieldPath, ...] = ()
    filters: Tuple[Filter, ...] = ()
    limit: int = 0
    before_query: Optional[Callable[[Any], None]] = field(default=None, compare=False)

    def __post_init__(self):
        # Accept lists and dotted strings, store tuples
        object.__setattr__(
            self, "field_paths", tuple(parse_field_path(fp) for fp in self.field_paths)
        )
        object.__setattr__(self, "filters", tuple(self.filters))
        validate_limit(self.limit)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "field_paths": [field_path_str(fp) for fp in self.field_paths],
            "filters": [f.to_dict() for f in self.filters],
            "limit": self.limit,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Query":
        return cls(
            field_paths=tuple(data.get("field_paths", ())),
            filters=tuple(Filter.from_dict(f) for f in data.get("filters", ())),
            limit=data.get("limit", 0),
        )


class FieldFilterBuilder:
    """Builder for filters on one field."""

    def __init__(self, parent: "FilterBuilder", field_path: FieldPathLike):
        self._parent = parent
        self._field_path = parse_field_path(field_path)

    def _add(self, op: FilterOperator, value: Any) -> "FieldFilterBuilder":
        self._parent._add_filter(Filter(self._field_path, op, value))
        return self

    def equals(self, value: Any) -> "FieldFilterBuilder":
        """Field equals value."""
        return self._add(FilterOperator.EQ, value)

    def eq(self, value: Any) -> "FieldFilterBuilder":
        """Alias for equals."""
        return self.equals(value)

    def greater_than(self, value: Any) -> "FieldFilterBuilder":
        """Field greater than value."""
        return self._add(FilterOperator.GT, value)

    def gt(self, value: Any) -> "FieldFilterBuilder":
        """Alias for greater_than."""
        return self.greater_than(value)

    def greater_than_or_equal(self, value: Any) -> "FieldFilterBuilder":
        """Field greater than or equal to value."""
        return self._add(FilterOperator.GTE, value)

    def gte(self, value: Any) -> "FieldFilterBuilder":
        """Alias for greater_than_or_equal."""
        return self.greater_than_or_equal(value)

    def less_than(self, value: Any) -> "FieldFilterBuilder":
        """Field less than value."""
        return self._add(FilterOperator.LT, value)

    def lt(self, value: Any) -> "FieldFilterBuilder":
        """Alias for less_than."""
        return self.less_than(value)

    def less_than_or_equal(self, value: Any) -> "FieldFilterBuilder":
        """Field less than or equal to value."""
        return self._add(FilterOperator.LTE, value)

    def lte(self, value: Any) -> "FieldFilterBuilder":
        """Alias for less_than_or_equal."""
        return self.less_than_or_equal(value)

    def between(self, low: Any, high: Any) -> "FieldFilterBuilder":
        """Field between low and high (inclusive)."""
        self._add(FilterOperator.GTE, low)
        return self._add(FilterOperator.LTE, high)

    # Hand back to the parent so chains can continue
    def field(self, name: FieldPathLike) -> "FieldFilterBuilder":
        return self._parent.field(name)

    def select(self, *field_paths: FieldPathLike) -> "FilterBuilder":
        return self._parent.select(*field_paths)

    def limit(self, n: int) -> "FilterBuilder":
        return self._parent.limit(n)

    def build(self) -> Query:
        return self._parent.build()


class FilterBuilder:
    """
    Fluent builder for queries.

    Example:
        >>> query = (
        ...     FilterBuilder()
        ...     .field("tableP").eq(1)
        ...     .field("tableS").between(10, 20)
        ...     .build()
        ... )
    """

    def __init__(self):
        self._filters: List[Filter] = []
        self._field_paths: List[FieldPath] = []
        self._limit = 0
        self._before_query: Optional[Callable[[Any], None]] = None

    def field(self, name: FieldPathLike) -> FieldFilterBuilder:
        """Start building filters for a field."""
        return FieldFilterBuilder(self, name)

    def _add_filter(self, f: Filter) -> None:
        self._filters.append(f)

    def where(self, field_path: FieldPathLike, op: str, value: Any) -> "FilterBuilder":
        self._filters.append(Filter.of(field_path, op, value))
        return self

    def select(self, *field_paths: FieldPathLike) -> "FilterBuilder":
        self._field_paths.extend(parse_field_path(fp) for fp in field_paths)
        return self

    def limit(self, n: int) -> "FilterBuilder":
        self._limit = validate_limit(n)
        return self

    def before_query(self, fn: Callable[[Any], None]) -> "FilterBuilder":
        self._before_query = fn
        return self

    def build(self) -> Query:
        """Build the final query."""
        return Query(
            field_paths=tuple(self._field_paths),
            filters=tuple(self._filters),
            limit=self._limit,
            before_query=self._before_query,
        )

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> List[Filter]:
        """
        Create filters from the simple dictionary format.

        ``{"game": "X", "score": {"$gte": 10, "$lt": 20}}``
        """
        filters = []
        for key, value in (data or {}).items():
            if isinstance(value, dict):
                for op, op_value in value.items():
                    filters.append(Filter.of(key, op, op_value))
            else:
                filters.append(Filter.of(key, FilterOperator.EQ, value))
        return filters
