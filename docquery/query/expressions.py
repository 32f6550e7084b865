"""
Placeholder expressions for key/attribute backends.

Key/attribute stores take conditions as text with every attribute name and
value replaced by a placeholder: names become ``#0``, ``#1``, ... and values
``:0``, ``:1``, .... Names are shared between expressions; every filter
value gets its own placeholder. The filter expression is rendered first,
then the key condition, then the projection, so placeholder numbering is
stable for a given plan.

Example:
    >>> exprs = render(native_query)
    >>> exprs.key_condition
    '(#0 = :0) AND (#1 <= :1)'
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence

from .filters import FieldPath, Filter


@dataclass
class Expressions:
    """Rendered expressions plus their placeholder tables."""

    key_condition: Optional[str] = None
    filter_expression: Optional[str] = None
    projection: Optional[str] = None
    names: Dict[str, str] = field(default_factory=dict)
    values: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        if self.key_condition is not None:
            out["KeyConditionExpression"] = self.key_condition
        if self.filter_expression is not None:
            out["FilterExpression"] = self.filter_expression
        if self.projection is not None:
            out["ProjectionExpression"] = self.projection
        if self.names:
            out["ExpressionAttributeNames"] = dict(self.names)
        if self.values:
            out["ExpressionAttributeValues"] = dict(self.values)
        return out


class ExpressionBuilder:
    """Assigns placeholders and renders conditions."""

    def __init__(self):
        self._names: Dict[str, str] = {}   # attribute name -> placeholder
        self._values: Dict[str, Any] = {}  # placeholder -> value

    def name(self, fp: FieldPath) -> str:
        parts = []
        for seg in fp:
            if seg not in self._names:
                self._names[seg] = f"#{len(self._names)}"
            parts.append(self._names[seg])
        return ".".join(parts)

    def value(self, v: Any) -> str:
        ph = f":{len(self._values)}"
        self._values[ph] = v
        return ph

    def condition(self, filters: Sequence[Filter]) -> Optional[str]:
        """AND together filter conditions; None when there are none."""
        if not filters:
            return None
        parts = [f"{self.name(f.field_path)} {f.op.value} {self.value(f.value)}" for f in filters]
        if len(parts) == 1:
            return parts[0]
        return " AND ".join(f"({p})" for p in parts)

    def projection(self, field_paths: Optional[Sequence[FieldPath]]) -> Optional[str]:
        if not field_paths:
            return None
        return ", ".join(self.name(fp) for fp in field_paths)

    def build(self) -> Expressions:
        return Expressions(
            names={ph: n for n, ph in self._names.items()},
            values=dict(self._values),
        )


def render(native_query) -> Expressions:
    """Render a NativeQuery's conditions and projection."""
    b = ExpressionBuilder()
    filter_expression = b.condition(native_query.filter_expressions)
    key_condition = b.condition(native_query.key_conditions)
    projection = b.projection(native_query.projection)
    exprs = b.build()
    exprs.filter_expression = filter_expression
    exprs.key_condition = key_condition
    exprs.projection = projection
    return exprs
