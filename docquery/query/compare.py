"""
Generic comparison of decoded values and local filter evaluation.

Strings compare by UTF-8 byte order. Numbers of any kind compare exactly:
every int and every binary float converts to ``Decimal`` without rounding,
so the largest int64 is never equal to ``float(2**63 - 1)``. Any other
pairing is incomparable, and a filter over incomparable operands does not
match.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Iterable, Optional

from ..core.document import Document
from ..core.exceptions import FieldNotFoundError, ValidationError
from ..core.values import Value, ValueKind
from .filters import Filter, FilterOperator


def compare_values(a: Any, b: Any) -> Optional[int]:
    """
    Compare two values.

    Args:
        a: Left operand (Value or plain object)
        b: Right operand (Value or plain object)

    Returns:
        -1, 0 or 1, or None if the operands cannot be ordered
    """
    try:
        a = Value.of(a)
        b = Value.of(b)
    except ValidationError:
        return None

    if a.kind == ValueKind.STRING and b.kind == ValueKind.STRING:
        return _cmp(a.raw.encode("utf-8"), b.raw.encode("utf-8"))

    da = _to_decimal(a)
    db = _to_decimal(b)
    if da is None or db is None:
        return None
    return _cmp(da, db)


def _to_decimal(v: Value) -> Optional[Decimal]:
    if not v.is_numeric or v.is_nan:
        return None
    return Decimal(v.raw)


def _cmp(x, y) -> int:
    return (x > y) - (x < y)


def apply_comparison(op: FilterOperator, c: int) -> bool:
    """
    Turn a three-way comparison result into a filter outcome.

    Args:
        op: The filter operator
        c: Result of compare_values (not None)
    """
    if op == FilterOperator.EQ:
        return c == 0
    if op == FilterOperator.GT:
        return c > 0
    if op == FilterOperator.LT:
        return c < 0
    if op == FilterOperator.GTE:
        return c >= 0
    if op == FilterOperator.LTE:
        return c <= 0
    raise ValueError(f"bad operator: {op!r}")


def evaluate_filter(f: Filter, doc: Document) -> bool:
    """
    Evaluate one filter against a document.

    A missing field or incomparable operands is a non-match.
    """
    try:
        val = doc.get_raw(f.field_path)
    except FieldNotFoundError:
        return False

    c = compare_values(val, f.value)
    if c is None:
        return False
    return apply_comparison(f.op, c)


def filters_match(filters: Iterable[Filter], doc: Document) -> bool:
    """Evaluate AND-combined filters against a document."""
    for f in filters:
        if not evaluate_filter(f, doc):
            return False
    return True


def sort_key(value: Any):
    """
    Key function ordering values the way compare_values does.

    Numbers sort before strings; values of other kinds sort last, in a
    stable but unspecified order.
    """
    v = Value.of(value)
    if v.kind == ValueKind.STRING:
        return (1, v.raw.encode("utf-8"))
    d = _to_decimal(v)
    if d is not None:
        return (0, d)
    return (2, b"")
