"""
Splitting filters between the backend and local evaluation.

Some backends accept inequality filters on a single field path per query.
Equality filters always go to the backend. The first field path seen with
an inequality becomes the range field; more inequalities on that path are
sent too, inequalities on any other path are evaluated locally.
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from .filters import FieldPath, Filter


def split_filters(filters: Sequence[Filter]) -> Tuple[List[Filter], List[Filter]]:
    """
    Partition filters into (native, local), preserving input order.

    Example:
        >>> native, local = split_filters([
        ...     Filter.of("a", "=", 1),
        ...     Filter.of("b", ">", 1),
        ...     Filter.of("c", "<", 2),
        ... ])
        >>> [f.path for f in native], [f.path for f in local]
        (['a', 'b'], ['c'])
    """
    native: List[Filter] = []
    local: List[Filter] = []
    range_fp: Optional[FieldPath] = None

    for f in filters:
        if f.is_equality:
            native.append(f)
        elif range_fp is None or range_fp == f.field_path:
            # Multiple inequality filters on the same field are OK
            range_fp = f.field_path
            native.append(f)
        else:
            local.append(f)

    return native, local

