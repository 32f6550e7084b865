"""
Tagged scalar values.

Decoded documents hand their leaves to the comparator as ``Value`` objects.
The tag is decided once, at decode time, so comparison code switches on
``Value.kind`` instead of probing Python types.

Example:
    >>> Value.of(3).kind
    <ValueKind.INT: 'int'>
    >>> Value.of(np.uint64(2**64 - 1)).kind
    <ValueKind.UINT: 'uint'>
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any
import math

import numpy as np

from .exceptions import ValidationError


INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1
UINT64_MAX = 2 ** 64 - 1


class ValueKind(str, Enum):
    """Kinds of decoded values."""

    NULL = "null"
    BOOL = "bool"
    STRING = "string"
    INT = "int"         # signed, up to 64 bits
    UINT = "uint"       # unsigned, up to 64 bits
    FLOAT = "float"
    BYTES = "bytes"

    # Containers; never ordered by the comparator
    LIST = "list"
    MAP = "map"


NUMERIC_KINDS = frozenset({ValueKind.INT, ValueKind.UINT, ValueKind.FLOAT})
SCALAR_KINDS = frozenset(ValueKind) - {ValueKind.LIST, ValueKind.MAP}


@dataclass(frozen=True)
class Value:
    """A decoded value together with its kind."""

    kind: ValueKind
    raw: Any = None

    @classmethod
    def of(cls, obj: Any) -> "Value":
        """
        Tag a Python or numpy object.

        Args:
            obj: The object to tag

        Returns:
            The tagged value

        Raises:
            ValidationError: If the object has no corresponding kind
        """
        if isinstance(obj, Value):
            return obj
        if obj is None:
            return cls(ValueKind.NULL)
        # bool is an int subclass; check it first
        if isinstance(obj, (bool, np.bool_)):
            return cls(ValueKind.BOOL, bool(obj))
        if isinstance(obj, str):
            return cls(ValueKind.STRING, obj)
        if isinstance(obj, (bytes, bytearray, memoryview)):
            return cls(ValueKind.BYTES, bytes(obj))
        if isinstance(obj, np.unsignedinteger):
            return cls(ValueKind.UINT, int(obj))
        if isinstance(obj, np.signedinteger):
            return cls(ValueKind.INT, int(obj))
        if isinstance(obj, int):
            if INT64_MIN <= obj <= INT64_MAX:
                return cls(ValueKind.INT, obj)
            if INT64_MAX < obj <= UINT64_MAX:
                return cls(ValueKind.UINT, obj)
            raise ValidationError(f"integer out of 64-bit range: {obj}")
        if isinstance(obj, (float, np.floating)):
            return cls(ValueKind.FLOAT, float(obj))
        if isinstance(obj, dict):
            return cls(ValueKind.MAP, obj)
        if isinstance(obj, (list, tuple)):
            return cls(ValueKind.LIST, list(obj))
        raise ValidationError(f"unsupported value type: {type(obj).__name__}")

    @property
    def is_numeric(self) -> bool:
        return self.kind in NUMERIC_KINDS

    @property
    def is_scalar(self) -> bool:
        return self.kind in SCALAR_KINDS

    @property
    def is_nan(self) -> bool:
        return self.kind == ValueKind.FLOAT and math.isnan(self.raw)

    def to_python(self) -> Any:
        """Return the plain Python object for this value."""
        return self.raw

    def __repr__(self) -> str:
        if self.kind == ValueKind.NULL:
            return "Value(null)"
        return f"Value({self.kind.value}, {self.raw!r})"


def to_plain(obj: Any) -> Any:
    """
    Convert numpy scalars inside a document to plain Python objects.

    Nested dicts and lists are converted recursively; tuples become lists.
    """
    if isinstance(obj, dict):
        return {k: to_plain(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_plain(v) for v in obj]
    if isinstance(obj, np.generic):
        return obj.item()
    return obj
