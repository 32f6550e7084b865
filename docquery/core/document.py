"""
Read access into decoded documents.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Iterator, Optional, Sequence, Tuple

from .exceptions import FieldNotFoundError
from .values import Value


FieldPath = Tuple[str, ...]


class Document:
    """
    A decoded document.

    Field paths are sequences of segments walking into nested maps; a
    segment that parses as an integer also indexes into lists.

    Example:
        >>> doc = Document({"user": {"age": 31}})
        >>> doc.get(("user", "age"))
        Value(int, 31)
    """

    __slots__ = ("_data",)

    def __init__(self, data: Optional[Dict[str, Any]] = None):
        self._data = data if data is not None else {}

    def get(self, field_path: Sequence[str]) -> Value:
        """
        Get the value at a field path.

        Raises:
            FieldNotFoundError: If the path does not resolve
        """
        return Value.of(self.get_raw(field_path))

    def get_raw(self, field_path: Sequence[str]) -> Any:
        """Get the undecoded object at a field path."""
        current: Any = self._data
        for part in field_path:
            if isinstance(current, dict):
                if part not in current:
                    raise FieldNotFoundError(field_path)
                current = current[part]
            elif isinstance(current, list):
                # List indexes are plain non-negative decimals
                if not (part.isascii() and part.isdigit()):
                    raise FieldNotFoundError(field_path)
                index = int(part)
                if index >= len(current):
                    raise FieldNotFoundError(field_path)
                current = current[index]
            else:
                raise FieldNotFoundError(field_path)
        return current

    def has(self, field_path: Sequence[str]) -> bool:
        try:
            self.get_raw(field_path)
        except FieldNotFoundError:
            return False
        return True

    def project(self, field_paths: Iterable[Sequence[str]]) -> "Document":
        """
        Return a new document holding only the given field paths.

        Paths missing from this document are left out.
        """
        out: Dict[str, Any] = {}
        for fp in field_paths:
            try:
                val = self.get_raw(fp)
            except FieldNotFoundError:
                continue
            _set_at_field_path(out, fp, val)
        return Document(out)

    def to_dict(self) -> Dict[str, Any]:
        return self._data

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __contains__(self, key: str) -> bool:
        return key in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Document):
            return self._data == other._data
        if isinstance(other, dict):
            return self._data == other
        return NotImplemented

    def __repr__(self) -> str:
        return f"Document({self._data!r})"


def _set_at_field_path(m: Dict[str, Any], field_path: Sequence[str], val: Any) -> None:
    for part in field_path[:-1]:
        m = m.setdefault(part, {})
    m[field_path[-1]] = val
