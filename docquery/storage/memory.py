"""
In-memory key/attribute store.

Behaves like a key/attribute database with a table key, local and global
secondary indexes, and server-side filter expressions:

- A table or index query selects documents through its key condition and
  returns them in ascending sort-key order.
- Filter expressions are applied per page, after the key condition, so a
  page can come back empty with more pages to follow.
- A global index with a restricted projection only returns the fields it
  stores.

Documents are kept msgpack-encoded and decoded per page.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple
import threading

from ..core.document import Document
from ..core.exceptions import StorageError, ValidationError
from ..query.catalog import IndexCatalog, IndexDescription, IndexKind, ProjectionType
from ..query.compare import filters_match, sort_key
from ..query.planner import NativeQuery, PlanKind, PlannerConfig
from ..utils.logging import get_logger
from ..utils.validation import validate_page_size
from .base import BaseStore, Page, PageSource
from .serialization import decode_document, encode_document


logger = get_logger(__name__)


Key = Tuple[Any, ...]


@dataclass(frozen=True)
class MemoryStoreConfig:
    """Configuration for the in-memory store."""

    # Documents examined per round trip
    page_size: int = 100

    def __post_init__(self):
        validate_page_size(self.page_size)


class MemoryStore(BaseStore):
    """
    In-memory document store with a key/attribute query model.

    Example:
        >>> store = MemoryStore(catalog)
        >>> store.put({"Game": "Zork", "Player": "ann", "Score": 10})
        >>> executor = QueryExecutor(store)
    """

    def __init__(
        self,
        catalog: IndexCatalog,
        config: Optional[MemoryStoreConfig] = None,
        planner_config: Optional[PlannerConfig] = None,
    ):
        self._catalog = catalog
        self.config = config or MemoryStoreConfig()
        self._planner_config = planner_config or PlannerConfig()
        self._docs: Dict[Key, bytes] = {}
        self._lock = threading.RLock()

    # =========================================================================
    # METADATA
    # =========================================================================

    def describe_indexes(self) -> IndexCatalog:
        return self._catalog

    @property
    def planner_config(self) -> PlannerConfig:
        return self._planner_config

    @property
    def size(self) -> int:
        return len(self._docs)

    def __len__(self) -> int:
        return self.size

    # =========================================================================
    # DOCUMENT ACCESS
    # =========================================================================

    def key_of(self, doc: Dict[str, Any]) -> Key:
        """
        Extract the primary key of a document.

        Raises:
            ValidationError: If a key field is missing or None
        """
        key = []
        for name in self._catalog.table.key_fields:
            val = doc.get(name)
            if val is None:
                raise ValidationError(f"document is missing key field {name!r}")
            key.append(val)
        return tuple(key)

    def put(self, doc: Dict[str, Any]) -> Key:
        """Store a document, replacing any with the same key."""
        data = encode_document(doc)
        key = self.key_of(decode_document(data))
        with self._lock:
            self._docs[key] = data
        return key

    def put_many(self, docs: Sequence[Dict[str, Any]]) -> int:
        for doc in docs:
            self.put(doc)
        return len(docs)

    def get(self, *key: Any) -> Optional[Document]:
        with self._lock:
            data = self._docs.get(tuple(key))
        if data is None:
            return None
        return Document(decode_document(data))

    def delete(self, *key: Any) -> bool:
        with self._lock:
            return self._docs.pop(tuple(key), None) is not None

    def delete_keys(self, keys: Sequence[Key]) -> int:
        deleted = 0
        with self._lock:
            for key in keys:
                if self._docs.pop(tuple(key), None) is not None:
                    deleted += 1
        return deleted

    def clear(self) -> int:
        with self._lock:
            n = len(self._docs)
            self._docs.clear()
        return n

    def iter_documents(self) -> Iterator[Document]:
        with self._lock:
            snapshot = list(self._docs.values())
        for data in snapshot:
            yield Document(decode_document(data))

    # =========================================================================
    # QUERYING
    # =========================================================================

    def open_pages(self, native_query: NativeQuery) -> PageSource:
        if native_query.index_name is not None:
            # Unknown index names fail here, before any page is fetched
            self._catalog.index(native_query.index_name)
        return MemoryPageSource(self, native_query)

    def _candidates(self, nq: NativeQuery) -> List[bytes]:
        """Encoded documents selected by the key condition, in key order."""
        with self._lock:
            snapshot = list(self._docs.values())

        if nq.kind == PlanKind.FULL_SCAN:
            if nq.key_conditions:
                raise StorageError("a scan cannot have a key condition")
            return snapshot

        desc = self._catalog.description_for(nq.index_name)
        _check_key_conditions(nq, desc)

        selected = []
        for data in snapshot:
            doc = Document(decode_document(data))
            # Indexes are sparse: documents without the index keys are absent
            if not all(doc.has((k,)) for k in desc.key_fields):
                continue
            if filters_match(nq.key_conditions, doc):
                selected.append((doc, data))

        if desc.sort_key:
            selected.sort(key=lambda pair: sort_key(pair[0].get_raw((desc.sort_key,))))
        return [data for _, data in selected]

    def _index_fields(self, index_name: Optional[str]) -> Optional[List[str]]:
        """Fields stored by a global index with a restricted projection."""
        if index_name is None:
            return None
        idx = self._catalog.index(index_name)
        if idx.kind != IndexKind.GLOBAL or idx.projection.type == ProjectionType.ALL:
            return None
        fields = list(self._catalog.table.key_fields) + list(idx.description.key_fields)
        fields.extend(sorted(idx.projection.fields))
        return fields


class MemoryPageSource(PageSource):
    """Pages over a snapshot of the store taken at the first fetch."""

    def __init__(self, store: MemoryStore, native_query: NativeQuery):
        super().__init__(native_query)
        self._store = store
        self._candidates: Optional[List[bytes]] = None
        self._index_fields = store._index_fields(native_query.index_name)

    def _fetch_page(self, token: Optional[Any]) -> Page:
        nq = self.native_query
        if self._candidates is None:
            self._candidates = self._store._candidates(nq)
            if nq.limit:
                self._candidates = self._candidates[:nq.limit]

        start = token or 0
        end = start + self._store.config.page_size
        docs = []
        for data in self._candidates[start:end]:
            doc = Document(decode_document(data))
            if self._index_fields is not None:
                doc = doc.project((f,) for f in self._index_fields)
            if not filters_match(nq.filter_expressions, doc):
                continue
            if nq.projection is not None:
                doc = doc.project(nq.projection)
            docs.append(doc.to_dict())

        next_token = end if end < len(self._candidates) else None
        logger.debug(
            "page [%d:%d] of %d candidates, %d documents",
            start, end, len(self._candidates), len(docs),
        )
        return Page(documents=docs, next_token=next_token)

    def _release(self) -> None:
        self._candidates = None


def _check_key_conditions(nq: NativeQuery, desc: IndexDescription) -> None:
    """The key condition must pin the partition key and may range over the sort key."""
    pkey_eq = [f for f in nq.key_conditions if f.path == desc.partition_key and f.is_equality]
    skey = [f for f in nq.key_conditions if desc.sort_key and f.path == desc.sort_key]
    if len(pkey_eq) != 1:
        raise StorageError(
            f"key condition needs one equality on partition key {desc.partition_key!r}"
        )
    if len(skey) > 1 or len(pkey_eq) + len(skey) != len(nq.key_conditions):
        raise StorageError("key condition may only have one condition on the sort key")
