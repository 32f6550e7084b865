"""
Streaming query backend.

Models a query service that answers a request with a server stream of
document batches. Its query language takes any number of equality filters
but inequality filters on a single field path only, so the planner splits
filters for it and the iterator evaluates the remainder.

Each running query holds an open stream; closing the page source cancels
it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Generator, List, Optional, Sequence, Tuple
import copy
import threading

from ..core.document import Document
from ..core.exceptions import QueryError, ValidationError
from ..query.catalog import IndexCatalog, IndexDescription
from ..query.compare import filters_match
from ..query.planner import NativeQuery, PlannerConfig
from ..utils.logging import get_logger
from ..utils.validation import validate_field_name, validate_page_size
from .base import BaseStore, Page, PageSource


logger = get_logger(__name__)


@dataclass(frozen=True)
class StreamConfig:
    """Configuration for the streaming backend."""

    # Documents per streamed response
    batch_size: int = 50

    # Name of the field holding the document key
    key_field: str = "name"

    include_revision_field: bool = True

    def __post_init__(self):
        validate_page_size(self.batch_size)
        validate_field_name(self.key_field, "key field")


class StreamStore(BaseStore):
    """
    Document store answering queries with a result stream.

    Example:
        >>> store = StreamStore()
        >>> store.add({"name": "a", "score": 3})
        >>> it = QueryExecutor(store).run_query(query)
    """

    def __init__(self, config: Optional[StreamConfig] = None):
        self.config = config or StreamConfig()
        self._catalog = IndexCatalog(IndexDescription(self.config.key_field))
        self._docs: Dict[Any, Dict[str, Any]] = {}
        self._lock = threading.RLock()
        self._open_streams = 0

    def describe_indexes(self) -> IndexCatalog:
        return self._catalog

    @property
    def planner_config(self) -> PlannerConfig:
        return PlannerConfig(
            include_revision_field=self.config.include_revision_field,
            single_inequality_field=True,
        )

    @property
    def open_streams(self) -> int:
        """Streams opened and not yet finished or cancelled."""
        return self._open_streams

    def add(self, doc: Dict[str, Any]) -> Any:
        key = doc.get(self.config.key_field)
        if key is None:
            raise ValidationError(f"document is missing key field {self.config.key_field!r}")
        with self._lock:
            self._docs[key] = copy.deepcopy(doc)
        return key

    def add_many(self, docs: Sequence[Dict[str, Any]]) -> int:
        for doc in docs:
            self.add(doc)
        return len(docs)

    def delete_keys(self, keys: Sequence[Tuple[Any, ...]]) -> int:
        deleted = 0
        with self._lock:
            for (key,) in keys:
                if self._docs.pop(key, None) is not None:
                    deleted += 1
        return deleted

    def __len__(self) -> int:
        return len(self._docs)

    # =========================================================================
    # QUERYING
    # =========================================================================

    def open_pages(self, native_query: NativeQuery) -> PageSource:
        _check_native_filters(native_query.filters)
        return StreamPageSource(self, native_query)

    def _run_query(self, nq: NativeQuery) -> Generator[List[Dict[str, Any]], None, None]:
        """Server side of one query: yields batches until done or closed."""
        with self._lock:
            snapshot = [copy.deepcopy(d) for d in self._docs.values()]
            self._open_streams += 1
        try:
            batch: List[Dict[str, Any]] = []
            sent = 0
            for raw in snapshot:
                doc = Document(raw)
                if not filters_match(nq.filters, doc):
                    continue
                if nq.projection is not None:
                    doc = doc.project(nq.projection)
                batch.append(doc.to_dict())
                sent += 1
                if len(batch) == self.config.batch_size:
                    yield batch
                    batch = []
                if nq.limit and sent >= nq.limit:
                    break
            yield batch
        finally:
            with self._lock:
                self._open_streams -= 1


class StreamPageSource(PageSource):
    """Reads batches off an open result stream."""

    def __init__(self, store: StreamStore, native_query: NativeQuery):
        super().__init__(native_query)
        self._store = store
        self._stream: Optional[Generator[List[Dict[str, Any]], None, None]] = None
        self._finished = False

    def _fetch_page(self, token: Optional[Any]) -> Page:
        if self._finished:
            return Page(documents=[], next_token=None)
        if self._stream is None:
            self._stream = self._store._run_query(self.native_query)
            logger.debug("opened stream for %s", self.native_query.kind.value)
        try:
            batch = next(self._stream)
        except StopIteration:
            self._stream = None
            self._finished = True
            return Page(documents=[], next_token=None)
        # The stream is its own continuation
        return Page(documents=batch, next_token=True)

    def _release(self) -> None:
        if self._stream is not None:
            self._stream.close()
            self._stream = None
            logger.debug("cancelled stream")


def _check_native_filters(filters: Sequence) -> None:
    """
    Reject requests the service would refuse.

    Raises:
        QueryError: If inequality filters name more than one field path
    """
    range_paths = {f.field_path for f in filters if not f.is_equality}
    if len(range_paths) > 1:
        paths = sorted(".".join(fp) for fp in range_paths)
        raise QueryError(f"inequality filters on more than one field: {paths}")
