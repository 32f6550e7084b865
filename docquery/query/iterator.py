"""
Lazy iteration over query results.

The iterator pulls pages from a backend page source, evaluates the plan's
local filters on each candidate, trims documents to the selected fields
and stops at the query limit. Candidates rejected locally never reach the
caller and do not count against the limit.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Any, Deque, Dict, Optional

from ..core.context import CancellationToken
from ..core.document import Document
from ..utils.logging import get_logger
from .compare import filters_match
from .planner import NativeQuery, Plan


logger = get_logger(__name__)


@dataclass
class IteratorStats:
    """Statistics from one iteration."""

    pages: int = 0
    scanned: int = 0      # raw documents received from the backend
    skipped: int = 0      # rejected by local filters
    returned: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pages": self.pages,
            "scanned": self.scanned,
            "skipped": self.skipped,
            "returned": self.returned,
        }


class DocumentIterator:
    """
    Forward-only iterator over the documents matching a plan.

    ``next()`` returns the next document and raises ``StopIteration`` once
    the results are exhausted or the iterator was stopped. A backend error
    ends the iteration: it is raised again by every later ``next()`` and
    the backend is not called again.

    Example:
        >>> with executor.run_query(query) as it:
        ...     for doc in it:
        ...         print(doc["Player"])
    """

    def __init__(
        self,
        plan: Plan,
        source,
        cancel: Optional[CancellationToken] = None,
    ):
        """
        Args:
            plan: The plan being executed
            source: Page source running the plan's native query
            cancel: Token checked before every backend round trip
        """
        self.plan = plan
        self._source = source
        self._cancel = cancel or CancellationToken()
        self._buffer: Deque[Dict[str, Any]] = deque()
        self._token: Optional[Any] = None
        self._last_page = False
        self._err: Optional[BaseException] = None
        self.stats = IteratorStats()

    @property
    def native_query(self) -> NativeQuery:
        """The request actually sent, after any before_query changes."""
        return self._source.native_query

    @property
    def done(self) -> bool:
        return self._err is not None

    def __iter__(self) -> "DocumentIterator":
        return self

    def __next__(self) -> Document:
        return self.next()

    def next(self) -> Document:
        """
        Return the next matching document.

        Raises:
            StopIteration: When there are no more results
            Exception: Whatever the backend raised, on this and every later call
        """
        if self._err is not None:
            raise self._err

        try:
            return self._next_match()
        except StopIteration as e:
            self._finish(e)
            raise
        except Exception as e:
            logger.warning("query failed after %d pages: %s", self.stats.pages, e)
            self._finish(e)
            raise

    def _next_match(self) -> Document:
        limit = self.plan.query.limit
        if limit and self.stats.returned >= limit:
            raise StopIteration

        local = self.plan.local_filters
        while True:
            while self._buffer:
                doc = Document(self._buffer.popleft())
                self.stats.scanned += 1
                if local and not filters_match(local, doc):
                    self.stats.skipped += 1
                    continue
                self.stats.returned += 1
                if self.plan.result_fields is not None:
                    doc = doc.project(self.plan.result_fields)
                return doc

            if self._last_page:
                raise StopIteration

            page = self._source.fetch_page(self._token, self._cancel)
            self.stats.pages += 1
            self._buffer.extend(page.documents)
            self._token = page.next_token
            self._last_page = page.is_last

    def _finish(self, err: BaseException) -> None:
        self._err = err
        self._buffer.clear()
        self._source.close()

    def stop(self) -> None:
        """
        End the iteration early and release backend resources.

        Safe to call any number of times; later ``next()`` calls raise
        StopIteration.
        """
        if self._err is None:
            self._finish(StopIteration())
        else:
            self._source.close()

    def __enter__(self) -> "DocumentIterator":
        return self

    def __exit__(self, *args) -> None:
        self.stop()
