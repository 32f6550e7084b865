"""
Abstract base classes for storage backends.

A backend (``BaseStore``) describes its indexes, states what its native
query language can take, and opens a ``PageSource`` per query. The page
source hands back pages of raw documents until it runs out.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple
import threading

from ..core.context import CancellationToken
from ..core.exceptions import StorageError
from ..query.catalog import IndexCatalog
from ..query.planner import NativeQuery, PlannerConfig


@dataclass
class Page:
    """One page of backend results."""

    documents: List[Dict[str, Any]] = field(default_factory=list)

    # Opaque continuation token; None = no more pages
    next_token: Optional[Any] = None

    @property
    def is_last(self) -> bool:
        return self.next_token is None

    def __len__(self) -> int:
        return len(self.documents)


class PageSource(ABC):
    """
    Pages of raw documents for one running query.

    ``fetch_page`` checks the cancellation token before every round trip.
    ``close`` releases whatever the backend holds for the query (cursors,
    open streams); it is idempotent and never does further I/O.
    """

    def __init__(self, native_query: NativeQuery):
        self.native_query = native_query
        self.round_trips = 0
        self._closed = False
        self._lock = threading.Lock()

    @property
    def closed(self) -> bool:
        return self._closed

    def fetch_page(self, token: Optional[Any], cancel: CancellationToken) -> Page:
        """
        Fetch the page starting at ``token`` (None for the first page).

        Raises:
            QueryCancelledError: If the token was cancelled
            StorageError: If the source is closed
        """
        if self._closed:
            raise StorageError("page source is closed")
        cancel.check()
        self.round_trips += 1
        return self._fetch_page(token)

    @abstractmethod
    def _fetch_page(self, token: Optional[Any]) -> Page:
        """Backend round trip."""
        pass

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self._release()

    def _release(self) -> None:
        """Release backend resources; called once."""
        pass

    def __enter__(self) -> "PageSource":
        return self

    def __exit__(self, *args) -> None:
        self.close()


class BaseStore(ABC):
    """
    Abstract base class for document-store backends.

    All backends must provide:
    - Index metadata
    - Their native query capabilities
    - Paged query execution
    - Deletion by primary key
    """

    @abstractmethod
    def describe_indexes(self) -> IndexCatalog:
        """Fetch the collection's key and index metadata."""
        pass

    @property
    @abstractmethod
    def planner_config(self) -> PlannerConfig:
        """Planning options matching this backend's query language."""
        pass

    @abstractmethod
    def open_pages(self, native_query: NativeQuery) -> PageSource:
        """Start running a native query."""
        pass

    @abstractmethod
    def delete_keys(self, keys: Sequence[Tuple[Any, ...]]) -> int:
        """
        Delete documents by primary key.

        Returns:
            Number of documents deleted
        """
        pass

    def close(self) -> None:
        """Close the backend connection."""
        pass

    def __enter__(self) -> "BaseStore":
        return self

    def __exit__(self, *args) -> None:
        self.close()
