"""
Cooperative cancellation for running queries.
"""

from __future__ import annotations

import threading
import time
from typing import Optional

from .exceptions import QueryCancelledError


class CancellationToken:
    """
    Cancellation flag with an optional deadline.

    Page sources call ``check()`` before every round trip to the backend.

    Example:
        >>> token = CancellationToken(timeout_seconds=5.0)
        >>> it = executor.run_query(query, cancel=token)
        >>> token.cancel()  # from any thread
    """

    def __init__(self, timeout_seconds: Optional[float] = None):
        self._event = threading.Event()
        self.timeout_seconds = timeout_seconds
        self.start_time = time.monotonic()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set() or self._expired()

    def _expired(self) -> bool:
        if self.timeout_seconds is None:
            return False
        return time.monotonic() - self.start_time > self.timeout_seconds

    def check(self) -> None:
        """
        Raise if the query was cancelled or its deadline passed.

        Raises:
            QueryCancelledError
        """
        if self._event.is_set():
            raise QueryCancelledError("query cancelled")
        if self._expired():
            elapsed = time.monotonic() - self.start_time
            raise QueryCancelledError(
                f"query timeout exceeded ({elapsed:.2f}s > {self.timeout_seconds}s)"
            )

