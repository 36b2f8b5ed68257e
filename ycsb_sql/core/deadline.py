"""
Deadline / cancellation signal passed along with an operation.
"""

import threading
import time
from typing import Optional

from ycsb_sql.core.errors import OperationCancelledError


class Deadline:
    """
    Optional time limit plus an explicit cancel flag.

    ``cancel()`` may be called from any thread; the worker notices at its
    next check point: before acquiring a connection, between waits on a
    full pool, after acquiring one, and before executing.
    """

    def __init__(self, timeout: Optional[float] = None):
        self._expires_at = time.monotonic() + timeout if timeout is not None else None
        self._cancelled = threading.Event()

    def cancel(self):
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def remaining(self) -> Optional[float]:
        """Seconds left, or None without a time limit"""
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - time.monotonic())

    def expired(self) -> bool:
        if self._cancelled.is_set():
            return True
        return self._expires_at is not None and time.monotonic() >= self._expires_at

    def check(self):
        if self._cancelled.is_set():
            raise OperationCancelledError("Operation cancelled")
        if self.expired():
            raise OperationCancelledError("Operation deadline exceeded")


def check_deadline(deadline: Optional[Deadline]):
    if deadline is not None:
        deadline.check()
