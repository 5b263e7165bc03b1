"""Per-order write locks for this process."""

import threading
from contextlib import contextmanager

from tracking.errors import ConcurrentModification


class OrderLocks:
    """One mutex per order number; waits are bounded."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}

    def _lock_for(self, order_number: str) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(order_number, threading.Lock())

    @contextmanager
    def hold(self, order_number: str, timeout: float):
        lock = self._lock_for(order_number)
        if not lock.acquire(timeout=timeout):
            raise ConcurrentModification(
                order_number, f"Timed out after {timeout}s waiting for another update to order {order_number}"
            )
        try:
            yield
        finally:
            lock.release()
