import logging
import threading
from contextlib import contextmanager
from typing import Dict, Optional

from app.config import config
from app.errors.session_block_errors import ConcurrencyConflict

logger = logging.getLogger(__name__)


class CustomerLockRegistry:
    """
    In-process exclusive section per customer id.

    Operations on the same customer are serialized, different customers never
    wait on each other. Entries are dropped once nobody holds or waits on them.
    """

    def __init__(self, timeout: Optional[float] = None):
        self.timeout = timeout
        self._guard = threading.Lock()
        self._locks: Dict[int, threading.Lock] = {}
        self._users: Dict[int, int] = {}

    def _checkout(self, customer_id: int) -> threading.Lock:
        with self._guard:
            lock = self._locks.setdefault(customer_id, threading.Lock())
            self._users[customer_id] = self._users.get(customer_id, 0) + 1
            return lock

    def _release(self, customer_id: int) -> None:
        with self._guard:
            self._users[customer_id] -= 1
            if self._users[customer_id] == 0:
                del self._users[customer_id]
                del self._locks[customer_id]

    @contextmanager
    def hold(self, customer_id: int):
        timeout = self.timeout if self.timeout is not None else config.SESSION_LOCK_TIMEOUT_SECONDS
        lock = self._checkout(customer_id)
        try:
            if not lock.acquire(timeout=timeout):
                logger.warning(f"Timed out after {timeout}s waiting for ledger lock of customer {customer_id}")
                raise ConcurrencyConflict()
            try:
                yield
            finally:
                lock.release()
        finally:
            self._release(customer_id)

    def is_held(self, customer_id: int) -> bool:
        with self._guard:
            lock = self._locks.get(customer_id)
        return lock is not None and lock.locked()


customer_locks = CustomerLockRegistry()
