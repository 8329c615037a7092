"""
Per-key locking for marketplace mutations.

Every mutation of an Item is serialized on `item:<item_id>` and every mutation
of a beneficiary's purchase records on `ledger:<address>`. Keys are
independent; an operation that needs several keys takes them in the order
given and releases them in reverse. `buy` always asks for the item key first,
then the ledger key.

Usage:
    locks = KeyedLockManager(timeout=5.0)

    with locks.hold(item_key(7), ledger_key(buyer)):
        ...
"""

from __future__ import annotations

import logging
import threading
from contextlib import ExitStack, contextmanager
from typing import Dict, Iterator

from domain.address import normalize_address

logger = logging.getLogger(__name__)


class LockTimeout(TimeoutError):
    """Raised when a key lock cannot be acquired within the timeout."""
    pass


def item_key(item_id: int) -> str:
    return f"item:{item_id}"


def ledger_key(beneficiary: str) -> str:
    return f"ledger:{normalize_address(beneficiary)}"


class KeyedLockManager:
    """
    Thread-based lock manager for single-process deployments.

    Uses one threading.RLock per key, created on first use.
    """

    def __init__(self, timeout: float = 5.0) -> None:
        if timeout <= 0:
            raise ValueError("timeout must be > 0")
        self.timeout = timeout
        self._locks: Dict[str, threading.RLock] = {}
        self._meta_lock = threading.Lock()

    def _get_lock(self, key: str) -> threading.RLock:
        """Get or create a lock by key."""
        with self._meta_lock:
            if key not in self._locks:
                self._locks[key] = threading.RLock()
            return self._locks[key]

    @contextmanager
    def lock(self, key: str) -> Iterator[None]:
        """
        Context manager for holding one key.

        Raises:
            LockTimeout: If the lock cannot be acquired within the timeout
        """
        lock = self._get_lock(key)
        if not lock.acquire(timeout=self.timeout):
            logger.warning(
                f"Timed out waiting for lock '{key}'",
                extra={"lock_key": key, "timeout": self.timeout},
            )
            raise LockTimeout(f"Could not acquire lock '{key}' within {self.timeout}s")
        try:
            yield
        finally:
            lock.release()

    @contextmanager
    def hold(self, *keys: str) -> Iterator[None]:
        """Hold several keys, acquired in argument order."""
        with ExitStack() as stack:
            for key in keys:
                stack.enter_context(self.lock(key))
            yield


__all__ = ["KeyedLockManager", "LockTimeout", "item_key", "ledger_key"]
