"""
Time sources for the marketplace.

The marketplace never reads the wall clock directly; it asks a Clock for the
current timestamp (whole unix seconds). SystemClock is used in deployments,
ManualClock in tests and simulations where time is advanced explicitly.
"""

from __future__ import annotations

import threading
import time
from typing import Optional, Protocol

from domain.time import require_uint256


class Clock(Protocol):
    def now(self) -> int: ...


class SystemClock:
    """Wall-clock time in whole seconds."""

    def now(self) -> int:
        return int(time.time())


class ManualClock:
    """
    Externally advanced clock.

    Time only moves forward: advance() takes a non-negative duration and
    set() refuses to go back.
    """

    def __init__(self, start: Optional[int] = None) -> None:
        self._now = int(time.time()) if start is None else start
        require_uint256("start", self._now)
        self._lock = threading.Lock()

    def now(self) -> int:
        with self._lock:
            return self._now

    def advance(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError("seconds must be >= 0")
        with self._lock:
            self._now += seconds
            return self._now

    def set(self, timestamp: int) -> None:
        require_uint256("timestamp", timestamp)
        with self._lock:
            if timestamp < self._now:
                raise ValueError("ManualClock cannot move backwards")
            self._now = timestamp


__all__ = ["Clock", "SystemClock", "ManualClock"]
