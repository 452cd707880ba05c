"""Refresh scheduling for held obfuscation vectors."""

from __future__ import annotations

import time
from typing import Callable

Clock = Callable[[], float]
"""Monotonic clock returning seconds; ``time.monotonic`` in production."""

__all__ = ["Clock", "RefreshScheduler"]


class RefreshScheduler:
    """Decide when a held vector must be resampled.

    Not thread-safe on its own: the owning :class:`OffsetSlot` performs the
    due check and the reschedule under its lock. A fresh scheduler is due
    immediately.
    """

    def __init__(self, interval_s: float, clock: Clock = time.monotonic) -> None:
        if not interval_s > 0:
            raise ValueError("interval_s must be > 0")
        self._interval_s = float(interval_s)
        self._clock = clock
        self._next_update_s = float("-inf")

    @property
    def interval_s(self) -> float:
        return self._interval_s

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def next_update_s(self) -> float:
        return self._next_update_s

    def now(self) -> float:
        return self._clock()

    def is_due(self, now: float) -> bool:
        return now >= self._next_update_s

    def schedule(self, now: float) -> float:
        """Set the next expiry to ``now + interval`` and return it."""

        self._next_update_s = now + self._interval_s
        return self._next_update_s

    def expire(self) -> None:
        """Make the next due check succeed regardless of the clock."""

        self._next_update_s = float("-inf")
