"""Fingerprint memo returning the same coarse fix for the same fine fix."""

from __future__ import annotations

import threading
from typing import Callable, Hashable, Optional

from cachetools import LRUCache

from ..config import COARSE_MEMO_SIZE
from ..models import Fix
from ..utils import fix_fingerprint


class FixMemo:
    """Thread-safe LRU memo keyed by fix content, scoped to one refresh window.

    Entries are dropped as soon as a lookup reports a new window generation,
    so a memoised result never outlives the vector that produced it.
    """

    def __init__(self, max_entries: int = COARSE_MEMO_SIZE) -> None:
        self._max_entries = max(0, max_entries)
        self._lock = threading.Lock()
        self._cache: LRUCache = LRUCache(maxsize=max(1, self._max_entries))
        self._generation: Optional[int] = None

    @property
    def enabled(self) -> bool:
        return self._max_entries > 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    def get_or_compute(
        self,
        generation: int,
        fine: Fix,
        compute: Callable[[], Fix],
        *,
        salt: Hashable = None,
    ) -> Fix:
        """Return the memoised coarse fix for ``fine`` or compute and store it.

        ``salt`` distinguishes results produced with different fudger
        settings inside the same window.
        """

        if not self.enabled:
            return compute()
        key = (fix_fingerprint(fine), salt)
        with self._lock:
            # A snapshot from a replaced window is computed but never cached.
            stale = self._generation is not None and generation < self._generation
            if not stale and generation != self._generation:
                self._cache.clear()
                self._generation = generation
            elif not stale:
                cached = self._cache.get(key)
                if cached is not None:
                    return cached
        coarse = compute()
        with self._lock:
            if generation == self._generation:
                self._cache[key] = coarse
        return coarse

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()
            self._generation = None


__all__ = ["FixMemo"]
