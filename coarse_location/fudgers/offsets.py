"""Holders for the randomized vector each fudger applies.

A fudger never stores its vector directly; it asks an :class:`OffsetProvider`
for an :class:`OffsetSlot`. The provider decides the *scope* of the vector:

* :class:`InstanceOffsetProvider` gives every fudger its own slot, so each
  consumer sees independent jitter.
* :class:`SharedOffsetProvider` hands every fudger of the same kind one
  process-wide slot, so all coarse fixes shift in lockstep. Each fudger still
  applies its own magnitude to the shared vector.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from typing import Callable, Dict, Generic, Optional, Tuple, TypeVar

from ..config import OFFSET_SCOPE
from ..errors import InvalidSettingError
from .scheduler import Clock, RefreshScheduler

LOGGER = logging.getLogger(__name__)

VectorT = TypeVar("VectorT")
Resampler = Callable[[Optional[VectorT]], VectorT]

SCOPE_INSTANCE = "instance"
SCOPE_SHARED = "shared"


class OffsetSlot(Generic[VectorT]):
    """A vector, its expiry and the lock that makes check-and-resample atomic.

    ``generation`` increases every time the vector is replaced, which lets
    callers tell whether two results came from the same window.
    """

    def __init__(self, scheduler: RefreshScheduler, *, shared: bool = False) -> None:
        self._scheduler = scheduler
        self._lock = threading.Lock()
        self._vector: Optional[VectorT] = None
        self._generation = 0
        self.shared = shared

    @property
    def scheduler(self) -> RefreshScheduler:
        return self._scheduler

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    @property
    def next_update_s(self) -> float:
        with self._lock:
            return self._scheduler.next_update_s

    def peek(self) -> Optional[VectorT]:
        with self._lock:
            return self._vector

    def current(self, resample: Resampler) -> Tuple[VectorT, int]:
        """Return the vector in force now, resampling first when it expired.

        ``resample`` receives the previous vector (``None`` when unseeded) and
        runs under the slot lock, so concurrent callers never both resample
        and never observe a half-written vector.
        """

        now = self._scheduler.now()
        next_at: Optional[float] = None
        with self._lock:
            if self._vector is None or self._scheduler.is_due(now):
                self._vector = resample(self._vector)
                self._generation += 1
                next_at = self._scheduler.schedule(now)
            vector, generation = self._vector, self._generation
        if next_at is not None:
            LOGGER.info(
                "Offset refreshed shared=%s generation=%s next_at=%.3f",
                self.shared,
                generation,
                next_at,
            )
        return vector, generation

    def ensure_seeded(self, seed: Callable[[], VectorT]) -> None:
        """Seed the slot unless another user already did."""

        now = self._scheduler.now()
        with self._lock:
            if self._vector is not None:
                return
            self._vector = seed()
            self._generation += 1
            self._scheduler.schedule(now)

    def reseed(self, seed: Callable[[], VectorT]) -> VectorT:
        """Replace the vector unconditionally and restart the window."""

        now = self._scheduler.now()
        with self._lock:
            self._vector = seed()
            self._generation += 1
            self._scheduler.schedule(now)
            return self._vector

    def restart_window(self) -> None:
        """Keep the vector but push its expiry to ``now + interval``."""

        now = self._scheduler.now()
        with self._lock:
            self._scheduler.schedule(now)


class OffsetProvider(ABC):
    """Policy deciding which fudgers share an :class:`OffsetSlot`."""

    @abstractmethod
    def slot(self, kind: str, interval_s: float, clock: Clock) -> OffsetSlot:
        """Return the slot a new fudger of ``kind`` should use."""


class InstanceOffsetProvider(OffsetProvider):
    """Every fudger gets a private slot."""

    def slot(self, kind: str, interval_s: float, clock: Clock) -> OffsetSlot:
        return OffsetSlot(RefreshScheduler(interval_s, clock), shared=False)


class SharedOffsetProvider(OffsetProvider):
    """One slot per fudger kind for the whole provider (usually the process).

    The first fudger of a kind fixes the slot's interval and clock; later
    fudgers asking for a different interval or clock are logged and join
    anyway, running on the first fudger's schedule.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._slots: Dict[str, OffsetSlot] = {}

    def slot(self, kind: str, interval_s: float, clock: Clock) -> OffsetSlot:
        with self._lock:
            existing = self._slots.get(kind)
            if existing is None:
                existing = OffsetSlot(RefreshScheduler(interval_s, clock), shared=True)
                self._slots[kind] = existing
            elif existing.scheduler.interval_s != float(interval_s):
                LOGGER.warning(
                    "Shared %s offsets keep interval %.1fs (requested %.1fs)",
                    kind,
                    existing.scheduler.interval_s,
                    interval_s,
                )
            if existing.scheduler.clock is not clock:
                LOGGER.warning(
                    "Shared %s offsets keep the clock of the first fudger; ignoring %r",
                    kind,
                    clock,
                )
            return existing

    def reset(self) -> None:
        """Forget every shared slot (used by tests and reconfiguration)."""

        with self._lock:
            self._slots.clear()


INSTANCE_OFFSETS = InstanceOffsetProvider()
SHARED_OFFSETS = SharedOffsetProvider()


def provider_for_scope(scope: str) -> OffsetProvider:
    """Map a scope name (``instance`` / ``shared``) to its provider."""

    normalized = (scope or "").strip().lower()
    if normalized == SCOPE_INSTANCE:
        return INSTANCE_OFFSETS
    if normalized == SCOPE_SHARED:
        return SHARED_OFFSETS
    raise InvalidSettingError(
        f"Unknown offset scope '{scope}' (expected '{SCOPE_INSTANCE}' or '{SCOPE_SHARED}')"
    )


def default_offset_provider() -> OffsetProvider:
    """Provider selected by the ``OFFSET_SCOPE`` setting."""

    return provider_for_scope(OFFSET_SCOPE)


__all__ = [
    "OffsetSlot",
    "OffsetProvider",
    "InstanceOffsetProvider",
    "SharedOffsetProvider",
    "INSTANCE_OFFSETS",
    "SHARED_OFFSETS",
    "SCOPE_INSTANCE",
    "SCOPE_SHARED",
    "provider_for_scope",
    "default_offset_provider",
]
