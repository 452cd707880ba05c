"""Shared surface for every location obfuscation strategy."""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from typing import Generic, Optional, Tuple, TypeVar, Union, overload

from ..models import Fix, FixBatch
from .memo import FixMemo
from .offsets import OffsetSlot

LOGGER = logging.getLogger(__name__)

VectorT = TypeVar("VectorT")
Magnitude = Union[int, float]


class LocationObfuscator(ABC):
    """Turn precise fixes into deliberately imprecise ones.

    Implementations never mutate the input and always return new objects.
    ``obfuscate_batch`` behaves like calling ``obfuscate_fix`` once per fix with
    one shared vector: the refresh decision is taken once per call.
    """

    @abstractmethod
    def obfuscate_fix(self, fine: Fix) -> Fix:
        """Return a coarse copy of ``fine``."""

    @abstractmethod
    def obfuscate_batch(self, fine: FixBatch) -> FixBatch:
        """Return a coarse copy of every fix in ``fine``, in order."""

    @property
    @abstractmethod
    def magnitude(self) -> Magnitude:
        """Configured strength (kilometres or metres, per strategy)."""

    @abstractmethod
    def set_magnitude(self, value: Magnitude) -> None:
        """Apply a new strength; invalid values are coerced, never rejected."""

    @overload
    def obfuscate(self, fine: Fix) -> Fix: ...

    @overload
    def obfuscate(self, fine: FixBatch) -> FixBatch: ...

    def obfuscate(self, fine: Union[Fix, FixBatch]) -> Union[Fix, FixBatch]:
        if isinstance(fine, FixBatch):
            return self.obfuscate_batch(fine)
        if isinstance(fine, Fix):
            return self.obfuscate_fix(fine)
        raise TypeError(f"Cannot obfuscate {type(fine).__name__}")


def strip_metadata(fine: Fix, latitude: float, longitude: float, accuracy_m: float) -> Fix:
    """Build the coarse copy: new position and accuracy, no route/identity data."""

    return fine.with_changes(
        latitude=latitude,
        longitude=longitude,
        accuracy_m=accuracy_m,
        bearing_deg=None,
        speed_mps=None,
        altitude_m=None,
        extras=None,
    )


class VectorFudger(LocationObfuscator, Generic[VectorT]):
    """Base for fudgers that apply one held vector per refresh window.

    Subclasses provide ``_resample`` (next vector from the previous one) and
    ``_transform`` (apply a vector snapshot to one fix). The magnitude and
    the vector are captured together so a concurrent ``set_magnitude`` never
    pairs a new magnitude with half of a call's fixes.
    """

    def __init__(self, slot: OffsetSlot, memo: Optional[FixMemo] = None) -> None:
        self._slot = slot
        self._memo = memo if memo is not None else FixMemo(0)
        self._config_lock = threading.RLock()

    @property
    def next_update_s(self) -> float:
        """Monotonic time at which the current vector expires."""

        return self._slot.next_update_s

    @property
    def shared(self) -> bool:
        return self._slot.shared

    @property
    def current_vector(self) -> Optional[VectorT]:
        return self._slot.peek()

    def obfuscate_fix(self, fine: Fix) -> Fix:
        vector, generation, magnitude = self._snapshot()
        return self._coarsen(fine, vector, generation, magnitude)

    def obfuscate_batch(self, fine: FixBatch) -> FixBatch:
        vector, generation, magnitude = self._snapshot()
        return fine.map(
            lambda fix: self._coarsen(fix, vector, generation, magnitude)
        )

    def _snapshot(self) -> Tuple[VectorT, int, Magnitude]:
        with self._config_lock:
            magnitude = self._current_magnitude()
            vector, generation = self._slot.current(self._resample)
        return vector, generation, magnitude

    def _coarsen(
        self, fine: Fix, vector: VectorT, generation: int, magnitude: Magnitude
    ) -> Fix:
        coarse = self._memo.get_or_compute(
            generation,
            fine,
            lambda: self._transform(fine, vector, magnitude),
            salt=magnitude,
        )
        if LOGGER.isEnabledFor(logging.DEBUG):
            LOGGER.debug(
                "%s: fine=(%.6f, %.6f) acc=%s -> coarse=(%.6f, %.6f) acc=%.1f",
                type(self).__name__,
                fine.latitude,
                fine.longitude,
                fine.accuracy_m,
                coarse.latitude,
                coarse.longitude,
                coarse.accuracy_m,
            )
        return coarse

    @abstractmethod
    def _current_magnitude(self) -> Magnitude:
        """Magnitude read under the config lock."""

    @abstractmethod
    def _resample(self, previous: Optional[VectorT]) -> VectorT:
        """Return the vector for the next window (``previous`` is None when unseeded)."""

    @abstractmethod
    def _transform(self, fine: Fix, vector: VectorT, magnitude: Magnitude) -> Fix:
        """Apply ``vector`` scaled by ``magnitude`` to ``fine``."""


__all__ = ["LocationObfuscator", "VectorFudger", "strip_metadata", "Magnitude"]
