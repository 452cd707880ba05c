"""Directional offset fudger.

Displaces every fix by a configured distance in a slowly rotating random
compass direction. The direction performs a small random walk between
windows instead of jumping, so the refresh boundary itself is not visible
in a stream of coarse fixes.
"""

from __future__ import annotations

import logging
import math
import random
import time
from dataclasses import dataclass
from typing import Optional

from ..config import (
    COARSE_MEMO_SIZE,
    DEFAULT_DISTANCE_KM,
    DIRECTION_JITTER_DEGREES,
    DISTANCE_UPDATE_INTERVAL_SECONDS,
    DISTANCE_VARIATION_PERCENT,
)
from ..geodesy import offset_coordinates, wrap_degrees
from ..models import Fix
from .base import VectorFudger, strip_metadata
from .memo import FixMemo
from .offsets import OffsetProvider, default_offset_provider
from .scheduler import Clock

LOGGER = logging.getLogger(__name__)

SLOT_KIND = "distance"


@dataclass(frozen=True, slots=True)
class DirectionDistance:
    """Compass direction (0 = north, 90 = east) and a factor on the base distance."""

    direction_deg: float
    distance_factor: float = 1.0


def _coerce_distance_km(distance_km: int) -> int:
    if not distance_km > 0:
        return DEFAULT_DISTANCE_KM
    return distance_km


class DistanceFudger(VectorFudger[DirectionDistance]):
    """Offset fixes by ``distance_km`` in a jittered random direction."""

    def __init__(
        self,
        distance_km: int = DEFAULT_DISTANCE_KM,
        *,
        clock: Clock = time.monotonic,
        rng: Optional[random.Random] = None,
        offset_provider: Optional[OffsetProvider] = None,
        update_interval_s: float = DISTANCE_UPDATE_INTERVAL_SECONDS,
        memo_size: int = COARSE_MEMO_SIZE,
    ) -> None:
        provider = offset_provider or default_offset_provider()
        super().__init__(
            provider.slot(SLOT_KIND, update_interval_s, clock), FixMemo(memo_size)
        )
        self._rng = rng if rng is not None else random.SystemRandom()
        self._distance_km = _coerce_distance_km(distance_km)
        if self._slot.shared:
            self._slot.ensure_seeded(self._seed)
        else:
            self._slot.reseed(self._seed)

    @property
    def distance_km(self) -> int:
        return self._distance_km

    @property
    def magnitude(self) -> int:
        return self._distance_km

    def set_distance_km(self, distance_km: int) -> None:
        """Change the base distance; non-positive values fall back to the default.

        A private vector is reseeded at once (fresh direction, factor 1 and a
        new window). A shared vector is left alone: the new base applies from
        the next call, but other consumers do not jump.
        """

        with self._config_lock:
            self._distance_km = _coerce_distance_km(distance_km)
            if not self._slot.shared:
                self._slot.reseed(self._seed)
        LOGGER.info("Distance set to %s km", self._distance_km)

    def set_magnitude(self, value: int) -> None:
        self.set_distance_km(value)

    def _current_magnitude(self) -> int:
        return self._distance_km

    def _seed(self) -> DirectionDistance:
        return DirectionDistance(direction_deg=self._rng.random() * 360.0)

    def _resample(self, previous: Optional[DirectionDistance]) -> DirectionDistance:
        if previous is None:
            return self._seed()
        factor = 1.0 + (self._rng.random() * 2.0 - 1.0) * DISTANCE_VARIATION_PERCENT
        step = (self._rng.random() * 2.0 - 1.0) * DIRECTION_JITTER_DEGREES
        return DirectionDistance(
            direction_deg=wrap_degrees(previous.direction_deg + step),
            distance_factor=factor,
        )

    def _transform(self, fine: Fix, vector: DirectionDistance, magnitude: int) -> Fix:
        distance_m = magnitude * 1000.0 * vector.distance_factor
        angle = math.radians(vector.direction_deg)
        north_m = distance_m * math.cos(angle)
        east_m = distance_m * math.sin(angle)
        latitude, longitude = offset_coordinates(
            fine.latitude, fine.longitude, north_m, east_m
        )
        # Never report an accuracy tighter than the offset just applied.
        accuracy_m = max(fine.accuracy_m or 0.0, distance_m)
        return strip_metadata(fine, latitude, longitude, accuracy_m)


__all__ = ["DirectionDistance", "DistanceFudger"]
