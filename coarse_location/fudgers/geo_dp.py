"""Geo-indistinguishability fudger (planar Laplace noise).

Noise is calibrated from a target accuracy radius: ``epsilon = 2 / accuracy``,
so the mean displacement equals the radius. One noise draw is held for a whole
window and shared by every fix in it.
"""

from __future__ import annotations

import logging
import math
import random
import sys
import time
from dataclasses import dataclass
from typing import Optional, Tuple

from ..config import (
    COARSE_MEMO_SIZE,
    GEO_DP_MIN_ACCURACY_M,
    GEO_DP_NOISE_UPDATE_INTERVAL_SECONDS,
)
from ..geodesy import offset_coordinates
from ..models import Fix
from .base import VectorFudger, strip_metadata
from .memo import FixMemo
from .offsets import OffsetProvider, default_offset_provider
from .scheduler import Clock

LOGGER = logging.getLogger(__name__)

SLOT_KIND = "geo_dp"

# Smallest uniform draw used; keeps log() finite for a generator returning 0.
_MIN_UNIFORM = sys.float_info.min


@dataclass(frozen=True, slots=True)
class PlanarNoise:
    """A planar Laplace draw with the radius expressed in units of ``1/epsilon``.

    The same draw serves fudgers with different accuracies (shared scope) and
    survives an accuracy change mid-window.
    """

    radius_units: float
    theta_rad: float

    def offsets_m(self, epsilon: float) -> Tuple[float, float]:
        """Return ``(north_m, east_m)`` for ``epsilon``."""

        radius_m = self.radius_units / epsilon
        return radius_m * math.sin(self.theta_rad), radius_m * math.cos(self.theta_rad)


def sample_planar_laplace(rng: random.Random) -> PlanarNoise:
    """Draw Gamma(2, 1) radius units and a uniform angle.

    ``-ln(u * v)`` is the sum of two Exp(1) draws; it is computed as a sum of
    logs so the product cannot underflow to zero.
    """

    u = max(rng.random(), _MIN_UNIFORM)
    v = max(rng.random(), _MIN_UNIFORM)
    radius_units = -(math.log(u) + math.log(v))
    theta = 2.0 * math.pi * rng.random()
    return PlanarNoise(radius_units=radius_units, theta_rad=theta)


def calibrate_accuracy(accuracy_m: float, min_accuracy_m: float = GEO_DP_MIN_ACCURACY_M) -> float:
    """Floor ``accuracy_m`` at ``min_accuracy_m`` (non-numbers map to the floor)."""

    if not accuracy_m > min_accuracy_m:
        return float(min_accuracy_m)
    return float(accuracy_m)


class GeoDPFudger(VectorFudger[PlanarNoise]):
    """Add held planar Laplace noise calibrated to ``accuracy_m``."""

    def __init__(
        self,
        accuracy_m: float = GEO_DP_MIN_ACCURACY_M,
        *,
        clock: Clock = time.monotonic,
        rng: Optional[random.Random] = None,
        offset_provider: Optional[OffsetProvider] = None,
        update_interval_s: float = GEO_DP_NOISE_UPDATE_INTERVAL_SECONDS,
        min_accuracy_m: float = GEO_DP_MIN_ACCURACY_M,
        memo_size: int = COARSE_MEMO_SIZE,
    ) -> None:
        provider = offset_provider or default_offset_provider()
        super().__init__(
            provider.slot(SLOT_KIND, update_interval_s, clock), FixMemo(memo_size)
        )
        self._rng = rng if rng is not None else random.SystemRandom()
        self._min_accuracy_m = float(min_accuracy_m)
        self._accuracy_m = calibrate_accuracy(accuracy_m, self._min_accuracy_m)
        if self._slot.shared:
            self._slot.ensure_seeded(self._seed)
        else:
            self._slot.reseed(self._seed)

    @property
    def accuracy_m(self) -> float:
        return self._accuracy_m

    @property
    def epsilon(self) -> float:
        """Privacy budget per metre; smaller means more noise."""

        return 2.0 / self._accuracy_m

    @property
    def magnitude(self) -> float:
        return self._accuracy_m

    def set_accuracy_m(self, accuracy_m: float) -> None:
        """Recalibrate epsilon; the held draw is rescaled, not resampled."""

        with self._config_lock:
            self._accuracy_m = calibrate_accuracy(accuracy_m, self._min_accuracy_m)
        LOGGER.info(
            "Accuracy set to %.1f m (epsilon=%.6f)", self._accuracy_m, self.epsilon
        )

    def set_magnitude(self, value: float) -> None:
        self.set_accuracy_m(value)

    def reset_noise(self) -> None:
        """Restart the noise window from now, keeping the current draw."""

        self._slot.restart_window()

    def _current_magnitude(self) -> float:
        return self._accuracy_m

    def _seed(self) -> PlanarNoise:
        return sample_planar_laplace(self._rng)

    def _resample(self, previous: Optional[PlanarNoise]) -> PlanarNoise:
        return sample_planar_laplace(self._rng)

    def _transform(self, fine: Fix, vector: PlanarNoise, magnitude: float) -> Fix:
        north_m, east_m = vector.offsets_m(2.0 / magnitude)
        latitude, longitude = offset_coordinates(
            fine.latitude, fine.longitude, north_m, east_m
        )
        # The distortion is random, so report the calibrated radius itself.
        return strip_metadata(fine, latitude, longitude, magnitude)


__all__ = [
    "GeoDPFudger",
    "PlanarNoise",
    "calibrate_accuracy",
    "sample_planar_laplace",
]
