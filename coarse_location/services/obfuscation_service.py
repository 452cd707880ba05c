"""Location pipeline facade selecting and reconfiguring the active fudger."""

from __future__ import annotations

import logging
import random
import threading
import time
from enum import Enum
from typing import Callable, Optional, Union

from ..fudgers import (
    DistanceFudger,
    GeoDPFudger,
    LocationObfuscator,
    OffsetProvider,
)
from ..fudgers.scheduler import Clock
from ..models import Fix, FixBatch
from ..settings import ObfuscationSettings, SettingsStore


class ObfuscationMode(str, Enum):
    """Which strategy the service applies."""

    OFF = "off"
    DISTANCE = "distance"
    GEO_DP = "geo_dp"


def select_mode(settings: ObfuscationSettings) -> ObfuscationMode:
    """Fake-location wins over geo-DP; both off means pass-through."""

    if settings.fake_location_enabled:
        return ObfuscationMode.DISTANCE
    if settings.custom_location_enabled:
        return ObfuscationMode.GEO_DP
    return ObfuscationMode.OFF


class LocationObfuscationService:
    """Apply the configured strategy to fixes before they reach a consumer.

    The service watches ``store`` and keeps one live fudger in sync with it:
    magnitude changes go through ``set_magnitude`` and a mode change replaces
    the fudger. With both switches off, fixes are returned unchanged.
    """

    def __init__(
        self,
        store: Optional[SettingsStore] = None,
        *,
        clock: Clock = time.monotonic,
        rng: Optional[random.Random] = None,
        offset_provider: Optional[OffsetProvider] = None,
    ) -> None:
        self._store = store if store is not None else SettingsStore()
        self._clock = clock
        self._rng = rng
        self._offset_provider = offset_provider
        self._lock = threading.RLock()
        self._log = logging.getLogger(self.__class__.__name__)
        self._mode = ObfuscationMode.OFF
        self._magnitude: Optional[float] = None
        self._obfuscator: Optional[LocationObfuscator] = None
        self._sync()
        self._unregister: Optional[Callable[[], None]] = self._store.register_observer(
            self._on_setting_changed
        )

    @property
    def store(self) -> SettingsStore:
        return self._store

    @property
    def mode(self) -> ObfuscationMode:
        with self._lock:
            return self._mode

    @property
    def obfuscator(self) -> Optional[LocationObfuscator]:
        with self._lock:
            return self._obfuscator

    def obfuscate(self, fine: Union[Fix, FixBatch]) -> Union[Fix, FixBatch]:
        obfuscator = self.obfuscator
        if obfuscator is None:
            return fine
        return obfuscator.obfuscate(fine)

    def close(self) -> None:
        """Stop following the settings store."""

        if self._unregister is not None:
            self._unregister()
            self._unregister = None

    def _on_setting_changed(self, key: str, value: int) -> None:
        self._log.debug("Obfuscation setting %s=%s", key, value)
        self._sync()

    def _sync(self) -> None:
        with self._lock:
            settings = ObfuscationSettings.from_store(self._store)
            mode = select_mode(settings)
            magnitude = self._magnitude_for(mode, settings)
            if mode == self._mode:
                # Compare raw stored values; fudgers coerce what they receive.
                if self._obfuscator is not None and magnitude != self._magnitude:
                    self._obfuscator.set_magnitude(magnitude)
                self._magnitude = magnitude
                return
            self._log.info("Location obfuscation mode %s -> %s", self._mode.value, mode.value)
            self._mode = mode
            self._magnitude = magnitude
            self._obfuscator = self._build(mode, magnitude)

    @staticmethod
    def _magnitude_for(mode: ObfuscationMode, settings: ObfuscationSettings) -> float:
        if mode is ObfuscationMode.DISTANCE:
            return settings.distance_km
        return settings.accuracy_m

    def _build(self, mode: ObfuscationMode, magnitude: float) -> Optional[LocationObfuscator]:
        if mode is ObfuscationMode.DISTANCE:
            return DistanceFudger(
                int(magnitude),
                clock=self._clock,
                rng=self._rng,
                offset_provider=self._offset_provider,
            )
        if mode is ObfuscationMode.GEO_DP:
            return GeoDPFudger(
                magnitude,
                clock=self._clock,
                rng=self._rng,
                offset_provider=self._offset_provider,
            )
        return None


__all__ = ["LocationObfuscationService", "ObfuscationMode", "select_mode"]
