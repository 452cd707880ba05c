"""Named-value settings store feeding the obfuscation service.

Values are stored as integers under well-known keys, the same way the
platform settings table holds them. Observers registered on the store are
called after every change, outside the store lock.
"""

from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Optional

from .config import (
    CUSTOM_DISTANCE_MAX_KM,
    CUSTOM_LOCATION_ENABLED_DEFAULT,
    FAKE_LOCATION_DISTANCE_DEFAULT_KM,
    FAKE_LOCATION_ENABLED_DEFAULT,
    LOCATION_ACCURACY_DEFAULT_M,
)
from .errors import InvalidSettingError

LOGGER = logging.getLogger(__name__)

FAKE_LOCATION_ENABLED = "fake_location_enabled"
FAKE_LOCATION_DISTANCE = "fake_location_distance"
CUSTOM_LOCATION_ENABLED = "custom_location_enabled"
LOCATION_ACCURACY = "location_accuracy"

DEFAULTS: Mapping[str, int] = {
    FAKE_LOCATION_ENABLED: int(FAKE_LOCATION_ENABLED_DEFAULT),
    FAKE_LOCATION_DISTANCE: FAKE_LOCATION_DISTANCE_DEFAULT_KM,
    CUSTOM_LOCATION_ENABLED: int(CUSTOM_LOCATION_ENABLED_DEFAULT),
    LOCATION_ACCURACY: LOCATION_ACCURACY_DEFAULT_M,
}

Observer = Callable[[str, int], None]


class SettingsStore:
    """Thread-safe in-memory key/value store of integer settings."""

    def __init__(self, initial: Optional[Mapping[str, int]] = None) -> None:
        self._lock = threading.RLock()
        self._values: Dict[str, int] = dict(initial or {})
        self._observers: List[Observer] = []

    def get_int(self, key: str, default: Optional[int] = None) -> int:
        with self._lock:
            if key in self._values:
                return self._values[key]
        if default is not None:
            return default
        return DEFAULTS.get(key, 0)

    def put_int(self, key: str, value: int) -> None:
        value = int(value)
        with self._lock:
            previous = self._values.get(key)
            self._values[key] = value
            observers = list(self._observers)
        if previous == value:
            return
        LOGGER.debug("Setting %s changed %s -> %s", key, previous, value)
        for observer in observers:
            observer(key, value)

    def get_bool(self, key: str, default: Optional[bool] = None) -> bool:
        fallback = None if default is None else int(default)
        return self.get_int(key, fallback) == 1

    def put_bool(self, key: str, value: bool) -> None:
        self.put_int(key, 1 if value else 0)

    def snapshot(self) -> Dict[str, int]:
        """Return every key with defaults filled in."""

        with self._lock:
            merged = dict(DEFAULTS)
            merged.update(self._values)
            return merged

    def register_observer(self, observer: Observer) -> Callable[[], None]:
        """Call ``observer(key, value)`` after each change; returns an unregister hook."""

        with self._lock:
            self._observers.append(observer)

        def _unregister() -> None:
            with self._lock:
                if observer in self._observers:
                    self._observers.remove(observer)

        return _unregister


@dataclass(frozen=True, slots=True)
class ObfuscationSettings:
    """Typed view of the settings that drive strategy selection."""

    fake_location_enabled: bool
    distance_km: int
    custom_location_enabled: bool
    accuracy_m: int

    @classmethod
    def from_store(cls, store: SettingsStore) -> "ObfuscationSettings":
        values = store.snapshot()
        return cls(
            fake_location_enabled=values[FAKE_LOCATION_ENABLED] == 1,
            distance_km=values[FAKE_LOCATION_DISTANCE],
            custom_location_enabled=values[CUSTOM_LOCATION_ENABLED] == 1,
            accuracy_m=values[LOCATION_ACCURACY],
        )


def parse_custom_distance(raw: str) -> int:
    """Validate a user-typed distance and return whole kilometres (rounded up).

    Raises:
        InvalidSettingError: If the input is empty, not a number, or outside
            ``[0, CUSTOM_DISTANCE_MAX_KM]``.
    """

    candidate = (raw or "").strip()
    if not candidate:
        raise InvalidSettingError("Input required")
    try:
        value = float(candidate)
    except ValueError as exc:
        raise InvalidSettingError("Invalid number format") from exc
    if not 0 <= value <= CUSTOM_DISTANCE_MAX_KM:
        raise InvalidSettingError(
            f"Distance must be between 0 and {CUSTOM_DISTANCE_MAX_KM}"
        )
    return int(math.ceil(value))


def store_custom_distance(store: SettingsStore, raw: str) -> int:
    """Parse ``raw`` and store it as the fake-location distance."""

    distance_km = parse_custom_distance(raw)
    LOGGER.info("Storing custom distance %s km (input %r)", distance_km, raw)
    store.put_int(FAKE_LOCATION_DISTANCE, distance_km)
    return distance_km


__all__ = [
    "FAKE_LOCATION_ENABLED",
    "FAKE_LOCATION_DISTANCE",
    "CUSTOM_LOCATION_ENABLED",
    "LOCATION_ACCURACY",
    "DEFAULTS",
    "SettingsStore",
    "ObfuscationSettings",
    "parse_custom_distance",
    "store_custom_distance",
]
