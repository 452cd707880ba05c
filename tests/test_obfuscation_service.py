"""Tests for strategy selection and live reconfiguration."""

from __future__ import annotations

import random

import pytest

from coarse_location.fudgers import DistanceFudger, GeoDPFudger, InstanceOffsetProvider
from coarse_location.services import (
    LocationObfuscationService,
    ObfuscationMode,
    select_mode,
)
from coarse_location.settings import (
    CUSTOM_LOCATION_ENABLED,
    FAKE_LOCATION_DISTANCE,
    FAKE_LOCATION_ENABLED,
    LOCATION_ACCURACY,
    ObfuscationSettings,
    SettingsStore,
)

from conftest import FakeClock, make_fix


def _service(store: SettingsStore, clock: FakeClock) -> LocationObfuscationService:
    return LocationObfuscationService(
        store,
        clock=clock,
        rng=random.Random(99),
        offset_provider=InstanceOffsetProvider(),
    )


@pytest.mark.parametrize(
    "fake, custom, expected",
    [
        (True, True, ObfuscationMode.DISTANCE),
        (True, False, ObfuscationMode.DISTANCE),
        (False, True, ObfuscationMode.GEO_DP),
        (False, False, ObfuscationMode.OFF),
    ],
)
def test_select_mode_precedence(fake: bool, custom: bool, expected: ObfuscationMode) -> None:
    settings = ObfuscationSettings(
        fake_location_enabled=fake,
        distance_km=10,
        custom_location_enabled=custom,
        accuracy_m=200,
    )
    assert select_mode(settings) is expected


def test_default_store_selects_geo_dp(clock: FakeClock) -> None:
    service = _service(SettingsStore(), clock)
    assert service.mode is ObfuscationMode.GEO_DP
    assert isinstance(service.obfuscator, GeoDPFudger)
    assert service.obfuscator.magnitude == 200.0


def test_off_mode_passes_fixes_through(clock: FakeClock, fine_fix) -> None:
    store = SettingsStore({CUSTOM_LOCATION_ENABLED: 0})
    service = _service(store, clock)
    assert service.mode is ObfuscationMode.OFF
    assert service.obfuscator is None
    assert service.obfuscate(fine_fix) is fine_fix


def test_mode_follows_store_changes(clock: FakeClock, fine_fix) -> None:
    store = SettingsStore()
    service = _service(store, clock)

    store.put_bool(FAKE_LOCATION_ENABLED, True)
    assert service.mode is ObfuscationMode.DISTANCE
    assert isinstance(service.obfuscator, DistanceFudger)
    assert service.obfuscator.magnitude == 10

    coarse = service.obfuscate(fine_fix)
    assert coarse.accuracy_m == pytest.approx(10_000.0, rel=0.051)
    assert coarse.extras is None

    store.put_bool(FAKE_LOCATION_ENABLED, False)
    assert service.mode is ObfuscationMode.GEO_DP


def test_magnitude_change_keeps_the_same_fudger(clock: FakeClock) -> None:
    store = SettingsStore({FAKE_LOCATION_ENABLED: 1})
    service = _service(store, clock)
    fudger = service.obfuscator

    store.put_int(FAKE_LOCATION_DISTANCE, 3)
    assert service.obfuscator is fudger
    assert fudger.magnitude == 3

    store.put_int(FAKE_LOCATION_DISTANCE, 0)
    assert fudger.magnitude == 10


def test_unrelated_change_does_not_reseed(clock: FakeClock) -> None:
    store = SettingsStore({FAKE_LOCATION_ENABLED: 1, FAKE_LOCATION_DISTANCE: 0})
    service = _service(store, clock)
    vector = service.obfuscator.current_vector

    store.put_int(LOCATION_ACCURACY, 700)
    assert service.obfuscator.current_vector == vector


def test_geo_dp_accuracy_change_is_applied(clock: FakeClock) -> None:
    store = SettingsStore()
    service = _service(store, clock)
    store.put_int(LOCATION_ACCURACY, 1500)
    assert service.obfuscator.magnitude == 1500.0
    assert service.obfuscate(make_fix()).accuracy_m == 1500.0


def test_close_stops_following_store(clock: FakeClock) -> None:
    store = SettingsStore()
    service = _service(store, clock)
    service.close()
    service.close()
    store.put_bool(FAKE_LOCATION_ENABLED, True)
    assert service.mode is ObfuscationMode.GEO_DP
