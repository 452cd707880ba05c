"""Tests for the geo-indistinguishability fudger."""

from __future__ import annotations

import math
import random
import statistics

import pytest

from coarse_location.config import GEO_DP_MIN_ACCURACY_M
from coarse_location.fudgers import (
    SHARED_OFFSETS,
    GeoDPFudger,
    InstanceOffsetProvider,
    PlanarNoise,
    calibrate_accuracy,
    sample_planar_laplace,
)
from coarse_location.geodesy import MAX_LATITUDE
from coarse_location.models import Fix, FixBatch

from conftest import VARIED_EXTRAS, FakeClock, ScriptedRandom, make_fix

INTERVAL_S = 3600.0
# u = v = 1/e gives -ln(u * v) = 2 radius units; 0.25 turns gives theta = pi / 2.
NORTH_DRAWS = [math.exp(-1.0), math.exp(-1.0), 0.25]


def _fudger(
    clock: FakeClock,
    accuracy_m: float = 200.0,
    rng: random.Random | None = None,
    **kwargs,
) -> GeoDPFudger:
    kwargs.setdefault("offset_provider", InstanceOffsetProvider())
    return GeoDPFudger(
        accuracy_m,
        clock=clock,
        rng=rng if rng is not None else random.Random(4321),
        update_interval_s=INTERVAL_S,
        **kwargs,
    )


def test_accuracy_is_floored_and_sets_epsilon(clock: FakeClock) -> None:
    assert GEO_DP_MIN_ACCURACY_M == 200.0
    assert _fudger(clock, 50.0).accuracy_m == 200.0
    assert _fudger(clock, -10.0).accuracy_m == 200.0
    assert _fudger(clock, float("nan")).accuracy_m == 200.0
    wide = _fudger(clock, 500.0)
    assert wide.accuracy_m == 500.0
    assert wide.epsilon == pytest.approx(2.0 / 500.0)
    assert calibrate_accuracy(100.0, 500.0) == 500.0


def test_scripted_draw_moves_north_by_accuracy(clock: FakeClock) -> None:
    fudger = _fudger(clock, rng=ScriptedRandom(NORTH_DRAWS))
    noise = fudger.current_vector
    assert noise is not None
    assert noise.radius_units == pytest.approx(2.0)
    assert noise.theta_rad == pytest.approx(math.pi / 2.0)

    coarse = fudger.obfuscate_fix(Fix(latitude=0.0, longitude=0.0))
    assert coarse.latitude == pytest.approx(200.0 / 111_000)
    assert coarse.longitude == pytest.approx(0.0, abs=1e-12)


def test_reported_accuracy_is_exactly_the_radius(clock: FakeClock) -> None:
    fudger = _fudger(clock, 350.0)
    assert fudger.obfuscate_fix(make_fix(accuracy_m=3.0)).accuracy_m == 350.0
    assert fudger.obfuscate_fix(make_fix(accuracy_m=9000.0)).accuracy_m == 350.0
    assert fudger.obfuscate_fix(make_fix(accuracy_m=None)).accuracy_m == 350.0


def test_metadata_is_stripped(clock: FakeClock, fine_fix: Fix) -> None:
    coarse = _fudger(clock).obfuscate_fix(fine_fix)
    assert coarse.bearing_deg is None
    assert coarse.speed_mps is None
    assert coarse.altitude_m is None
    assert coarse.extras is None
    assert fine_fix.extras == {"satellites": 9}


def test_noise_is_held_for_the_window(clock: FakeClock) -> None:
    fudger = _fudger(clock, memo_size=0)
    fine = make_fix(48.85, 2.35)
    first = fudger.obfuscate_fix(fine)
    clock.advance(INTERVAL_S - 0.5)
    second = fudger.obfuscate_fix(fine)
    assert (first.latitude, first.longitude) == (second.latitude, second.longitude)


def test_noise_is_resampled_after_the_window(clock: FakeClock) -> None:
    changed = 0
    for seed in range(30):
        fudger = _fudger(clock, rng=random.Random(seed))
        fine = make_fix(48.85, 2.35)
        first = fudger.obfuscate_fix(fine)
        clock.advance(INTERVAL_S)
        second = fudger.obfuscate_fix(fine)
        assert fudger.next_update_s == clock() + INTERVAL_S
        if (first.latitude, first.longitude) != (second.latitude, second.longitude):
            changed += 1
    assert changed == 30


def test_batch_shares_one_noise_draw(clock: FakeClock, fine_batch: FixBatch) -> None:
    fudger = _fudger(clock, rng=ScriptedRandom(NORTH_DRAWS))
    coarse = fudger.obfuscate_batch(fine_batch)
    assert [fix.timestamp_s for fix in coarse] == [1.0, 2.0, 3.0]
    for fine, result in zip(fine_batch, coarse):
        assert result.latitude - fine.latitude == pytest.approx(200.0 / 111_000)


def test_set_accuracy_rescales_held_draw(clock: FakeClock) -> None:
    fudger = _fudger(clock, rng=ScriptedRandom(NORTH_DRAWS))
    before = fudger.current_vector
    fudger.set_accuracy_m(400.0)

    assert fudger.epsilon == pytest.approx(2.0 / 400.0)
    assert fudger.current_vector == before
    coarse = fudger.obfuscate_fix(Fix(latitude=0.0, longitude=0.0))
    assert coarse.latitude == pytest.approx(400.0 / 111_000)
    assert coarse.accuracy_m == 400.0

    fudger.set_magnitude(10.0)
    assert fudger.magnitude == 200.0


def test_reset_noise_restarts_window(clock: FakeClock) -> None:
    fudger = _fudger(clock)
    before = fudger.current_vector
    clock.advance(INTERVAL_S - 1.0)
    fudger.reset_noise()
    assert fudger.next_update_s == clock() + INTERVAL_S
    clock.advance(10.0)
    fudger.obfuscate_fix(make_fix())
    assert fudger.current_vector == before


def test_degenerate_generator_stays_finite(clock: FakeClock) -> None:
    fudger = _fudger(clock, rng=ScriptedRandom([0.0]))
    coarse = fudger.obfuscate_fix(make_fix(10.0, 20.0))
    assert math.isfinite(coarse.latitude) and math.isfinite(coarse.longitude)
    assert -180.0 <= coarse.longitude < 180.0


@pytest.mark.parametrize("lat", [89.9995, -89.9995, 90.0, -90.0])
def test_pole_inputs_stay_finite(clock: FakeClock, lat: float) -> None:
    for seed in range(10):
        fudger = _fudger(clock, rng=random.Random(seed))
        coarse = fudger.obfuscate_fix(make_fix(lat, -45.0))
        assert math.isfinite(coarse.latitude) and math.isfinite(coarse.longitude)
        assert -MAX_LATITUDE <= coarse.latitude <= MAX_LATITUDE
        assert -180.0 <= coarse.longitude < 180.0


def test_planar_laplace_mean_radius_matches_accuracy() -> None:
    rng = random.Random(0)
    draws = [sample_planar_laplace(rng) for _ in range(20000)]
    assert statistics.fmean(d.radius_units for d in draws) == pytest.approx(2.0, abs=0.05)
    assert all(0.0 <= d.theta_rad < 2.0 * math.pi for d in draws)

    epsilon = 2.0 / 200.0
    radii = [math.hypot(*d.offsets_m(epsilon)) for d in draws]
    assert statistics.fmean(radii) == pytest.approx(200.0, rel=0.03)


def test_planar_noise_offsets() -> None:
    noise = PlanarNoise(radius_units=1.0, theta_rad=0.0)
    north, east = noise.offsets_m(0.01)
    assert north == pytest.approx(0.0)
    assert east == pytest.approx(100.0)


def test_shared_scope_scales_one_draw_per_instance(clock: FakeClock) -> None:
    narrow = GeoDPFudger(
        200.0, clock=clock, rng=random.Random(5), offset_provider=SHARED_OFFSETS
    )
    wide = GeoDPFudger(
        600.0, clock=clock, rng=random.Random(6), offset_provider=SHARED_OFFSETS
    )
    assert narrow.current_vector == wide.current_vector

    fine = Fix(latitude=0.0, longitude=0.0)
    a = narrow.obfuscate_fix(fine)
    b = wide.obfuscate_fix(fine)
    assert b.latitude == pytest.approx(3.0 * a.latitude, rel=1e-9, abs=1e-12)


@pytest.mark.parametrize("extras", VARIED_EXTRAS)
def test_any_extension_bag_is_dropped(clock: FakeClock, extras) -> None:
    fudger = _fudger(clock)
    fine = make_fix(extras=extras)

    first = fudger.obfuscate_fix(fine)
    again = fudger.obfuscate_fix(fine)
    batch = fudger.obfuscate_batch(FixBatch.create([fine, make_fix(1.0, 2.0, extras=extras)]))

    assert first.extras is None
    assert first.accuracy_m == 200.0
    assert again == first
    assert all(fix.extras is None for fix in batch)
