"""Global pytest fixtures & helpers.

Adds project root to path and provides a controllable clock, a scripted
random source and sample fixes shared by the fudger tests.
"""
from __future__ import annotations

import os
import random
import sys
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Iterator, List

import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from coarse_location.fudgers import SHARED_OFFSETS, InstanceOffsetProvider
from coarse_location.models import Fix, FixBatch


# --- Test doubles ----------------------------------------------------
class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ScriptedRandom(random.Random):
    """``random()`` replays ``values`` in order, repeating the last one."""

    def __init__(self, values: Iterable[float]) -> None:
        super().__init__(0)
        self._values: List[float] = list(values)
        self.calls = 0

    def random(self) -> float:
        index = min(self.calls, len(self._values) - 1)
        self.calls += 1
        return self._values[index]


# Extension bags a provider may attach; the fudgers drop them unread.
VARIED_EXTRAS = [
    pytest.param({"tags": {1, 2.5}, "flags": {None, "gps"}}, id="mixed-sets"),
    pytest.param(
        {"nested": {"a": [1, {"b": frozenset({"x", 3, (1, "y")})}]}, 7: "int-key"},
        id="nested",
    ),
    pytest.param({"raw": b"\xff\x00bytes", "when": datetime(2024, 1, 1)}, id="bytes-datetime"),
    pytest.param({"obj": object(), "nan": float("nan"), "dec": Decimal("1.5")}, id="opaque"),
    pytest.param({}, id="empty"),
]


def make_fix(lat: float = 51.48, lon: float = -3.18, **overrides) -> Fix:
    values = dict(
        latitude=lat,
        longitude=lon,
        accuracy_m=5.0,
        bearing_deg=87.5,
        speed_mps=3.2,
        altitude_m=42.0,
        timestamp_s=1_700_000_000.0,
        provider="gps",
        extras={"satellites": 9},
    )
    values.update(overrides)
    return Fix(**values)


# --- Fixtures --------------------------------------------------------
@pytest.fixture(autouse=True)
def reset_shared_offsets() -> Iterator[None]:
    """Shared slots are process-wide; keep tests independent."""

    SHARED_OFFSETS.reset()
    yield
    SHARED_OFFSETS.reset()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def instance_offsets() -> InstanceOffsetProvider:
    return InstanceOffsetProvider()


@pytest.fixture
def fine_fix() -> Fix:
    return make_fix()


@pytest.fixture
def fine_batch() -> FixBatch:
    return FixBatch.create(
        [
            make_fix(51.4800, -3.1800, timestamp_s=1.0),
            make_fix(51.4805, -3.1790, timestamp_s=2.0),
            make_fix(51.4810, -3.1780, timestamp_s=3.0),
        ]
    )
