"""Smoke test for the fudger benchmark script."""

from __future__ import annotations

import importlib.util
import sys
from pathlib import Path

import pytest

BENCHMARK_PATH = Path(__file__).resolve().parents[1] / "benchmarks" / "obfuscation_benchmark.py"


def _load_benchmark():
    spec = importlib.util.spec_from_file_location("obfuscation_benchmark", BENCHMARK_PATH)
    module = importlib.util.module_from_spec(spec)
    sys.modules[spec.name] = module
    spec.loader.exec_module(module)
    return module


@pytest.mark.parametrize("strategy", ["distance", "geo-dp"])
def test_run_benchmark_reports_every_stage(strategy: str) -> None:
    benchmark = _load_benchmark()
    summary = benchmark.run_benchmark(strategy, fix_count=20, threads=2, iterations=2)
    formatted = benchmark._format_summary(summary)
    assert formatted["strategy"] == strategy
    assert formatted["fix_count"] == 20
    assert summary.worst_total_ms >= 0.0
    assert summary.mean_threaded_us_per_fix >= 0.0


def test_run_benchmark_rejects_bad_arguments() -> None:
    benchmark = _load_benchmark()
    with pytest.raises(ValueError):
        benchmark.run_benchmark("distance", fix_count=0, threads=1, iterations=1)
