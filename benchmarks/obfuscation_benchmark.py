"""Benchmark the fudgers for single-fix, batch and multi-threaded calls."""

from __future__ import annotations

import argparse
import statistics
import sys
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# Late imports rely on the adjusted sys.path above.
from coarse_location.fudgers import (  # noqa: E402
    DistanceFudger,
    GeoDPFudger,
    LocationObfuscator,
)
from coarse_location.models import Fix, FixBatch  # noqa: E402


@dataclass(slots=True)
class StageDurations:
    """Timing measurements (in seconds) for one benchmark iteration."""

    single: float
    batch: float
    threaded: float

    @property
    def total(self) -> float:
        """Return the aggregate duration for this benchmark iteration."""

        return self.single + self.batch + self.threaded


@dataclass(slots=True)
class BenchmarkSummary:
    """Aggregated statistics for multiple benchmark iterations."""

    strategy: str
    fix_count: int
    threads: int
    iterations: int
    mean_single_us_per_fix: float
    mean_batch_us_per_fix: float
    mean_threaded_us_per_fix: float
    worst_total_ms: float


def _build_fixes(fix_count: int) -> List[Fix]:
    """Generate distinct fixes along a meridian so the memo never hits."""

    return [
        Fix(latitude=37.0 + idx * 1.0e-5, longitude=-122.0, accuracy_m=5.0, speed_mps=3.0)
        for idx in range(fix_count)
    ]


def _build_fudger(strategy: str) -> LocationObfuscator:
    if strategy == "distance":
        return DistanceFudger(10, memo_size=0)
    return GeoDPFudger(200.0, memo_size=0)


def _run_threads(target: Callable[[], None], threads: int) -> float:
    workers = [threading.Thread(target=target) for _ in range(threads)]
    start = time.perf_counter()
    for worker in workers:
        worker.start()
    for worker in workers:
        worker.join()
    return time.perf_counter() - start


def _run_iteration(fudger: LocationObfuscator, fixes: List[Fix], threads: int) -> StageDurations:
    """Execute one benchmark iteration and capture per-stage timings."""

    start = time.perf_counter()
    for fix in fixes:
        fudger.obfuscate_fix(fix)
    single = time.perf_counter() - start

    batch = FixBatch.create(fixes)
    start = time.perf_counter()
    fudger.obfuscate_batch(batch)
    batch_dur = time.perf_counter() - start

    def _worker() -> None:
        for fix in fixes:
            fudger.obfuscate_fix(fix)

    threaded = _run_threads(_worker, threads)
    return StageDurations(single=single, batch=batch_dur, threaded=threaded)


def run_benchmark(strategy: str, fix_count: int, threads: int, iterations: int) -> BenchmarkSummary:
    """Benchmark one strategy and return aggregated timings."""

    if fix_count <= 0:
        raise ValueError("fix_count must be positive")
    if threads <= 0:
        raise ValueError("threads must be positive")
    if iterations <= 0:
        raise ValueError("iterations must be positive")

    fudger = _build_fudger(strategy)
    fixes = _build_fixes(fix_count)
    durations = [_run_iteration(fudger, fixes, threads) for _ in range(iterations)]

    per_fix = 1_000_000.0 / fix_count
    return BenchmarkSummary(
        strategy=strategy,
        fix_count=fix_count,
        threads=threads,
        iterations=iterations,
        mean_single_us_per_fix=statistics.fmean(d.single for d in durations) * per_fix,
        mean_batch_us_per_fix=statistics.fmean(d.batch for d in durations) * per_fix,
        mean_threaded_us_per_fix=statistics.fmean(d.threaded for d in durations)
        * per_fix
        / threads,
        worst_total_ms=max(d.total for d in durations) * 1000.0,
    )


def _format_summary(summary: BenchmarkSummary) -> Dict[str, float | int | str]:
    """Return a JSON-friendly representation of the benchmark summary."""

    return {
        "strategy": summary.strategy,
        "fix_count": summary.fix_count,
        "threads": summary.threads,
        "iterations": summary.iterations,
        "mean_single_us_per_fix": summary.mean_single_us_per_fix,
        "mean_batch_us_per_fix": summary.mean_batch_us_per_fix,
        "mean_threaded_us_per_fix": summary.mean_threaded_us_per_fix,
        "worst_total_ms": summary.worst_total_ms,
    }


def _parse_args() -> argparse.Namespace:
    """Parse command-line arguments for the benchmark utility."""

    parser = argparse.ArgumentParser(description="Benchmark the location fudgers")
    parser.add_argument(
        "--strategy",
        choices=["distance", "geo-dp"],
        default="distance",
        help="Fudger to benchmark",
    )
    parser.add_argument("--fixes", type=int, default=20000, help="Fixes per stage")
    parser.add_argument("--threads", type=int, default=4, help="Concurrent callers")
    parser.add_argument(
        "--iterations",
        type=int,
        default=5,
        help="Number of repetitions for averaging",
    )
    return parser.parse_args()


def main() -> None:
    """Entry point when running the module as a script."""

    args = _parse_args()
    summary = run_benchmark(args.strategy, args.fixes, args.threads, args.iterations)
    for key, value in _format_summary(summary).items():
        if isinstance(value, float):
            print(f"{key}: {value:.3f}")
        else:
            print(f"{key}: {value}")


if __name__ == "__main__":
    main()
