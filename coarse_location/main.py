"""Command line entry point: obfuscate a file of fixes.

Usage:
    python -m coarse_location --input fixes.csv --output coarse.xlsx
    python -m coarse_location --strategy distance --distance-km 25 --map maps/run.html
"""

from __future__ import annotations

import argparse
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, Sequence, Tuple, Union

from .config import (
    COARSE_OUTPUT_FILE,
    DEFAULT_DISTANCE_KM,
    FIXES_INPUT_FILE,
    OUTPUT_FILE_TIMESTAMP_ENABLED,
)
from .errors import CoarseLocationError
from .fix_io import read_fixes, write_fixes
from .models import FixBatch
from .services import LocationObfuscationService
from .settings import (
    CUSTOM_LOCATION_ENABLED,
    FAKE_LOCATION_DISTANCE,
    FAKE_LOCATION_ENABLED,
    LOCATION_ACCURACY,
    SettingsStore,
)
from .tools.obfuscation_map import create_obfuscation_map

PathLike = Union[str, Path]

STRATEGY_DISTANCE = "distance"
STRATEGY_GEO_DP = "geo-dp"
STRATEGY_OFF = "off"


def _setup_logging() -> None:
    if not logging.getLogger().hasHandlers():
        logging.basicConfig(
            level=logging.INFO,
            format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        )


def _resolve_output_path() -> str:
    if OUTPUT_FILE_TIMESTAMP_ENABLED:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        return f"{COARSE_OUTPUT_FILE}_{timestamp}.xlsx"
    return f"{COARSE_OUTPUT_FILE}.xlsx"


def build_settings(
    strategy: Optional[str] = None,
    *,
    distance_km: Optional[int] = None,
    accuracy_m: Optional[int] = None,
) -> SettingsStore:
    """Return a settings store reflecting the CLI overrides.

    Without ``strategy`` the environment defaults decide which fudger runs.
    """

    store = SettingsStore()
    if strategy == STRATEGY_DISTANCE:
        store.put_bool(FAKE_LOCATION_ENABLED, True)
    elif strategy == STRATEGY_GEO_DP:
        store.put_bool(FAKE_LOCATION_ENABLED, False)
        store.put_bool(CUSTOM_LOCATION_ENABLED, True)
    elif strategy == STRATEGY_OFF:
        store.put_bool(FAKE_LOCATION_ENABLED, False)
        store.put_bool(CUSTOM_LOCATION_ENABLED, False)
    if distance_km is not None:
        store.put_int(FAKE_LOCATION_DISTANCE, distance_km)
    if accuracy_m is not None:
        store.put_int(LOCATION_ACCURACY, accuracy_m)
    return store


def obfuscate_file(
    input_path: PathLike,
    output_path: PathLike,
    *,
    service: LocationObfuscationService,
    map_path: Optional[PathLike] = None,
) -> Tuple[FixBatch, FixBatch]:
    """Read fixes, obfuscate them as one batch, and write the result."""

    fine = read_fixes(input_path)
    logging.info("Loaded %s fixes from %s", len(fine), input_path)
    coarse = service.obfuscate(fine)
    written = write_fixes(coarse, output_path)
    logging.info(
        "Wrote %s coarse fixes (mode=%s) to %s", len(coarse), service.mode.value, written
    )
    if map_path is not None and len(fine) > 0:
        create_obfuscation_map(fine, coarse, output_html_path=map_path)
        logging.info("Obfuscation map written to %s", map_path)
    return fine, coarse


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Obfuscate a CSV/Excel file of location fixes."
    )
    parser.add_argument(
        "--input",
        type=Path,
        default=Path(FIXES_INPUT_FILE),
        help=f"Fixes file to read (default: {FIXES_INPUT_FILE})",
    )
    parser.add_argument(
        "--output",
        type=Path,
        help="Output file (.xlsx or .csv); defaults to a timestamped workbook",
    )
    parser.add_argument(
        "--strategy",
        choices=[STRATEGY_DISTANCE, STRATEGY_GEO_DP, STRATEGY_OFF],
        help="Override the configured strategy",
    )
    parser.add_argument(
        "--distance-km",
        type=int,
        help=f"Offset distance for the distance strategy (default: {DEFAULT_DISTANCE_KM})",
    )
    parser.add_argument(
        "--accuracy-m",
        type=int,
        help="Target accuracy radius for the geo-dp strategy",
    )
    parser.add_argument("--map", type=Path, help="Optional HTML map output path")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    _setup_logging()

    store = build_settings(
        args.strategy, distance_km=args.distance_km, accuracy_m=args.accuracy_m
    )
    service = LocationObfuscationService(store)
    output_path = args.output or Path(_resolve_output_path())
    try:
        obfuscate_file(args.input, output_path, service=service, map_path=args.map)
    except (CoarseLocationError, FileNotFoundError) as exc:
        logging.error("Failed to obfuscate '%s': %s", args.input, exc)
        return 1
    finally:
        service.close()
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
