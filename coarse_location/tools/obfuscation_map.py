"""Render fine fixes next to their coarse counterparts on an interactive map."""

from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence, Tuple, Union

import folium  # Using folium to build an interactive Leaflet map.
import numpy as np

from ..errors import FixFormatError
from ..fix_io import read_fixes
from ..geodesy import APPROX_METERS_PER_DEGREE_AT_EQUATOR
from ..models import FixBatch
from ..utils import format_distance

LatLon = Tuple[float, float]
PathLike = Union[str, Path]

_FINE_COLOR = "#2c7bb6"
_COARSE_COLOR = "#d73027"
_LINK_COLOR = "#636363"

# Mean Earth radius consistent with the engine's metres-per-degree constant.
_EARTH_RADIUS_M = APPROX_METERS_PER_DEGREE_AT_EQUATOR * 180.0 / np.pi


@dataclass(slots=True)
class DisplacementSummary:
    """Great-circle distances between paired fine and coarse fixes."""

    count: int
    mean_m: float
    max_m: float
    min_m: float


def _as_arrays(batch: FixBatch) -> Tuple[np.ndarray, np.ndarray]:
    lat = np.asarray([fix.latitude for fix in batch], dtype=float)
    lon = np.asarray([fix.longitude for fix in batch], dtype=float)
    return lat, lon


def displacement_m(fine: FixBatch, coarse: FixBatch) -> np.ndarray:
    """Return the haversine distance (metres) for each fine/coarse pair."""

    if len(fine) != len(coarse):
        raise ValueError("Fine and coarse batches must have the same length")
    lat1, lon1 = (np.radians(values) for values in _as_arrays(fine))
    lat2, lon2 = (np.radians(values) for values in _as_arrays(coarse))
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    a = np.sin(dlat / 2.0) ** 2 + np.cos(lat1) * np.cos(lat2) * np.sin(dlon / 2.0) ** 2
    return 2.0 * _EARTH_RADIUS_M * np.arcsin(np.sqrt(np.clip(a, 0.0, 1.0)))


def summarise_displacement(fine: FixBatch, coarse: FixBatch) -> Optional[DisplacementSummary]:
    """Aggregate :func:`displacement_m`; ``None`` for empty batches."""

    distances = displacement_m(fine, coarse)
    if distances.size == 0:
        return None
    return DisplacementSummary(
        count=int(distances.size),
        mean_m=float(np.mean(distances)),
        max_m=float(np.max(distances)),
        min_m=float(np.min(distances)),
    )


def create_obfuscation_map(
    fine: FixBatch,
    coarse: FixBatch,
    *,
    output_html_path: Optional[PathLike] = None,
    zoom_start: int = 10,
) -> folium.Map:
    """Create a map with fine fixes, coarse fixes and their accuracy circles.

    Args:
        fine: Original fixes.
        coarse: Obfuscated fixes, paired with ``fine`` by position.
        output_html_path: Optional path to persist the map as an HTML file.
        zoom_start: Initial Leaflet zoom level.

    Returns:
        A :class:`folium.Map` instance containing the overlay.

    Raises:
        ValueError: If the batches are empty or differ in length.
    """

    if len(fine) == 0:
        raise ValueError("At least one fix is required to build the map")
    distances = displacement_m(fine, coarse)

    first = fine[0]
    folium_map = folium.Map(
        location=(first.latitude, first.longitude),
        zoom_start=zoom_start,
        control_scale=True,
    )
    if len(fine) > 1:
        folium.PolyLine(
            [(fix.latitude, fix.longitude) for fix in fine],
            color=_FINE_COLOR,
            weight=3,
            opacity=0.6,
            tooltip="Fine track",
        ).add_to(folium_map)

    for index, (fine_fix, coarse_fix) in enumerate(zip(fine, coarse)):
        fine_point: LatLon = (fine_fix.latitude, fine_fix.longitude)
        coarse_point: LatLon = (coarse_fix.latitude, coarse_fix.longitude)
        folium.CircleMarker(
            location=fine_point,
            radius=4,
            color=_FINE_COLOR,
            fill=True,
            fill_color=_FINE_COLOR,
            tooltip=f"Fine fix {index}",
        ).add_to(folium_map)
        popup = folium.Popup(
            html=(
                f"<strong>Coarse fix {index}</strong><br>"
                f"Displacement: {format_distance(float(distances[index]))}<br>"
                f"Reported accuracy: {format_distance(coarse_fix.accuracy_m or 0.0)}"
            ),
            max_width=300,
        )
        folium.CircleMarker(
            location=coarse_point,
            radius=5,
            color=_COARSE_COLOR,
            fill=True,
            fill_color=_COARSE_COLOR,
            popup=popup,
        ).add_to(folium_map)
        if coarse_fix.accuracy_m:
            folium.Circle(
                location=coarse_point,
                radius=float(coarse_fix.accuracy_m),
                color=_COARSE_COLOR,
                weight=1,
                fill=False,
            ).add_to(folium_map)
        folium.PolyLine(
            [fine_point, coarse_point],
            color=_LINK_COLOR,
            weight=1,
            dash_array="4",
        ).add_to(folium_map)

    if output_html_path is not None:
        output_path = Path(output_html_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        folium_map.save(str(output_path))

    return folium_map


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate an HTML map comparing fine fixes with coarse fixes."
    )
    parser.add_argument("--fine", type=Path, required=True, help="Original fixes (.csv/.xlsx)")
    parser.add_argument("--coarse", type=Path, required=True, help="Coarse fixes (.csv/.xlsx)")
    parser.add_argument(
        "--output",
        type=Path,
        default=Path("maps") / "obfuscation.html",
        help="Output HTML path (default: maps/obfuscation.html)",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """CLI entry point used via ``python -m coarse_location.tools.obfuscation_map``."""

    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.INFO,
        format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
    )
    try:
        fine = read_fixes(args.fine)
        coarse = read_fixes(args.coarse)
        create_obfuscation_map(fine, coarse, output_html_path=args.output)
    except (FixFormatError, FileNotFoundError, ValueError) as exc:
        logging.error("Failed to build obfuscation map: %s", exc)
        return 1

    summary = summarise_displacement(fine, coarse)
    if summary is not None:
        logging.info(
            "Displacement over %s fixes: mean %s, min %s, max %s",
            summary.count,
            format_distance(summary.mean_m),
            format_distance(summary.min_m),
            format_distance(summary.max_m),
        )
    logging.info("Obfuscation map written to %s", args.output)
    return 0


__all__ = [
    "DisplacementSummary",
    "create_obfuscation_map",
    "displacement_m",
    "summarise_displacement",
]


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())

if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
