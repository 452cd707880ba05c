"""Coordinate helpers shared by the fudgers.

Uses an equirectangular approximation (a fixed number of metres per degree
of latitude, scaled by cos(latitude) for longitude).
"""

from __future__ import annotations

import math
from typing import Tuple

APPROX_METERS_PER_DEGREE_AT_EQUATOR = 111_000

# Keeps results off the exact pole where cos(latitude) is zero.
MAX_LATITUDE = 90.0 - (1.0 / APPROX_METERS_PER_DEGREE_AT_EQUATOR)

# Floor on |cos(latitude)| so longitude deltas stay bounded near the poles.
MIN_COS_LATITUDE = 1e-6


def clamp_latitude(lat: float) -> float:
    """Clamp ``lat`` to ``[-MAX_LATITUDE, MAX_LATITUDE]``."""

    if lat > MAX_LATITUDE:
        return MAX_LATITUDE
    if lat < -MAX_LATITUDE:
        return -MAX_LATITUDE
    return lat


def wrap_longitude(lon: float) -> float:
    """Reduce ``lon`` modulo 360 into ``[-180, 180)``."""

    lon %= 360.0
    if lon >= 180.0:
        lon -= 360.0
    if lon < -180.0:
        lon += 360.0
    return lon


def wrap_degrees(angle: float) -> float:
    """Reduce a compass direction into ``[0, 360)``."""

    angle %= 360.0
    # -tiny % 360.0 rounds up to exactly 360.0
    if angle >= 360.0:
        angle -= 360.0
    return angle


def meters_to_degrees_latitude(distance_m: float) -> float:
    return distance_m / APPROX_METERS_PER_DEGREE_AT_EQUATOR


def meters_to_degrees_longitude(distance_m: float, lat: float) -> float:
    """Convert an east/west distance to degrees of longitude at ``lat``."""

    cos_lat = math.cos(math.radians(lat))
    if abs(cos_lat) < MIN_COS_LATITUDE:
        cos_lat = math.copysign(MIN_COS_LATITUDE, cos_lat)
    return distance_m / (APPROX_METERS_PER_DEGREE_AT_EQUATOR * cos_lat)


def offset_coordinates(
    lat: float, lon: float, north_m: float, east_m: float
) -> Tuple[float, float]:
    """Move ``(lat, lon)`` by the given metre offsets.

    The latitude delta is taken at the starting latitude and the longitude
    delta at the displaced latitude. Both inputs and outputs are
    clamped/wrapped.
    """

    base_lat = clamp_latitude(lat)
    base_lon = wrap_longitude(lon)
    new_lat = clamp_latitude(base_lat + meters_to_degrees_latitude(north_m))
    new_lon = wrap_longitude(base_lon + meters_to_degrees_longitude(east_m, new_lat))
    return new_lat, new_lon


__all__ = [
    "APPROX_METERS_PER_DEGREE_AT_EQUATOR",
    "MAX_LATITUDE",
    "MIN_COS_LATITUDE",
    "clamp_latitude",
    "wrap_longitude",
    "wrap_degrees",
    "meters_to_degrees_latitude",
    "meters_to_degrees_longitude",
    "offset_coordinates",
]
