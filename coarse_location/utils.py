"""General utility helpers shared across modules."""

from __future__ import annotations

import json
from dataclasses import fields
from datetime import date, datetime
from decimal import Decimal
from hashlib import sha256
from typing import Any, Mapping

from .models import Fix


def _normalise_value(value: Any) -> Any:
    """Convert objects to JSON-friendly representations."""

    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="ignore")
    if isinstance(value, (set, frozenset)):
        # Members may be mutually unorderable, so order them by canonical text.
        return sorted((_normalise_value(item) for item in value), key=json_dumps_sorted)
    if isinstance(value, (list, tuple)):
        return [_normalise_value(item) for item in value]
    if isinstance(value, Mapping):
        return {str(key): _normalise_value(val) for key, val in value.items()}
    if isinstance(value, float):
        # repr keeps every bit so nearly equal fixes never collide
        return repr(value)
    return value


def json_dumps_sorted(value: Any) -> str:
    """Return canonical JSON for hashing / comparisons."""

    normalised = _normalise_value(value)
    return json.dumps(normalised, sort_keys=True, separators=(",", ":"), default=str)


def fix_fingerprint(fix: Fix) -> str:
    """Return a content hash of ``fix`` (equal content, equal fingerprint)."""

    payload = json_dumps_sorted({f.name: getattr(fix, f.name) for f in fields(fix)})
    return sha256(payload.encode("utf-8")).hexdigest()


def format_distance(meters: float) -> str:
    """Format a distance as ``N m`` below one kilometre, otherwise ``N.N km``."""

    if abs(meters) < 1000:
        return f"{meters:.0f} m"
    return f"{meters / 1000:.1f} km"
