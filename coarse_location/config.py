"""Central configuration for the coarse location engine.

All values are constants imported by the rest of the package. Tunables are
read from environment variables (optionally via a local `.env`); the rest are
fixed policy values that should only change together with the tests.
"""

from __future__ import annotations

import importlib
import os


def _env_float(key: str, default: float) -> float:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _env_int(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _env_bool(key: str, default: bool) -> bool:
    value = os.getenv(key)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default


# Load .env variables when python-dotenv is available.
_load_dotenv = None
try:
    _dotenv_mod = importlib.import_module("dotenv")
    _load_dotenv = getattr(_dotenv_mod, "load_dotenv", None)
except Exception:
    _load_dotenv = None

if callable(_load_dotenv):
    # Load .env from the current directory or any parent folder.
    _load_dotenv()


# ---------------------------------------------------------------------------
# Directional offset ("distance fudger")
# ---------------------------------------------------------------------------
# Distance used whenever a non-positive distance is configured.
DEFAULT_DISTANCE_KM = 10

# How long (seconds) a sampled direction/distance pair stays in force.
DISTANCE_UPDATE_INTERVAL_SECONDS = _env_float("DISTANCE_UPDATE_INTERVAL_SECONDS", 60.0)

# Uniform variation applied to the base distance on every refresh (+/-5%).
DISTANCE_VARIATION_PERCENT = 0.05

# Random-walk step (degrees) added to the previous direction on every refresh.
DIRECTION_JITTER_DEGREES = 3.0


# ---------------------------------------------------------------------------
# Geo-indistinguishability ("geo-DP fudger")
# ---------------------------------------------------------------------------
# Smallest accuracy radius (metres) the noise is calibrated for.
GEO_DP_MIN_ACCURACY_M = _env_float("GEO_DP_MIN_ACCURACY_M", 200.0)

# How long (seconds) one noise draw is reused before resampling.
GEO_DP_NOISE_UPDATE_INTERVAL_SECONDS = _env_float(
    "GEO_DP_NOISE_UPDATE_INTERVAL_SECONDS", 60 * 60.0
)


# ---------------------------------------------------------------------------
# Offset state scope
# ---------------------------------------------------------------------------
# "instance": every fudger owns its own randomized vector (independent jitter
# per consumer). "shared": all fudgers of a kind move in lockstep on one
# process-wide vector.
OFFSET_SCOPE = os.getenv("OFFSET_SCOPE", "instance").strip().lower()

# Entries kept in the per-fudger fingerprint memo. Set to 0 to disable.
COARSE_MEMO_SIZE = _env_int("COARSE_MEMO_SIZE", 32)


# ---------------------------------------------------------------------------
# Settings store defaults
# ---------------------------------------------------------------------------
FAKE_LOCATION_ENABLED_DEFAULT = _env_bool("FAKE_LOCATION_ENABLED", False)
FAKE_LOCATION_DISTANCE_DEFAULT_KM = _env_int("FAKE_LOCATION_DISTANCE_KM", 10)
CUSTOM_LOCATION_ENABLED_DEFAULT = _env_bool("CUSTOM_LOCATION_ENABLED", True)
LOCATION_ACCURACY_DEFAULT_M = _env_int("LOCATION_ACCURACY_M", 200)

# Upper bound accepted for a user-entered custom distance (km).
CUSTOM_DISTANCE_MAX_KM = 40000


# ---------------------------------------------------------------------------
# Input/Output (CLI tooling only)
# ---------------------------------------------------------------------------
# Paths can be absolute or relative.
FIXES_INPUT_FILE = os.getenv("FIXES_INPUT_FILE", "fixes.csv")
COARSE_OUTPUT_FILE = os.getenv("COARSE_OUTPUT_FILE", "coarse_fixes")

# Append _YYYYMMDD_HHMMSS to the output name when True.
OUTPUT_FILE_TIMESTAMP_ENABLED = _env_bool("OUTPUT_FILE_TIMESTAMP_ENABLED", True)
