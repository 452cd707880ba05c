"""Coarse location package: location obfuscation strategies."""

from .errors import CoarseLocationError, FixFormatError, InvalidSettingError
from .fudgers import DistanceFudger, GeoDPFudger, LocationObfuscator
from .models import Fix, FixBatch
from .services import LocationObfuscationService, ObfuscationMode
from .settings import SettingsStore

__all__ = [
    "CoarseLocationError",
    "FixFormatError",
    "InvalidSettingError",
    "DistanceFudger",
    "GeoDPFudger",
    "LocationObfuscator",
    "Fix",
    "FixBatch",
    "LocationObfuscationService",
    "ObfuscationMode",
    "SettingsStore",
]
