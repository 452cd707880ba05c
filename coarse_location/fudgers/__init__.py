"""Location obfuscation strategies and their shared plumbing."""

from .base import LocationObfuscator, VectorFudger, strip_metadata
from .distance import DirectionDistance, DistanceFudger
from .geo_dp import GeoDPFudger, PlanarNoise, calibrate_accuracy, sample_planar_laplace
from .memo import FixMemo
from .offsets import (
    INSTANCE_OFFSETS,
    SHARED_OFFSETS,
    InstanceOffsetProvider,
    OffsetProvider,
    OffsetSlot,
    SharedOffsetProvider,
    default_offset_provider,
    provider_for_scope,
)
from .scheduler import Clock, RefreshScheduler

__all__ = [
    "LocationObfuscator",
    "VectorFudger",
    "strip_metadata",
    "DirectionDistance",
    "DistanceFudger",
    "GeoDPFudger",
    "PlanarNoise",
    "calibrate_accuracy",
    "sample_planar_laplace",
    "FixMemo",
    "INSTANCE_OFFSETS",
    "SHARED_OFFSETS",
    "InstanceOffsetProvider",
    "OffsetProvider",
    "OffsetSlot",
    "SharedOffsetProvider",
    "default_offset_provider",
    "provider_for_scope",
    "Clock",
    "RefreshScheduler",
]
