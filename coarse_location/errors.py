"""Central error types used across the application."""

from __future__ import annotations


class CoarseLocationError(RuntimeError):
    """Base error for the settings and tooling layers."""


class InvalidSettingError(CoarseLocationError):
    """Raised when a user-supplied setting cannot be stored."""


class FixFormatError(CoarseLocationError):
    """Raised when a fixes file is missing columns or holds invalid values."""


__all__ = [
    "CoarseLocationError",
    "InvalidSettingError",
    "FixFormatError",
]
