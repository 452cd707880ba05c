"""Dataclasses describing location fixes handed to the fudgers."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Callable, Iterable, Iterator, Mapping, Optional, Tuple, overload


@dataclass(frozen=True, slots=True)
class Fix:
    """One reported position with optional motion/altitude metadata.

    ``accuracy_m`` is the radius (metres) the provider is confident in; ``None``
    means the provider did not report one. ``extras`` is an opaque bag of
    provider-specific values and is never interpreted by the engine. A fix
    carrying a mutable ``extras`` mapping compares by value but is not
    hashable; key caches by :func:`coarse_location.utils.fix_fingerprint`.
    """

    latitude: float
    longitude: float
    accuracy_m: Optional[float] = None
    bearing_deg: Optional[float] = None
    speed_mps: Optional[float] = None
    altitude_m: Optional[float] = None
    timestamp_s: Optional[float] = None
    provider: Optional[str] = None
    extras: Optional[Mapping[str, Any]] = None

    @property
    def has_accuracy(self) -> bool:
        return self.accuracy_m is not None

    def with_changes(self, **changes: Any) -> "Fix":
        """Return a copy with ``changes`` applied; ``self`` is left untouched."""

        return replace(self, **changes)


@dataclass(frozen=True, slots=True)
class FixBatch:
    """Ordered fixes from a single sensor read, oldest first."""

    fixes: Tuple[Fix, ...] = ()

    @classmethod
    def create(cls, fixes: Iterable[Fix]) -> "FixBatch":
        return cls(tuple(fixes))

    def map(self, transform: Callable[[Fix], Fix]) -> "FixBatch":
        """Apply ``transform`` to every fix, preserving order."""

        return FixBatch(tuple(transform(fix) for fix in self.fixes))

    @property
    def last(self) -> Optional[Fix]:
        return self.fixes[-1] if self.fixes else None

    def as_list(self) -> list[Fix]:
        return list(self.fixes)

    def __iter__(self) -> Iterator[Fix]:
        return iter(self.fixes)

    def __len__(self) -> int:
        return len(self.fixes)

    @overload
    def __getitem__(self, index: int) -> Fix: ...

    @overload
    def __getitem__(self, index: slice) -> "FixBatch": ...

    def __getitem__(self, index: int | slice) -> Fix | "FixBatch":
        if isinstance(index, slice):
            return FixBatch(self.fixes[index])
        return self.fixes[index]


__all__ = ["Fix", "FixBatch"]
