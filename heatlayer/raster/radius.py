"""
Point radius — either a fixed pixel value or computed per tile.

A computed radius receives the tile's sector and pixel size, which lets the
radius follow the zoom level.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Union

from heatlayer.core.geometry import Sector

RadiusFunction = Callable[[Sector, int, int], float]


@dataclass(frozen=True)
class FixedRadius:
    value: float

    def resolve(self, sector: Sector, width: int, height: int) -> float:
        return float(self.value)


@dataclass(frozen=True)
class ComputedRadius:
    func: RadiusFunction

    def resolve(self, sector: Sector, width: int, height: int) -> float:
        return float(self.func(sector, width, height))


Radius = Union[FixedRadius, ComputedRadius]


def as_radius(value: float | RadiusFunction | Radius) -> Radius:
    """Wrap a number or callable into a ``Radius`` variant."""
    if isinstance(value, (FixedRadius, ComputedRadius)):
        return value
    if callable(value):
        return ComputedRadius(value)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"Radius must be a number or callable, got {value!r}")
    if value < 0:
        raise ValueError(f"Radius must be non-negative, got {value}")
    return FixedRadius(float(value))


def zoom_scaled_radius(base: float, reference_delta: float = 45.0) -> ComputedRadius:
    """
    Radius that grows as tiles shrink.

    ``base`` pixels at a tile spanning ``reference_delta`` degrees of
    latitude, doubling each time the span halves.
    """

    def _radius(sector: Sector, width: int, height: int) -> float:
        span = sector.delta_latitude or reference_delta
        return base * reference_delta / span

    return ComputedRadius(_radius)
