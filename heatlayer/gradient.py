"""
Colour gradient — maps a normalised intensity in [0, 1] to a colour.

Two interval strategies decide where each colour of the scale sits:

- ``CONTINUOUS``: evenly spaced, stop ``i`` at ``i / N``; data is ignored.
- ``QUANTILES``: stop ``i`` sits at the intensity found at rank ``i / N`` of
  the sorted data, normalised by the maximum intensity. Falls back to
  continuous when there are fewer points than colours.
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np
from matplotlib.colors import to_rgba
from numpy.typing import NDArray

from heatlayer.core.geometry import IntensityPoint

DEFAULT_SCALE: tuple[str, ...] = ("blue", "cyan", "lime", "yellow", "red")


class IntervalType(enum.Enum):
    CONTINUOUS = "continuous"
    QUANTILES = "quantiles"

    @classmethod
    def parse(cls, value: str | IntervalType) -> IntervalType:
        """Accept enum members or config strings ("quantile" included)."""
        if isinstance(value, IntervalType):
            return value
        key = str(value).strip().lower()
        if key == "quantile":
            key = "quantiles"
        try:
            return cls(key)
        except ValueError:
            raise ValueError(f"Unknown interval type: {value!r}") from None


@dataclass(frozen=True)
class Gradient:
    """
    Immutable set of (position, colour) stops.

    Stops are kept in build order; lookups sort them first, so builders do
    not need to emit them sorted.
    """

    stops: tuple[tuple[float, str], ...]

    def __post_init__(self):
        if not self.stops:
            raise ValueError("Gradient needs at least one stop")
        # Resolve colours eagerly so bad names fail at construction
        rgba = tuple(to_rgba(color) for _, color in self.stops)
        object.__setattr__(self, "_rgba", rgba)

    def __len__(self) -> int:
        return len(self.stops)

    def positions(self) -> list[float]:
        return [position for position, _ in self.stops]

    def colors(self) -> list[str]:
        return [color for _, color in self.stops]

    def sorted_stops(self) -> list[tuple[float, str]]:
        return sorted(self.stops, key=lambda stop: stop[0])

    def colors_rgba(self) -> list[tuple[float, float, float, float]]:
        """RGBA floats in [0, 1], in the same order as ``stops``."""
        return list(self._rgba)

    def lookup(self, values: NDArray[np.float64] | float) -> NDArray[np.float64]:
        """
        Interpolate colours for normalised values.

        Returns an array with a trailing RGBA axis of floats in [0, 1].
        Values outside the stop range take the nearest end colour.
        """
        values = np.clip(np.asarray(values, dtype=np.float64), 0.0, 1.0)
        order = sorted(range(len(self.stops)), key=lambda i: self.stops[i][0])
        xp = np.array([self.stops[i][0] for i in order], dtype=np.float64)
        colors = np.array([self._rgba[i] for i in order], dtype=np.float64)

        out = np.empty(values.shape + (4,), dtype=np.float64)
        for channel in range(4):
            out[..., channel] = np.interp(values, xp, colors[:, channel])
        return out


def _continuous_stops(scale: Sequence[str]) -> dict[float, str]:
    n = len(scale)
    return {i / n: color for i, color in enumerate(scale)}


def _quantile_stops(points: Sequence[IntensityPoint], scale: Sequence[str]) -> dict[float, str]:
    n = len(scale)
    if len(points) < n:
        return _continuous_stops(scale)

    # sorted() is stable, so equal intensities keep their input order
    ranked = sorted(points, key=lambda p: p.intensity)
    max_intensity = ranked[-1].intensity or 1.0

    stops: dict[float, str] = {}
    for i, color in enumerate(scale):
        rank = math.floor(i / n * len(ranked))
        stops[ranked[rank].intensity / max_intensity] = color
    return stops


def build_gradient(
    points: Sequence[IntensityPoint],
    interval_type: IntervalType | str = IntervalType.CONTINUOUS,
    scale: Sequence[str] = DEFAULT_SCALE,
) -> Gradient:
    """
    Build the colour gradient for a dataset.

    Args:
        points: Full point set (only read, never reordered).
        interval_type: Strategy for placing the scale colours.
        scale: Ordered colours, lowest intensity first.

    Returns:
        Gradient whose stops collapse duplicate positions, the later colour
        winning.
    """
    if not scale:
        raise ValueError("Colour scale must contain at least one colour")

    interval_type = IntervalType.parse(interval_type)
    if interval_type is IntervalType.QUANTILES:
        stops = _quantile_stops(points, scale)
    else:
        stops = _continuous_stops(scale)

    return Gradient(tuple(stops.items()))
