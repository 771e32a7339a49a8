"""
Tile rasterizers — turn a set of points into an RGBA pixel buffer.

A rasterizer is a strategy chosen when the layer is built. The default,
``ColoredTileRasterizer``, draws every point as a linear radial falloff,
sums overlapping contributions, smooths the field with a Gaussian blur and
colours it through the gradient.
"""

from __future__ import annotations

from typing import Protocol, Sequence

import numpy as np
from numpy.typing import NDArray
from scipy.ndimage import gaussian_filter

from heatlayer.core.geometry import IntensityPoint, Sector
from heatlayer.gradient import Gradient

# Gaussian kernel is cut at BLUR_TRUNCATE sigmas; sigma = blur / BLUR_TRUNCATE
# so the kernel reaches exactly ``blur`` pixels.
BLUR_TRUNCATE = 2.0


class TileRasterizer(Protocol):
    """Anything that can draw points into an RGBA tile."""

    def rasterize(
        self,
        points: Sequence[IntensityPoint],
        sector: Sector,
        width: int,
        height: int,
        radius: float,
        blur: float,
        gradient: Gradient,
        increment_per_intensity: float,
    ) -> NDArray[np.uint8]:
        """Return a ``(height, width, 4)`` uint8 RGBA buffer."""
        ...


def to_pixel(point: IntensityPoint, sector: Sector, width: int, height: int) -> tuple[float, float]:
    """
    Map a point to fractional (column, row) pixel coordinates.

    Row 0 is the northern edge of the sector.
    """
    col = (point.longitude - sector.min_longitude) / sector.delta_longitude * width
    row = (sector.max_latitude - point.latitude) / sector.delta_latitude * height
    return col, row


class ColoredTileRasterizer:
    """Default rasterizer: gradient circles, Gaussian blur, colour ramp."""

    def intensity_field(
        self,
        points: Sequence[IntensityPoint],
        sector: Sector,
        width: int,
        height: int,
        radius: float,
        blur: float,
        increment_per_intensity: float,
    ) -> NDArray[np.float64]:
        """Accumulated and blurred per-pixel intensity."""
        field = self.accumulate(points, sector, width, height, radius, increment_per_intensity)
        return self.blur(field, blur)

    def accumulate(
        self,
        points: Sequence[IntensityPoint],
        sector: Sector,
        width: int,
        height: int,
        radius: float,
        increment_per_intensity: float,
    ) -> NDArray[np.float64]:
        """
        Sum the radial contribution of every point.

        Each point adds ``intensity * increment * (1 - d / radius)`` to pixels
        whose centre lies closer than ``radius``.
        """
        field = np.zeros((height, width), dtype=np.float64)
        if radius <= 0 or not points:
            return field

        for point in points:
            peak = point.intensity * increment_per_intensity
            if peak <= 0:
                continue

            col, row = to_pixel(point, sector, width, height)
            x0 = max(int(np.floor(col - radius)), 0)
            x1 = min(int(np.ceil(col + radius)) + 1, width)
            y0 = max(int(np.floor(row - radius)), 0)
            y1 = min(int(np.ceil(row + radius)) + 1, height)
            if x0 >= x1 or y0 >= y1:
                continue

            # Distances from pixel centres inside the window
            xs = np.arange(x0, x1, dtype=np.float64) + 0.5 - col
            ys = np.arange(y0, y1, dtype=np.float64) + 0.5 - row
            dist = np.sqrt(ys[:, None] ** 2 + xs[None, :] ** 2)

            falloff = np.clip(1.0 - dist / radius, 0.0, None)
            field[y0:y1, x0:x1] += peak * falloff

        return field

    def blur(self, field: NDArray[np.float64], blur: float) -> NDArray[np.float64]:
        if blur <= 0 or not field.any():
            return field
        return gaussian_filter(
            field,
            sigma=blur / BLUR_TRUNCATE,
            mode="constant",
            cval=0.0,
            truncate=BLUR_TRUNCATE,
        )

    def colorize(self, field: NDArray[np.float64], gradient: Gradient) -> NDArray[np.uint8]:
        """Map intensities through the gradient; alpha follows intensity."""
        height, width = field.shape
        image = np.zeros((height, width, 4), dtype=np.uint8)
        if not field.any():
            return image

        level = np.clip(field, 0.0, 1.0)
        rgba = gradient.lookup(level)
        image[..., :3] = np.round(rgba[..., :3] * 255).astype(np.uint8)
        image[..., 3] = np.round(level * rgba[..., 3] * 255).astype(np.uint8)
        return image

    def rasterize(
        self,
        points: Sequence[IntensityPoint],
        sector: Sector,
        width: int,
        height: int,
        radius: float,
        blur: float,
        gradient: Gradient,
        increment_per_intensity: float,
    ) -> NDArray[np.uint8]:
        field = self.intensity_field(
            points, sector, width, height, radius, blur, increment_per_intensity
        )
        return self.colorize(field, gradient)
