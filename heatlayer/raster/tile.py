"""
Tile rendering — extend, query, rasterize, clip.

Contributions from points just outside a tile must still reach its edge
pixels, otherwise neighbouring tiles disagree along their shared border. The
tile is therefore rendered over an extended sector (with a matching pixel
margin) and the central region is cut back out.

Sectors are plain rectangles in degrees: an extended sector that crosses
the antimeridian does not wrap, so points on the far side of +/-180 do not
bleed into tiles at the other edge of the map.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from heatlayer.core.geometry import Sector
from heatlayer.core.quadtree import SpatialIndex
from heatlayer.gradient import Gradient
from heatlayer.raster.radius import Radius, RadiusFunction, as_radius
from heatlayer.raster.rasterizer import ColoredTileRasterizer, TileRasterizer

logger = logging.getLogger(__name__)

DEFAULT_EXTENSION_FACTOR = 1.0


@dataclass(frozen=True)
class ExtendedTile:
    """Geometry of the working raster around one tile."""

    sector: Sector
    width: int
    height: int
    margin_x: int
    margin_y: int

    @classmethod
    def around(cls, sector: Sector, width: int, height: int, factor: float) -> ExtendedTile:
        margin_x = math.ceil(factor * width)
        margin_y = math.ceil(factor * height)
        return cls(
            sector=sector.extended(factor),
            width=width + 2 * margin_x,
            height=height + 2 * margin_y,
            margin_x=margin_x,
            margin_y=margin_y,
        )

    def clip(self, raster: NDArray, width: int, height: int) -> NDArray:
        """Cut the original tile out of the working raster."""
        return raster[self.margin_y:self.margin_y + height, self.margin_x:self.margin_x + width].copy()


def render_tile(
    index: SpatialIndex,
    sector: Sector,
    width: int,
    height: int,
    radius: float | RadiusFunction | Radius,
    blur: float,
    gradient: Gradient,
    increment_per_intensity: float,
    extension_factor: float = DEFAULT_EXTENSION_FACTOR,
    rasterizer: TileRasterizer | None = None,
) -> NDArray[np.uint8]:
    """
    Render the heat map for one tile.

    Args:
        index: Spatial index over the full dataset.
        sector: Geographic bounds of the tile.
        width: Tile width in pixels.
        height: Tile height in pixels.
        radius: Point radius in pixels, or a function of (sector, width, height).
        blur: Blur amount in pixels.
        gradient: Colour gradient for the dataset.
        increment_per_intensity: Field increase per unit of point intensity.
        extension_factor: Bleed margin as a fraction of the tile span.
        rasterizer: Drawing strategy; ``ColoredTileRasterizer`` by default.

    Returns:
        ``(height, width, 4)`` uint8 RGBA array.
    """
    rasterizer = rasterizer or ColoredTileRasterizer()
    extended = ExtendedTile.around(sector, width, height, extension_factor)

    points = index.retrieve_sector(extended.sector)
    if not points:
        return np.zeros((height, width, 4), dtype=np.uint8)

    pixel_radius = as_radius(radius).resolve(sector, width, height)
    logger.debug(
        "Rendering tile %s: %d candidate points, radius=%.2f",
        sector.as_tuple(),
        len(points),
        pixel_radius,
    )

    raster = rasterizer.rasterize(
        points,
        extended.sector,
        extended.width,
        extended.height,
        pixel_radius,
        blur,
        gradient,
        increment_per_intensity,
    )
    return extended.clip(raster, width, height)


def render_field(
    index: SpatialIndex,
    sector: Sector,
    width: int,
    height: int,
    radius: float | RadiusFunction | Radius,
    blur: float,
    increment_per_intensity: float,
    extension_factor: float = DEFAULT_EXTENSION_FACTOR,
    rasterizer: ColoredTileRasterizer | None = None,
) -> NDArray[np.float64]:
    """Same pipeline as ``render_tile`` but returns the raw intensity field."""
    rasterizer = rasterizer or ColoredTileRasterizer()
    extended = ExtendedTile.around(sector, width, height, extension_factor)

    points = index.retrieve_sector(extended.sector)
    if not points:
        return np.zeros((height, width), dtype=np.float64)

    pixel_radius = as_radius(radius).resolve(sector, width, height)
    field = rasterizer.intensity_field(
        points,
        extended.sector,
        extended.width,
        extended.height,
        pixel_radius,
        blur,
        increment_per_intensity,
    )
    return extended.clip(field, width, height)
