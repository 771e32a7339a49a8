"""
HEATLAYER — intensity heat maps over geographic points, rendered as tiles.

Provides the spatial index, gradient builder and tile rasterizer, plus a
layer object that plugs them into a tiled map host.
"""

__version__ = "0.1.0"

from heatlayer.core.geometry import IntensityPoint, Rect, Sector
from heatlayer.core.quadtree import SpatialIndex
from heatlayer.gradient import DEFAULT_SCALE, Gradient, IntervalType, build_gradient
from heatlayer.layer import HeatMapLayer, HeatMapOptions, MemoryTileCache, Tile
from heatlayer.raster.radius import ComputedRadius, FixedRadius, as_radius
from heatlayer.raster.rasterizer import ColoredTileRasterizer, TileRasterizer
from heatlayer.raster.tile import render_field, render_tile

__all__ = [
    "IntensityPoint",
    "Rect",
    "Sector",
    "SpatialIndex",
    "DEFAULT_SCALE",
    "Gradient",
    "IntervalType",
    "build_gradient",
    "HeatMapLayer",
    "HeatMapOptions",
    "MemoryTileCache",
    "Tile",
    "ComputedRadius",
    "FixedRadius",
    "as_radius",
    "ColoredTileRasterizer",
    "TileRasterizer",
    "render_field",
    "render_tile",
]
