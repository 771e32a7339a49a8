"""
Heat-map layer — connects the rendering core to a tiled map host.

The layer owns the read-only pieces built once per dataset (spatial index
and gradient) and exposes what a tiling host needs:

1. Tile grid arithmetic (which sector a tile covers at a given level)
2. Rendering a tile's pixels
3. Request bookkeeping: a tile is rendered at most once concurrently, tiles
   that failed are remembered as absent, finished images go to the cache
4. Redraw notification through registered callbacks
"""

from __future__ import annotations

import logging
import math
import threading
import uuid
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Iterable, Protocol, Sequence

import numpy as np
from numpy.typing import NDArray

from heatlayer.core.geometry import IntensityPoint, Sector
from heatlayer.core.quadtree import SpatialIndex
from heatlayer.gradient import DEFAULT_SCALE, Gradient, IntervalType, build_gradient
from heatlayer.raster.radius import Radius, RadiusFunction, as_radius
from heatlayer.raster.rasterizer import ColoredTileRasterizer, TileRasterizer
from heatlayer.raster.tile import DEFAULT_EXTENSION_FACTOR, render_tile

logger = logging.getLogger(__name__)

INDEX_MAX_LEVELS = 4


@dataclass
class HeatMapOptions:
    """Visual and tiling options for a heat-map layer."""

    scale: Sequence[str] = DEFAULT_SCALE
    interval_type: IntervalType | str = IntervalType.CONTINUOUS
    radius: float | RadiusFunction | Radius = 25.0
    blur: float = 10.0
    increment_per_intensity: float = 0.025
    rasterizer: TileRasterizer = field(default_factory=ColoredTileRasterizer)
    tile_width: int = 512
    tile_height: int = 512
    extension_factor: float = DEFAULT_EXTENSION_FACTOR
    level_zero_delta: float = 45.0  # degrees per tile at level 0
    num_levels: int = 14

    def __post_init__(self):
        if isinstance(self.scale, str):
            raise ValueError(f"scale must be a list of colours, got the string {self.scale!r}")
        if not self.scale:
            raise ValueError("scale must contain at least one colour")
        self.scale = tuple(self.scale)
        self.interval_type = IntervalType.parse(self.interval_type)
        self.radius = as_radius(self.radius)
        if self.blur < 0:
            raise ValueError(f"blur must be non-negative, got {self.blur}")
        if self.increment_per_intensity < 0:
            raise ValueError(
                f"increment_per_intensity must be non-negative, got {self.increment_per_intensity}"
            )
        if self.tile_width <= 0 or self.tile_height <= 0:
            raise ValueError(
                f"Tile size must be positive, got {self.tile_width}x{self.tile_height}"
            )
        if self.extension_factor < 0:
            raise ValueError(f"extension_factor must be non-negative, got {self.extension_factor}")
        if self.level_zero_delta <= 0:
            raise ValueError(f"level_zero_delta must be positive, got {self.level_zero_delta}")
        if self.num_levels < 1:
            raise ValueError(f"num_levels must be at least 1, got {self.num_levels}")


@dataclass(frozen=True)
class Tile:
    """One cell of the layer's tile pyramid. Row 0 is the southernmost row."""

    level: int
    row: int
    column: int
    sector: Sector

    def key(self, layer_id: str) -> str:
        return f"{layer_id}/{self.level}/{self.row}/{self.column}"


class TileCache(Protocol):
    """Where finished tile images are handed to the host."""

    def put(self, key: str, image: NDArray[np.uint8]) -> None:
        ...

    def get(self, key: str) -> NDArray[np.uint8] | None:
        ...


class MemoryTileCache:
    """Dict-backed ``TileCache``."""

    def __init__(self):
        self._images: dict[str, NDArray[np.uint8]] = {}
        self._lock = threading.Lock()

    def put(self, key: str, image: NDArray[np.uint8]) -> None:
        with self._lock:
            self._images[key] = image

    def get(self, key: str) -> NDArray[np.uint8] | None:
        with self._lock:
            return self._images.get(key)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._images

    def __len__(self) -> int:
        with self._lock:
            return len(self._images)


class HeatMapLayer:
    """
    Heat map over a fixed set of intensity points.

    Args:
        display_name: Human-readable layer name.
        data: Points to visualise; read once at construction.
        options: Rendering options (defaults if omitted).
        cache: Receiver of rendered tiles (in-memory if omitted).
    """

    def __init__(
        self,
        display_name: str,
        data: Iterable[IntensityPoint],
        options: HeatMapOptions | None = None,
        cache: TileCache | None = None,
    ):
        self.display_name = display_name
        self.options = options or HeatMapOptions()
        self.cache = cache if cache is not None else MemoryTileCache()
        self.layer_id = f"HeatMap{uuid.uuid4().hex}"

        points = list(data)
        self.index = SpatialIndex.from_points(points, max_levels=INDEX_MAX_LEVELS)
        self.gradient: Gradient = build_gradient(
            points, self.options.interval_type, self.options.scale
        )

        self._lock = threading.Lock()
        self._in_flight: set[str] = set()
        self._absent: set[str] = set()
        self._redraw_callbacks: list[Callable[[Tile], None]] = []
        self.current_tiles_invalid = False

        logger.info(
            "Created heat-map layer '%s': %d points, %d index nodes, %d gradient stops",
            display_name,
            len(points),
            self.index.node_count,
            len(self.gradient),
        )

    # ── Tile grid ────────────────────────────────────────────────

    def tile_delta(self, level: int) -> float:
        """Degrees spanned by one tile at ``level``."""
        if not 0 <= level < self.options.num_levels:
            raise ValueError(f"Level {level} outside 0..{self.options.num_levels - 1}")
        return self.options.level_zero_delta / 2**level

    def tile_sector(self, level: int, row: int, column: int) -> Sector:
        delta = self.tile_delta(level)
        min_lat = -90.0 + row * delta
        min_lon = -180.0 + column * delta
        return Sector(min_lat, min(min_lat + delta, 90.0), min_lon, min(min_lon + delta, 180.0))

    def tile(self, level: int, row: int, column: int) -> Tile:
        return Tile(level, row, column, self.tile_sector(level, row, column))

    def tiles_for_level(self, level: int, sector: Sector | None = None) -> list[Tile]:
        """All tiles at ``level`` overlapping ``sector`` (whole globe by default)."""
        sector = sector or Sector.full_sphere()
        delta = self.tile_delta(level)
        max_row = math.ceil(180.0 / delta) - 1
        max_col = math.ceil(360.0 / delta) - 1

        first_row = max(int((sector.min_latitude + 90.0) // delta), 0)
        last_row = min(int(math.ceil((sector.max_latitude + 90.0) / delta)) - 1, max_row)
        first_col = max(int((sector.min_longitude + 180.0) // delta), 0)
        last_col = min(int(math.ceil((sector.max_longitude + 180.0) / delta)) - 1, max_col)

        return [
            self.tile(level, row, col)
            for row in range(first_row, last_row + 1)
            for col in range(first_col, last_col + 1)
        ]

    def reach_sector(self, sector: Sector) -> Sector:
        """
        Area whose points can light up pixels of ``sector``.

        Grows the sector by radius + blur pixels, but never past the bleed
        margin, since points beyond it are not drawn.
        """
        opts = self.options
        width, height = opts.tile_width, opts.tile_height
        reach = opts.radius.resolve(sector, width, height) + opts.blur
        lat_change = min(reach / height, opts.extension_factor) * sector.delta_latitude
        lon_change = min(reach / width, opts.extension_factor) * sector.delta_longitude
        return Sector(
            sector.min_latitude - lat_change,
            sector.max_latitude + lat_change,
            sector.min_longitude - lon_change,
            sector.max_longitude + lon_change,
        )

    def tiles_with_data(self, level: int) -> list[Tile]:
        """Tiles at ``level`` that can receive heat from at least one point."""
        return [
            t for t in self.tiles_for_level(level)
            if self.index.retrieve_sector(self.reach_sector(t.sector))
        ]

    # ── Rendering ────────────────────────────────────────────────

    def render(self, sector: Sector, width: int | None = None, height: int | None = None) -> NDArray[np.uint8]:
        """Render the pixels for one sector. Safe to call from many threads."""
        opts = self.options
        return render_tile(
            self.index,
            sector,
            width or opts.tile_width,
            height or opts.tile_height,
            opts.radius,
            opts.blur,
            self.gradient,
            opts.increment_per_intensity,
            extension_factor=opts.extension_factor,
            rasterizer=opts.rasterizer,
        )

    def on_redraw(self, callback: Callable[[Tile], None]) -> None:
        """Register a callback fired after a tile image reaches the cache."""
        self._redraw_callbacks.append(callback)

    def is_absent(self, tile: Tile) -> bool:
        return tile.key(self.layer_id) in self._absent

    def mark_available(self, tile: Tile) -> None:
        """Forget a previous failure so the tile can be retried."""
        with self._lock:
            self._absent.discard(tile.key(self.layer_id))

    def retrieve_tile_image(self, tile: Tile, suppress_redraw: bool = False) -> NDArray[np.uint8] | None:
        """
        Render ``tile`` and hand it to the cache.

        Returns None without rendering when the tile is already being
        rendered or is marked absent.
        """
        key = tile.key(self.layer_id)
        with self._lock:
            if key in self._in_flight or key in self._absent:
                return None
            self._in_flight.add(key)

        try:
            image = self.render(tile.sector)
        except Exception:
            logger.error("Failed to render tile %s", key, exc_info=True)
            with self._lock:
                self._absent.add(key)
            raise
        finally:
            with self._lock:
                self._in_flight.discard(key)

        self.cache.put(key, image)
        with self._lock:
            self._absent.discard(key)
            self.current_tiles_invalid = True

        if not suppress_redraw:
            for callback in self._redraw_callbacks:
                callback(tile)
        return image

    def render_tiles(
        self,
        tiles: Sequence[Tile],
        max_workers: int | None = None,
        suppress_redraw: bool = True,
    ) -> dict[Tile, NDArray[np.uint8] | None]:
        """Render several tiles concurrently."""
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            images = pool.map(lambda t: self.retrieve_tile_image(t, suppress_redraw), tiles)
            return dict(zip(tiles, images))
