"""
Geographic primitives — weighted points, sectors and index-space rectangles.

Two coordinate systems are in play:

- **Geographic degrees** — latitude in [-90, 90], longitude in [-180, 180].
  ``IntensityPoint`` and ``Sector`` live here.
- **Index space** — the same plane shifted so every coordinate is
  non-negative: ``x = longitude + 180``, ``y = latitude + 90``. The spatial
  index partitions ``Rect(0, 0, 360, 180)``.
"""

from __future__ import annotations

from dataclasses import dataclass

LONGITUDE_OFFSET = 180.0
LATITUDE_OFFSET = 90.0


@dataclass(frozen=True, slots=True)
class IntensityPoint:
    """A geolocated point carrying a non-negative intensity weight."""

    latitude: float
    longitude: float
    intensity: float = 1.0

    def __post_init__(self):
        if self.intensity < 0:
            raise ValueError(f"Intensity must be non-negative, got {self.intensity}")

    @property
    def x(self) -> float:
        """Index-space x coordinate."""
        return self.longitude + LONGITUDE_OFFSET

    @property
    def y(self) -> float:
        """Index-space y coordinate."""
        return self.latitude + LATITUDE_OFFSET


@dataclass(frozen=True, slots=True)
class Rect:
    """Axis-aligned rectangle in index space. Bounds are inclusive."""

    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def top(self) -> float:
        return self.y + self.height

    def contains(self, x: float, y: float) -> bool:
        return self.x <= x <= self.right and self.y <= y <= self.top

    def intersects(self, other: Rect) -> bool:
        return (
            self.x <= other.right
            and other.x <= self.right
            and self.y <= other.top
            and other.y <= self.top
        )

    def clamp(self, x: float, y: float) -> tuple[float, float]:
        """Nearest position inside the rectangle."""
        return (
            min(max(x, self.x), self.right),
            min(max(y, self.y), self.top),
        )


@dataclass(frozen=True, slots=True)
class Sector:
    """A geographic region bounded by min/max latitude and longitude."""

    min_latitude: float
    max_latitude: float
    min_longitude: float
    max_longitude: float

    @classmethod
    def full_sphere(cls) -> Sector:
        return cls(-90.0, 90.0, -180.0, 180.0)

    @property
    def delta_latitude(self) -> float:
        return self.max_latitude - self.min_latitude

    @property
    def delta_longitude(self) -> float:
        return self.max_longitude - self.min_longitude

    def contains(self, latitude: float, longitude: float) -> bool:
        return (
            self.min_latitude <= latitude <= self.max_latitude
            and self.min_longitude <= longitude <= self.max_longitude
        )

    def extended(self, factor: float) -> Sector:
        """
        Grow the sector outward by ``factor`` times its own span on every side.

        A factor of 1 triples both spans, leaving the original sector as the
        central cell of a 3x3 block. Longitudes are not wrapped across the
        antimeridian; the result may extend past +/-180.
        """
        lat_change = self.delta_latitude * factor
        lon_change = self.delta_longitude * factor
        return Sector(
            self.min_latitude - lat_change,
            self.max_latitude + lat_change,
            self.min_longitude - lon_change,
            self.max_longitude + lon_change,
        )

    def to_rect(self) -> Rect:
        """Index-space rectangle covering this sector."""
        return Rect(
            self.min_longitude + LONGITUDE_OFFSET,
            self.min_latitude + LATITUDE_OFFSET,
            self.delta_longitude,
            self.delta_latitude,
        )

    def as_tuple(self) -> tuple[float, float, float, float]:
        return (self.min_latitude, self.max_latitude, self.min_longitude, self.max_longitude)
