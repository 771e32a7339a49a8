"""
Spatial index — a quad-partitioned tree over index space.

The tree is stored as an arena: every node is a row in a set of parallel
lists addressed by an integer handle, and the four children of a node are
allocated together so that ``first_child .. first_child + 3`` are its
quadrants. Points live once in a point table; nodes only hold point ids.

Insertion uses inclusive bounds, so a point lying exactly on a splitting
axis is stored in every quadrant that touches it. Retrieval deduplicates by
point id, so a point is returned at most once per query.
"""

from __future__ import annotations

import logging
import math
from typing import Iterable

from heatlayer.core.geometry import IntensityPoint, Rect, Sector

logger = logging.getLogger(__name__)

WORLD_BOUNDS = Rect(0.0, 0.0, 360.0, 180.0)

# Quadrant order inside a child block (top = larger y = further north)
TOP_LEFT, TOP_RIGHT, BOTTOM_LEFT, BOTTOM_RIGHT = range(4)

NO_CHILDREN = -1


class SpatialIndex:
    """
    Quadtree of intensity points supporting insertion and range retrieval.

    Args:
        bounds: Full index-space extent the tree will cover.
        max_objects: Points a leaf holds before it subdivides.
        max_levels: Depth at which subdivision stops; leaves at this depth
            keep accepting points past ``max_objects``.
    """

    def __init__(self, bounds: Rect = WORLD_BOUNDS, max_objects: int = 10, max_levels: int = 4):
        if max_objects < 1:
            raise ValueError(f"max_objects must be at least 1, got {max_objects}")
        if max_levels < 0:
            raise ValueError(f"max_levels must be non-negative, got {max_levels}")

        self.bounds = bounds
        self.max_objects = max_objects
        self.max_levels = max_levels

        # Node arena
        self._rects: list[Rect] = []
        self._levels: list[int] = []
        self._first_child: list[int] = []
        self._items: list[list[int]] = []

        # Point table
        self._points: list[IntensityPoint] = []
        # Ids of points that fall outside the root bounds (scanned linearly)
        self._outside: list[int] = []

        self._new_node(bounds, 0)

    @classmethod
    def from_points(
        cls,
        points: Iterable[IntensityPoint],
        max_levels: int = 4,
        bounds: Rect = WORLD_BOUNDS,
    ) -> SpatialIndex:
        """
        Build an index sized for ``points``.

        Leaf capacity is chosen so that a fully subdivided tree spreads the
        points evenly over its ``4 ** max_levels`` deepest leaves.
        """
        points = list(points)
        max_objects = max(1, math.ceil(len(points) / 4 ** max_levels))
        index = cls(bounds, max_objects=max_objects, max_levels=max_levels)
        for point in points:
            index.insert(point)
        logger.debug(
            "Built spatial index: %d points, %d nodes, depth %d, max_objects=%d",
            len(index),
            index.node_count,
            index.depth,
            max_objects,
        )
        return index

    # ── Arena helpers ────────────────────────────────────────────

    def _new_node(self, rect: Rect, level: int) -> int:
        self._rects.append(rect)
        self._levels.append(level)
        self._first_child.append(NO_CHILDREN)
        self._items.append([])
        return len(self._rects) - 1

    def _split(self, node: int) -> None:
        """Create the four quadrants of ``node`` and move its points down."""
        rect = self._rects[node]
        level = self._levels[node] + 1
        hw = rect.width / 2
        hh = rect.height / 2

        quadrants = [None] * 4
        quadrants[TOP_LEFT] = Rect(rect.x, rect.y + hh, hw, hh)
        quadrants[TOP_RIGHT] = Rect(rect.x + hw, rect.y + hh, hw, hh)
        quadrants[BOTTOM_LEFT] = Rect(rect.x, rect.y, hw, hh)
        quadrants[BOTTOM_RIGHT] = Rect(rect.x + hw, rect.y, hw, hh)

        first = len(self._rects)
        for quadrant in quadrants:
            self._new_node(quadrant, level)
        self._first_child[node] = first

        moved = self._items[node]
        self._items[node] = []
        for point_id in moved:
            self._place(node, point_id)

    def _place(self, start: int, point_id: int) -> None:
        """Push ``point_id`` into every leaf under ``start`` that contains it."""
        point = self._points[point_id]
        x, y = point.x, point.y

        stack = [start]
        while stack:
            node = stack.pop()
            if not self._rects[node].contains(x, y):
                continue

            first = self._first_child[node]
            if first != NO_CHILDREN:
                stack.extend(range(first + 3, first - 1, -1))
                continue

            items = self._items[node]
            items.append(point_id)
            if len(items) > self.max_objects and self._levels[node] < self.max_levels:
                self._split(node)

    # ── Public API ───────────────────────────────────────────────

    def insert(self, point: IntensityPoint) -> None:
        """Add a point. Never fails; out-of-bounds points are kept aside."""
        point_id = len(self._points)
        self._points.append(point)

        if not self.bounds.contains(point.x, point.y):
            self._outside.append(point_id)
            return

        self._place(0, point_id)

    def retrieve(self, query: Rect) -> list[IntensityPoint]:
        """
        All stored points whose coordinate lies inside ``query``.

        Each point is returned once, in insertion order.
        """
        found: set[int] = set()

        stack = [0]
        while stack:
            node = stack.pop()
            if not self._rects[node].intersects(query):
                continue

            first = self._first_child[node]
            if first != NO_CHILDREN:
                stack.extend(range(first, first + 4))
                continue

            for point_id in self._items[node]:
                point = self._points[point_id]
                if query.contains(point.x, point.y):
                    found.add(point_id)

        for point_id in self._outside:
            point = self._points[point_id]
            if query.contains(point.x, point.y):
                found.add(point_id)

        return [self._points[i] for i in sorted(found)]

    def retrieve_sector(self, sector: Sector) -> list[IntensityPoint]:
        """Retrieve points inside a geographic sector."""
        return self.retrieve(sector.to_rect())

    # ── Introspection ────────────────────────────────────────────

    def __len__(self) -> int:
        return len(self._points)

    @property
    def node_count(self) -> int:
        return len(self._rects)

    @property
    def depth(self) -> int:
        """Deepest level currently allocated."""
        return max(self._levels)

    def children(self, node: int = 0) -> list[int]:
        """Handles of the quadrants of ``node`` (empty for a leaf)."""
        first = self._first_child[node]
        if first == NO_CHILDREN:
            return []
        return list(range(first, first + 4))

    def node_rect(self, node: int) -> Rect:
        return self._rects[node]

    def node_level(self, node: int) -> int:
        return self._levels[node]

    def node_points(self, node: int) -> list[IntensityPoint]:
        """Points held directly by ``node``."""
        return [self._points[i] for i in self._items[node]]

    def leaves(self) -> list[int]:
        return [n for n, first in enumerate(self._first_child) if first == NO_CHILDREN]
