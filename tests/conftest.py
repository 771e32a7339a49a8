"""
conftest.py — shared fixtures for the heatlayer test suite.
"""

import pytest

from heatlayer.core.geometry import IntensityPoint, Sector
from heatlayer.core.quadtree import SpatialIndex
from heatlayer.gradient import DEFAULT_SCALE, build_gradient


@pytest.fixture()
def two_points():
    return [
        IntensityPoint(latitude=0.0, longitude=0.0, intensity=10.0),
        IntensityPoint(latitude=0.0, longitude=1.0, intensity=1.0),
    ]


@pytest.fixture()
def two_point_index(two_points):
    return SpatialIndex.from_points(two_points)


@pytest.fixture()
def default_gradient(two_points):
    return build_gradient(two_points, "continuous", DEFAULT_SCALE)


@pytest.fixture()
def equator_sector():
    return Sector(-5.0, 5.0, -5.0, 5.0)


@pytest.fixture()
def write_dataset(tmp_path):
    """Write a CSV + YAML pair and return the config path."""

    def _write(rows, layer=None):
        csv_path = tmp_path / "points.csv"
        lines = ["latitude,longitude,intensity"]
        lines += [f"{lat},{lon},{value}" for lat, lon, value in rows]
        csv_path.write_text("\n".join(lines) + "\n")

        layer = layer or {}
        layer_lines = [f"  {key}: {value}" for key, value in layer.items()]
        config_path = tmp_path / "layer.yaml"
        config_path.write_text(
            "layer:\n"
            "  name: Test\n"
            + "".join(line + "\n" for line in layer_lines)
            + "data:\n"
            "  path: points.csv\n"
        )
        return config_path

    return _write
