"""
Configuration loader — reads a YAML layer config and its CSV dataset.

A config file has two sections:

* **layer** — display name and rendering options (scale, interval_type,
  radius, blur, increment_per_intensity, tile_size, extension_factor)
* **data** — path of the CSV dataset (relative to the config file) and the
  names of its latitude / longitude / intensity columns

``radius`` is either a number of pixels or a mapping
``{base: 25, reference_delta: 45}`` for a radius that scales with zoom.
"""

from __future__ import annotations

import csv
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from heatlayer.core.geometry import IntensityPoint
from heatlayer.gradient import DEFAULT_SCALE
from heatlayer.layer import HeatMapLayer, HeatMapOptions
from heatlayer.raster.radius import Radius, as_radius, zoom_scaled_radius

logger = logging.getLogger(__name__)


@dataclass
class DataConfig:
    """Where the points come from."""

    path: Path
    latitude_column: str = "latitude"
    longitude_column: str = "longitude"
    intensity_column: str = "intensity"


def load_config(path: str | Path) -> dict[str, Any]:
    """Load a YAML configuration file."""
    with open(path) as f:
        config = yaml.safe_load(f) or {}
    if not isinstance(config, dict):
        raise ValueError(f"Config {path} must be a mapping, got {type(config).__name__}")
    return config


def _build_radius(value: Any) -> Radius:
    if isinstance(value, dict):
        try:
            base = float(value["base"])
        except KeyError:
            raise ValueError("layer.radius mapping needs a 'base' entry") from None
        return zoom_scaled_radius(base, float(value.get("reference_delta", 45.0)))
    try:
        return as_radius(value)
    except ValueError as exc:
        raise ValueError(f"layer.radius: {exc}") from None


def build_options(config: dict[str, Any]) -> HeatMapOptions:
    """Build ``HeatMapOptions`` from the ``layer`` section."""
    layer_cfg = config.get("layer", {}) or {}
    tile_size = layer_cfg.get("tile_size", 512)

    try:
        return HeatMapOptions(
            scale=layer_cfg.get("scale", DEFAULT_SCALE),
            interval_type=layer_cfg.get("interval_type", "continuous"),
            radius=_build_radius(layer_cfg.get("radius", 25)),
            blur=float(layer_cfg.get("blur", 10)),
            increment_per_intensity=float(layer_cfg.get("increment_per_intensity", 0.025)),
            tile_width=int(layer_cfg.get("tile_width", tile_size)),
            tile_height=int(layer_cfg.get("tile_height", tile_size)),
            extension_factor=float(layer_cfg.get("extension_factor", 1.0)),
            level_zero_delta=float(layer_cfg.get("level_zero_delta", 45.0)),
            num_levels=int(layer_cfg.get("num_levels", 14)),
        )
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid layer config: {exc}") from exc


def build_data_config(config: dict[str, Any], base_dir: Path | None = None) -> DataConfig:
    """Build ``DataConfig`` from the ``data`` section."""
    data_cfg = config.get("data")
    if not data_cfg or "path" not in data_cfg:
        raise ValueError("Config needs a data.path entry")

    path = Path(data_cfg["path"])
    if base_dir is not None and not path.is_absolute():
        path = base_dir / path

    return DataConfig(
        path=path,
        latitude_column=data_cfg.get("latitude_column", "latitude"),
        longitude_column=data_cfg.get("longitude_column", "longitude"),
        intensity_column=data_cfg.get("intensity_column", "intensity"),
    )


def load_points(
    path: str | Path,
    latitude_column: str = "latitude",
    longitude_column: str = "longitude",
    intensity_column: str = "intensity",
) -> list[IntensityPoint]:
    """
    Read intensity points from a CSV file with a header row.

    Rows without an intensity value (or files without the column) get an
    intensity of 1.
    """
    points: list[IntensityPoint] = []
    with open(path, newline="") as f:
        reader = csv.DictReader(f)
        fields = reader.fieldnames or []
        for column in (latitude_column, longitude_column):
            if column not in fields:
                raise ValueError(f"{path}: missing column '{column}'")

        for line, row in enumerate(reader, start=2):
            raw_intensity = row.get(intensity_column)
            try:
                points.append(
                    IntensityPoint(
                        latitude=float(row[latitude_column]),
                        longitude=float(row[longitude_column]),
                        intensity=float(raw_intensity) if raw_intensity not in (None, "") else 1.0,
                    )
                )
            except ValueError as exc:
                raise ValueError(f"{path}:{line}: {exc}") from exc

    logger.info("Loaded %d points from %s", len(points), path)
    return points


def build_layer(config_path: str | Path) -> HeatMapLayer:
    """
    Build a complete heat-map layer from a YAML config file.

    Returns:
        HeatMapLayer ready to render tiles.
    """
    config_path = Path(config_path)
    config = load_config(config_path)
    options = build_options(config)
    data_cfg = build_data_config(config, base_dir=config_path.parent)
    points = load_points(
        data_cfg.path,
        latitude_column=data_cfg.latitude_column,
        longitude_column=data_cfg.longitude_column,
        intensity_column=data_cfg.intensity_column,
    )

    name = (config.get("layer") or {}).get("name", config_path.stem)
    return HeatMapLayer(name, points, options)
