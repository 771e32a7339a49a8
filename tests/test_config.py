"""
test_config.py — Tests for YAML/CSV loading and the click CLI.
"""

import pytest
from click.testing import CliRunner

from heatlayer.cli import cli
from heatlayer.config import build_layer, build_options, load_config, load_points
from heatlayer.gradient import IntervalType
from heatlayer.raster.radius import ComputedRadius, FixedRadius

ROWS = [(0.0, 0.0, 10.0), (0.0, 1.0, 1.0), (10.0, 10.0, 4.0)]


# ── Options ──────────────────────────────────────────────────────────────────

class TestBuildOptions:

    def test_empty_config_uses_defaults(self):
        options = build_options({})
        assert options.radius == FixedRadius(25.0)
        assert options.interval_type is IntervalType.CONTINUOUS
        assert options.tile_width == 512

    def test_layer_section(self):
        options = build_options({
            "layer": {
                "scale": ["black", "white"],
                "interval_type": "quantile",
                "radius": 12,
                "blur": 3,
                "tile_size": 256,
            }
        })
        assert options.scale == ("black", "white")
        assert options.interval_type is IntervalType.QUANTILES
        assert options.radius == FixedRadius(12.0)
        assert options.blur == 3.0
        assert (options.tile_width, options.tile_height) == (256, 256)

    def test_zoom_scaled_radius(self):
        options = build_options({"layer": {"radius": {"base": 10}}})
        assert isinstance(options.radius, ComputedRadius)

    def test_radius_mapping_needs_base(self):
        with pytest.raises(ValueError, match="base"):
            build_options({"layer": {"radius": {"reference_delta": 10}}})

    def test_invalid_value(self):
        with pytest.raises(ValueError, match="Invalid layer config"):
            build_options({"layer": {"blur": -2}})

    def test_scale_must_be_a_list(self):
        with pytest.raises(ValueError, match="list of colours"):
            build_options({"layer": {"scale": "red"}})


# ── Loading ──────────────────────────────────────────────────────────────────

class TestLoading:

    def test_load_points(self, write_dataset):
        config_path = write_dataset(ROWS)
        points = load_points(config_path.parent / "points.csv")
        assert len(points) == 3
        assert points[0].intensity == 10.0
        assert points[2].latitude == 10.0

    def test_missing_intensity_defaults_to_one(self, tmp_path):
        path = tmp_path / "plain.csv"
        path.write_text("lat,lon\n1,2\n3,4\n")
        points = load_points(path, latitude_column="lat", longitude_column="lon")
        assert [p.intensity for p in points] == [1.0, 1.0]

    def test_missing_column(self, tmp_path):
        path = tmp_path / "bad.csv"
        path.write_text("x,y\n1,2\n")
        with pytest.raises(ValueError, match="latitude"):
            load_points(path)

    def test_bad_row_reports_line(self, tmp_path):
        path = tmp_path / "bad.csv"
        path.write_text("latitude,longitude,intensity\n1,2,3\n1,2,-3\n")
        with pytest.raises(ValueError, match=":3:"):
            load_points(path)

    def test_config_must_be_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ValueError):
            load_config(path)

    def test_build_layer(self, write_dataset):
        config_path = write_dataset(ROWS, {"radius": 5, "tile_size": 32})
        layer = build_layer(config_path)
        assert layer.display_name == "Test"
        assert len(layer.index) == 3
        assert layer.options.tile_width == 32

    def test_build_layer_requires_data(self, tmp_path):
        path = tmp_path / "layer.yaml"
        path.write_text("layer:\n  name: Nothing\n")
        with pytest.raises(ValueError, match="data.path"):
            build_layer(path)


# ── CLI ──────────────────────────────────────────────────────────────────────

class TestCli:

    def test_render_writes_png(self, write_dataset, tmp_path):
        config_path = write_dataset(ROWS, {"radius": 5, "blur": 2})
        out = tmp_path / "out" / "tile.png"
        result = CliRunner().invoke(
            cli,
            ["render", str(config_path), "--sector", "-5", "5", "-5", "5", "--size", "64", "-o", str(out)],
        )
        assert result.exit_code == 0, result.output
        assert out.read_bytes()[:8] == b"\x89PNG\r\n\x1a\n"

    def test_tiles_writes_level(self, write_dataset, tmp_path):
        config_path = write_dataset(ROWS, {"radius": 3, "blur": 1, "tile_size": 16})
        out_dir = tmp_path / "tiles"
        result = CliRunner().invoke(cli, ["tiles", str(config_path), "-l", "0", "-o", str(out_dir)])
        assert result.exit_code == 0, result.output
        assert (out_dir / "0" / "2" / "4.png").exists()

    def test_gradient_table(self, write_dataset):
        config_path = write_dataset(ROWS)
        result = CliRunner().invoke(cli, ["gradient", str(config_path)])
        assert result.exit_code == 0, result.output
        assert "lime" in result.output

    def test_info_table(self, write_dataset):
        config_path = write_dataset(ROWS)
        result = CliRunner().invoke(cli, ["info", str(config_path)])
        assert result.exit_code == 0, result.output
        assert "Points" in result.output
