"""
test_gradient.py — Tests for gradient construction and colour lookup.
"""

import numpy as np
import pytest

from heatlayer.core.geometry import IntensityPoint
from heatlayer.gradient import DEFAULT_SCALE, Gradient, IntervalType, build_gradient


def _points(*intensities):
    return [IntensityPoint(0.0, float(i), value) for i, value in enumerate(intensities)]


# ── Continuous ───────────────────────────────────────────────────────────────

class TestContinuous:

    def test_even_positions_in_scale_order(self):
        gradient = build_gradient(_points(3, 1, 2), IntervalType.CONTINUOUS, DEFAULT_SCALE)
        assert gradient.positions() == [0.0, 0.2, 0.4, 0.6, 0.8]
        assert gradient.colors() == list(DEFAULT_SCALE)

    def test_ignores_data(self):
        a = build_gradient([], "continuous", ["red", "blue", "green"])
        b = build_gradient(_points(100, 0, 5), "continuous", ["red", "blue", "green"])
        assert a == b
        assert len(a) == 3

    def test_empty_scale_rejected(self):
        with pytest.raises(ValueError):
            build_gradient([], "continuous", [])

    def test_unknown_colour_rejected(self):
        with pytest.raises(ValueError):
            build_gradient([], "continuous", ["blue", "not-a-colour"])


# ── Quantiles ────────────────────────────────────────────────────────────────

class TestQuantiles:

    def test_fallback_when_too_few_points(self):
        data = _points(1, 2, 3)
        quantile = build_gradient(data, IntervalType.QUANTILES, DEFAULT_SCALE)
        continuous = build_gradient(data, IntervalType.CONTINUOUS, DEFAULT_SCALE)
        assert quantile == continuous

    def test_positions_follow_ranked_intensities(self):
        data = _points(10, 0, 8, 2, 6, 4, 9, 1, 7, 3)
        gradient = build_gradient(data, "quantile", DEFAULT_SCALE)
        # sorted: 0..10 without 5; ranks 0, 2, 4, 6, 8 of 10 points
        assert gradient.positions() == [0.0, 0.2, 0.4, 0.7, 0.9]
        assert gradient.colors() == list(DEFAULT_SCALE)

    def test_positions_non_decreasing(self):
        rng = np.random.default_rng(5)
        data = _points(*rng.exponential(3.0, size=200))
        gradient = build_gradient(data, IntervalType.QUANTILES, DEFAULT_SCALE)
        positions = gradient.positions()
        assert positions == sorted(positions)
        assert all(0.0 <= p <= 1.0 for p in positions)

    def test_input_not_reordered(self):
        data = _points(5, 1, 4, 2, 3)
        before = list(data)
        build_gradient(data, IntervalType.QUANTILES, DEFAULT_SCALE)
        assert data == before

    def test_zero_max_collapses_to_single_stop(self):
        data = _points(0, 0, 0, 0, 0, 0)
        gradient = build_gradient(data, IntervalType.QUANTILES, DEFAULT_SCALE)
        assert gradient.positions() == [0.0]
        assert gradient.colors() == ["red"]

    def test_duplicate_positions_keep_later_colour(self):
        data = _points(1, 1, 1, 1, 2)
        gradient = build_gradient(data, IntervalType.QUANTILES, ["blue", "red"])
        # ranks 0 and 2 both hit intensity 1 -> position 0.5
        assert gradient.stops == ((0.5, "red"),)


# ── Lookup ───────────────────────────────────────────────────────────────────

class TestLookup:

    def test_interpolates_between_stops(self):
        gradient = Gradient(((0.0, "black"), (1.0, "white")))
        rgba = gradient.lookup(np.array([0.0, 0.5, 1.0]))
        assert rgba.shape == (3, 4)
        assert np.allclose(rgba[:, 0], [0.0, 0.5, 1.0])
        assert np.allclose(rgba[:, 3], 1.0)

    def test_unsorted_stops(self):
        gradient = Gradient(((1.0, "white"), (0.0, "black")))
        assert np.allclose(gradient.lookup(0.25)[:3], 0.25)

    def test_clamps_beyond_last_stop(self):
        gradient = build_gradient([], "continuous", DEFAULT_SCALE)
        top = gradient.lookup(1.0)
        assert np.allclose(top, [1.0, 0.0, 0.0, 1.0])  # red

    def test_interval_type_parse(self):
        assert IntervalType.parse("quantile") is IntervalType.QUANTILES
        assert IntervalType.parse("Continuous") is IntervalType.CONTINUOUS
        with pytest.raises(ValueError):
            IntervalType.parse("logarithmic")
