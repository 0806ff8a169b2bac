"""Tests for LaserScanProcessor."""
import math

import numpy as np
import pytest

from robodash.processors.laserscan_processor import LaserScanProcessor


class TestLaserScanProcessor:

    @pytest.fixture
    def processor(self):
        return LaserScanProcessor()

    def test_polar_to_cartesian(self, processor):
        msg = {"angle_min": 0.0, "angle_increment": math.pi / 2, "ranges": [1.0, 2.0, 3.0]}
        points = processor.decode_message(msg)
        np.testing.assert_allclose(points, [[1.0, 0.0, 0.0], [0.0, 2.0, 0.0], [-3.0, 0.0, 0.0]], atol=1e-6)

    def test_skips_invalid_ranges(self, processor):
        msg = {
            "angle_min": 0.0,
            "angle_increment": 0.1,
            "ranges": [1.0, float("inf"), 0.0, None, float("nan"), 2.0],
        }
        points = processor.decode_message(msg)
        assert points.shape == (2, 3)
        # the second valid point keeps its own angle (index 5)
        assert points[1, 0] == pytest.approx(2.0 * math.cos(0.5), rel=1e-5)

    def test_respects_range_limits(self, processor):
        msg = {"angle_min": 0.0, "angle_increment": 0.1, "range_min": 0.5, "range_max": 5.0,
               "ranges": [0.2, 1.0, 6.0]}
        assert processor.decode_message(msg).shape == (1, 3)

    def test_missing_ranges(self, processor):
        assert processor.decode_message({"angle_min": 0.0}) is None

    def test_garbage_ranges(self, processor):
        assert processor.decode_message({"ranges": ["a", "b"]}) is None
