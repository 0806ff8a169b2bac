"""Tests for PointCloudProcessor."""
import math
import struct

import numpy as np
import pytest

from robodash.processors.pointcloud_processor import PointCloudProcessor

POINTS = [(1.0, 2.0, 3.0), (-1.5, 0.25, 4.0), (0.0, 0.0, -2.0)]


class TestPointCloudProcessor:

    @pytest.fixture
    def processor(self):
        return PointCloudProcessor()

    @pytest.mark.parametrize("encoding", ["bytes", "base64", "list"])
    def test_decodes_every_data_encoding(self, processor, cloud_factory, encoding):
        points = processor.decode_message(cloud_factory(POINTS, encoding=encoding))
        assert points.dtype == np.float32
        assert points.shape == (3, 3)
        np.testing.assert_allclose(points, np.array(POINTS, dtype=np.float32))

    def test_drops_nan_points(self, processor, cloud_factory):
        msg = cloud_factory([(1.0, 1.0, 1.0), (math.nan, 0.0, 0.0), (2.0, 2.0, 2.0)])
        points = processor.decode_message(msg)
        assert points.shape == (2, 3)
        assert not np.isnan(points).any()

    def test_count_bounded_by_width_times_height(self, processor, cloud_factory):
        msg = cloud_factory(POINTS, width=2)
        assert processor.decode_message(msg).shape == (2, 3)

    def test_count_bounded_by_buffer(self, processor, cloud_factory):
        msg = cloud_factory(POINTS, width=10)
        assert processor.decode_message(msg).shape == (3, 3)

    def test_custom_offsets(self, processor):
        raw = struct.pack("<ffff", 9.0, 1.0, 2.0, 3.0)  # x, y, z start at offset 4
        msg = {
            "width": 1, "height": 1, "point_step": 16,
            "fields": [{"name": "x", "offset": 4}, {"name": "y", "offset": 8}, {"name": "z", "offset": 12}],
            "data": raw,
        }
        np.testing.assert_allclose(processor.decode_message(msg), [[1.0, 2.0, 3.0]])

    def test_big_endian(self, processor):
        raw = struct.pack(">fff", 1.0, 2.0, 3.0)
        msg = {
            "width": 1, "height": 1, "point_step": 12, "is_bigendian": True,
            "fields": [{"name": "x", "offset": 0}, {"name": "y", "offset": 4}, {"name": "z", "offset": 8}],
            "data": raw,
        }
        np.testing.assert_allclose(processor.decode_message(msg), [[1.0, 2.0, 3.0]])

    def test_empty_cloud(self, processor, cloud_factory):
        points = processor.decode_message(cloud_factory([]))
        assert points.shape == (0, 3)

    def test_missing_fields_or_data(self, processor):
        assert processor.decode_message({"data": b"test"}) is None
        assert processor.decode_message({"fields": []}) is None

    def test_missing_coordinate_field(self, processor, cloud_factory):
        msg = cloud_factory(POINTS)
        msg["fields"] = msg["fields"][:2]
        assert processor.decode_message(msg) is None

    def test_invalid_point_step(self, processor, cloud_factory):
        msg = cloud_factory(POINTS)
        msg["point_step"] = 0
        assert processor.decode_message(msg) is None

    def test_unsupported_data_type(self, processor, cloud_factory):
        msg = cloud_factory(POINTS)
        msg["data"] = 12345
        assert processor.decode_message(msg) is None

    def test_invalid_base64(self, processor, cloud_factory):
        msg = cloud_factory(POINTS)
        msg["data"] = "not*base64"
        assert processor.decode_message(msg) is None

    def test_process_returns_timestamp(self, processor, cloud_factory):
        points, ts = processor.process(cloud_factory(POINTS))
        assert len(points) == 3
        assert ts > 0
