"""Tests for MapProcessor."""
import base64

import cv2
import numpy as np
import pytest

from robodash.models.robot import MapImage
from robodash.processors.map_processor import MapProcessor


class TestMapProcessor:

    @pytest.fixture
    def processor(self):
        return MapProcessor()

    @pytest.fixture
    def png_b64(self):
        img = np.zeros((4, 6), dtype=np.uint8)
        img[1, 2] = 255
        ok, buf = cv2.imencode(".png", img)
        assert ok
        return base64.b64encode(buf.tobytes()).decode("ascii")

    def test_decode_map_image(self, processor, png_b64):
        image = processor.decode_map_image({"format": "png", "data": png_b64})
        assert isinstance(image, MapImage)
        assert image.data == png_b64
        assert image.format == "png"

    def test_decode_map_image_from_bytes(self, processor):
        image = processor.decode_map_image({"format": "png; compressed", "data": b"\x01\x02"})
        assert image.to_bytes() == b"\x01\x02"
        assert image.format == "png"

    def test_decode_map_image_empty(self, processor):
        assert processor.decode_map_image({"data": ""}) is None

    def test_to_array(self, processor, png_b64):
        frame = processor.to_array(MapImage(data=png_b64))
        assert frame.shape == (4, 6, 3)
        assert frame[1, 2, 0] == 255

    def test_to_array_garbage(self, processor):
        assert processor.to_array(MapImage(data=base64.b64encode(b"nope").decode())) is None

    def test_decode_occupancy_grid(self, processor):
        msg = {
            "info": {
                "width": 3, "height": 2, "resolution": 0.05,
                "origin": {"position": {"x": -1.0, "y": -2.0, "z": 0.0},
                           "orientation": {"x": 0.0, "y": 0.0, "z": 0.0, "w": 1.0}},
            },
            "data": [0, 100, -1, 0, 0, 50],
        }
        grid = processor.decode_occupancy_grid(msg)
        assert grid.grid.shape == (2, 3)
        assert grid.grid.dtype == np.int8
        assert grid.grid[0, 2] == -1
        assert grid.origin.x == -1.0
        assert grid.resolution == 0.05

    def test_decode_occupancy_grid_size_mismatch(self, processor):
        msg = {"info": {"width": 3, "height": 2, "resolution": 0.05}, "data": [0, 0]}
        assert processor.decode_occupancy_grid(msg) is None
