"""Pytest configuration and shared fixtures."""
import base64
import math
import struct

import pytest
from typing import Dict, Any, List, Tuple

from robodash.clients.mock_client import MockRobotClient


@pytest.fixture
def mock_client():
    """Create a connected mock client."""
    client = MockRobotClient("ws://localhost:9090")
    yield client
    client.terminate()


@pytest.fixture
def disconnected_client():
    """Create a mock client that starts disconnected."""
    client = MockRobotClient("ws://localhost:9090", config={"start_connected": False})
    yield client
    client.terminate()


@pytest.fixture
def sample_config() -> Dict[str, Any]:
    """Sample configuration dictionary."""
    return {
        "connect_max_retries": 3,
        "connect_backoff_seconds": 0.01,
        "connect_backoff_max": 0.05,
        "service_call_timeout": 1.0,
        "service_call_retries": 1,
        "publish_retries": 1,
        "logger_level": 10,
    }


def make_cloud(points: List[Tuple[float, float, float]], point_step: int = 16,
               encoding: str = "bytes", width: int = None) -> Dict[str, Any]:
    """Build a PointCloud2 message with x/y/z at offsets 0/4/8."""
    raw = b""
    for x, y, z in points:
        raw += struct.pack("<fff", x, y, z) + b"\x00" * (point_step - 12)
    if encoding == "base64":
        data = base64.b64encode(raw).decode("ascii")
    elif encoding == "list":
        data = list(raw)
    else:
        data = raw
    return {
        "height": 1,
        "width": len(points) if width is None else width,
        "fields": [
            {"name": "x", "offset": 0, "datatype": 7, "count": 1},
            {"name": "y", "offset": 4, "datatype": 7, "count": 1},
            {"name": "z", "offset": 8, "datatype": 7, "count": 1},
        ],
        "is_bigendian": False,
        "point_step": point_step,
        "row_step": point_step * len(points),
        "data": data,
    }


@pytest.fixture
def cloud_factory():
    return make_cloud


@pytest.fixture
def yaw_pose():
    """geometry_msgs/Pose factory for a planar pose."""
    def _make(x: float, y: float, yaw: float) -> Dict[str, Any]:
        return {
            "position": {"x": x, "y": y, "z": 0.0},
            "orientation": {"x": 0.0, "y": 0.0, "z": math.sin(yaw / 2), "w": math.cos(yaw / 2)},
        }
    return _make


@pytest.fixture
def quiet_client():
    """Connected mock client without the default state subscriptions."""
    client = MockRobotClient("ws://localhost:9090", config={"auto_subscribe": False})
    yield client
    client.terminate()


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_clock():
    return FakeClock()
