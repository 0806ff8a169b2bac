"""Decoders for ROS sensor and map messages."""
from .laserscan_processor import LaserScanProcessor
from .map_processor import MapProcessor
from .pointcloud_processor import PointCloudProcessor

__all__ = [
    "PointCloudProcessor",
    "LaserScanProcessor",
    "MapProcessor",
]
