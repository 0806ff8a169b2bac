"""Point cloud processing utilities for ROS PointCloud2 messages."""
from __future__ import annotations

import base64
import binascii
import logging
import time
from typing import Optional, Tuple, Dict, Any

import numpy as np


class PointCloudProcessor:
    """Process ROS PointCloud2 messages into numpy arrays."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Initialize point cloud processor.

        Args:
            logger: Optional logger instance
        """
        self.log = logger or logging.getLogger(self.__class__.__name__)

    @staticmethod
    def _raw_bytes(raw: Any) -> Optional[bytes]:
        """rosbridge ships data as base64, a list of ints, or raw bytes."""
        if isinstance(raw, str):
            return base64.b64decode(raw)
        if isinstance(raw, (bytes, bytearray, memoryview)):
            return bytes(raw)
        if isinstance(raw, (list, tuple)):
            return bytes(bytearray(int(b) & 0xFF for b in raw))
        if isinstance(raw, np.ndarray):
            return raw.astype(np.uint8).tobytes()
        return None

    def decode_message(self, msg: Dict[str, Any]) -> Optional[np.ndarray]:
        """
        Decode ROS PointCloud2 message to numpy array.

        Args:
            msg: PointCloud2 message dictionary

        Returns:
            Array of points (N, 3), NaN points removed, or None if decoding fails
        """
        try:
            if "data" not in msg or "fields" not in msg:
                return None

            raw_data = self._raw_bytes(msg["data"])
            if raw_data is None:
                self.log.warning(f"Unsupported point cloud data format: {type(msg['data']).__name__}")
                return None

            point_step = int(msg.get("point_step", 0))
            if point_step <= 0:
                return None

            offsets = {f.get("name"): int(f.get("offset", 0)) for f in msg["fields"]}
            if not all(axis in offsets for axis in ("x", "y", "z")):
                self.log.warning("Missing coordinate fields in PointCloud2")
                return None
            if max(offsets["x"], offsets["y"], offsets["z"]) + 4 > point_step:
                self.log.warning("Coordinate field offsets exceed point_step")
                return None

            available = len(raw_data) // point_step
            width = msg.get("width")
            height = msg.get("height", 1)
            if width is not None:
                count = min(available, int(width) * int(height or 1))
            else:
                count = available
            if count <= 0:
                return np.empty((0, 3), dtype=np.float32)

            endian = ">" if msg.get("is_bigendian") else "<"
            dtype = np.dtype({
                "names": ["x", "y", "z"],
                "formats": [endian + "f4"] * 3,
                "offsets": [offsets["x"], offsets["y"], offsets["z"]],
                "itemsize": point_step,
            })
            structured = np.frombuffer(raw_data, dtype=dtype, count=count)
            points = np.column_stack((structured["x"], structured["y"], structured["z"])).astype(np.float32)
            return points[~np.isnan(points).any(axis=1)]
        except (binascii.Error, ValueError, TypeError) as e:
            self.log.error(f"Point cloud decode error: {e}")
            return None

    def process(self, msg: Dict[str, Any]) -> Optional[Tuple[np.ndarray, float]]:
        """
        Process PointCloud2 message and return points with timestamp.

        Args:
            msg: PointCloud2 message dictionary

        Returns:
            Tuple of (points array, timestamp) or None
        """
        points = self.decode_message(msg)
        if points is None:
            return None
        return points, time.time()
