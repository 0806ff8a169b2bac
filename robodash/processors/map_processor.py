"""Map decoding for compressed map images and occupancy grids."""
from __future__ import annotations

import base64
import binascii
import logging
from typing import Optional, Dict, Any

import cv2
import numpy as np

from ..models.robot import MapImage, OccupancyMap, Pose2D


class MapProcessor:
    """Turn map topic messages into MapImage / OccupancyMap models."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.log = logger or logging.getLogger(self.__class__.__name__)

    def decode_map_image(self, msg: Dict[str, Any]) -> Optional[MapImage]:
        """
        Wrap a sensor_msgs/CompressedImage message as a MapImage.

        Args:
            msg: CompressedImage message dictionary

        Returns:
            MapImage holding the base64 payload, or None if there is no data
        """
        data = msg.get("data")
        if not data:
            return None
        if isinstance(data, (bytes, bytearray)):
            data = base64.b64encode(bytes(data)).decode("ascii")
        elif isinstance(data, list):
            data = base64.b64encode(bytes(bytearray(data))).decode("ascii")
        elif not isinstance(data, str):
            self.log.warning(f"Unsupported map image data type: {type(data).__name__}")
            return None
        fmt = str(msg.get("format") or "png").split(";")[0].strip().lower() or "png"
        return MapImage(data=data, format=fmt)

    def to_array(self, image: MapImage) -> Optional[np.ndarray]:
        """
        Decode a MapImage to a BGR pixel array with OpenCV.

        Returns:
            Image array or None if decoding fails
        """
        try:
            buf = np.frombuffer(image.to_bytes(), dtype=np.uint8)
        except (binascii.Error, ValueError) as e:
            self.log.error(f"Map image base64 error: {e}")
            return None
        frame = cv2.imdecode(buf, cv2.IMREAD_COLOR)
        if frame is None:
            frame = cv2.imdecode(buf, cv2.IMREAD_UNCHANGED)
            if frame is not None and len(frame.shape) == 2:
                frame = cv2.cvtColor(frame, cv2.COLOR_GRAY2BGR)
        return frame

    def decode_occupancy_grid(self, msg: Dict[str, Any]) -> Optional[OccupancyMap]:
        """
        Decode nav_msgs/OccupancyGrid.

        Returns:
            OccupancyMap with a (height, width) int8 grid, or None if malformed
        """
        info = msg.get("info") or {}
        try:
            width = int(info.get("width", 0))
            height = int(info.get("height", 0))
            resolution = float(info.get("resolution", 0.0))
            data = msg.get("data") or []
            if width <= 0 or height <= 0 or len(data) != width * height:
                self.log.warning(f"Occupancy grid size mismatch: {width}x{height} vs {len(data)} cells")
                return None
            grid = np.asarray(data, dtype=np.int8).reshape((height, width))
            origin = Pose2D.from_pose_msg(info.get("origin") or {})
            return OccupancyMap(grid=grid, resolution=resolution, origin=origin)
        except (TypeError, ValueError) as e:
            self.log.error(f"Occupancy grid decode error: {e}")
            return None
