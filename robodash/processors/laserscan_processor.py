"""LaserScan to Cartesian point conversion."""
from __future__ import annotations

import logging
import time
from typing import Optional, Tuple, Dict, Any

import numpy as np


class LaserScanProcessor:
    """Convert sensor_msgs/LaserScan ranges into (N, 3) points in the scan frame."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.log = logger or logging.getLogger(self.__class__.__name__)

    def decode_message(self, msg: Dict[str, Any]) -> Optional[np.ndarray]:
        """
        Decode a LaserScan message.

        Ranges that are null, NaN, infinite or zero are skipped, as are
        ranges outside [range_min, range_max] when the message provides them.

        Args:
            msg: LaserScan message dictionary

        Returns:
            Array of points (N, 3) with z = 0, or None if the message is malformed
        """
        try:
            ranges = msg.get("ranges")
            if ranges is None:
                return None
            angle_min = float(msg.get("angle_min", 0.0))
            angle_increment = float(msg.get("angle_increment", 0.0))

            # rosbridge serializes inf/nan as null
            r = np.array([np.nan if v is None else v for v in ranges], dtype=np.float64)
            angles = angle_min + np.arange(r.size) * angle_increment

            valid = np.isfinite(r) & (r != 0.0)
            range_min = msg.get("range_min")
            range_max = msg.get("range_max")
            if range_min is not None and float(range_min) > 0:
                valid &= r >= float(range_min)
            if range_max is not None and float(range_max) > 0:
                valid &= r <= float(range_max)

            r = r[valid]
            angles = angles[valid]
            points = np.zeros((r.size, 3), dtype=np.float32)
            points[:, 0] = r * np.cos(angles)
            points[:, 1] = r * np.sin(angles)
            return points
        except (TypeError, ValueError) as e:
            self.log.error(f"Laser scan decode error: {e}")
            return None

    def process(self, msg: Dict[str, Any]) -> Optional[Tuple[np.ndarray, float]]:
        points = self.decode_message(msg)
        if points is None:
            return None
        return points, time.time()
