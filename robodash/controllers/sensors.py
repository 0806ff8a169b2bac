"""Sensor dashboard: battery, lidar scan and point cloud feeds."""
from typing import Any, Dict, Optional

import numpy as np

from .base import ControllerBase


def battery_level(percent: float) -> str:
    """Bucket a battery percentage: full, half, quarter or empty."""
    if percent > 75:
        return "full"
    if percent > 50:
        return "half"
    if percent > 20:
        return "quarter"
    return "empty"


def temperature_status(celsius: float) -> str:
    if celsius > 80:
        return "Critical"
    if celsius > 70:
        return "High"
    if celsius > 50:
        return "Normal"
    return "Optimal"


class SensorMonitor(ControllerBase):
    """
    Sensors screen.

    Battery comes from the client's state topics. Scan and point cloud are
    high-rate, so they are only subscribed while the monitor is started;
    decoded points land in the client's state either way.
    """

    def start(self) -> None:
        self._subscribe("scan", self.client.update_scan)
        self._subscribe("point_cloud", self.client.update_point_cloud)

    @property
    def battery(self) -> Optional[float]:
        return self.client.get_battery()

    @property
    def battery_level(self) -> Optional[str]:
        battery = self.battery
        return None if battery is None else battery_level(battery)

    @property
    def scan_points(self) -> Optional[np.ndarray]:
        return self.client.get_latest_scan()

    @property
    def cloud_points(self) -> Optional[np.ndarray]:
        return self.client.get_latest_point_cloud()

    def summary(self) -> Dict[str, Any]:
        state = self.client.get_status()
        return {
            "connected": state.connected,
            "battery": state.battery,
            "battery_level": None if state.battery is None else battery_level(state.battery),
            "scan_points": state.scan_point_count,
            "cloud_points": state.point_count,
        }
