"""SLAM mapping session control."""
from typing import Any, Dict, Optional, Tuple

from ..core.base import RobotClientBase
from ..core.topic_service_manager import Subscription
from ..models.robot import MapImage, Pose2D
from .base import ControllerBase

# slam_toolbox/SaveMap result codes
SAVE_MAP_RESULTS = {0: "success", 1: "no map received", 255: "undefined failure"}


class SlamController(ControllerBase):
    """
    Drives the robot-side SLAM node and tracks the map being built.

    Start and stop are mutually exclusive: starting is only possible while
    idle and stopping only while mapping. The map image subscription is live
    only while mapping is active. Pose and map are read from the client's
    state.
    """

    def __init__(self, client: RobotClientBase, config: Optional[Dict[str, Any]] = None):
        super().__init__(client, config)
        self.mapping_active = False
        self.busy = False
        self._map_sub: Optional[Subscription] = None

    @property
    def can_start(self) -> bool:
        with self._lock:
            return self.client.is_connected() and not self.mapping_active and not self.busy

    @property
    def can_stop(self) -> bool:
        with self._lock:
            return self.client.is_connected() and self.mapping_active and not self.busy

    @property
    def pose(self) -> Optional[Pose2D]:
        return self.client.get_pose()

    @property
    def map_image(self) -> Optional[MapImage]:
        return self.client.get_map_image()

    def start(self) -> None:
        if self.mapping_active:
            self._watch_map()

    def stop(self) -> None:
        super().stop()
        with self._lock:
            self._map_sub = None

    def display_position(self, scale: float = 100.0, offset: float = 50.0) -> Optional[Tuple[float, float, float]]:
        """Pose scaled into map-view pixels as (x, y, theta)."""
        pose = self.pose
        if pose is None:
            return None
        return pose.x * scale + offset, pose.y * scale + offset, pose.theta

    def _watch_map(self) -> None:
        with self._lock:
            if self._map_sub is None or not self._map_sub.active:
                self._map_sub = self._subscribe("map_image", self.client.update_map_image)

    def _unwatch_map(self) -> None:
        with self._lock:
            sub, self._map_sub = self._map_sub, None
            if sub is not None and sub in self._subscriptions:
                self._subscriptions.remove(sub)
        if sub is not None:
            sub.unsubscribe()

    def _call(self, key: str) -> Dict[str, Any]:
        with self._lock:
            self.busy = True
        try:
            return self._trigger(key)
        finally:
            with self._lock:
                self.busy = False

    def start_mapping(self) -> Dict[str, Any]:
        """
        Start SLAM on the robot.

        Raises:
            RuntimeError: If already mapping, not connected, or the service fails
        """
        with self._lock:
            if self.mapping_active:
                raise RuntimeError("SLAM mapping already active")
        resp = self._call("start_slam")
        with self._lock:
            self.mapping_active = True
        self._watch_map()
        return resp

    def stop_mapping(self) -> Dict[str, Any]:
        """
        Stop SLAM on the robot.

        Raises:
            RuntimeError: If not mapping, not connected, or the service fails
        """
        with self._lock:
            if not self.mapping_active:
                raise RuntimeError("SLAM mapping is not active")
        resp = self._call("stop_slam")
        with self._lock:
            self.mapping_active = False
        self._unwatch_map()
        return resp

    def save_map(self) -> Dict[str, Any]:
        return self._call("save_map")

    def reset_map(self) -> Dict[str, Any]:
        """Clear the robot's map and the client's copy."""
        resp = self._call("reset_map")
        self.client.clear_map()
        return resp

    def save_map_slam_toolbox(self, name: str) -> int:
        """
        Save the map through slam_toolbox.

        Returns:
            slam_toolbox result code (0 on success)

        Raises:
            RuntimeError: If not connected or slam_toolbox reports a failure
        """
        if not self.client.is_connected():
            raise RuntimeError("ROS is not connected")
        svc = self.service("slam_toolbox_save_map")
        resp = self.client.service_call(svc.name, svc.type, {"name": {"data": name}})
        result = int(resp.get("result", 0))
        if result != 0:
            raise RuntimeError(f"slam_toolbox save_map failed: {SAVE_MAP_RESULTS.get(result, result)}")
        self.log.info(f"Map saved as '{name}'")
        return result
