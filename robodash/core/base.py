"""Base class for robot dashboard clients."""
from __future__ import annotations

import copy
import threading
import time
from abc import ABC, abstractmethod
from typing import Optional, Dict, Any, Callable, List, Tuple

import numpy as np

from ..models.robot import MapImage, OccupancyMap, Pose2D, RobotState
from ..models.state import ConnectionInfo, ConnectionState
from ..processors.laserscan_processor import LaserScanProcessor
from ..processors.map_processor import MapProcessor
from ..processors.pointcloud_processor import PointCloudProcessor
from ..utils.logger import resolve_level, setup_logger
from .topic_service_manager import MessageCallback, Subscription

StateListener = Callable[[ConnectionState, ConnectionState], None]

# topics every client keeps subscribed; map_image, scan and point_cloud are
# subscribed on demand by the screens that show them
STATE_TOPICS = ("joint_states", "robot_pose", "amcl_pose", "battery", "map", "path", "obstacles")


class RobotClientBase(ABC):
    """Base class for managing the lifecycle of a rosbridge client."""

    def __init__(self, connection_str: str, config: Optional[Dict[str, Any]] = None):
        """
        Initialize the base client.

        Args:
            connection_str: Connection string (e.g., WebSocket URL)
            config: Optional configuration dictionary
        """
        self.connection_str = connection_str
        self._config = dict(config or {})
        self._lock = threading.RLock()
        self._state = RobotState()
        self._stop = threading.Event()
        self._connection_state = ConnectionState.DISCONNECTED
        self._last_error: Optional[str] = None
        self._state_listeners: List[StateListener] = []
        self._connect_lock = threading.Lock()
        self._connecting = False
        self.log = setup_logger(self._logger_name(), resolve_level(self._config.get("logger_level")))

        self._pointcloud_processor = PointCloudProcessor(self.log)
        self._scan_processor = LaserScanProcessor(self.log)
        self._map_processor = MapProcessor(self.log)
        self._latest_point_cloud: Optional[np.ndarray] = None
        self._latest_scan: Optional[np.ndarray] = None

    def _logger_name(self) -> str:
        return f"{self.__class__.__name__}[{self.connection_str}]"

    def _state_handlers(self) -> Dict[str, MessageCallback]:
        """Topic key -> handler for the STATE_TOPICS subscriptions."""
        handlers = {
            "joint_states": self.update_joint_states,
            "robot_pose": self.update_pose,
            "amcl_pose": self.update_pose,
            "battery": self.update_battery,
            "map": self.update_map,
            "path": self.update_path,
            "obstacles": self.update_obstacles,
        }
        return {key: handlers[key] for key in STATE_TOPICS}

    def __enter__(self) -> "RobotClientBase":
        self.connect_async()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.terminate()

    @property
    def config(self) -> Dict[str, Any]:
        return dict(self._config)

    # ---------- connection lifecycle ----------

    def is_connected(self) -> bool:
        """
        Check if the client is connected.

        Returns:
            True if connected, False otherwise
        """
        with self._lock:
            return self._connection_state == ConnectionState.CONNECTED

    @property
    def connection_state(self) -> ConnectionState:
        with self._lock:
            return self._connection_state

    @property
    def last_error(self) -> Optional[str]:
        with self._lock:
            return self._last_error

    def connection_info(self) -> ConnectionInfo:
        with self._lock:
            return ConnectionInfo(
                url=self.connection_str,
                state=self._connection_state,
                last_error=self._last_error,
            )

    def add_state_listener(self, listener: StateListener) -> None:
        """Register listener(old_state, new_state) for connection state changes."""
        with self._lock:
            self._state_listeners.append(listener)

    def remove_state_listener(self, listener: StateListener) -> None:
        with self._lock:
            if listener in self._state_listeners:
                self._state_listeners.remove(listener)

    def _set_connection_state(self, new_state: ConnectionState, error: Optional[str] = None) -> None:
        """Transition the connection state and notify listeners outside the lock."""
        with self._lock:
            old_state = self._connection_state
            self._connection_state = new_state
            self._state.connected = new_state == ConnectionState.CONNECTED
            if error is not None:
                self._last_error = error
            elif new_state == ConnectionState.CONNECTED:
                self._last_error = None
            listeners = list(self._state_listeners)
        if old_state == new_state:
            return
        self.log.info(f"Connection state {old_state.value} -> {new_state.value}")
        for listener in listeners:
            try:
                listener(old_state, new_state)
            except Exception as e:
                self.log.exception(f"Connection state listener failed: {e}")

    @abstractmethod
    def connect_async(self) -> None:
        """Asynchronously connect to ROS. Must be implemented by subclasses."""

    @abstractmethod
    def terminate(self) -> None:
        """Terminate the connection. Must be implemented by subclasses."""

    @abstractmethod
    def subscribe(self, topic_name: str, topic_type: str, callback: MessageCallback) -> Subscription:
        """Register a callback for a topic."""

    @abstractmethod
    def publish(self, topic_name: str, topic_type: str, message: Dict[str, Any],
                retries: Optional[int] = None) -> None:
        """Publish a message to a topic."""

    @abstractmethod
    def service_call(self, service_name: str, service_type: str, payload: Dict[str, Any],
                     timeout: Optional[float] = None, retries: Optional[int] = None) -> Dict[str, Any]:
        """Call a service and return its response."""

    # ---------- state accessors ----------

    def get_status(self) -> RobotState:
        """
        Get a snapshot of the current robot state.

        Returns:
            Deep copy of the robot state
        """
        with self._lock:
            return copy.deepcopy(self._state)

    def get_pose(self) -> Optional[Pose2D]:
        with self._lock:
            return copy.copy(self._state.pose)

    def get_joint_angles(self) -> Dict[str, float]:
        with self._lock:
            return dict(self._state.joint_angles)

    def get_latest_point_cloud(self) -> Optional[np.ndarray]:
        with self._lock:
            return self._latest_point_cloud

    def get_latest_scan(self) -> Optional[np.ndarray]:
        with self._lock:
            return self._latest_scan

    def get_battery(self) -> Optional[float]:
        with self._lock:
            return self._state.battery

    def get_path(self) -> List[Pose2D]:
        with self._lock:
            return list(self._state.path)

    def get_obstacles(self) -> List[Tuple[float, float]]:
        with self._lock:
            return list(self._state.obstacles)

    def get_map_image(self) -> Optional[MapImage]:
        with self._lock:
            return self._state.map_image

    def get_occupancy_map(self) -> Optional[OccupancyMap]:
        with self._lock:
            return self._state.occupancy_map

    def clear_map(self) -> None:
        """Forget the map image and occupancy grid, e.g. after a map reset."""
        with self._lock:
            self._state.map_image = None
            self._state.occupancy_map = None
            self._touch()

    def _touch(self) -> None:
        self._state.last_updated = time.time()

    # ---------- topic handlers ----------

    def update_joint_states(self, msg: Dict[str, Any]) -> None:
        """Handle sensor_msgs/JointState updates."""
        try:
            names = msg.get("name") or []
            positions = msg.get("position") or []
            with self._lock:
                for name, pos in zip(names, positions):
                    if pos is None:
                        continue
                    self._state.joint_angles[str(name)] = float(pos)
                self._touch()
        except Exception as e:
            self.log.error(f"Error handling joint state update: {e}")

    def update_pose(self, msg: Dict[str, Any]) -> None:
        """
        Handle pose updates.

        Accepts geometry_msgs/Pose, PoseStamped, PoseWithCovarianceStamped and
        nav_msgs/Odometry shaped dictionaries.
        """
        try:
            pose = msg
            # unwrap pose / pose.pose until we reach position+orientation
            while isinstance(pose, dict) and "position" not in pose and "pose" in pose:
                pose = pose["pose"]
            if not isinstance(pose, dict) or "position" not in pose:
                self.log.debug("Pose message without position; ignoring")
                return
            parsed = Pose2D.from_pose_msg(pose)
            with self._lock:
                self._state.pose = parsed
                self._touch()
            self.log.debug(f"Pose updated: x={parsed.x:.3f}, y={parsed.y:.3f}, theta={parsed.theta:.3f}")
        except Exception as e:
            self.log.exception(f"Error handling pose update: {e}")

    def update_battery(self, msg: Dict[str, Any]) -> None:
        """Handle sensor_msgs/BatteryState updates."""
        try:
            p = msg.get("percentage", msg.get("percent"))
            if p is None:
                return
            try:
                p_val = float(p)
            except (TypeError, ValueError):
                self.log.debug("Unable to parse battery percentage; leaving previous value")
                return
            with self._lock:
                self._state.battery = (p_val * 100.0) if p_val <= 1.0 else p_val
                self._touch()
        except Exception as e:
            self.log.error(f"Error handling battery update: {e}")

    def update_map_image(self, msg: Dict[str, Any]) -> None:
        """Handle compressed map image updates."""
        try:
            image = self._map_processor.decode_map_image(msg)
            if image is None:
                return
            with self._lock:
                self._state.map_image = image
                self._touch()
        except Exception as e:
            self.log.error(f"Error handling map image update: {e}")

    def update_map(self, msg: Dict[str, Any]) -> None:
        """Handle nav_msgs/OccupancyGrid updates."""
        try:
            grid = self._map_processor.decode_occupancy_grid(msg)
            if grid is None:
                return
            with self._lock:
                self._state.occupancy_map = grid
                self._touch()
        except Exception as e:
            self.log.error(f"Error handling map update: {e}")

    def update_scan(self, msg: Dict[str, Any]) -> None:
        """Handle sensor_msgs/LaserScan updates."""
        try:
            points = self._scan_processor.decode_message(msg)
            if points is None:
                return
            with self._lock:
                self._latest_scan = points
                self._state.scan_point_count = int(points.shape[0])
                self._touch()
        except Exception as e:
            self.log.error(f"Error handling scan update: {e}")

    def update_point_cloud(self, msg: Dict[str, Any]) -> None:
        """Handle sensor_msgs/PointCloud2 updates."""
        try:
            points = self._pointcloud_processor.decode_message(msg)
            if points is None:
                return
            with self._lock:
                self._latest_point_cloud = points
                self._state.point_count = int(points.shape[0])
                self._touch()
        except Exception as e:
            self.log.error(f"Error handling point cloud update: {e}")

    def update_path(self, msg: Dict[str, Any]) -> None:
        """Handle nav_msgs/Path updates."""
        try:
            path = [Pose2D.from_pose_msg(p.get("pose", p)) for p in (msg.get("poses") or [])]
            with self._lock:
                self._state.path = path
                self._touch()
        except Exception as e:
            self.log.error(f"Error handling path update: {e}")

    def update_obstacles(self, msg: Dict[str, Any]) -> None:
        """Handle geometry_msgs/PoseArray obstacle updates."""
        try:
            obstacles = []
            for p in msg.get("poses") or []:
                pos = p.get("position", {}) or {}
                obstacles.append((float(pos.get("x", 0.0)), float(pos.get("y", 0.0))))
            with self._lock:
                self._state.obstacles = obstacles
                self._touch()
        except Exception as e:
            self.log.error(f"Error handling obstacle update: {e}")
