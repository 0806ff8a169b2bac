"""Robot state and topic data models."""
import base64
import time
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List, Tuple

import numpy as np

from ..utils.geometry import quaternion_to_yaw, yaw_to_quaternion


@dataclass
class Pose2D:
    """Planar robot pose: position in meters, heading in radians."""
    x: float = 0.0
    y: float = 0.0
    theta: float = 0.0

    @classmethod
    def from_pose_msg(cls, pose: Dict[str, Any]) -> 'Pose2D':
        """Build from a geometry_msgs/Pose dictionary."""
        pos = pose.get("position", {}) or {}
        q = pose.get("orientation", {}) or {}
        return cls(
            x=float(pos.get("x", 0.0)),
            y=float(pos.get("y", 0.0)),
            theta=quaternion_to_yaw(
                float(q.get("x", 0.0)),
                float(q.get("y", 0.0)),
                float(q.get("z", 0.0)),
                float(q.get("w", 1.0)),
            ),
        )

    def to_pose_msg(self) -> Dict[str, Any]:
        """Convert to a geometry_msgs/Pose dictionary."""
        qx, qy, qz, qw = yaw_to_quaternion(self.theta)
        return {
            "position": {"x": self.x, "y": self.y, "z": 0.0},
            "orientation": {"x": qx, "y": qy, "z": qz, "w": qw},
        }


@dataclass
class JointAngles:
    """Joint positions in radians, clamped to per-joint limits."""
    values: Dict[str, float] = field(default_factory=dict)
    limits: Dict[str, Tuple[float, float]] = field(default_factory=dict)

    def clamp(self, name: str, value: float) -> float:
        lo, hi = self.limits.get(name, (float("-inf"), float("inf")))
        return max(lo, min(hi, float(value)))

    def set(self, name: str, value: float) -> float:
        """
        Set a joint angle, clamping it to the joint's limits.

        Args:
            name: Joint name
            value: Requested angle in radians

        Returns:
            The value actually stored
        """
        clamped = self.clamp(name, value)
        self.values[name] = clamped
        return clamped

    def get(self, name: str, default: float = 0.0) -> float:
        return self.values.get(name, default)

    def names(self) -> List[str]:
        return list(self.values.keys())

    def as_list(self, order: Optional[List[str]] = None) -> List[float]:
        """Angles as a list in the given joint order (insertion order by default)."""
        order = order or self.names()
        return [self.values.get(n, 0.0) for n in order]

    def copy(self) -> 'JointAngles':
        return JointAngles(values=dict(self.values), limits=dict(self.limits))


@dataclass
class MapImage:
    """Compressed map image as received from the map image topic."""
    data: str
    format: str = "png"
    received_at: float = field(default_factory=time.time)

    @property
    def data_uri(self) -> str:
        return f"data:image/{self.format};base64,{self.data}"

    def to_bytes(self) -> bytes:
        return base64.b64decode(self.data)


@dataclass
class OccupancyMap:
    """nav_msgs/OccupancyGrid as a (height, width) int8 grid."""
    grid: np.ndarray
    resolution: float
    origin: Pose2D = field(default_factory=Pose2D)
    received_at: float = field(default_factory=time.time)

    @property
    def width(self) -> int:
        return int(self.grid.shape[1])

    @property
    def height(self) -> int:
        return int(self.grid.shape[0])

    def world_to_cell(self, x: float, y: float) -> Optional[Tuple[int, int]]:
        """Map a world coordinate to (row, col), or None if outside the grid."""
        if self.resolution <= 0:
            return None
        col = int((x - self.origin.x) // self.resolution)
        row = int((y - self.origin.y) // self.resolution)
        if 0 <= row < self.height and 0 <= col < self.width:
            return row, col
        return None


@dataclass
class RobotState:
    """Robot state as assembled from subscribed topics."""
    connected: bool = False
    joint_angles: Dict[str, float] = field(default_factory=dict)
    pose: Optional[Pose2D] = None
    battery: Optional[float] = None
    map_image: Optional[MapImage] = None
    occupancy_map: Optional[OccupancyMap] = None
    path: List[Pose2D] = field(default_factory=list)
    obstacles: List[Tuple[float, float]] = field(default_factory=list)
    point_count: int = 0
    scan_point_count: int = 0
    last_updated: float = field(default_factory=time.time)


@dataclass
class RosTopic:
    """ROS topic information."""
    name: str
    type: str
    last_message: Optional[Dict[str, Any]] = None
    last_message_time: float = 0.0

    def __str__(self) -> str:
        return f"Topic(name={self.name}, type={self.type})"

    def __repr__(self) -> str:
        return self.__str__()


@dataclass(frozen=True)
class RosService:
    """ROS service name and type."""
    name: str
    type: str
