"""Data models for the robot dashboard client."""
from .robot import (
    JointAngles,
    MapImage,
    OccupancyMap,
    Pose2D,
    RobotState,
    RosService,
    RosTopic,
)
from .state import ConnectionInfo, ConnectionState

__all__ = [
    'ConnectionInfo',
    'ConnectionState',
    'JointAngles',
    'MapImage',
    'OccupancyMap',
    'Pose2D',
    'RobotState',
    'RosService',
    'RosTopic',
]
