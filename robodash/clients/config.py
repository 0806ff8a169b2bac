"""Default configuration for robot dashboard clients."""
import copy
from typing import Any, Dict, Optional

from ..models.robot import RosService, RosTopic

DEFAULT_URL = "ws://192.168.2.7:9090"

# Topics the dashboard consumes or publishes
DEFAULT_TOPICS = {
    "joint_states": RosTopic(name="/joint_states", type="sensor_msgs/JointState"),
    "robot_pose": RosTopic(name="/robot_pose", type="geometry_msgs/Pose"),
    "amcl_pose": RosTopic(name="/amcl_pose", type="geometry_msgs/PoseWithCovarianceStamped"),
    "map": RosTopic(name="/map", type="nav_msgs/OccupancyGrid"),
    "map_image": RosTopic(name="/map_image/compressed", type="sensor_msgs/CompressedImage"),
    "scan": RosTopic(name="/scan", type="sensor_msgs/LaserScan"),
    "point_cloud": RosTopic(name="/unilidar/cloud", type="sensor_msgs/PointCloud2"),
    "path": RosTopic(name="/path", type="nav_msgs/Path"),
    "obstacles": RosTopic(name="/obstacles", type="geometry_msgs/PoseArray"),
    "battery": RosTopic(name="/battery_state", type="sensor_msgs/BatteryState"),
    "cmd_vel": RosTopic(name="/cmd_vel", type="geometry_msgs/Twist"),
    "joint_command": RosTopic(name="/joint_states/command", type="std_msgs/Float64"),
    "position_commands": RosTopic(name="/position_controller/commands", type="std_msgs/Float64MultiArray"),
    "goal_pose": RosTopic(name="/goal_pose", type="geometry_msgs/PoseStamped"),
    "initial_pose": RosTopic(name="/initialpose", type="geometry_msgs/PoseWithCovarianceStamped"),
}

DEFAULT_SERVICES = {
    "start_slam": RosService(name="/start_slam", type="std_srvs/Trigger"),
    "stop_slam": RosService(name="/stop_slam", type="std_srvs/Trigger"),
    "save_map": RosService(name="/save_map", type="std_srvs/Trigger"),
    "reset_map": RosService(name="/reset_map", type="std_srvs/Trigger"),
    "slam_toolbox_save_map": RosService(name="/slam_toolbox/save_map", type="slam_toolbox/SaveMap"),
    "plan_path": RosService(name="/plan_path", type="nav_msgs/GetPlan"),
    "navigate_to_pose": RosService(name="/navigate_to_pose", type="robodash_msgs/NavigateToPose"),
    "pause_navigation": RosService(name="/pause_navigation", type="std_srvs/Trigger"),
    "resume_navigation": RosService(name="/resume_navigation", type="std_srvs/Trigger"),
    "cancel_navigation": RosService(name="/cancel_navigation", type="std_srvs/Trigger"),
    "topics": RosService(name="/rosapi/topics", type="rosapi/Topics"),
}

# Default configuration
DEFAULT_CONFIG = {
    "connect_max_retries": 5,
    "connect_backoff_seconds": 1.0,
    "connect_backoff_max": 30.0,
    "connect_timeout": 10.0,
    "auto_reconnect": True,
    "auto_subscribe": True,
    "service_call_timeout": 5.0,
    "service_call_retries": 2,
    "publish_retries": 2,
    "publish_interval": 0.2,
    "logger_level": 20,  # logging.INFO
}


def resolve_topic(key: str, config: Optional[Dict[str, Any]] = None) -> RosTopic:
    """
    Look up a topic by key, honouring overrides in config["topics"].

    An override may be a RosTopic, a bare topic name, or a dict with
    "name"/"type".
    """
    base = DEFAULT_TOPICS[key]
    override = ((config or {}).get("topics") or {}).get(key)
    if override is None:
        return copy.copy(base)
    if isinstance(override, RosTopic):
        return override
    if isinstance(override, str):
        return RosTopic(name=override, type=base.type)
    return RosTopic(name=override.get("name", base.name), type=override.get("type", base.type))


def resolve_service(key: str, config: Optional[Dict[str, Any]] = None) -> RosService:
    """Look up a service by key, honouring overrides in config["services"]."""
    base = DEFAULT_SERVICES[key]
    override = ((config or {}).get("services") or {}).get(key)
    if override is None:
        return base
    if isinstance(override, RosService):
        return override
    if isinstance(override, str):
        return RosService(name=override, type=base.type)
    return RosService(name=override.get("name", base.name), type=override.get("type", base.type))
