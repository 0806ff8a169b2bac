"""rosbridge client library for the robot dashboard."""
from .clients import MockRobotClient, RobotClient, release_all, release_client, shared_client, shutdown
from .controllers import (
    ArmController,
    NavigationController,
    SensorMonitor,
    SlamController,
    TeleopController,
    TopicBrowser,
)
from .core import RobotClientBase, Subscription, TopicServiceManager
from .models import ConnectionInfo, ConnectionState, Pose2D, RobotState, RosTopic

__version__ = "1.0.0"
__all__ = [
    'RobotClient',
    'MockRobotClient',
    'shared_client',
    'release_client',
    'release_all',
    'shutdown',
    'RobotClientBase',
    'Subscription',
    'TopicServiceManager',
    'ArmController',
    'TeleopController',
    'SlamController',
    'NavigationController',
    'SensorMonitor',
    'TopicBrowser',
    'ConnectionInfo',
    'ConnectionState',
    'Pose2D',
    'RobotState',
    'RosTopic',
]
