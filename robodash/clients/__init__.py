"""rosbridge client implementations."""
from .config import DEFAULT_CONFIG, DEFAULT_SERVICES, DEFAULT_TOPICS, DEFAULT_URL
from .mock_client import MockRobotClient
from .registry import release_all, release_client, shared_client, shutdown
from .ros_client import RobotClient

__all__ = [
    'RobotClient',
    'MockRobotClient',
    'shared_client',
    'release_client',
    'release_all',
    'shutdown',
    'DEFAULT_CONFIG',
    'DEFAULT_TOPICS',
    'DEFAULT_SERVICES',
    'DEFAULT_URL',
]
