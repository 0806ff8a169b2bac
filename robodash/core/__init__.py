"""Core client functionality."""
from .base import RobotClientBase
from .topic_service_manager import Subscription, TopicServiceManager

__all__ = [
    'RobotClientBase',
    'Subscription',
    'TopicServiceManager',
]
