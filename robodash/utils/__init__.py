"""Utility functions for the robot dashboard client."""
from .backoff import Throttle, exponential_backoff
from .geometry import normalize_angle, quaternion_to_yaw, yaw_to_quaternion
from .logger import setup_logger

__all__ = [
    'setup_logger',
    'exponential_backoff',
    'Throttle',
    'quaternion_to_yaw',
    'yaw_to_quaternion',
    'normalize_angle',
]
