"""Per-screen controllers sharing one client connection."""
from .arm import PRESETS, ArmController, from_degrees, to_degrees
from .base import ControllerBase
from .navigation import NavigationController
from .sensors import SensorMonitor, battery_level, temperature_status
from .slam import SlamController
from .teleop import DIRECTIONS, TeleopController, make_twist
from .topics import FALLBACK_TOPICS, TopicBrowser, guess_message_type, summarize

__all__ = [
    'ControllerBase',
    'ArmController',
    'PRESETS',
    'to_degrees',
    'from_degrees',
    'TeleopController',
    'DIRECTIONS',
    'make_twist',
    'SlamController',
    'NavigationController',
    'SensorMonitor',
    'battery_level',
    'temperature_status',
    'TopicBrowser',
    'FALLBACK_TOPICS',
    'guess_message_type',
    'summarize',
]
