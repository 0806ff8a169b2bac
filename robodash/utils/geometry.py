"""Quaternion and angle helpers for planar robots."""
import math
from typing import Tuple


def quaternion_to_yaw(x: float, y: float, z: float, w: float) -> float:
    """
    Extract the yaw (rotation about Z) from a quaternion.

    Returns:
        Yaw in radians, in [-pi, pi]
    """
    siny_cosp = 2.0 * (w * z + x * y)
    cosy_cosp = 1.0 - 2.0 * (y * y + z * z)
    return math.atan2(siny_cosp, cosy_cosp)


def yaw_to_quaternion(yaw: float) -> Tuple[float, float, float, float]:
    """Quaternion (x, y, z, w) for a pure rotation about Z."""
    half = yaw / 2.0
    return 0.0, 0.0, math.sin(half), math.cos(half)


def normalize_angle(angle: float) -> float:
    """Wrap an angle into [-pi, pi)."""
    return (angle + math.pi) % (2.0 * math.pi) - math.pi
