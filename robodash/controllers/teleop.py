"""Velocity teleoperation over cmd_vel."""
import threading
from typing import Any, Dict, Optional, Tuple

from ..core.base import RobotClientBase
from .base import ControllerBase

DIAGONAL_SCALE = 0.7

# direction -> (linear factor, angular factor)
DIRECTIONS: Dict[str, Tuple[float, float]] = {
    "forward": (1.0, 0.0),
    "backward": (-1.0, 0.0),
    "left": (0.0, 1.0),
    "right": (0.0, -1.0),
    "forward_left": (DIAGONAL_SCALE, DIAGONAL_SCALE),
    "forward_right": (DIAGONAL_SCALE, -DIAGONAL_SCALE),
    "backward_left": (-DIAGONAL_SCALE, DIAGONAL_SCALE),
    "backward_right": (-DIAGONAL_SCALE, -DIAGONAL_SCALE),
}

LINEAR_RANGE = (0.1, 2.0)
ANGULAR_RANGE = (0.1, 3.0)


def make_twist(linear: float, angular: float) -> Dict[str, Any]:
    """geometry_msgs/Twist for a planar base."""
    return {
        "linear": {"x": float(linear), "y": 0.0, "z": 0.0},
        "angular": {"x": 0.0, "y": 0.0, "z": float(angular)},
    }


class TeleopController(ControllerBase):
    """Holds a direction and republishes the matching Twist until stopped."""

    def __init__(self, client: RobotClientBase, linear_speed: float = 0.5, angular_speed: float = 1.0,
                 interval: Optional[float] = None, config: Optional[Dict[str, Any]] = None):
        super().__init__(client, config)
        self.linear_speed = 0.0
        self.angular_speed = 0.0
        self.set_speeds(linear_speed, angular_speed)
        self.interval = float(interval if interval is not None else self._config.get("publish_interval", 0.2))
        self.enabled = True
        self._repeat_stop = threading.Event()
        self._repeat_thread: Optional[threading.Thread] = None
        self.direction: Optional[str] = None

    def set_speeds(self, linear: Optional[float] = None, angular: Optional[float] = None) -> None:
        """Set speed magnitudes, clamped to the slider ranges."""
        if linear is not None:
            self.linear_speed = max(LINEAR_RANGE[0], min(LINEAR_RANGE[1], float(linear)))
        if angular is not None:
            self.angular_speed = max(ANGULAR_RANGE[0], min(ANGULAR_RANGE[1], float(angular)))

    def velocities(self, direction: str) -> Tuple[float, float]:
        """
        Resolve a direction into (linear, angular) velocities.

        Raises:
            KeyError: If the direction is unknown
        """
        lin, ang = DIRECTIONS[direction]
        return lin * self.linear_speed, ang * self.angular_speed

    def send(self, linear: float, angular: float) -> bool:
        """Publish a single Twist."""
        if not self.enabled:
            return False
        return self._publish("cmd_vel", make_twist(linear, angular))

    def start(self, direction: Optional[str] = None) -> None:
        """
        Start driving in a direction: publish now, then every interval.

        Without a direction this is a no-op so the controller can be used as
        a context manager.
        """
        if direction is None:
            return
        linear, angular = self.velocities(direction)
        self._cancel_repeat()
        self.direction = direction
        self.send(linear, angular)
        self._repeat_stop = threading.Event()
        self._repeat_thread = threading.Thread(
            target=self._repeat, args=(linear, angular, self._repeat_stop), daemon=True, name="CmdVelRepeat"
        )
        self._repeat_thread.start()

    def _repeat(self, linear: float, angular: float, stop: threading.Event) -> None:
        while not stop.wait(self.interval):
            self.send(linear, angular)

    def _cancel_repeat(self) -> None:
        self._repeat_stop.set()
        thread, self._repeat_thread = self._repeat_thread, None
        if thread and thread.is_alive() and thread is not threading.current_thread():
            thread.join(timeout=max(1.0, self.interval * 2))

    @property
    def is_moving(self) -> bool:
        return self._repeat_thread is not None and self._repeat_thread.is_alive()

    def stop(self) -> None:
        """Stop repeating and command zero velocity."""
        self._cancel_repeat()
        self.direction = None
        self.send(0.0, 0.0)
        super().stop()
