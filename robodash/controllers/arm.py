"""Arm joint control: sliders, presets and joint state feedback."""
import math
import threading
import time
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..core.base import RobotClientBase
from ..models.robot import JointAngles
from ..utils.backoff import Throttle
from .base import ControllerBase

DEFAULT_JOINTS = [f"joint_{i}" for i in range(1, 7)]
DEFAULT_LIMITS = (-math.pi, math.pi)

PRESETS: Dict[str, Dict[str, float]] = {
    "home": {name: 0.0 for name in DEFAULT_JOINTS},
    "ready": {"joint_2": math.pi / 4, "joint_3": -math.pi / 4, "joint_4": 0.0, "joint_6": 0.5},
    "extended": {"joint_2": math.pi / 2, "joint_3": -math.pi / 2, "joint_4": math.pi / 4, "joint_6": 1.0},
}

COMMAND_MODES = ("array", "single")


def to_degrees(radians: float) -> float:
    return radians * 180.0 / math.pi


def from_degrees(degrees: float) -> float:
    return degrees * math.pi / 180.0


class ArmController(ControllerBase):
    """
    Joint-space control of the arm.

    Slider updates are clamped to the joint limits and published at most
    once per publish interval. A suppressed update is sent when the interval
    runs out, so the last slider value always reaches the robot.
    """

    def __init__(
        self,
        client: RobotClientBase,
        joints: Optional[List[str]] = None,
        limits: Optional[Dict[str, Tuple[float, float]]] = None,
        command_mode: Optional[str] = None,
        publish_interval: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
        config: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(client, config)
        self.joints = list(joints or DEFAULT_JOINTS)
        joint_limits = {name: DEFAULT_LIMITS for name in self.joints}
        joint_limits.update(limits or {})
        self.angles = JointAngles(values={name: 0.0 for name in self.joints}, limits=joint_limits)

        self.command_mode = command_mode or self._config.get("joint_command_mode", "array")
        if self.command_mode not in COMMAND_MODES:
            raise ValueError(f"Unknown joint command mode: {self.command_mode}")

        interval = publish_interval if publish_interval is not None else self._config.get("publish_interval", 0.2)
        self._throttle = Throttle(float(interval), clock=clock)
        self._pending: List[str] = []
        self._trailing: Optional[threading.Timer] = None

    def start(self) -> None:
        self._subscribe("joint_states", self.on_joint_state)

    def stop(self) -> None:
        """Send any pending update, then drop subscriptions."""
        self.flush()
        super().stop()

    def on_joint_state(self, msg: Dict[str, Any]) -> None:
        """Track the robot's reported joint positions for known joints."""
        names = msg.get("name") or []
        positions = msg.get("position") or []
        with self._lock:
            for name, pos in zip(names, positions):
                if name in self.angles.values and pos is not None:
                    self.angles.values[name] = float(pos)

    def get_angles(self) -> Dict[str, float]:
        with self._lock:
            return dict(self.angles.values)

    def set_joint(self, name: str, value: float) -> float:
        """
        Apply a slider value to one joint.

        Args:
            name: Joint name
            value: Requested angle in radians

        Returns:
            The clamped angle that was stored

        Raises:
            KeyError: If the joint is unknown
        """
        with self._lock:
            if name not in self.angles.values:
                raise KeyError(f"Unknown joint: {name}")
            clamped = self.angles.set(name, value)
            if name not in self._pending:
                self._pending.append(name)
            fire = self._throttle.ready()
        if fire:
            self.flush()
        else:
            self._schedule_trailing()
        return clamped

    def _schedule_trailing(self) -> None:
        with self._lock:
            if self._trailing is not None:
                return
            timer = threading.Timer(self._throttle.remaining(), self._flush_trailing)
            timer.daemon = True
            self._trailing = timer
        timer.start()

    def _flush_trailing(self) -> None:
        with self._lock:
            self._trailing = None
            if not self._pending:
                return
            self._throttle.mark()
        self.flush()

    def flush(self) -> bool:
        """
        Publish any pending joint update now.

        Returns:
            True if something was published
        """
        with self._lock:
            pending, self._pending = self._pending, []
            timer, self._trailing = self._trailing, None
        if timer is not None:
            timer.cancel()
        if not pending:
            return False
        return self._send(pending)

    @property
    def has_pending(self) -> bool:
        with self._lock:
            return bool(self._pending)

    def apply_preset(self, name: str) -> Dict[str, float]:
        """
        Move to a named preset and publish immediately.

        Raises:
            KeyError: If the preset is unknown
        """
        preset = PRESETS[name]
        with self._lock:
            changed = []
            for joint, value in preset.items():
                if joint in self.angles.values:
                    self.angles.set(joint, value)
                    changed.append(joint)
            self._pending = []
        self.log.info(f"Applying preset '{name}'")
        self._send(changed)
        return self.get_angles()

    def _send(self, joints: List[str]) -> bool:
        with self._lock:
            if self.command_mode == "array":
                messages = [("position_commands", {
                    "layout": {"dim": [], "data_offset": 0},
                    "data": self.angles.as_list(self.joints),
                })]
            else:
                messages = [("joint_command", {"data": self.angles.get(j)}) for j in joints]
        ok = True
        for key, msg in messages:
            ok = self._publish(key, msg) and ok
        if ok:
            self.log.debug(f"Sent joint command for {', '.join(joints)}")
        return ok
