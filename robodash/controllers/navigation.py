"""Goal setting, path planning and navigation control."""
import time
from typing import Any, Dict, List, Optional, Tuple

from ..core.base import RobotClientBase
from ..models.robot import Pose2D
from .base import ControllerBase

# x, y, yaw variances used for /initialpose
INITIAL_POSE_COVARIANCE = (0.25, 0.25, 0.0685)


def stamp(frame_id: str) -> Dict[str, Any]:
    """std_msgs/Header for the current wall-clock time."""
    now = time.time()
    secs = int(now)
    return {
        "stamp": {"sec": secs, "nanosec": int((now - secs) * 1e9)},
        "frame_id": frame_id,
    }


def pose_stamped(pose: Pose2D, frame_id: str = "map") -> Dict[str, Any]:
    return {"header": stamp(frame_id), "pose": pose.to_pose_msg()}


def pose_with_covariance_stamped(pose: Pose2D, frame_id: str = "map",
                                 covariance: Tuple[float, float, float] = INITIAL_POSE_COVARIANCE) -> Dict[str, Any]:
    cov = [0.0] * 36
    cov[0], cov[7], cov[35] = covariance
    return {"header": stamp(frame_id), "pose": {"pose": pose.to_pose_msg(), "covariance": cov}}


class NavigationController(ControllerBase):
    """
    Sends goals and drives the robot-side navigation services.

    Only one navigation goal is active at a time; a new goal is refused
    unless the caller asks to replace the current one. Pose, path and
    obstacles come from the client's state topics.
    """

    def __init__(self, client: RobotClientBase, frame_id: str = "map", config: Optional[Dict[str, Any]] = None):
        super().__init__(client, config)
        self.frame_id = frame_id
        self.planned_path: List[Pose2D] = []
        self.active_goal: Optional[Pose2D] = None
        self.paused = False

    @property
    def pose(self) -> Optional[Pose2D]:
        return self.client.get_pose()

    @property
    def path(self) -> List[Pose2D]:
        """Path last published by the navigation stack."""
        return self.client.get_path()

    @property
    def obstacles(self) -> List[Tuple[float, float]]:
        return self.client.get_obstacles()

    # ---------- topics ----------

    def set_goal(self, x: float, y: float, theta: float = 0.0) -> bool:
        """Publish a goal pose for the navigation stack."""
        goal = Pose2D(x, y, theta)
        ok = self._publish("goal_pose", pose_stamped(goal, self.frame_id))
        if ok:
            self.log.info(f"Goal set to ({x:.2f}, {y:.2f}, {theta:.2f})")
        return ok

    def set_initial_pose(self, x: float, y: float, theta: float = 0.0) -> bool:
        """Publish an initial pose estimate for localization."""
        return self._publish("initial_pose", pose_with_covariance_stamped(Pose2D(x, y, theta), self.frame_id))

    # ---------- services ----------

    def plan_path(self, goal: Pose2D, start: Optional[Pose2D] = None, tolerance: float = 0.0) -> List[Pose2D]:
        """
        Ask the planner for a path.

        Args:
            goal: Target pose
            start: Start pose; the last known robot pose when omitted
            tolerance: Goal tolerance in meters

        Returns:
            Planned poses

        Raises:
            RuntimeError: If not connected or no path was found
        """
        if not self.client.is_connected():
            raise RuntimeError("ROS is not connected")
        start = start or self.pose or Pose2D()
        svc = self.service("plan_path")
        resp = self.client.service_call(svc.name, svc.type, {
            "start": pose_stamped(start, self.frame_id),
            "goal": pose_stamped(goal, self.frame_id),
            "tolerance": float(tolerance),
        })
        poses = (resp.get("plan") or {}).get("poses") or []
        if not poses:
            raise RuntimeError("Failed to get path")
        path = [Pose2D.from_pose_msg(p.get("pose", p)) for p in poses]
        with self._lock:
            self.planned_path = path
        return path

    def navigate_to(self, x: float, y: float, theta: float = 0.0, replace: bool = False) -> Dict[str, Any]:
        """
        Send the robot to a pose.

        Raises:
            RuntimeError: If a goal is already active and replace is False,
                or the service fails
        """
        with self._lock:
            busy = self.active_goal is not None
        if busy:
            if not replace:
                raise RuntimeError("A navigation goal is already active")
            self.cancel()
        goal = Pose2D(x, y, theta)
        resp = self._trigger("navigate_to_pose", {"pose": pose_stamped(goal, self.frame_id)})
        with self._lock:
            self.active_goal = goal
            self.paused = False
        return resp

    def pause(self) -> Dict[str, Any]:
        resp = self._trigger("pause_navigation")
        with self._lock:
            self.paused = True
        return resp

    def resume(self) -> Dict[str, Any]:
        resp = self._trigger("resume_navigation")
        with self._lock:
            self.paused = False
        return resp

    def cancel(self) -> Dict[str, Any]:
        resp = self._trigger("cancel_navigation")
        with self._lock:
            self.active_goal = None
            self.paused = False
        return resp

    def goal_reached(self) -> None:
        """Mark the active goal as finished (e.g. on a result notification)."""
        with self._lock:
            self.active_goal = None
            self.paused = False
