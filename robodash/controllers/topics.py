"""Topic listing and echo."""
import json
import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Deque, Dict, List, Optional

from ..core.base import RobotClientBase
from ..core.topic_service_manager import Subscription
from .base import ControllerBase

FALLBACK_TOPICS = ["/cmd_vel", "/joint_states", "/odom", "/scan", "/tf", "/tf_static"]

# substring -> message type; first match wins
TYPE_HINTS = [
    (("cloud", "point"), "sensor_msgs/PointCloud2"),
    (("cmd_vel",), "geometry_msgs/Twist"),
    (("odom",), "nav_msgs/Odometry"),
    (("scan",), "sensor_msgs/LaserScan"),
    (("joint",), "sensor_msgs/JointState"),
]


def guess_message_type(topic_name: str) -> str:
    """Infer a message type from a topic name; std_msgs/String when nothing matches."""
    for needles, msg_type in TYPE_HINTS:
        if any(n in topic_name for n in needles):
            return msg_type
    return "std_msgs/String"


def _fmt(v: Any) -> str:
    try:
        return f"{float(v):.2f}"
    except (TypeError, ValueError):
        return "0"


def summarize(msg_type: str, msg: Dict[str, Any], limit: int = 100) -> str:
    """One-line human summary of a message."""
    if msg_type == "sensor_msgs/PointCloud2":
        return f"Points: {int(msg.get('width', 0)) * int(msg.get('height', 0))}, Step: {msg.get('point_step', 0)} bytes"
    if msg_type == "geometry_msgs/Twist":
        lin = msg.get("linear") or {}
        ang = msg.get("angular") or {}
        return (f"Linear: [{_fmt(lin.get('x'))}, {_fmt(lin.get('y'))}, {_fmt(lin.get('z'))}], "
                f"Angular: [{_fmt(ang.get('x'))}, {_fmt(ang.get('y'))}, {_fmt(ang.get('z'))}]")
    if msg_type == "std_msgs/String":
        return f"Data: {msg.get('data')}"
    text = json.dumps(msg, default=str)
    return text if len(text) <= limit else text[:limit] + "..."


@dataclass
class EchoEntry:
    timestamp: float
    topic: str
    message_type: str
    data: str


class TopicBrowser(ControllerBase):
    """Lists topics and echoes one of them into a bounded history."""

    def __init__(self, client: RobotClientBase, history_size: int = 50, config: Optional[Dict[str, Any]] = None):
        super().__init__(client, config)
        self.history: Deque[EchoEntry] = deque(maxlen=history_size)
        self.topics: List[str] = []
        self.selected: Optional[str] = None
        self.selected_type: Optional[str] = None
        self._echo_sub: Optional[Subscription] = None

    def list_topics(self) -> List[str]:
        """
        Fetch the topic list from rosapi, falling back to a fixed list.

        Returns:
            Sorted topic names
        """
        try:
            if not self.client.is_connected():
                raise RuntimeError("Not connected to ROS")
            svc = self.service("topics")
            resp = self.client.service_call(svc.name, svc.type, {})
            topics = list(resp.get("topics") or [])
            if not topics:
                raise RuntimeError("rosapi returned empty result")
        except Exception as e:
            self.log.warning(f"rosapi not available, using fallback topics: {e}")
            topics = list(FALLBACK_TOPICS)
        self.topics = sorted(topics)
        return self.topics

    def echo(self, topic_name: str, message_type: Optional[str] = None) -> Subscription:
        """Switch the echo to a topic; the previous echo is dropped and history cleared."""
        self.stop_echo()
        msg_type = message_type or guess_message_type(topic_name)
        with self._lock:
            self.history.clear()
            self.selected = topic_name
            self.selected_type = msg_type

        def on_message(msg: Dict[str, Any]) -> None:
            entry = EchoEntry(time.time(), topic_name, msg_type, summarize(msg_type, msg))
            with self._lock:
                if self.selected == topic_name:
                    self.history.append(entry)

        sub = self.client.subscribe(topic_name, msg_type, on_message)
        with self._lock:
            self._echo_sub = sub
            self._subscriptions.append(sub)
        self.log.info(f"Echoing {topic_name} as {msg_type}")
        return sub

    def stop_echo(self) -> None:
        with self._lock:
            sub, self._echo_sub = self._echo_sub, None
            if sub is not None and sub in self._subscriptions:
                self._subscriptions.remove(sub)
            self.selected = None
            self.selected_type = None
        if sub is not None:
            sub.unsubscribe()

    def messages(self) -> List[EchoEntry]:
        with self._lock:
            return list(self.history)

    def stop(self) -> None:
        self.stop_echo()
        super().stop()
