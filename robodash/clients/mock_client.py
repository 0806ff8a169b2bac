"""Mock rosbridge client for testing and offline demos."""
import itertools
import logging
import math
import threading
import time
from typing import Optional, Dict, Any, List, Callable, Union

from ..core.base import RobotClientBase
from ..core.topic_service_manager import MessageCallback, Subscription
from ..models.state import ConnectionState
from ..utils.geometry import yaw_to_quaternion
from .config import resolve_topic

ServiceResponse = Union[Dict[str, Any], Exception, Callable[[Dict[str, Any]], Dict[str, Any]]]


class MockRobotClient(RobotClientBase):
    """Mock client that never opens a socket."""

    def __init__(self, connection_str: str = "ws://localhost:9090", config: Optional[Dict[str, Any]] = None):
        """
        Initialize the mock client.

        Args:
            connection_str: Connection string (for compatibility)
            config: Optional configuration dictionary. Supported options:
                - start_connected: Whether the client starts connected (default: True)
                - auto_subscribe: Subscribe the state handlers to the default topics (default: True)
                - simulate: Start the synthetic data thread immediately (default: False)
                - simulation_interval: Seconds between synthetic messages (default: 0.1)
        """
        config = dict(config or {})
        config.setdefault("logger_level", logging.DEBUG)
        super().__init__(connection_str, config=config)
        self._config.setdefault("service_call_timeout", 5.0)
        self.published_messages: List[Dict[str, Any]] = []
        self.service_calls: List[Dict[str, Any]] = []
        self._service_responses: Dict[str, ServiceResponse] = {}
        self._handlers: Dict[str, Dict[int, MessageCallback]] = {}
        self._topic_types: Dict[str, str] = {}
        self._ids = itertools.count(1)

        self._sim_thread: Optional[threading.Thread] = None
        self._stop_updates = threading.Event()

        if self._config.get("auto_subscribe", True):
            self._subscribe_topics()
        if self._config.get("start_connected", True):
            self._set_connection_state(ConnectionState.CONNECTED)
        if self._config.get("simulate", False):
            self.start_simulation()

    def _subscribe_topics(self) -> None:
        for key, handler in self._state_handlers().items():
            topic = resolve_topic(key, self._config)
            self.subscribe(topic.name, topic.type, handler)

    # ---------- lifecycle ----------

    def connect_async(self) -> None:
        """Immediately connect in mock mode."""
        if self._stop.is_set():
            self.log.warning("Mock: terminated; connect ignored")
            return
        self._set_connection_state(ConnectionState.CONNECTING)
        self._set_connection_state(ConnectionState.CONNECTED)
        self.log.debug("Mock: connected (connect_async)")

    def connect(self, timeout: Optional[float] = None) -> bool:
        self.connect_async()
        return self.is_connected()

    def disconnect(self) -> None:
        self._set_connection_state(ConnectionState.DISCONNECTED)

    def simulate_connection_lost(self, reconnect: bool = True) -> None:
        """Drive the state machine as if the socket had dropped."""
        if reconnect:
            self._set_connection_state(ConnectionState.RECONNECTING, error="connection closed")
            self._set_connection_state(ConnectionState.CONNECTED)
        else:
            self._set_connection_state(ConnectionState.CLOSED, error="connection closed")
            self._set_connection_state(ConnectionState.DISCONNECTED)

    def terminate(self) -> None:
        """Terminate the mock connection."""
        self._stop.set()
        self.stop_simulation()
        with self._lock:
            self._handlers.clear()
        self._set_connection_state(ConnectionState.DISCONNECTED)
        self.log.debug("Mock: terminated")

    # ---------- pub/sub/services ----------

    def subscribe(self, topic_name: str, topic_type: str, callback: MessageCallback) -> Subscription:
        with self._lock:
            sub_id = next(self._ids)
            self._handlers.setdefault(topic_name, {})[sub_id] = callback
            self._topic_types.setdefault(topic_name, topic_type)
        return Subscription(self, topic_name, sub_id)

    def _remove(self, name: str, sub_id: int) -> None:
        with self._lock:
            callbacks = self._handlers.get(name)
            if callbacks is None:
                return
            callbacks.pop(sub_id, None)
            if not callbacks:
                del self._handlers[name]

    def subscriber_count(self, topic_name: str) -> int:
        with self._lock:
            return len(self._handlers.get(topic_name, {}))

    def inject(self, topic_name: str, message: Dict[str, Any]) -> int:
        """
        Deliver a message to every subscriber of a topic.

        Returns:
            Number of callbacks invoked
        """
        with self._lock:
            callbacks = list(self._handlers.get(topic_name, {}).values())
        for cb in callbacks:
            try:
                cb(message)
            except Exception as e:
                self.log.exception(f"Mock: subscriber for {topic_name} failed: {e}")
        return len(callbacks)

    def publish(self, topic_name: str, topic_type: str, message: Dict[str, Any],
                retries: Optional[int] = None) -> None:
        if not self.is_connected():
            raise RuntimeError("Not connected to ROS")
        with self._lock:
            self.published_messages.append({
                "topic": topic_name,
                "type": topic_type,
                "message": message,
                "timestamp": time.time(),
            })
        self.log.debug(f"Mock: published to {topic_name}: {message}")

    def set_service_response(self, service_name: str, response: ServiceResponse) -> None:
        """Canned response for a service: dict, exception to raise, or callable(payload)."""
        self._service_responses[service_name] = response

    def service_call(self, service_name: str, service_type: str, payload: Dict[str, Any],
                     timeout: Optional[float] = None, retries: Optional[int] = None) -> Dict[str, Any]:
        if not self.is_connected():
            raise RuntimeError("Not connected to ROS")
        with self._lock:
            self.service_calls.append({
                "service": service_name,
                "type": service_type,
                "payload": payload,
                "timestamp": time.time(),
            })
        response = self._service_responses.get(service_name, {"success": True, "message": ""})
        if isinstance(response, Exception):
            raise response
        if callable(response):
            response = response(payload)
        self.log.debug(f"Mock: service {service_name} -> {response}")
        return dict(response)

    def get_topics(self):
        with self._lock:
            names = sorted(self._handlers.keys())
            return names, [self._topic_types.get(n, "") for n in names]

    def published_to(self, topic_name: str) -> List[Dict[str, Any]]:
        """Messages published on one topic, oldest first."""
        with self._lock:
            return [m["message"] for m in self.published_messages if m["topic"] == topic_name]

    # ---------- synthetic data ----------

    def start_simulation(self, interval: Optional[float] = None) -> None:
        """Feed synthetic joint, pose, battery and scan messages to subscribers."""
        if self._sim_thread and self._sim_thread.is_alive():
            return
        interval = interval or float(self._config.get("simulation_interval", 0.1))
        self._stop_updates.clear()
        self._sim_thread = threading.Thread(
            target=self._simulation_loop, args=(interval,), daemon=True, name="MockSimulation"
        )
        self._sim_thread.start()

    def stop_simulation(self) -> None:
        self._stop_updates.set()
        if self._sim_thread and self._sim_thread.is_alive() and self._sim_thread is not threading.current_thread():
            self._sim_thread.join(timeout=1.0)
        self._sim_thread = None

    def _simulation_loop(self, interval: float) -> None:
        t0 = time.time()
        battery = 1.0
        while not self._stop_updates.wait(interval):
            t = time.time() - t0
            yaw = 0.5 * t
            qx, qy, qz, qw = yaw_to_quaternion(yaw)
            self.inject(resolve_topic("robot_pose", self._config).name, {
                "position": {"x": math.cos(yaw), "y": math.sin(yaw), "z": 0.0},
                "orientation": {"x": qx, "y": qy, "z": qz, "w": qw},
            })
            self.inject(resolve_topic("joint_states", self._config).name, {
                "name": [f"joint_{i}" for i in range(1, 7)],
                "position": [0.5 * math.sin(t + i) for i in range(6)],
            })
            battery = max(0.0, battery - 0.0005)
            self.inject(resolve_topic("battery", self._config).name, {"percentage": battery})
            self.inject(resolve_topic("scan", self._config).name, {
                "angle_min": -math.pi,
                "angle_increment": math.pi / 180.0,
                "ranges": [2.0 + 0.5 * math.sin(4 * i * math.pi / 180.0 + t) for i in range(360)],
            })
