"""Common plumbing for controllers built on a shared client."""
import threading
from typing import Any, Dict, List, Optional

from ..clients.config import resolve_service, resolve_topic
from ..core.base import RobotClientBase
from ..core.topic_service_manager import MessageCallback, Subscription
from ..models.robot import RosService, RosTopic
from ..utils.logger import setup_logger


class ControllerBase:
    """
    Base for per-screen controllers.

    A controller borrows a client, subscribes on start() and drops its own
    subscriptions on stop(); the connection itself is never closed here.
    """

    def __init__(self, client: RobotClientBase, config: Optional[Dict[str, Any]] = None):
        self.client = client
        self._config = client.config
        self._config.update(config or {})
        self._subscriptions: List[Subscription] = []
        self._lock = threading.RLock()
        self.log = setup_logger(f"{self.__class__.__name__}[{client.connection_str}]")

    def topic(self, key: str) -> RosTopic:
        return resolve_topic(key, self._config)

    def service(self, key: str) -> RosService:
        return resolve_service(key, self._config)

    def _subscribe(self, key: str, callback: MessageCallback) -> Subscription:
        topic = self.topic(key)
        sub = self.client.subscribe(topic.name, topic.type, callback)
        with self._lock:
            self._subscriptions.append(sub)
        return sub

    def start(self) -> None:
        """Subscribe to the controller's topics."""

    def stop(self) -> None:
        """Drop every subscription made by this controller."""
        with self._lock:
            subs, self._subscriptions = self._subscriptions, []
        for sub in subs:
            sub.unsubscribe()

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    def _publish(self, key: str, message: Dict[str, Any]) -> bool:
        """Publish if connected; a dropped command is logged, not raised."""
        if not self.client.is_connected():
            self.log.debug(f"Not connected; dropping message for {key}")
            return False
        topic = self.topic(key)
        try:
            self.client.publish(topic.name, topic.type, message)
            return True
        except Exception as e:
            self.log.error(f"Error publishing to {topic.name}: {e}")
            return False

    def _trigger(self, key: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Call a service and check a std_srvs/Trigger style response.

        Raises:
            RuntimeError: If not connected or the service reports failure
        """
        if not self.client.is_connected():
            raise RuntimeError("ROS is not connected")
        svc = self.service(key)
        resp = self.client.service_call(svc.name, svc.type, payload or {})
        if "success" in resp and not resp.get("success"):
            raise RuntimeError(resp.get("message") or f"Service {svc.name} failed")
        self.log.info(f"Service {svc.name} succeeded: {resp.get('message', '')}")
        return resp
