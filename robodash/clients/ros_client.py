"""Production rosbridge client implementation."""
from __future__ import annotations

import threading
import time
from concurrent.futures import ThreadPoolExecutor, Future, TimeoutError as FutureTimeoutError
from typing import Optional, Dict, Any, List, Tuple
from urllib.parse import urlparse

import roslibpy

from ..core.base import RobotClientBase
from ..core.topic_service_manager import MessageCallback, Subscription, TopicServiceManager
from ..models.state import ConnectionState
from ..utils.backoff import exponential_backoff
from ..utils.logger import resolve_level
from .config import DEFAULT_CONFIG, DEFAULT_URL, resolve_service, resolve_topic

# event loop manager of the first socket opened in this process
_event_loop = None
_event_loop_lock = threading.Lock()


def stop_event_loop() -> None:
    """
    Stop the rosbridge I/O loop shared by every client in the process.

    The Twisted reactor behind roslibpy cannot be restarted, so no client
    can connect afterwards. Call this once, at process shutdown.
    """
    global _event_loop
    with _event_loop_lock:
        manager, _event_loop = _event_loop, None
    if manager is not None:
        manager.terminate()


class RobotClient(RobotClientBase):
    """
    Single owned rosbridge connection.

    Every controller shares one RobotClient. Subscriptions are registered
    with the client rather than the socket, so they survive reconnects and
    may be made before the first connect.
    """

    def __init__(self, connection_str: str = DEFAULT_URL, config: Optional[Dict[str, Any]] = None):
        """
        Initialize the client.

        Args:
            connection_str: WebSocket URL (e.g., "ws://host:port")
            config: Optional configuration dictionary

        Raises:
            ValueError: If the URL is not a ws:// or wss:// URL
        """
        parsed = urlparse(connection_str)
        if parsed.scheme not in ("ws", "wss") or not parsed.hostname:
            raise ValueError(f"Invalid WebSocket URL: {connection_str}")
        self._host = parsed.hostname
        self._port = parsed.port or 9090
        self._secure = parsed.scheme == "wss"

        merged = dict(DEFAULT_CONFIG)
        merged.update(config or {})
        super().__init__(connection_str, config=merged)

        self._ros: Optional[roslibpy.Ros] = None
        self._closing = False
        self._connected_event = threading.Event()
        self._default_subs: List[Subscription] = []

        level = resolve_level(self._config.get("logger_level"))
        self._ts_mgr = TopicServiceManager(None, f"{self._host}:{self._port}", logger_level=level)

    def _logger_name(self) -> str:
        return f"RobotClient[{self._host}:{self._port}]"

    @property
    def host(self) -> str:
        return self._host

    @property
    def port(self) -> int:
        return self._port

    def _ensure_ts_mgr(self) -> TopicServiceManager:
        """
        Return the TopicServiceManager of a live connection.

        Raises:
            RuntimeError: If not connected
        """
        if not self.is_connected():
            raise RuntimeError("Not connected to ROS")
        return self._ts_mgr

    # ---------- connection lifecycle ----------

    def _set_connection_state(self, new_state: ConnectionState, error: Optional[str] = None) -> None:
        if new_state == ConnectionState.CONNECTED:
            self._connected_event.set()
        else:
            self._connected_event.clear()
        super()._set_connection_state(new_state, error)

    def connect_async(self) -> None:
        """Asynchronously connect to rosbridge with retry logic."""
        if self._stop.is_set():
            self.log.warning("Client terminated; connect ignored")
            return
        self._closing = False
        t = threading.Thread(
            target=self._connect_loop,
            args=(ConnectionState.CONNECTING,),
            daemon=True,
            name=f"Connect-{self._host}:{self._port}",
        )
        t.start()

    def connect(self, timeout: Optional[float] = None) -> bool:
        """
        Connect and block until connected or the timeout expires.

        Returns:
            True if connected
        """
        if self.is_connected():
            return True
        self.connect_async()
        timeout = timeout if timeout is not None else float(self._config.get("connect_timeout", 10.0))
        return self._connected_event.wait(timeout)

    def _open_socket(self) -> roslibpy.Ros:
        global _event_loop
        ros = roslibpy.Ros(host=self._host, port=self._port, is_secure=self._secure)
        ros.on("close", lambda *args, _ros=ros: self._on_socket_close(_ros))
        with _event_loop_lock:
            if _event_loop is None:
                _event_loop = ros.factory.manager
        try:
            ros.run(timeout=float(self._config.get("connect_timeout", 10.0)))
        except Exception:
            self._release_socket(ros)
            raise
        return ros

    def _release_socket(self, ros: roslibpy.Ros) -> None:
        """
        Close one socket for good.

        roslibpy sockets reconnect on their own after a drop; that is switched
        off first so an abandoned socket never comes back next to its
        replacement.
        """
        factory = getattr(ros, "factory", None)
        if factory is not None:
            try:
                factory.stopTrying()
            except Exception as e:
                self.log.debug(f"Stopping socket reconnects failed: {e}")
        try:
            ros.close()
        except Exception as e:
            self.log.debug(f"Closing socket failed: {e}")

    def _connect_loop(self, initial_state: ConnectionState) -> None:
        """Run connect attempts until connected, stopped, or out of retries."""
        with self._connect_lock:
            if self._connecting:
                self.log.debug("Connect already in progress, skipping")
                return
            self._connecting = True

        try:
            if self.is_connected():
                self.log.debug("Already connected, skipping connect attempt")
                return
            self._set_connection_state(initial_state)

            max_retries = int(self._config.get("connect_max_retries", 5))
            base_backoff = float(self._config.get("connect_backoff_seconds", 1.0))
            max_backoff = float(self._config.get("connect_backoff_max", 30.0))

            for attempt in range(1, max_retries + 1):
                if self._stop.is_set() or self._closing:
                    self.log.info("Stop requested, aborting connect attempts")
                    return
                try:
                    self.log.info(f"Connecting to {self.connection_str} (attempt {attempt}/{max_retries})")
                    ros = self._open_socket()
                    if getattr(ros, "is_connected", False):
                        self._on_connected(ros)
                        return
                    self._release_socket(ros)
                    self._set_connection_state(initial_state, error="rosbridge reported not connected after run()")
                    self.log.warning("roslibpy reported not connected after run()")
                except Exception as e:
                    self._set_connection_state(initial_state, error=str(e))
                    self.log.warning(f"Connect attempt {attempt} failed: {e}")

                if attempt < max_retries:
                    sleep_time = exponential_backoff(base_backoff, attempt, max_backoff)
                    self.log.debug(f"Sleeping {sleep_time:.2f}s before next connect attempt")
                    time.sleep(sleep_time)

            self.log.critical("Failed to connect after maximum retries")
            self._set_connection_state(ConnectionState.ERROR, error=self.last_error or "connect retries exhausted")
        finally:
            with self._connect_lock:
                self._connecting = False

    def _on_connected(self, ros: roslibpy.Ros) -> None:
        with self._lock:
            self._ros = ros
        self._ts_mgr.rebind(ros)
        self._set_connection_state(ConnectionState.CONNECTED)
        self.log.info("Connected to rosbridge successfully")
        if self._config.get("auto_subscribe", True) and not self._default_subs:
            self._subscribe_topics()

    def _on_socket_close(self, ros: roslibpy.Ros) -> None:
        """Socket close callback; runs on the rosbridge I/O thread."""
        with self._lock:
            if ros is not self._ros:
                return
            self._ros = None
        if self._stop.is_set() or self._closing:
            return
        self._ts_mgr.rebind(None)
        self._release_socket(ros)

        if self._config.get("auto_reconnect", True):
            self.log.warning("Connection lost; reconnecting")
            self._set_connection_state(ConnectionState.RECONNECTING, error="connection closed")
            threading.Thread(
                target=self._connect_loop,
                args=(ConnectionState.RECONNECTING,),
                daemon=True,
                name=f"Reconnect-{self._host}:{self._port}",
            ).start()
        else:
            self.log.warning("Connection closed")
            self._set_connection_state(ConnectionState.CLOSED, error="connection closed")
            self._set_connection_state(ConnectionState.DISCONNECTED)

    def disconnect(self) -> None:
        """Close the socket but keep subscriptions so connect_async() can resume."""
        self._closing = True
        with self._lock:
            ros, self._ros = self._ros, None
        self._ts_mgr.rebind(None)
        if ros is not None:
            self._release_socket(ros)
            self.log.info("Closed ROS connection.")
        self._set_connection_state(ConnectionState.DISCONNECTED)

    def terminate(self) -> None:
        """
        Terminate this client for good.

        Only this client's socket is closed; the I/O loop shared with other
        clients keeps running (see stop_event_loop()).
        """
        self._stop.set()
        self._closing = True
        with self._lock:
            ros, self._ros = self._ros, None
        try:
            self._ts_mgr.close_all()
        except Exception as e:
            self.log.warning(f"Failed to close TopicServiceManager: {e}")
        self._ts_mgr.rebind(None)
        self._default_subs = []
        if ros is not None:
            self._release_socket(ros)
            self.log.info("Terminated ROS connection.")
        self._set_connection_state(ConnectionState.DISCONNECTED)
        self.log.debug("RobotClient terminated and cleaned up.")

    def _subscribe_topics(self) -> None:
        """Subscribe state handlers to the default topics."""
        self.log.info("Subscribing to joint/pose/battery/map/path topics.")
        for key, handler in self._state_handlers().items():
            topic = resolve_topic(key, self._config)
            try:
                self._default_subs.append(self.subscribe(topic.name, topic.type, handler))
            except Exception as e:
                self.log.error(f"Failed to subscribe {topic.name}: {e}")

    # ---------- pub/sub/services ----------

    def subscribe(self, topic_name: str, topic_type: str, callback: MessageCallback) -> Subscription:
        """
        Register a callback on a topic.

        Callbacks run on the rosbridge I/O thread. The subscription is
        re-established automatically after a reconnect.

        Returns:
            Subscription handle; call unsubscribe() to drop it
        """
        return self._ts_mgr.subscribe(topic_name, topic_type, callback)

    def service_call(self, service_name: str, service_type: str, payload: Dict[str, Any],
                     timeout: Optional[float] = None, retries: Optional[int] = None) -> Dict[str, Any]:
        """
        Call a ROS service with retry logic.

        Args:
            service_name: Service name
            service_type: Service type
            payload: Service request payload
            timeout: Timeout in seconds
            retries: Number of retries

        Returns:
            Service response dictionary

        Raises:
            TimeoutError: If the last attempt timed out
            RuntimeError: If not connected
        """
        timeout = timeout or float(self._config.get("service_call_timeout", 5.0))
        retries = retries if retries is not None else int(self._config.get("service_call_retries", 2))
        last_exc: Optional[Exception] = None

        for attempt in range(1, retries + 2):
            try:
                svc = self._ensure_ts_mgr().service(service_name, service_type)
                req = roslibpy.ServiceRequest(payload or {})
                self.log.debug(f"Calling service {service_name} attempt {attempt} payload={payload}")
                with ThreadPoolExecutor(max_workers=1) as ex:
                    fut: Future = ex.submit(svc.call, req)
                    resp = fut.result(timeout=timeout)
                self.log.debug(f"Service {service_name} response: {resp}")
                return dict(resp or {})
            except FutureTimeoutError:
                last_exc = TimeoutError(f"Service call {service_name} timed out after {timeout}s")
                self.log.warning(str(last_exc))
            except Exception as e:
                last_exc = e
                self.log.warning(f"Service call {service_name} failed on attempt {attempt}: {e}")
            if attempt <= retries:
                time.sleep(exponential_backoff(0.5, attempt, 5.0))

        raise last_exc if last_exc is not None else RuntimeError("Unknown service call failure")

    def publish(self, topic_name: str, topic_type: str, message: Dict[str, Any],
                retries: Optional[int] = None) -> None:
        """
        Publish to a ROS topic with retry logic.

        Raises:
            Exception: If all retries fail
        """
        retries = retries if retries is not None else int(self._config.get("publish_retries", 2))
        last_exc: Optional[Exception] = None

        for attempt in range(1, retries + 2):
            try:
                topic = self._ensure_ts_mgr().topic(topic_name, topic_type)
                topic.publish(roslibpy.Message(message))
                self.log.debug(f"Published to {topic_name} (attempt {attempt}): {message}")
                return
            except Exception as e:
                last_exc = e
                self.log.warning(f"Publish to {topic_name} failed on attempt {attempt}: {e}")
            if attempt <= retries:
                time.sleep(0.2 * attempt)

        self.log.error(f"Failed to publish to {topic_name} after {retries + 1} attempts: {last_exc}")
        raise last_exc if last_exc is not None else RuntimeError("Unknown publish failure")

    def get_topics(self) -> Tuple[List[str], List[str]]:
        """
        List topics known to rosbridge through rosapi.

        Returns:
            Tuple of (topic names, topic types)
        """
        svc = resolve_service("topics", self._config)
        resp = self.service_call(svc.name, svc.type, {})
        return list(resp.get("topics") or []), list(resp.get("types") or [])
