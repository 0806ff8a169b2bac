"""Topic and Service manager for ROS connections."""
import itertools
import logging
import threading
from typing import Callable, Dict, List, Optional, Tuple

import roslibpy

MessageCallback = Callable[[dict], None]


class Subscription:
    """Handle for one callback registered on a topic."""

    def __init__(self, manager: "TopicServiceManager", name: str, sub_id: int):
        self._manager = manager
        self.name = name
        self.id = sub_id
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def unsubscribe(self) -> None:
        """Remove this callback; idempotent."""
        if self._active:
            self._active = False
            self._manager._remove(self.name, self.id)

    def __repr__(self) -> str:
        return f"Subscription(name={self.name}, id={self.id}, active={self._active})"


class TopicServiceManager:
    """
    Owns every roslibpy Topic and Service of one connection.

    Handles are keyed by name only. Any number of callbacks may subscribe to
    the same topic; they share a single rosbridge subscription and each
    inbound message is fanned out to all of them.
    """

    def __init__(self, ros: Optional[roslibpy.Ros], conn_id: str, logger_level: int = logging.DEBUG):
        """
        Initialize the TopicServiceManager.

        Args:
            ros: roslibpy.Ros instance (may be None until the first connect)
            conn_id: Connection identifier for logging
            logger_level: Logging level
        """
        self._ros = ros

        self._topics: Dict[str, roslibpy.Topic] = {}
        self._services: Dict[str, roslibpy.Service] = {}
        # name -> (type, {sub_id: callback})
        self._subscribers: Dict[str, Tuple[str, Dict[int, MessageCallback]]] = {}
        self._live: set = set()
        self._ids = itertools.count(1)

        self._lock = threading.RLock()

        self.log = logging.getLogger(f"TopicService[{conn_id}]")
        self.log.setLevel(logger_level)

    @property
    def ros(self) -> Optional[roslibpy.Ros]:
        return self._ros

    # ----------------------------------------------------------------------
    # Topic
    # ----------------------------------------------------------------------
    def topic(self, name: str, ttype: str = "") -> roslibpy.Topic:
        """
        Get or create topic by name only. Type is optional and ignored for key.

        Raises:
            RuntimeError: If no connection is bound
        """
        with self._lock:
            if self._ros is None:
                raise RuntimeError("Not connected to ROS")
            if name not in self._topics:
                self._topics[name] = roslibpy.Topic(self._ros, name, ttype)
                self.log.debug(f"Created topic '{name}'")
            return self._topics[name]

    def subscribe(self, name: str, ttype: str, callback: MessageCallback) -> Subscription:
        """
        Register a callback on a topic.

        The rosbridge subscription is issued immediately when a connection is
        bound, otherwise on the next rebind().

        Returns:
            Subscription handle
        """
        with self._lock:
            entry = self._subscribers.get(name)
            if entry is None:
                entry = (ttype, {})
                self._subscribers[name] = entry
            sub_id = next(self._ids)
            entry[1][sub_id] = callback
            if self._ros is not None and name not in self._live:
                self._start(name, entry[0] or ttype)
            self.log.debug(f"Added subscriber {sub_id} to '{name}' ({len(entry[1])} total)")
            return Subscription(self, name, sub_id)

    def subscriber_count(self, name: str) -> int:
        with self._lock:
            entry = self._subscribers.get(name)
            return len(entry[1]) if entry else 0

    def subscribed_topics(self) -> List[str]:
        with self._lock:
            return list(self._subscribers.keys())

    def _start(self, name: str, ttype: str) -> None:
        topic = self.topic(name, ttype)
        topic.subscribe(lambda msg, _name=name: self._dispatch(_name, msg))
        self._live.add(name)
        self.log.info(f"Subscribed topic '{name}'")

    def _dispatch(self, name: str, msg: dict) -> None:
        with self._lock:
            entry = self._subscribers.get(name)
            callbacks = list(entry[1].values()) if entry else []
        for cb in callbacks:
            try:
                cb(msg)
            except Exception as e:
                self.log.exception(f"Subscriber callback for '{name}' failed: {e}")

    def _remove(self, name: str, sub_id: int) -> None:
        with self._lock:
            entry = self._subscribers.get(name)
            if not entry:
                return
            entry[1].pop(sub_id, None)
            if entry[1]:
                return
            del self._subscribers[name]
            if name in self._live:
                self._live.discard(name)
                topic = self._topics.get(name)
                if topic is not None:
                    try:
                        topic.unsubscribe()
                        self.log.info(f"Unsubscribed topic '{name}'")
                    except Exception as e:
                        self.log.warning(f"Failed to unsubscribe topic '{name}': {e}")

    # ----------------------------------------------------------------------
    # Service
    # ----------------------------------------------------------------------
    def service(self, name: str, stype: str = "") -> roslibpy.Service:
        """
        Get or create service by name only. Type is optional and ignored for key.

        Raises:
            RuntimeError: If no connection is bound
        """
        with self._lock:
            if self._ros is None:
                raise RuntimeError("Not connected to ROS")
            if name not in self._services:
                self._services[name] = roslibpy.Service(self._ros, name, stype)
                self.log.debug(f"Created service '{name}'")
            return self._services[name]

    # ----------------------------------------------------------------------
    # Connection changes
    # ----------------------------------------------------------------------
    def rebind(self, ros: Optional[roslibpy.Ros]) -> None:
        """
        Move onto a new connection.

        Cached handles belong to the old socket and are dropped; every
        registered subscription is re-issued on the new one.
        """
        with self._lock:
            self._topics.clear()
            self._services.clear()
            self._live.clear()
            self._ros = ros
            if ros is None:
                return
            for name, (ttype, callbacks) in list(self._subscribers.items()):
                if callbacks:
                    try:
                        self._start(name, ttype)
                    except Exception as e:
                        self.log.warning(f"Failed to resubscribe '{name}': {e}")

    # ----------------------------------------------------------------------
    # Cleanup
    # ----------------------------------------------------------------------
    def close_all(self) -> None:
        """Close all topics and services and forget every subscriber."""
        with self._lock:
            for name, t in list(self._topics.items()):
                try:
                    t.unsubscribe()
                    self.log.info(f"Unsubscribed topic '{name}'")
                except Exception as e:
                    self.log.warning(f"Failed to unsubscribe topic '{name}': {e}")

            for name, s in list(self._services.items()):
                try:
                    if hasattr(s, "unadvertise"):
                        s.unadvertise()
                        self.log.info(f"Unadvertised service '{name}'")
                except Exception as e:
                    self.log.warning(f"Failed to unadvertise service '{name}': {e}")

            self._topics.clear()
            self._services.clear()
            self._subscribers.clear()
            self._live.clear()
            self.log.info("Cleared all topics and services.")
