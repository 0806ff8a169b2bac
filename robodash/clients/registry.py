"""Process-wide registry handing out one client per rosbridge endpoint."""
import threading
from typing import Any, Callable, Dict, Optional
from urllib.parse import urlparse

from ..core.base import RobotClientBase
from ..utils.logger import setup_logger
from .ros_client import RobotClient, stop_event_loop

ClientFactory = Callable[[str, Optional[Dict[str, Any]]], RobotClientBase]

_clients: Dict[str, RobotClientBase] = {}
_lock = threading.Lock()
log = setup_logger("ClientRegistry")


def normalize_url(url: str) -> str:
    """Canonical form used as the registry key: scheme://host:port."""
    parsed = urlparse(url.strip())
    if parsed.scheme not in ("ws", "wss") or not parsed.hostname:
        raise ValueError(f"Invalid WebSocket URL: {url}")
    return f"{parsed.scheme}://{parsed.hostname.lower()}:{parsed.port or 9090}"


def shared_client(url: str, config: Optional[Dict[str, Any]] = None,
                  factory: ClientFactory = RobotClient) -> RobotClientBase:
    """
    Get the client for an endpoint, creating it on first use.

    Later callers get the same instance; their config is ignored.
    """
    key = normalize_url(url)
    with _lock:
        client = _clients.get(key)
        if client is None:
            client = factory(url, config)
            _clients[key] = client
            log.info(f"Created shared client for {key}")
        return client


def release_client(url: str) -> bool:
    """
    Terminate and forget the client for an endpoint.

    Returns:
        True if a client was registered
    """
    key = normalize_url(url)
    with _lock:
        client = _clients.pop(key, None)
    if client is None:
        return False
    try:
        client.terminate()
    except Exception as e:
        log.warning(f"Failed to terminate client for {key}: {e}")
    return True


def release_all() -> None:
    """Terminate every registered client."""
    with _lock:
        clients = list(_clients.items())
        _clients.clear()
    for key, client in clients:
        try:
            client.terminate()
        except Exception as e:
            log.warning(f"Failed to terminate client for {key}: {e}")


def shutdown() -> None:
    """
    Release every client and stop the rosbridge I/O loop.

    For process exit only: the loop cannot be restarted, so clients created
    afterwards never connect.
    """
    release_all()
    stop_event_loop()
    log.info("rosbridge I/O loop stopped")
