"""Connection state enumeration and snapshot."""
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ConnectionState(Enum):
    """Lifecycle states of a rosbridge connection."""
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    RECONNECTING = "reconnecting"
    ERROR = "error"
    CLOSED = "closed"


@dataclass(frozen=True)
class ConnectionInfo:
    """Point-in-time view of a connection."""
    url: str
    state: ConnectionState
    last_error: Optional[str] = None

    @property
    def is_connected(self) -> bool:
        return self.state == ConnectionState.CONNECTED
