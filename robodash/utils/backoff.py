"""Backoff and rate-limiting utilities."""
import random
import threading
import time
from typing import Callable


def exponential_backoff(base: float, attempt: int, max_backoff: float, jitter_fraction: float = 0.2) -> float:
    """
    Calculate exponential backoff time with jitter.

    Args:
        base: Base backoff time in seconds
        attempt: Current attempt number (1-indexed)
        max_backoff: Maximum backoff time in seconds
        jitter_fraction: Fraction of backoff time to use as jitter (0.0 to 1.0)

    Returns:
        Backoff time in seconds
    """
    backoff = min(max_backoff, base * (2 ** (max(attempt, 1) - 1)))
    jitter = random.uniform(0, backoff * jitter_fraction)
    return backoff + jitter


class Throttle:
    """
    Lets an action through at most once per interval.

    Slider drags produce a stream of values; only one publish per
    ``interval`` seconds is allowed through.
    """

    def __init__(self, interval: float, clock: Callable[[], float] = time.monotonic):
        self.interval = float(interval)
        self._clock = clock
        self._last = None
        self._lock = threading.Lock()

    def ready(self) -> bool:
        """Return True (and start a new interval) if the action may fire now."""
        with self._lock:
            now = self._clock()
            if self._last is None or now - self._last >= self.interval:
                self._last = now
                return True
            return False

    def remaining(self) -> float:
        """Seconds until the action may fire again; 0 when it may fire now."""
        with self._lock:
            if self._last is None:
                return 0.0
            return max(0.0, self.interval - (self._clock() - self._last))

    def mark(self) -> None:
        """Record that the action fired now, starting a new interval."""
        with self._lock:
            self._last = self._clock()

    def reset(self) -> None:
        with self._lock:
            self._last = None
