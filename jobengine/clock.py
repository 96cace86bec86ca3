"""
Authoritative time source. All durations are integer seconds since the epoch.
"""
import threading
import time


class Clock:
    def now(self) -> int:
        raise NotImplementedError


class SystemClock(Clock):
    """Wall clock of the server; client time is never consulted."""

    def now(self) -> int:
        return int(time.time())


class FrozenClock(Clock):
    """Manually advanced clock for tests and replays"""

    def __init__(self, start: int = 1_700_000_000):
        self._now = int(start)
        self._lock = threading.Lock()

    def now(self) -> int:
        with self._lock:
            return self._now

    def advance(self, seconds: int) -> int:
        with self._lock:
            self._now += int(seconds)
            return self._now

    def set(self, value: int):
        with self._lock:
            self._now = int(value)
