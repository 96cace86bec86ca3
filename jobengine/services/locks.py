"""
Per-slot mutual exclusion. One lock per (owner, category); different slots never contend.
"""
import threading
from contextlib import contextmanager
from typing import Dict, Tuple


class SlotLocks:
    def __init__(self):
        self._locks: Dict[Tuple[str, str], threading.Lock] = {}
        self._guard = threading.Lock()

    def _lock_for(self, owner_id: str, category: str) -> threading.Lock:
        key = (str(owner_id), str(category))
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    @contextmanager
    def hold(self, owner_id: str, category: str):
        lock = self._lock_for(owner_id, category)
        with lock:
            yield
