"""
Recently viewed keys.
"""

import threading
from typing import List

from ecdict_lookup.settings import HISTORY_SIZE


class RecencyCache:
    """
    Bounded most-recent-first list of distinct keys.

    Adding a key that is already present moves it to the front. All access
    is serialized by one lock, and readers only ever get copies.
    """

    def __init__(self, capacity: int = HISTORY_SIZE):
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self.capacity = capacity
        self._items: List[str] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def add(self, key: str):
        with self._lock:
            try:
                self._items.remove(key)
            except ValueError:
                pass
            self._items.insert(0, key)
            del self._items[self.capacity:]

    def snapshot(self) -> List[str]:
        """Copy of the keys, most recent first."""
        with self._lock:
            return list(self._items)

    def clear(self):
        with self._lock:
            self._items.clear()
