"""Bounded in-memory store for weather icon images.

Icons are keyed by the provider's icon code (e.g. '10d'). The cache evicts the
least recently used entry once its capacity is reached, so memory use stays
bounded for the lifetime of the process.
"""

import logging
import threading
from collections import OrderedDict
from typing import Optional

from config import DEFAULT_ICON_CACHE_CAPACITY

logger = logging.getLogger(__name__)


class ImageCache:
    """A thread-safe LRU map of icon code to raw image bytes.

        ``get`` and ``put`` are O(1) and may be called from any thread. The lock
        only guards the dictionary operations themselves.

        Attributes:
            capacity: Maximum number of entries held at once.
    """
    def __init__(self, capacity: int = DEFAULT_ICON_CACHE_CAPACITY):
        if capacity < 1:
            raise ValueError(f"capacity must be a positive integer, got {capacity!r}")
        self.capacity = capacity
        self._entries: "OrderedDict[str, bytes]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[bytes]:
        """Returns the bytes stored under key and marks it as recently used, or None if absent."""
        with self._lock:
            data = self._entries.get(key)
            if data is not None:
                self._entries.move_to_end(key)
            return data

    def put(self, key: str, data: bytes) -> None:
        """Stores data under key, evicting the least recently used entry when full.

            Raises:
                ValueError: If key is empty.
        """
        if not key:
            raise ValueError("cache key must be a non-empty string")
        with self._lock:
            self._entries[key] = data
            self._entries.move_to_end(key)
            while len(self._entries) > self.capacity:
                evicted_key, _ = self._entries.popitem(last=False)
                logger.debug("Evicted icon %r from cache", evicted_key)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self):
        with self._lock:
            return len(self._entries)

    def __contains__(self, key):
        with self._lock:
            return key in self._entries

    def __repr__(self):
        return f"{self.__class__.__name__}(capacity={self.capacity!r}, size={len(self)!r})"
