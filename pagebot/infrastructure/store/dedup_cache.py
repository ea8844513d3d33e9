from __future__ import annotations

import logging
import threading

from pagebot.application.exceptions import DuplicateEvent
from pagebot.application.ports.dedup_cache import DedupCachePort


class MemoryDedupCache(DedupCachePort):
    """
    Bounded set of processed event ids.

    Past capacity the whole set is dropped (not LRU): an event re-delivered
    right after a reset is processed again.
    """

    def __init__(self, capacity: int = 1000) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self._capacity = capacity
        self._seen: set[str] = set()
        self._lock = threading.Lock()
        self._logger = logging.getLogger(__name__)

    def claim(self, event_id: str) -> None:
        with self._lock:
            if event_id in self._seen:
                raise DuplicateEvent(event_id)
            if len(self._seen) >= self._capacity:
                self._logger.info("Dedup cache full, clearing", extra={"count": len(self._seen)})
                self._seen.clear()
            self._seen.add(event_id)

    def seen(self, event_id: str) -> bool:
        with self._lock:
            return event_id in self._seen

    def reset_if_full(self) -> int:
        with self._lock:
            size = len(self._seen)
            if size < self._capacity:
                return 0
            self._seen.clear()
        self._logger.info("Cleared processed event ids", extra={"count": size})
        return size

    def __len__(self) -> int:
        with self._lock:
            return len(self._seen)
