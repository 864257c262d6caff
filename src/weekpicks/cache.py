"""Small in-process TTL cache with explicit invalidation."""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Hashable, Tuple, TypeVar


logger = logging.getLogger(__name__)

T = TypeVar("T")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TTLCache:
    def __init__(self, clock: Callable[[], datetime] = _utc_now) -> None:
        self._clock = clock
        self._entries: Dict[Hashable, Tuple[datetime, Any]] = {}
        self._lock = threading.Lock()

    def get_or_refresh(self, key: Hashable, ttl: float, loader: Callable[[], T]) -> T:
        """Return the cached value for ``key`` or load, store and return a fresh one.

        A ``ttl`` of zero or less disables caching for the call.
        """

        now = self._clock()
        if ttl > 0:
            with self._lock:
                entry = self._entries.get(key)
            if entry is not None and entry[0] > now:
                logger.debug("Cache hit for %s", key)
                return entry[1]

        value = loader()
        if ttl > 0:
            with self._lock:
                self._entries[key] = (now + timedelta(seconds=ttl), value)
        return value

    def invalidate(self, key: Hashable) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def invalidate_prefix(self, prefix: Tuple[Any, ...]) -> int:
        """Drop every tuple key starting with ``prefix``."""

        size = len(prefix)
        with self._lock:
            doomed = [
                key for key in self._entries
                if isinstance(key, tuple) and key[:size] == prefix
            ]
            for key in doomed:
                del self._entries[key]
        return len(doomed)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
