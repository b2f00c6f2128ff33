"""In-memory cache of fetched user stats."""

import threading
import time
from collections.abc import Callable

from cachetools import LRUCache

from owbot.owapi.models import UserStats

# Number of user stats entries to keep
DEFAULT_CACHE_SIZE = 200

# Seconds before user stats are considered stale and should be re-fetched
DEFAULT_CACHE_TTL = 5 * 60.0


class StatsCache:
    """LRU cache of :class:`UserStats` keyed by normalized BattleTag.

    An entry stays valid while no more than ``ttl`` seconds have passed
    since it was stored; expired entries read as absent. Safe to share
    between threads.
    """

    def __init__(
        self,
        maxsize: int = DEFAULT_CACHE_SIZE,
        ttl: float = DEFAULT_CACHE_TTL,
        timer: Callable[[], float] = time.monotonic,
    ):
        self.maxsize = maxsize
        self.ttl = ttl
        self._timer = timer
        self._lock = threading.Lock()
        # Values are (stored at, stats)
        self._entries = LRUCache(maxsize=maxsize)

    def get(self, key: str) -> UserStats | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            stored_at, stats = entry
            if self._timer() - stored_at > self.ttl:
                del self._entries[key]
                return None
            return stats

    def put(self, key: str, value: UserStats) -> None:
        with self._lock:
            self._entries[key] = (self._timer(), value)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
