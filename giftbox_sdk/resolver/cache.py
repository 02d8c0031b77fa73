"""
Time-bounded store for alias resolution outcomes.
"""
import threading
import time
from typing import Callable, Optional

from cachetools import TTLCache

from ..config import ALIAS_CACHE_TTL
from ..models import ResolutionCacheEntry


class ResolutionCache:
    """
    In-memory map from normalized alias to its last resolution outcome.

    Entries older than ``ttl`` seconds are never returned. Failed lookups are
    cached too, so the same dead alias is not retried within the window.
    Pass a ``timer`` to control the clock in tests.
    """

    def __init__(
        self,
        ttl: float = ALIAS_CACHE_TTL,
        maxsize: int = 1024,
        timer: Callable[[], float] = time.time
    ):
        self.ttl = ttl
        self.timer = timer
        self._entries: TTLCache = TTLCache(maxsize=maxsize, ttl=ttl, timer=timer)
        self._lock = threading.RLock()

    def get(self, key: str) -> Optional[ResolutionCacheEntry]:
        with self._lock:
            return self._entries.get(key)

    def set(self, entry: ResolutionCacheEntry) -> None:
        with self._lock:
            self._entries[entry.key] = entry

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def now(self) -> float:
        return self.timer()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries
