"""
In-memory TTL cache

Instances are created explicitly by their owner (usually once at process start)
and passed to the components that need them; `close()` tears the cache down.
"""
import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Dict, Generic, Hashable, Optional, Tuple, TypeVar

V = TypeVar("V")


class CacheClosedError(RuntimeError):
    """Raised when a closed cache is used"""
    pass


class TTLCache(Generic[V]):
    """
    Thread-safe key/value cache with per-entry expiry

    Entries expire `ttl_seconds` after they were written. When `max_entries`
    is reached, expired entries are purged first and then the oldest entry
    is evicted.
    """

    def __init__(
        self,
        ttl_seconds: float,
        max_entries: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
        name: str = "cache"
    ):
        if ttl_seconds < 0:
            raise ValueError("ttl_seconds must be >= 0")
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be >= 1")

        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self.name = name
        self._clock = clock
        self._entries: "OrderedDict[Hashable, Tuple[V, float]]" = OrderedDict()
        self._lock = threading.RLock()
        self._closed = False
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def _ensure_open(self) -> None:
        if self._closed:
            raise CacheClosedError(f"Cache '{self.name}' is closed")

    def get(self, key: Hashable) -> Optional[V]:
        """Return the cached value or None if missing or expired"""
        with self._lock:
            self._ensure_open()
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None

            value, expires_at = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                self._misses += 1
                return None

            self._hits += 1
            return value

    def set(self, key: Hashable, value: V, ttl_seconds: Optional[float] = None) -> None:
        """Store a value; a ttl of 0 means the value is never served"""
        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        with self._lock:
            self._ensure_open()
            if key in self._entries:
                del self._entries[key]
            elif self.max_entries is not None and len(self._entries) >= self.max_entries:
                self._purge_expired_locked()
                while len(self._entries) >= self.max_entries:
                    self._entries.popitem(last=False)
                    self._evictions += 1
            self._entries[key] = (value, self._clock() + ttl)

    def delete(self, key: Hashable) -> bool:
        with self._lock:
            self._ensure_open()
            return self._entries.pop(key, None) is not None

    def purge_expired(self) -> int:
        """Drop expired entries, returning how many were removed"""
        with self._lock:
            self._ensure_open()
            return self._purge_expired_locked()

    def _purge_expired_locked(self) -> int:
        now = self._clock()
        expired = [key for key, (_, expires_at) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]
        self._evictions += len(expired)
        return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def close(self) -> None:
        """Release all entries; further use raises CacheClosedError"""
        with self._lock:
            self._entries.clear()
            self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "name": self.name,
                "entries": len(self._entries),
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
                "closed": self._closed,
            }

    def __contains__(self, key: Hashable) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
