"""Small in-memory TTL cache.

Used by the dashboard routes to avoid re-aggregating the full record set on
every request.  Keys must be hashable; values are returned as stored (callers
must not mutate them).
"""

import threading
import time
from typing import Any, Callable


class TTLCache:
    """Thread-safe cache whose entries expire ``ttl_seconds`` after being set.

    When ``maxsize`` entries are held, the entry closest to expiry is evicted
    to make room.

    Usage::

        cache = TTLCache(maxsize=16, ttl_seconds=60)
        stats = cache.get_or_set(("stats", "2024-03-10"), lambda: compute())
    """

    def __init__(self, maxsize: int = 128, ttl_seconds: float = 300.0) -> None:
        self._maxsize = maxsize
        self._ttl = ttl_seconds
        # key -> (value, expires_at)
        self._store: dict[Any, tuple[Any, float]] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def get(self, key: Any) -> Any | None:
        """Return the cached value, or None if absent or expired."""
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                self._misses += 1
                return None
            value, expires_at = entry
            if time.monotonic() > expires_at:
                del self._store[key]
                self._misses += 1
                return None
            self._hits += 1
            return value

    def set(self, key: Any, value: Any) -> None:
        expires_at = time.monotonic() + self._ttl
        with self._lock:
            if key not in self._store and len(self._store) >= self._maxsize:
                soonest = min(self._store, key=lambda k: self._store[k][1])
                del self._store[soonest]
            self._store[key] = (value, expires_at)

    def get_or_set(self, key: Any, factory: Callable[[], Any]) -> Any:
        """Return the cached value for *key*, computing and storing it on a miss.

        A zero or negative TTL disables caching: *factory* runs every time.
        """
        if self._ttl <= 0:
            return factory()
        value = self.get(key)
        if value is None:
            value = factory()
            self.set(key, value)
        return value

    def stats(self) -> dict[str, int]:
        """Return ``{hits, misses, size}`` after purging expired entries."""
        with self._lock:
            now = time.monotonic()
            for k in [k for k, (_, exp) in self._store.items() if now > exp]:
                del self._store[k]
            return {
                "hits": self._hits,
                "misses": self._misses,
                "size": len(self._store),
            }
