"""Thread-safe in-memory (volatile) cache."""

import json
import time
from threading import Lock
from typing import Any

from loguru import logger

from mdrrmo.core.cache.base import CacheStrategy, Clock
from mdrrmo.core.cache.entry import CacheEntry, CacheStats

DEFAULT_TTL = 5 * 60
DEFAULT_CLEANUP_INTERVAL = 10 * 60


class InMemoryCache(CacheStrategy):
    """Volatile cache held in process memory, cleared on restart."""

    name = "memory"

    def __init__(
        self,
        default_ttl: float = DEFAULT_TTL,
        cleanup_interval: float | None = DEFAULT_CLEANUP_INTERVAL,
        clock: Clock = time.time,
    ):
        super().__init__(default_ttl, cleanup_interval, clock)
        self._cache: dict[str, CacheEntry] = {}
        self._lock = Lock()

    async def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                return None

            if entry.is_expired(self.now()):
                del self._cache[key]
                logger.debug("Evicted expired entry {}", key)
                return None

            return entry.value

    async def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        if value is None:
            await self.delete(key)
            return
        entry = CacheEntry.create(key, value, self.resolve_ttl(ttl), self.now())
        with self._lock:
            self._cache[key] = entry

    async def has(self, key: str) -> bool:
        with self._lock:
            entry = self._cache.get(key)
            return entry is not None and entry.is_valid(self.now())

    async def delete(self, key: str) -> bool:
        with self._lock:
            return self._cache.pop(key, None) is not None

    async def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    async def get_ttl(self, key: str) -> float | None:
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                return None
            now = self.now()
            if entry.is_expired(now):
                del self._cache[key]
                return None
            return entry.remaining(now)

    async def get_stats(self) -> CacheStats:
        now = self.now()
        with self._lock:
            entries = list(self._cache.values())

        expired = sum(1 for entry in entries if entry.is_expired(now))
        snapshot = [[entry.key, {"data": entry.value, "expiry": entry.expires_at}] for entry in entries]
        return CacheStats(
            total_items=len(entries),
            expired_items=expired,
            valid_items=len(entries) - expired,
            memory_usage_estimate=len(json.dumps(snapshot, default=str)),
        )

    async def cleanup(self) -> int:
        now = self.now()
        with self._lock:
            expired = [key for key, entry in self._cache.items() if entry.is_expired(now)]
            for key in expired:
                del self._cache[key]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    def size(self) -> int:
        return len(self)
