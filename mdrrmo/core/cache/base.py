"""Cache strategy interface and shared sweep lifecycle."""

from __future__ import annotations

import asyncio
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from loguru import logger

from mdrrmo.core.cache.entry import CacheStats

Clock = Callable[[], float]


class CacheStrategy(ABC):
    """Abstract key-value store with TTL expiry.

    Expired entries are never returned. They are removed lazily on read and
    proactively by ``cleanup()``, which ``start()`` schedules every
    ``cleanup_interval`` seconds.
    """

    name = "cache"

    def __init__(
        self,
        default_ttl: float,
        cleanup_interval: float | None = None,
        clock: Clock = time.time,
    ):
        self.default_ttl = default_ttl
        self.cleanup_interval = cleanup_interval
        self._clock = clock
        self._sweep_task: asyncio.Task[None] | None = None

    def now(self) -> float:
        return self._clock()

    def resolve_ttl(self, ttl: float | None) -> float:
        return self.default_ttl if ttl is None else ttl

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Return the cached value, or ``None`` if absent or expired."""

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        """Store ``value`` until ``now + ttl``, replacing any existing entry.

        ``None`` is never stored; setting it removes the key.
        """

    @abstractmethod
    async def has(self, key: str) -> bool:
        """Whether a valid entry exists. Never deletes."""

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Remove the entry, returning whether one was present."""

    @abstractmethod
    async def clear(self) -> None:
        """Remove every entry."""

    @abstractmethod
    async def get_ttl(self, key: str) -> float | None:
        """Remaining lifetime in seconds, or ``None`` if absent or expired."""

    @abstractmethod
    async def get_stats(self) -> CacheStats:
        """Scan all entries against the current clock."""

    @abstractmethod
    async def cleanup(self) -> int:
        """Delete every expired entry, returning how many were removed."""

    @property
    def running(self) -> bool:
        return self._sweep_task is not None and not self._sweep_task.done()

    def start(self) -> None:
        """Start the periodic sweep. Must be called from a running event loop."""
        if self.cleanup_interval is None:
            logger.debug("{} cache has no cleanup interval, sweep not started", self.name)
            return
        if self.running:
            return
        self._sweep_task = asyncio.get_running_loop().create_task(
            self._sweep_loop(self.cleanup_interval), name=f"{self.name}-cache-sweep"
        )

    async def stop(self) -> None:
        """Cancel the periodic sweep and wait for it to finish."""
        task, self._sweep_task = self._sweep_task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _sweep_loop(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                removed = await self.cleanup()
            except Exception:
                logger.exception("{} cache sweep failed", self.name)
                continue
            if removed:
                logger.debug("{} cache sweep removed {} expired entries", self.name, removed)
