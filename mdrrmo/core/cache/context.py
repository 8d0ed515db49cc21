"""Explicitly owned cache stores for an application."""

from __future__ import annotations

import time
from pathlib import Path

from loguru import logger

from mdrrmo.core.cache.base import CacheStrategy, Clock
from mdrrmo.core.cache.fetch import CachedFetch, Fetcher, SingleFlight, T
from mdrrmo.core.cache.memory import InMemoryCache
from mdrrmo.core.cache.persistent import DuckDBCache
from mdrrmo.core.config import CacheConfig


class CacheContext:
    """Holds the volatile and persistent stores and hands out bindings.

    The two stores are independent; invalidating one never touches the
    other. ``start()`` launches the periodic sweeps, ``stop()`` cancels them
    and closes the persistent store.
    """

    def __init__(self, volatile: InMemoryCache | None = None, persistent: DuckDBCache | None = None):
        self.volatile = volatile if volatile is not None else InMemoryCache()
        self.persistent = persistent if persistent is not None else DuckDBCache()
        self._flights = {id(self.volatile): SingleFlight(), id(self.persistent): SingleFlight()}

    @classmethod
    def from_config(cls, config: CacheConfig, clock: Clock = time.time) -> "CacheContext":
        if config.persistent_path != ":memory:":
            Path(config.persistent_path).parent.mkdir(parents=True, exist_ok=True)
        return cls(
            volatile=InMemoryCache(
                default_ttl=config.default_ttl,
                cleanup_interval=config.cleanup_interval,
                clock=clock,
            ),
            persistent=DuckDBCache(
                db_path=config.persistent_path,
                default_ttl=config.persistent_ttl,
                clock=clock,
            ),
        )

    def store(self, persistent: bool = False) -> CacheStrategy:
        return self.persistent if persistent else self.volatile

    def bind(
        self,
        key: str,
        fetcher: Fetcher[T],
        *,
        ttl: float | None = None,
        persistent: bool = False,
        refresh_interval: float | None = None,
    ) -> CachedFetch[T]:
        """Create a binding of ``key`` to ``fetcher`` on the chosen store."""
        store = self.store(persistent)
        return CachedFetch(
            key,
            fetcher,
            store,
            ttl=ttl,
            refresh_interval=refresh_interval,
            single_flight=self._flights[id(store)],
        )

    def start(self) -> None:
        self.volatile.start()
        self.persistent.start()
        logger.debug("Cache context started")

    async def stop(self) -> None:
        await self.volatile.stop()
        await self.persistent.stop()
        self.persistent.close()
        logger.debug("Cache context stopped")

    async def __aenter__(self) -> "CacheContext":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.stop()
