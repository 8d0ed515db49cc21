"""Cached data fetching bound to a cache key."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, Generic, TypeVar

from loguru import logger

from mdrrmo.core.cache.base import CacheStrategy
from mdrrmo.core.logging import current_trace_id, log_context

T = TypeVar("T")

Fetcher = Callable[[], Awaitable[T]]


class SingleFlight:
    """Collapses concurrent calls for the same key into one execution.

    Callers arriving while a call for ``key`` is in flight await the same
    task instead of starting their own. Cancelling one waiter does not
    cancel the shared call.
    """

    def __init__(self) -> None:
        self._calls: dict[str, asyncio.Task[Any]] = {}

    def in_flight(self, key: str) -> bool:
        return key in self._calls

    async def do(self, key: str, func: Callable[[], Awaitable[T]]) -> T:
        task = self._calls.get(key)
        if task is None:
            task = asyncio.ensure_future(func())
            self._calls[key] = task
            task.add_done_callback(lambda done: self._forget(key, done))
        else:
            logger.debug("Joining in-flight fetch for {}", key)
        return await asyncio.shield(task)

    def _forget(self, key: str, task: asyncio.Task[Any]) -> None:
        if self._calls.get(key) is task:
            del self._calls[key]


class CachedFetch(Generic[T]):
    """Serves ``key`` from ``store`` while fresh, otherwise calls ``fetcher``.

    ``data``, ``loading`` and ``error`` describe the last load. A failed
    fetch keeps the previous ``data`` and records the exception in
    ``error``; it never raises out of ``load``.
    """

    def __init__(
        self,
        key: str,
        fetcher: Fetcher[T],
        store: CacheStrategy,
        *,
        ttl: float | None = None,
        refresh_interval: float | None = None,
        single_flight: SingleFlight | None = None,
    ):
        self.key = key
        self.fetcher = fetcher
        self.store = store
        self.ttl = ttl
        self.refresh_interval = refresh_interval
        self.data: T | None = None
        self.loading = False
        self.error: Exception | None = None
        self._single_flight = single_flight
        self._refresh_task: asyncio.Task[None] | None = None

    async def load(self, force: bool = False) -> T | None:
        """Return cached data, fetching when missing, expired or ``force``d."""
        self.loading = True
        self.error = None
        with log_context(trace_id=current_trace_id(), cache_key=self.key):
            try:
                if not force:
                    cached = await self.store.get(self.key)
                    if cached is not None:
                        logger.debug("Cache hit for {}", self.key)
                        self.data = cached
                        return cached

                result = await self._fetch()
                self.data = result
                return result
            except Exception as e:
                self.error = e
                logger.error("Cache fetch error for key {}: {!r}", self.key, e)
                return None
            finally:
                self.loading = False

    async def _fetch(self) -> T:
        if self._single_flight is None:
            return await self._fetch_and_store()
        return await self._single_flight.do(self.key, self._fetch_and_store)

    async def _fetch_and_store(self) -> T:
        result = await self.fetcher()
        if result is not None:
            await self.store.set(self.key, result, self.ttl)
        return result

    async def refresh(self) -> T | None:
        """Re-fetch and overwrite the cached value."""
        return await self.load(force=True)

    async def invalidate(self) -> T | None:
        """Drop the cached value, then re-fetch it."""
        await self.store.delete(self.key)
        return await self.load(force=True)

    async def start(self) -> T | None:
        """Perform the initial load and start auto-refresh if configured."""
        result = await self.load()
        self._start_timer()
        return result

    async def set_refresh_interval(self, interval: float | None) -> None:
        """Replace the auto-refresh period. ``None`` disables it."""
        await self._cancel_timer()
        self.refresh_interval = interval
        self._start_timer()

    async def close(self) -> None:
        """Stop auto-refresh. An in-flight fetch still completes and is stored."""
        await self._cancel_timer()

    @property
    def refreshing(self) -> bool:
        return self._refresh_task is not None and not self._refresh_task.done()

    def snapshot(self) -> dict[str, Any]:
        return {"key": self.key, "data": self.data, "loading": self.loading, "error": self.error}

    def _start_timer(self) -> None:
        if self.refresh_interval is None or self.refreshing:
            return
        self._refresh_task = asyncio.get_running_loop().create_task(
            self._refresh_loop(self.refresh_interval), name=f"refresh-{self.key}"
        )

    async def _cancel_timer(self) -> None:
        task, self._refresh_task = self._refresh_task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _refresh_loop(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            await self.load(force=True)

    async def __aenter__(self) -> "CachedFetch[T]":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
