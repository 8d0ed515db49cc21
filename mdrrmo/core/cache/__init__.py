"""Caching layer: volatile and persistent stores plus cached fetching."""

from mdrrmo.core.cache.base import CacheStrategy
from mdrrmo.core.cache.codec import CacheCodec, JSONCodec, ModelCodec
from mdrrmo.core.cache.context import CacheContext
from mdrrmo.core.cache.entry import CacheEntry, CacheStats
from mdrrmo.core.cache.fetch import CachedFetch, SingleFlight
from mdrrmo.core.cache.memory import InMemoryCache
from mdrrmo.core.cache.persistent import DuckDBCache

__all__ = [
    "CacheStrategy",
    "CacheEntry",
    "CacheStats",
    "CacheCodec",
    "JSONCodec",
    "ModelCodec",
    "InMemoryCache",
    "DuckDBCache",
    "CachedFetch",
    "SingleFlight",
    "CacheContext",
]
