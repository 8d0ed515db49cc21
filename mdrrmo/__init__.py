"""mdrrmo - caching and backend diagnostics for the MDRRMO information site.

Data shown on the public site is fetched through ``CachedFetch`` bindings
that serve fresh values from a volatile or persistent cache and fall back to
stale data when the backend is unreachable. ``Diagnostics`` produces the
operations-panel health report.
"""

from mdrrmo.core.cache import (
    CacheContext,
    CachedFetch,
    CacheStats,
    DuckDBCache,
    InMemoryCache,
    ModelCodec,
)
from mdrrmo.core.config import ConfigManager, MdrrmoConfig
from mdrrmo.core.health import Diagnostics, DiagnosticsReport, SupabaseClient

__version__ = "0.1.0"

__all__ = [
    "CacheContext",
    "CachedFetch",
    "CacheStats",
    "InMemoryCache",
    "DuckDBCache",
    "ModelCodec",
    "ConfigManager",
    "MdrrmoConfig",
    "Diagnostics",
    "DiagnosticsReport",
    "SupabaseClient",
    "__version__",
]
