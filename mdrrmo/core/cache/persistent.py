"""DuckDB backed persistent cache."""

import time
from collections.abc import Sequence
from threading import Lock
from typing import Any

import duckdb
from duckdb import DuckDBPyConnection
from loguru import logger

from mdrrmo.core.cache.base import CacheStrategy, Clock
from mdrrmo.core.cache.codec import CacheCodec, JSONCodec
from mdrrmo.core.cache.entry import CacheStats
from mdrrmo.core.exceptions import StorageError

DEFAULT_TTL = 24 * 60 * 60


class DuckDBCache(CacheStrategy):
    """Persistent cache surviving restarts.

    Every key occupies its own row and is serialized independently. Storage
    failures (unserializable values, corrupt payloads, database errors) are
    logged and behave as a cache miss; nothing raises out of this class.
    """

    name = "persistent"

    def __init__(
        self,
        db_path: str = ":memory:",
        default_ttl: float = DEFAULT_TTL,
        cleanup_interval: float | None = None,
        clock: Clock = time.time,
        codec: CacheCodec | None = None,
    ):
        super().__init__(default_ttl, cleanup_interval, clock)
        self.db_path = db_path
        self._codec = codec or JSONCodec()
        self._codecs: dict[str, CacheCodec] = {}
        self._lock = Lock()
        self._conn: DuckDBPyConnection | None = None
        self._init_database()

    def _init_database(self) -> None:
        try:
            self._conn = duckdb.connect(self.db_path)
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS cache_entries (
                    key VARCHAR PRIMARY KEY,
                    payload VARCHAR NOT NULL,
                    created_at DOUBLE NOT NULL,
                    expires_at DOUBLE NOT NULL
                )
            """)
        except duckdb.Error as e:
            logger.warning("Persistent cache unavailable at {}: {}", self.db_path, e)
            self._conn = None

    def register_codec(self, namespace: str, codec: CacheCodec) -> None:
        """Use ``codec`` for ``namespace`` and every ``namespace:*`` key."""
        self._codecs[namespace] = codec

    def _codec_for(self, key: str) -> CacheCodec:
        return self._codecs.get(key.split(":", 1)[0], self._codec)

    def _execute(self, sql: str, params: Sequence[Any], key: str | None, operation: str) -> list[tuple]:
        if self._conn is None:
            raise StorageError("Persistent cache is not connected", key, operation)
        try:
            with self._lock:
                return self._conn.execute(sql, list(params)).fetchall()
        except duckdb.Error as e:
            raise StorageError(str(e), key, operation) from e

    def _encode(self, key: str, value: Any) -> str:
        try:
            return self._codec_for(key).dumps(value)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Cannot serialize value: {e}", key, "encode") from e

    def _decode(self, key: str, payload: str) -> Any:
        try:
            return self._codec_for(key).loads(payload)
        except ValueError as e:
            raise StorageError(f"Corrupt payload: {e}", key, "decode") from e

    def _discard(self, key: str) -> None:
        try:
            self._execute("DELETE FROM cache_entries WHERE key = ?", [key], key, "delete")
        except StorageError as e:
            logger.warning("Failed to discard {} from persistent cache: {}", key, e)

    async def get(self, key: str) -> Any | None:
        try:
            rows = self._execute(
                "SELECT payload, expires_at FROM cache_entries WHERE key = ?", [key], key, "get"
            )
            if not rows:
                return None

            payload, expires_at = rows[0]
            if self.now() > expires_at:
                self._discard(key)
                return None

            return self._decode(key, payload)
        except StorageError as e:
            logger.warning("Failed to read {} from persistent cache: {}", key, e)
            if e.operation == "decode":
                self._discard(key)
            return None

    async def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        if value is None:
            await self.delete(key)
            return
        now = self.now()
        try:
            payload = self._encode(key, value)
            self._execute(
                "INSERT OR REPLACE INTO cache_entries (key, payload, created_at, expires_at) VALUES (?, ?, ?, ?)",
                [key, payload, now, now + self.resolve_ttl(ttl)],
                key,
                "set",
            )
        except StorageError as e:
            logger.warning("Failed to save {} to persistent cache: {}", key, e)

    async def has(self, key: str) -> bool:
        try:
            rows = self._execute(
                "SELECT 1 FROM cache_entries WHERE key = ? AND expires_at >= ?", [key, self.now()], key, "has"
            )
        except StorageError as e:
            logger.warning("Failed to check {} in persistent cache: {}", key, e)
            return False
        return bool(rows)

    async def delete(self, key: str) -> bool:
        try:
            rows = self._execute("DELETE FROM cache_entries WHERE key = ? RETURNING key", [key], key, "delete")
        except StorageError as e:
            logger.warning("Failed to delete {} from persistent cache: {}", key, e)
            return False
        return bool(rows)

    async def clear(self) -> None:
        try:
            self._execute("DELETE FROM cache_entries", [], None, "clear")
        except StorageError as e:
            logger.warning("Failed to clear persistent cache: {}", e)

    async def get_ttl(self, key: str) -> float | None:
        now = self.now()
        try:
            rows = self._execute(
                "SELECT expires_at FROM cache_entries WHERE key = ? AND expires_at >= ?", [key, now], key, "get_ttl"
            )
        except StorageError as e:
            logger.warning("Failed to read TTL of {} from persistent cache: {}", key, e)
            return None
        if not rows:
            return None
        return max(0.0, rows[0][0] - now)

    async def get_stats(self) -> CacheStats:
        try:
            rows = self._execute(
                """
                SELECT
                    count(*),
                    count(*) FILTER (WHERE expires_at < ?),
                    coalesce(sum(length(key) + length(payload)), 0)
                FROM cache_entries
                """,
                [self.now()],
                None,
                "stats",
            )
        except StorageError as e:
            logger.warning("Failed to compute persistent cache stats: {}", e)
            return CacheStats()

        total, expired, usage = rows[0]
        return CacheStats(
            total_items=total,
            expired_items=expired,
            valid_items=total - expired,
            memory_usage_estimate=int(usage),
        )

    async def cleanup(self) -> int:
        try:
            rows = self._execute(
                "DELETE FROM cache_entries WHERE expires_at < ? RETURNING key", [self.now()], None, "cleanup"
            )
        except StorageError as e:
            logger.warning("Failed to clean up persistent cache: {}", e)
            return 0
        return len(rows)

    def is_connected(self) -> bool:
        return self._conn is not None

    def close(self) -> None:
        """Close the database connection. Later operations behave as misses."""
        if self._conn is not None:
            with self._lock:
                self._conn.close()
            self._conn = None
