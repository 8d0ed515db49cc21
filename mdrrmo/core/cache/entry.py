"""Cache entry and statistics models."""

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel


@dataclass(slots=True)
class CacheEntry:
    """A cached value with its expiry timestamp."""

    key: str
    value: Any
    created_at: float
    expires_at: float

    @classmethod
    def create(cls, key: str, value: Any, ttl: float, now: float) -> "CacheEntry":
        return cls(key=key, value=value, created_at=now, expires_at=now + ttl)

    def is_valid(self, now: float) -> bool:
        return now <= self.expires_at

    def is_expired(self, now: float) -> bool:
        return now > self.expires_at

    def remaining(self, now: float) -> float:
        return max(0.0, self.expires_at - now)


class CacheStats(BaseModel):
    """Point-in-time statistics of a cache store."""

    total_items: int = 0
    expired_items: int = 0
    valid_items: int = 0
    memory_usage_estimate: int = 0
