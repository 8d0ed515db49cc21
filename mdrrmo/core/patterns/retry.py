"""Retry with exponential backoff."""

import asyncio
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TypeVar

from loguru import logger

from mdrrmo.core.exceptions import BackendError

T = TypeVar("T")


class RetryState(Enum):
    READY = "ready"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class RetryConfig:
    """Retry configuration."""

    max_attempts: int = 3
    base_delay: float = 1.0  # seconds
    max_delay: float = 30.0  # seconds
    exponential_base: float = 2.0
    jitter: bool = True
    retry_on_exceptions: list[type[BaseException]] = field(default_factory=lambda: [BackendError])
    skip_on_exceptions: list[type[BaseException]] = field(default_factory=list)


class ExponentialBackoffRetry:
    """Runs a coroutine function until it succeeds or attempts run out."""

    def __init__(self, config: RetryConfig | None = None):
        self.config = config or RetryConfig()
        self.attempt_count = 0
        self.total_delay = 0.0
        self.state = RetryState.READY
        self.last_exception: Exception | None = None

    async def execute(self, func: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
        """Call ``func`` with retries.

        Raises:
            Exception: the last failure once every attempt has failed, or the
                first failure that is not retryable
        """
        self.state = RetryState.RUNNING
        self.attempt_count = 0
        self.total_delay = 0.0

        while True:
            self.attempt_count += 1
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                self.last_exception = e
                if not self._should_retry(e) or self.attempt_count >= self.config.max_attempts:
                    self.state = RetryState.FAILED
                    raise

                delay = self._calculate_delay(self.attempt_count - 1)
                logger.debug(
                    "Attempt {}/{} failed ({}), retrying in {:.2f}s",
                    self.attempt_count,
                    self.config.max_attempts,
                    e,
                    delay,
                )
                await asyncio.sleep(delay)
                self.total_delay += delay
            else:
                self.state = RetryState.COMPLETED
                return result

    def _should_retry(self, error: Exception) -> bool:
        if any(isinstance(error, exc_type) for exc_type in self.config.skip_on_exceptions):
            return False
        return any(isinstance(error, exc_type) for exc_type in self.config.retry_on_exceptions)

    def _calculate_delay(self, attempt_number: int) -> float:
        if attempt_number < 0:
            return 0.0

        delay = self.config.base_delay * (self.config.exponential_base**attempt_number)

        if self.config.jitter:
            jitter_range = min(delay * 0.1, 1.0)
            delay += random.uniform(-jitter_range, jitter_range)

        return max(0.0, min(delay, self.config.max_delay))

    def get_stats(self) -> dict[str, Any]:
        return {
            "attempts": self.attempt_count,
            "max_attempts": self.config.max_attempts,
            "total_delay": self.total_delay,
            "state": self.state.value,
            "last_exception": str(self.last_exception) if self.last_exception else None,
        }

    def reset(self) -> None:
        self.attempt_count = 0
        self.total_delay = 0.0
        self.state = RetryState.READY
        self.last_exception = None
