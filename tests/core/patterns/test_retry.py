"""Tests for the exponential backoff retry."""

from unittest.mock import AsyncMock

import pytest

from mdrrmo.core.exceptions import BackendError
from mdrrmo.core.patterns import ExponentialBackoffRetry, RetryConfig, RetryState


@pytest.fixture
def retry():
    return ExponentialBackoffRetry(RetryConfig(max_attempts=3, base_delay=0, jitter=False))


class TestExponentialBackoffRetry:
    @pytest.mark.asyncio
    async def test_success_first_attempt(self, retry):
        func = AsyncMock(return_value="ok")

        assert await retry.execute(func, "news") == "ok"
        func.assert_awaited_once_with("news")
        assert retry.state is RetryState.COMPLETED

    @pytest.mark.asyncio
    async def test_retries_until_success(self, retry):
        func = AsyncMock(side_effect=[BackendError("a"), BackendError("b"), "ok"])

        assert await retry.execute(func) == "ok"
        assert retry.attempt_count == 3

    @pytest.mark.asyncio
    async def test_raises_last_error_after_max_attempts(self, retry):
        func = AsyncMock(side_effect=BackendError("down"))

        with pytest.raises(BackendError, match="down"):
            await retry.execute(func)

        assert func.await_count == 3
        assert retry.state is RetryState.FAILED
        assert retry.get_stats()["last_exception"] == "down"

    @pytest.mark.asyncio
    async def test_non_retryable_error_raised_immediately(self, retry):
        func = AsyncMock(side_effect=ValueError("bad"))

        with pytest.raises(ValueError):
            await retry.execute(func)

        assert func.await_count == 1

    @pytest.mark.asyncio
    async def test_skip_on_exceptions(self):
        retry = ExponentialBackoffRetry(
            RetryConfig(base_delay=0, retry_on_exceptions=[Exception], skip_on_exceptions=[KeyError])
        )
        func = AsyncMock(side_effect=KeyError("x"))

        with pytest.raises(KeyError):
            await retry.execute(func)

        assert func.await_count == 1

    def test_delay_grows_exponentially_and_is_capped(self):
        retry = ExponentialBackoffRetry(RetryConfig(base_delay=1, max_delay=5, jitter=False))

        assert [retry._calculate_delay(n) for n in range(4)] == [1, 2, 4, 5]

    def test_reset(self, retry):
        retry.attempt_count = 2
        retry.state = RetryState.FAILED

        retry.reset()

        assert retry.get_stats() == {
            "attempts": 0,
            "max_attempts": 3,
            "total_delay": 0.0,
            "state": "ready",
            "last_exception": None,
        }
