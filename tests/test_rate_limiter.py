"""
Tests for the request rate limiter.
"""

import asyncio
import time

import pytest

from hk_deal_alert.utils.rate_limiter import RequestRateLimiter


class TestRequestRateLimiter:
    """Test cases for RequestRateLimiter."""

    @pytest.mark.asyncio
    async def test_first_request_is_immediate(self):
        limiter = RequestRateLimiter(min_interval=5.0)

        assert await limiter.wait() == 0.0
        assert limiter.total_waits == 0

    @pytest.mark.asyncio
    async def test_consecutive_requests_are_spaced(self):
        """The second call waits until the interval has elapsed."""
        limiter = RequestRateLimiter(min_interval=0.05)

        start = time.monotonic()
        await limiter.wait()
        await limiter.wait()
        elapsed = time.monotonic() - start

        assert elapsed >= 0.045
        assert limiter.total_waits == 1

    @pytest.mark.asyncio
    async def test_concurrent_callers_share_the_budget(self):
        """Callers sharing one limiter are serialized."""
        limiter = RequestRateLimiter(min_interval=0.03)

        start = time.monotonic()
        await asyncio.gather(*(limiter.wait() for _ in range(3)))
        elapsed = time.monotonic() - start

        assert elapsed >= 0.055
        assert limiter.total_waits == 2

    @pytest.mark.asyncio
    async def test_zero_interval_never_waits(self):
        limiter = RequestRateLimiter(min_interval=0)

        for _ in range(3):
            assert await limiter.wait() == 0.0

    @pytest.mark.asyncio
    async def test_reset(self):
        limiter = RequestRateLimiter(min_interval=10.0)
        await limiter.wait()
        limiter.reset()

        assert await limiter.wait() == 0.0
        assert limiter.get_stats()["min_interval"] == 10.0

    def test_negative_interval_rejected(self):
        with pytest.raises(ValueError):
            RequestRateLimiter(min_interval=-1)
