"""
Rate limiting utilities for controlling request frequency.

This module provides a minimum-interval limiter used to space out calls
to the catalog API. A limiter is an explicit object: each client owns
one, and clients that must share a budget are given the same instance.
"""

import asyncio
import time
from typing import Any, Dict, Optional

from ..utils.logging import get_logger

logger = get_logger("rate_limiter")


class RequestRateLimiter:
    """Enforces a minimum delay between consecutive requests."""

    def __init__(self, min_interval: float = 1.0):
        """
        Initialize rate limiter.

        Args:
            min_interval: Minimum number of seconds between two requests
        """
        if min_interval < 0:
            raise ValueError("min_interval cannot be negative")

        self.min_interval = min_interval
        self.last_request_time: Optional[float] = None
        self.total_waits = 0
        self._lock = asyncio.Lock()

    async def wait(self) -> float:
        """
        Wait until the next request is allowed and reserve the slot.

        Returns:
            Seconds spent waiting
        """
        async with self._lock:
            waited = 0.0
            now = time.monotonic()

            if self.last_request_time is not None:
                elapsed = now - self.last_request_time
                if elapsed < self.min_interval:
                    waited = self.min_interval - elapsed
                    self.total_waits += 1
                    logger.debug(
                        "Rate limiting catalog request",
                        extra={"wait_seconds": round(waited, 3)},
                    )
                    await asyncio.sleep(waited)

            self.last_request_time = time.monotonic()
            return waited

    def reset(self) -> None:
        """Forget the last request time."""
        self.last_request_time = None

    def get_stats(self) -> Dict[str, Any]:
        """Get limiter statistics."""
        return {
            "min_interval": self.min_interval,
            "total_waits": self.total_waits,
            "last_request_time": self.last_request_time,
        }
