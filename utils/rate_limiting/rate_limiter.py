"""
Rate limiting implementation.

Sliding window over exact request timestamps, kept in process memory.
Used to throttle the forgot-password route per client IP.
"""

import asyncio
import time
from typing import Optional, Dict, Callable
from dataclasses import dataclass
from abc import ABC, abstractmethod
from collections import deque
from datetime import datetime, timezone

from config import settings
from utils.monitoring import get_logger

logger = get_logger(__name__)


@dataclass
class RateLimitResult:
    """Rate limit check result."""
    allowed: bool
    remaining: int
    reset_at: datetime
    retry_after: Optional[int] = None  # seconds


class RateLimiter(ABC):
    """Base rate limiter interface."""

    @abstractmethod
    async def check_rate_limit(
        self,
        key: str,
        max_requests: int,
        window_seconds: int
    ) -> RateLimitResult:
        """Check if request is allowed."""

    @abstractmethod
    async def reset(self, key: Optional[str] = None):
        """Reset rate limit for key, or for every key."""


class SlidingWindowLimiter(RateLimiter):
    """
    Sliding window rate limiter.

    Features:
    - Tracks exact request timestamps
    - No burst at fixed window boundaries
    - Rejected requests do not consume quota
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self.windows: Dict[str, deque] = {}
        self.clock = clock
        self._spans: Dict[str, int] = {}
        self._last_sweep = clock()
        self._lock = asyncio.Lock()

    @staticmethod
    def _at(timestamp: float) -> datetime:
        return datetime.fromtimestamp(timestamp, tz=timezone.utc)

    def _sweep(self, current_time: float):
        """Drop keys whose newest request has left their window."""
        for key in list(self.windows):
            window = self.windows[key]
            if not window or window[-1] <= current_time - self._spans[key]:
                del self.windows[key]
                del self._spans[key]
        self._last_sweep = current_time

    async def check_rate_limit(
        self,
        key: str,
        max_requests: int,
        window_seconds: int
    ) -> RateLimitResult:
        """
        Check rate limit using sliding window algorithm.

        Args:
            key: Rate limit key
            max_requests: Maximum requests allowed
            window_seconds: Time window in seconds

        Returns:
            RateLimitResult
        """
        async with self._lock:
            current_time = self.clock()
            if current_time - self._last_sweep >= window_seconds:
                self._sweep(current_time)

            window_start = current_time - window_seconds
            window = self.windows.setdefault(key, deque())
            self._spans[key] = window_seconds

            # Remove old timestamps
            while window and window[0] <= window_start:
                window.popleft()

            if len(window) < max_requests:
                window.append(current_time)
                return RateLimitResult(
                    allowed=True,
                    remaining=max_requests - len(window),
                    reset_at=self._at(window[0] + window_seconds),
                )

            oldest_timestamp = window[0]
            retry_after = int(oldest_timestamp + window_seconds - current_time) + 1
            logger.warning("Rate limit exceeded", key=key, retry_after=retry_after)
            return RateLimitResult(
                allowed=False,
                remaining=0,
                reset_at=self._at(oldest_timestamp + window_seconds),
                retry_after=retry_after,
            )

    async def reset(self, key: Optional[str] = None):
        """Reset rate limit for key."""
        async with self._lock:
            if key is None:
                self.windows.clear()
                self._spans.clear()
            else:
                self.windows.pop(key, None)
                self._spans.pop(key, None)


# Global rate limiter
_global_limiter: Optional[RateLimiter] = None


def get_rate_limiter() -> RateLimiter:
    """Get or create the process-wide rate limiter."""
    global _global_limiter

    if _global_limiter is None:
        _global_limiter = SlidingWindowLimiter()

    return _global_limiter


async def check_forgot_password_rate_limit(ip: str) -> RateLimitResult:
    """Check the forgot-password quota for a client IP."""
    if not settings.rate_limit_enabled:
        return RateLimitResult(
            allowed=True,
            remaining=settings.forgot_password_rate_limit,
            reset_at=datetime.now(timezone.utc),
        )
    return await get_rate_limiter().check_rate_limit(
        f"forgot-password:ip:{ip}",
        max_requests=settings.forgot_password_rate_limit,
        window_seconds=settings.forgot_password_rate_window_seconds,
    )
