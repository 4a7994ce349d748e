"""Rate limiting utilities."""

from .rate_limiter import (
    RateLimiter,
    RateLimitResult,
    SlidingWindowLimiter,
    get_rate_limiter,
    check_forgot_password_rate_limit,
)

__all__ = [
    "RateLimiter",
    "RateLimitResult",
    "SlidingWindowLimiter",
    "get_rate_limiter",
    "check_forgot_password_rate_limit",
]
