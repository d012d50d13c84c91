"""API middleware package."""

from cloudnative.api.middleware.rate_limit import (
    FixedWindowRateLimiter,
    RateLimiter,
    RateLimitMiddleware,
    RateLimitResult,
    add_rate_limit_headers,
)

__all__ = [
    "FixedWindowRateLimiter",
    "RateLimiter",
    "RateLimitMiddleware",
    "RateLimitResult",
    "add_rate_limit_headers",
]
