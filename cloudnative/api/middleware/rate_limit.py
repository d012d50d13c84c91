"""Rate limiting middleware for /api/ routes."""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import PlainTextResponse
from starlette.types import ASGIApp

from cloudnative.observability.logging import get_logger

logger = get_logger(__name__)

DEFAULT_MESSAGE = "Too many requests from this IP, please try again later."


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of a rate limit check."""

    allowed: bool
    limit: int
    remaining: int
    reset_at: datetime


class RateLimiter(ABC):
    """Abstract base class for rate limiters."""

    @abstractmethod
    def check(self, key: str, limit: int) -> RateLimitResult:
        """Check if a request is allowed under the rate limit.

        Args:
            key: Source identity (client address)
            limit: Maximum requests allowed in the window

        Returns:
            RateLimitResult indicating if request is allowed
        """
        pass

    @abstractmethod
    def reset(self, key: str) -> None:
        """Reset rate limit state for a key."""
        pass


@dataclass
class RateLimitWindow:
    """Fixed window state for one key."""

    started_at: float
    count: int = 0


class FixedWindowRateLimiter(RateLimiter):
    """In-memory fixed window rate limiter.

    Each key gets a window that opens on its first request and lasts
    ``window_seconds``; the counter resets when the window closes.
    """

    def __init__(
        self,
        window_seconds: int = 15 * 60,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the rate limiter.

        Args:
            window_seconds: Window length in seconds
            clock: Time source, overridable for tests
        """
        self._window_seconds = window_seconds
        self._clock = clock
        self._windows: dict[str, RateLimitWindow] = {}

    def check(self, key: str, limit: int) -> RateLimitResult:
        now = self._clock()
        window = self._windows.get(key)
        if window is None or now >= window.started_at + self._window_seconds:
            window = RateLimitWindow(started_at=now)
            self._windows[key] = window

        reset_at = datetime.fromtimestamp(window.started_at + self._window_seconds)
        if window.count >= limit:
            return RateLimitResult(allowed=False, limit=limit, remaining=0, reset_at=reset_at)

        window.count += 1
        return RateLimitResult(
            allowed=True,
            limit=limit,
            remaining=limit - window.count,
            reset_at=reset_at,
        )

    def reset(self, key: str) -> None:
        self._windows.pop(key, None)


def client_key(request: Request) -> str:
    """Source identity used for limiting: the client address."""
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Middleware that caps requests per client address under a path prefix.

    Rejected requests get a plain-text 429 and never reach the inner
    middleware, so they are neither traced nor counted.

    Rate limit headers are added to allowed responses:
    - X-RateLimit-Limit: Maximum requests in window
    - X-RateLimit-Remaining: Remaining requests
    - X-RateLimit-Reset: Unix timestamp when the window resets
    """

    def __init__(
        self,
        app: ASGIApp,
        limiter: RateLimiter,
        limit: int = 100,
        message: str = DEFAULT_MESSAGE,
        path_prefix: str = "/api/",
        enabled: bool = True,
    ) -> None:
        super().__init__(app)
        self._limiter = limiter
        self._limit = limit
        self._message = message
        self._path_prefix = path_prefix
        self._enabled = enabled

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        """Process request with rate limiting."""
        if not self._enabled or not request.url.path.startswith(self._path_prefix):
            return await call_next(request)

        key = client_key(request)
        result = self._limiter.check(key, self._limit)

        if not result.allowed:
            logger.warning("rate_limit_exceeded", client=key, limit=self._limit)
            return PlainTextResponse(self._message, status_code=429)

        response = await call_next(request)
        add_rate_limit_headers(response, result)
        return response


def add_rate_limit_headers(response: Response, result: RateLimitResult) -> None:
    """Add rate limit headers to a response."""
    response.headers["X-RateLimit-Limit"] = str(result.limit)
    response.headers["X-RateLimit-Remaining"] = str(result.remaining)
    response.headers["X-RateLimit-Reset"] = str(int(result.reset_at.timestamp()))
