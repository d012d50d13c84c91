"""HTTP middleware for observability.

RequestMetricsMiddleware records one counter increment and one latency
observation per request. LoggingContextMiddleware binds request identity
to structlog contextvars for the lifetime of the request.
"""

import time
from collections.abc import Awaitable, Callable
from uuid import uuid4

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp
from structlog.contextvars import bind_contextvars, clear_contextvars

from cloudnative.observability.logging import get_logger
from cloudnative.observability.metrics import RequestMetrics

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


def resolve_route(request: Request) -> str:
    """Route template of the matched endpoint, or the raw path if none matched."""
    route = request.scope.get("route")
    template = getattr(route, "path", None)
    return template or request.url.path


class RequestMetricsMiddleware(BaseHTTPMiddleware):
    """Records method/route/status/duration for every request.

    The recording happens once the response is produced, including error
    responses and requests whose handler raised (recorded as 500 before
    the exception continues to the server error handler).
    """

    def __init__(self, app: ASGIApp, metrics: RequestMetrics) -> None:
        super().__init__(app)
        self._metrics = metrics

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        start = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            self._metrics.record_request(
                method=request.method,
                route=resolve_route(request),
                status_code=status_code,
                duration_seconds=time.perf_counter() - start,
            )


class LoggingContextMiddleware(BaseHTTPMiddleware):
    """Middleware that binds request context to structlog contextvars.

    Headers:
        X-Request-ID: Caller-supplied request identifier (generated if absent)
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        """Process request and bind logging context."""
        clear_contextvars()

        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid4().hex
        bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        logger.debug("request_started")

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id

        logger.debug("request_completed", status_code=response.status_code)

        return response
