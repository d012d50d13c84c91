"""FastAPI application factory.

Creates and configures the FastAPI application with middleware,
exception handlers, lifecycle hooks and route registration.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from opentelemetry.instrumentation.asgi import OpenTelemetryMiddleware
from opentelemetry.util.http import parse_excluded_urls

from cloudnative.api.dependencies import AppContext
from cloudnative.api.exceptions import CloudnativeAPIError
from cloudnative.api.middleware.rate_limit import FixedWindowRateLimiter, RateLimitMiddleware
from cloudnative.api.routes import register_routes
from cloudnative.db.errors import StoreError
from cloudnative.observability.logging import get_logger
from cloudnative.observability.middleware import (
    LoggingContextMiddleware,
    RequestMetricsMiddleware,
)
from cloudnative.observability.telemetry import TelemetryNotStartedError

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifecycle manager.

    Startup refuses to serve unless telemetry is already running, then
    connects the item store, logging rather than failing when the database
    is unreachable. Shutdown closes the store and flushes
    telemetry within the configured bound.
    """
    context: AppContext = app.state.context
    settings = context.settings

    if not context.telemetry.started:
        logger.error("startup_aborted", reason="telemetry_not_started")
        raise TelemetryNotStartedError(
            "Telemetry must be bootstrapped before the HTTP listener starts"
        )

    try:
        await context.items.connect()
    except StoreError as e:
        # Stores reconnect on first use; requests fail with 500 until the database is back
        logger.error("item_store_connect_failed", error=str(e))

    logger.info("startup_complete", app=settings.app_name, port=settings.api.port)

    try:
        yield
    finally:
        logger.info("shutdown_initiated")
        try:
            await context.items.close()
        except Exception as e:
            logger.error("item_store_close_failed", error=str(e))
        await context.telemetry.ashutdown(settings.observability.shutdown_timeout_seconds)
        logger.info("shutdown_complete")


def create_app(context: AppContext) -> FastAPI:
    """Create and configure the FastAPI application.

    Middleware, outermost first: CORS, logging context, rate limiter,
    HTTP server spans, request metrics. Requests rejected by the rate
    limiter therefore leave no span and no metric behind.

    Args:
        context: Process-wide singletons built at startup

    Returns:
        Configured FastAPI application
    """
    settings = context.settings
    observability = settings.observability

    app = FastAPI(
        title="Backend API",
        description="Items API instrumented with Prometheus metrics and OpenTelemetry tracing",
        version=observability.service_version,
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.context = context

    # Added innermost first; Starlette wraps each new middleware around the previous ones.
    app.add_middleware(RequestMetricsMiddleware, metrics=context.telemetry.metrics)

    if observability.instrument_http:
        app.add_middleware(
            OpenTelemetryMiddleware,
            excluded_urls=parse_excluded_urls(",".join(observability.http_excluded_urls)),
            tracer_provider=context.telemetry.tracer_provider,
        )

    rate_limit = settings.api.rate_limit
    app.add_middleware(
        RateLimitMiddleware,
        limiter=FixedWindowRateLimiter(window_seconds=rate_limit.window_seconds),
        limit=rate_limit.max_requests,
        message=rate_limit.message,
        enabled=rate_limit.enabled,
    )

    app.add_middleware(LoggingContextMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_exception_handlers(app)

    register_routes(app)

    logger.info(
        "app_created",
        service=observability.service_name,
        instrument_http=observability.instrument_http,
        rate_limit=rate_limit.max_requests,
    )

    return app


def _register_exception_handlers(app: FastAPI) -> None:
    """Register global exception handlers.

    Args:
        app: FastAPI application
    """

    @app.exception_handler(CloudnativeAPIError)
    async def api_error_handler(request: Request, exc: CloudnativeAPIError) -> JSONResponse:
        """Render API errors as {"error": message}."""
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception(
            "unexpected_error",
            error=str(exc),
            error_type=type(exc).__name__,
            path=request.url.path,
        )
        return JSONResponse(status_code=500, content={"error": "Internal server error"})
