"""API route registration."""

from fastapi import FastAPI

from cloudnative.observability.logging import get_logger

logger = get_logger(__name__)


def register_routes(app: FastAPI) -> None:
    """Register all routes with the FastAPI application.

    Args:
        app: FastAPI application instance
    """
    from cloudnative.api.routes.health import router as health_router
    from cloudnative.api.routes.items import router as items_router

    app.include_router(health_router, tags=["Health"])
    app.include_router(items_router, tags=["Items"])

    logger.debug("routes_registered", routes=["health", "items"])
