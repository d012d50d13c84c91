"""Process bootstrap.

Builds the process-wide singletons in the required order: configuration,
logging, telemetry, then the item store, and finally the FastAPI app.
Telemetry is fully started before the app exists, so no request can run
uninstrumented.

Example usage:

    uvicorn --factory cloudnative.bootstrap:build_app
"""

from fastapi import FastAPI

from cloudnative.api.app import create_app
from cloudnative.api.dependencies import AppContext
from cloudnative.config import get_settings
from cloudnative.config.settings import Settings
from cloudnative.db.pool import PostgresPool
from cloudnative.items.store import ItemStore
from cloudnative.items.stores.inmemory import InMemoryItemStore
from cloudnative.items.stores.postgres import PostgresItemStore
from cloudnative.observability.logging import get_logger, setup_logging
from cloudnative.observability.telemetry import bootstrap_telemetry

logger = get_logger(__name__)


def create_item_store(settings: Settings) -> ItemStore:
    """Create the configured ItemStore backend."""
    if settings.database.backend == "inmemory":
        logger.warning("using_inmemory_item_store")
        return InMemoryItemStore()
    return PostgresItemStore(
        PostgresPool(settings.database),
        create_schema=settings.database.create_schema,
    )


def build_context(settings: Settings | None = None) -> AppContext:
    """Configure logging, start telemetry and create the item store.

    Args:
        settings: Settings override; loaded from config/env when omitted

    Returns:
        AppContext with a started telemetry pipeline
    """
    settings = settings or get_settings()
    observability = settings.observability

    setup_logging(
        level=settings.log_level,
        format=observability.log_format,
        redact_secrets=observability.redact_secrets,
    )

    telemetry = bootstrap_telemetry(observability)

    return AppContext(
        settings=settings,
        telemetry=telemetry,
        items=create_item_store(settings),
    )


def build_app(settings: Settings | None = None) -> FastAPI:
    """Uvicorn factory: bootstrap everything, then create the app."""
    return create_app(build_context(settings))
