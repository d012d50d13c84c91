"""Dependency injection for API routes.

The process-wide singletons (settings, telemetry pipeline, item store) are
held by one AppContext created at startup and stored on ``app.state``.
Routes reach them through these dependencies; tests swap the context or
override individual dependencies.
"""

from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Request

from cloudnative.config.settings import Settings
from cloudnative.items.store import ItemStore
from cloudnative.items.stores.postgres import ITEMS_TABLE
from cloudnative.observability.attributes import db_attributes
from cloudnative.observability.metrics import RequestMetrics
from cloudnative.observability.telemetry import TelemetryPipeline
from cloudnative.observability.tracing import DatabaseTracer


@dataclass
class AppContext:
    """Singletons shared by every request for the life of the process."""

    settings: Settings
    telemetry: TelemetryPipeline
    items: ItemStore

    def items_tracer(self) -> DatabaseTracer:
        """Operation-span helper for the items table.

        Raises:
            TelemetryNotStartedError: If the pipeline was never started
        """
        return DatabaseTracer(
            self.telemetry.tracer,
            db_attributes(self.settings.database, ITEMS_TABLE),
        )


def get_context(request: Request) -> AppContext:
    """Get the AppContext the application was created with."""
    return request.app.state.context  # type: ignore[no-any-return]


ContextDep = Annotated[AppContext, Depends(get_context)]


def get_settings(context: ContextDep) -> Settings:
    return context.settings


def get_item_store(context: ContextDep) -> ItemStore:
    return context.items


def get_metrics(context: ContextDep) -> RequestMetrics:
    return context.telemetry.metrics


def get_items_tracer(context: ContextDep) -> DatabaseTracer:
    return context.items_tracer()


SettingsDep = Annotated[Settings, Depends(get_settings)]
ItemStoreDep = Annotated[ItemStore, Depends(get_item_store)]
MetricsDep = Annotated[RequestMetrics, Depends(get_metrics)]
ItemsTracerDep = Annotated[DatabaseTracer, Depends(get_items_tracer)]
