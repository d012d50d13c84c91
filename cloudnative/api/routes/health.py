"""Health check and metrics endpoints."""

from fastapi import APIRouter, Response

from cloudnative.api.dependencies import ContextDep, SettingsDep
from cloudnative.observability.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check(settings: SettingsDep) -> dict[str, str]:
    """Liveness check: 200 whenever the process is serving."""
    return {"status": "healthy", "service": settings.observability.service_name}


@router.get("/metrics")
async def get_metrics(context: ContextDep) -> Response:
    """Get Prometheus metrics.

    Serves the same registry as the dedicated metrics port so that a
    single scrape target suffices.
    """
    payload, content_type = context.telemetry.pull_sink.render()
    return Response(content=payload, media_type=content_type)
