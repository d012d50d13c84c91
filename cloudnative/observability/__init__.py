"""Observability: structured logging, distributed tracing, metrics.

Uses structlog for logging, OpenTelemetry for tracing (pushed over
OTLP/gRPC) and prometheus_client for metrics (pulled by Prometheus).
"""

from cloudnative.observability.logging import get_logger, setup_logging
from cloudnative.observability.metrics import RequestMetrics
from cloudnative.observability.telemetry import (
    MetricsPullSink,
    ServiceIdentity,
    SpanPushSink,
    TelemetryNotStartedError,
    TelemetryPipeline,
    bootstrap_telemetry,
)
from cloudnative.observability.tracing import DatabaseTracer, operation_span

__all__ = [
    "get_logger",
    "setup_logging",
    "RequestMetrics",
    "MetricsPullSink",
    "ServiceIdentity",
    "SpanPushSink",
    "TelemetryNotStartedError",
    "TelemetryPipeline",
    "bootstrap_telemetry",
    "DatabaseTracer",
    "operation_span",
]
