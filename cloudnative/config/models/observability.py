"""Observability configuration: logging, tracing export and metrics."""

from typing import Literal

from pydantic import BaseModel, Field


class ObservabilityConfig(BaseModel):
    """Telemetry settings.

    Traces are pushed to an OTLP/gRPC collector, metrics are pulled by a
    Prometheus scraper from ``metrics_port`` (and from ``/metrics`` on the
    main API port).
    """

    service_name: str = "backend-api"
    service_version: str = "2.0.0"
    log_format: Literal["json", "console"] = "json"
    redact_secrets: bool = True

    # Push sink (traces)
    otlp_endpoint: str = "http://localhost:4317"
    otlp_insecure: bool = True
    otlp_timeout_seconds: float = Field(default=10.0, gt=0)
    span_schedule_delay_ms: int = Field(default=5000, gt=0)

    # Pull sink (metrics)
    metrics_port: int = Field(default=9464, ge=1, le=65535)
    metrics_addr: str = "0.0.0.0"
    start_metrics_server: bool = True

    instrument_http: bool = True
    http_excluded_urls: list[str] = Field(default_factory=lambda: ["/health", "/metrics"])

    shutdown_timeout_seconds: float = Field(default=5.0, gt=0)
