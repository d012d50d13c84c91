"""cloudnative: items API with Prometheus metrics and OpenTelemetry tracing."""

__version__ = "2.0.0"
