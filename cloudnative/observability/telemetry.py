"""Telemetry pipeline: resource identity, span push sink, metrics pull sink.

The pipeline is built and started once, before the HTTP listener binds,
and shut down once when the process receives a termination signal.

    pipeline = bootstrap_telemetry(settings.observability)
    ...
    await pipeline.ashutdown(timeout_seconds=5.0)

The two sinks are independent: the push sink batches finished spans and
sends them to the OTLP collector on its own schedule, the pull sink serves
the in-memory metric registry to scrapers. A failure in one never blocks
or raises through the other.
"""

import asyncio
import threading
from dataclasses import dataclass
from wsgiref.simple_server import WSGIServer

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    SimpleSpanProcessor,
    SpanExporter,
)
from opentelemetry.trace import Tracer
from prometheus_client import start_http_server

from cloudnative.config.models.observability import ObservabilityConfig
from cloudnative.observability.logging import get_logger
from cloudnative.observability.metrics import RequestMetrics

logger = get_logger(__name__)


class TelemetryNotStartedError(RuntimeError):
    """Raised when instrumented code runs before the pipeline is started."""


@dataclass(frozen=True)
class ServiceIdentity:
    """Service name/version attached to every exported span."""

    service_name: str
    service_version: str

    def to_resource(self) -> Resource:
        return Resource.create({
            SERVICE_NAME: self.service_name,
            SERVICE_VERSION: self.service_version,
        })


class SpanPushSink:
    """Tracer provider wired to a span exporter.

    Production uses a BatchSpanProcessor over the OTLP/gRPC exporter. The
    exporter is created without contacting the collector, so an unreachable
    endpoint only shows up later as logged export errors.
    """

    def __init__(
        self,
        resource: Resource,
        exporter: SpanExporter,
        *,
        batch: bool = True,
        schedule_delay_millis: int = 5000,
    ) -> None:
        self.exporter = exporter
        self.provider = TracerProvider(resource=resource, shutdown_on_exit=False)
        if batch:
            processor = BatchSpanProcessor(exporter, schedule_delay_millis=schedule_delay_millis)
        else:
            processor = SimpleSpanProcessor(exporter)
        self.provider.add_span_processor(processor)

    @classmethod
    def otlp(cls, resource: Resource, config: ObservabilityConfig) -> "SpanPushSink":
        """Build the sink that exports to the configured OTLP collector."""
        exporter = OTLPSpanExporter(
            endpoint=config.otlp_endpoint,
            insecure=config.otlp_insecure,
            timeout=config.otlp_timeout_seconds,
        )
        return cls(resource, exporter, schedule_delay_millis=config.span_schedule_delay_ms)

    def get_tracer(self, name: str, version: str | None = None) -> Tracer:
        return self.provider.get_tracer(name, version)

    def flush(self, timeout_seconds: float) -> bool:
        """Export buffered spans, waiting at most ``timeout_seconds``.

        Returns:
            True if every buffered span was handed to the exporter in time
        """
        try:
            flushed = self.provider.force_flush(timeout_millis=int(timeout_seconds * 1000))
        except Exception as e:
            logger.error("span_flush_failed", error=str(e), error_type=type(e).__name__)
            return False

        if not flushed:
            logger.warning("span_flush_timed_out", timeout_seconds=timeout_seconds)
        return flushed

    def shutdown(self) -> None:
        try:
            self.provider.shutdown()
        except Exception as e:
            logger.error("span_sink_shutdown_failed", error=str(e), error_type=type(e).__name__)


class MetricsPullSink:
    """Serves the metric registry to Prometheus scrapers.

    ``start`` launches prometheus_client's HTTP listener on a daemon thread;
    ``render`` produces the same snapshot for the main API's /metrics route.
    """

    def __init__(
        self,
        metrics: RequestMetrics,
        port: int = 9464,
        addr: str = "0.0.0.0",
        serve: bool = True,
    ) -> None:
        self.metrics = metrics
        self.port = port
        self.addr = addr
        self._serve = serve
        self._server: WSGIServer | None = None
        self._thread: threading.Thread | None = None

    @property
    def serving(self) -> bool:
        return self._server is not None

    def start(self) -> None:
        if not self._serve or self._server is not None:
            return

        self._server, self._thread = start_http_server(
            self.port, addr=self.addr, registry=self.metrics.registry
        )
        logger.info("metrics_server_started", addr=self.addr, port=self.port, path="/metrics")

    def stop(self) -> None:
        if self._server is None:
            return

        try:
            self._server.shutdown()
            self._server.server_close()
            if self._thread is not None:
                self._thread.join(timeout=1.0)
        except Exception as e:
            logger.error("metrics_server_stop_failed", error=str(e))
        finally:
            self._server = None
            self._thread = None
        logger.info("metrics_server_stopped", port=self.port)

    def render(self) -> tuple[bytes, str]:
        return self.metrics.render()


class TelemetryPipeline:
    """One unit owning the resource identity and both export sinks."""

    def __init__(
        self,
        identity: ServiceIdentity,
        push_sink: SpanPushSink,
        pull_sink: MetricsPullSink,
        *,
        install_global: bool = False,
    ) -> None:
        """Assemble the pipeline without starting anything.

        Args:
            identity: Service name/version for exported telemetry
            push_sink: Span export sink
            pull_sink: Metrics scrape sink
            install_global: Also register the tracer provider as the
                process-global OpenTelemetry provider
        """
        self.identity = identity
        self.push_sink = push_sink
        self.pull_sink = pull_sink
        self._install_global = install_global
        self._tracer: Tracer | None = None
        self._started = False

    @property
    def started(self) -> bool:
        return self._started

    @property
    def metrics(self) -> RequestMetrics:
        return self.pull_sink.metrics

    @property
    def tracer_provider(self) -> TracerProvider:
        return self.push_sink.provider

    @property
    def tracer(self) -> Tracer:
        """The service tracer.

        Raises:
            TelemetryNotStartedError: If called before ``start``
        """
        if not self._started or self._tracer is None:
            raise TelemetryNotStartedError(
                "Telemetry pipeline must be started before instrumented code runs"
            )
        return self._tracer

    def start(self) -> "TelemetryPipeline":
        """Start both sinks. Idempotent; returns self for chaining."""
        if self._started:
            return self

        self.pull_sink.start()
        if self._install_global:
            trace.set_tracer_provider(self.push_sink.provider)
        self._tracer = self.push_sink.get_tracer(
            self.identity.service_name, self.identity.service_version
        )
        self._started = True

        logger.info(
            "telemetry_started",
            service=self.identity.service_name,
            version=self.identity.service_version,
            traces="otlp",
            metrics="prometheus",
            metrics_port=self.pull_sink.port if self.pull_sink.serving else None,
        )
        return self

    def shutdown(self, timeout_seconds: float = 5.0) -> None:
        """Flush buffered spans within ``timeout_seconds``, then stop both sinks.

        Errors are logged and never raised.
        """
        if not self._started:
            return
        self._started = False

        logger.info("telemetry_shutdown_initiated", timeout_seconds=timeout_seconds)
        try:
            self.push_sink.flush(timeout_seconds)
        finally:
            self.push_sink.shutdown()
            self.pull_sink.stop()
        logger.info("telemetry_shutdown_complete")

    async def ashutdown(self, timeout_seconds: float = 5.0) -> None:
        """Run ``shutdown`` off the event loop with a hard deadline.

        The exporter's own network timeout may exceed the flush budget, so
        the whole shutdown is bounded again here.
        """
        try:
            await asyncio.wait_for(
                asyncio.to_thread(self.shutdown, timeout_seconds),
                timeout=timeout_seconds + 1.0,
            )
        except TimeoutError:
            logger.error("telemetry_shutdown_timed_out", timeout_seconds=timeout_seconds)


def bootstrap_telemetry(
    config: ObservabilityConfig,
    *,
    span_exporter: SpanExporter | None = None,
    install_global: bool = True,
) -> TelemetryPipeline:
    """Build and start the telemetry pipeline from configuration.

    Args:
        config: Observability section of the settings
        span_exporter: Exporter override; the OTLP exporter when omitted
        install_global: Register the tracer provider globally

    Returns:
        A started TelemetryPipeline
    """
    identity = ServiceIdentity(config.service_name, config.service_version)
    resource = identity.to_resource()

    if span_exporter is None:
        push_sink = SpanPushSink.otlp(resource, config)
        logger.info("otlp_exporter_configured", endpoint=config.otlp_endpoint)
    else:
        push_sink = SpanPushSink(resource, span_exporter, batch=False)

    pull_sink = MetricsPullSink(
        RequestMetrics(),
        port=config.metrics_port,
        addr=config.metrics_addr,
        serve=config.start_metrics_server,
    )

    pipeline = TelemetryPipeline(identity, push_sink, pull_sink, install_global=install_global)
    return pipeline.start()
