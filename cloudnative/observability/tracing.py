"""OpenTelemetry span helpers.

Provides the operation span used around every database call: the span is
opened with its pre-execution attributes, marked OK or ERROR depending on
how the block exits, and always ended by the enclosing ``with``.
"""

from collections.abc import Generator, Mapping
from contextlib import contextmanager
from typing import Any

from opentelemetry import trace
from opentelemetry.trace import Span, SpanKind, Status, StatusCode, Tracer

from cloudnative.observability.attributes import sanitize_attributes, scalar_attribute


@contextmanager
def operation_span(
    tracer: Tracer,
    name: str,
    attributes: Mapping[str, Any] | None = None,
    kind: SpanKind = SpanKind.CLIENT,
) -> Generator[Span, None, None]:
    """Bracket one operation with a span.

    The span is ended exactly once whether the block returns normally,
    returns early or raises. Exceptions are recorded on the span and
    re-raised unchanged.

    Args:
        tracer: Tracer from the started telemetry pipeline
        name: Span name (e.g. "db.items.list")
        attributes: Attributes known before the operation runs
        kind: Span kind, outbound call by default

    Yields:
        The active span, for post-execution attributes
    """
    with tracer.start_as_current_span(
        name,
        kind=kind,
        attributes=sanitize_attributes(attributes),
        record_exception=False,
        set_status_on_exception=False,
    ) as span:
        try:
            yield span
        except Exception as exc:
            record_exception(span, exc)
            raise
        else:
            span.set_status(Status(StatusCode.OK))


def record_exception(span: Span, exception: BaseException, escaped: bool = True) -> None:
    """Record an exception on a span and mark it as failed.

    The status description falls back to the exception type so that an
    ERROR status always carries a message.

    Args:
        span: Span to record on
        exception: The exception that occurred
        escaped: Whether the exception escaped the span scope
    """
    span.record_exception(exception, escaped=escaped)
    message = str(exception) or type(exception).__name__
    span.set_status(Status(StatusCode.ERROR, message))


def set_span_attributes(span: Span, **attributes: Any) -> None:
    """Set post-execution attributes, coercing each value to a scalar."""
    for key, value in attributes.items():
        span.set_attribute(key, scalar_attribute(value))


def get_current_trace_id() -> str | None:
    """Get the current trace ID as a hex string, or None outside a span."""
    span = trace.get_current_span()
    if span and span.get_span_context().is_valid:
        return format(span.get_span_context().trace_id, "032x")
    return None


def get_current_span_id() -> str | None:
    """Get the current span ID as a hex string, or None outside a span."""
    span = trace.get_current_span()
    if span and span.get_span_context().is_valid:
        return format(span.get_span_context().span_id, "016x")
    return None


class DatabaseTracer:
    """Operation spans for one database table.

    Holds the tracer and the static database attributes (system, table,
    peer host/port) so call sites only pass what varies per call.
    """

    def __init__(self, tracer: Tracer, base_attributes: Mapping[str, Any]) -> None:
        self._tracer = tracer
        self._base_attributes = dict(base_attributes)

    @contextmanager
    def operation(
        self,
        name: str,
        verb: str,
        attributes: Mapping[str, Any] | None = None,
    ) -> Generator[Span, None, None]:
        """Open an outbound-call span for one statement.

        Args:
            name: Span name (e.g. "db.items.create")
            verb: SQL verb recorded as db.operation
            attributes: Extra pre-execution attributes

        Yields:
            The active span
        """
        merged = {**self._base_attributes, "db.operation": verb, **(attributes or {})}
        with operation_span(self._tracer, name, merged, kind=SpanKind.CLIENT) as span:
            yield span
