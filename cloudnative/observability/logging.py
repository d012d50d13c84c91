"""Structured logging configuration using structlog.

Production emits one JSON object per line on stderr; development uses the
coloured console renderer. Every event carries the request context bound
by middleware and, inside a span, the active trace and span ids.
Credentials are masked before rendering.
"""

import re
import sys
from collections.abc import Mapping
from typing import Any, cast

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from cloudnative.observability.tracing import get_current_span_id, get_current_trace_id

LOG_LEVELS: dict[str, int] = {
    "DEBUG": 10,
    "INFO": 20,
    "WARNING": 30,
    "ERROR": 40,
    "CRITICAL": 50,
}

REDACTED = "[REDACTED]"

# Keys whose values are never logged, compared lowercased
SENSITIVE_KEYS: frozenset[str] = frozenset({
    "password",
    "passwd",
    "db_password",
    "secret",
    "token",
    "api_key",
    "apikey",
    "auth",
    "authorization",
    "credential",
    "credentials",
    "dsn",
    "private_key",
    "access_token",
    "refresh_token",
    "bearer",
})

# scheme://user:password@ inside connection strings and URLs
URL_CREDENTIALS_PATTERN = re.compile(r"(?P<scheme>[a-zA-Z][a-zA-Z0-9+.-]*://)[^\s/@:]+:[^\s/@]+@")


class SecretRedactor:
    """Processor that masks credentials in log events.

    Values under a sensitive key are replaced outright; string values
    elsewhere have URL userinfo masked. Nested dicts and lists are walked.
    """

    def __call__(
        self,
        _logger: WrappedLogger,
        _method_name: str,
        event_dict: EventDict,
    ) -> EventDict:
        return cast(EventDict, self._redact_mapping(event_dict))

    def _redact_mapping(self, data: Mapping[str, Any]) -> dict[str, Any]:
        return {
            key: REDACTED if key.lower() in SENSITIVE_KEYS else self._redact_value(value)
            for key, value in data.items()
        }

    def _redact_value(self, value: Any) -> Any:
        if isinstance(value, str):
            return URL_CREDENTIALS_PATTERN.sub(rf"\g<scheme>{REDACTED}@", value)
        if isinstance(value, Mapping):
            return self._redact_mapping(value)
        if isinstance(value, list):
            return [self._redact_value(item) for item in value]
        return value


def add_trace_context(
    _logger: WrappedLogger,
    _method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Attach the active span's trace_id/span_id so logs join up with traces."""
    trace_id = get_current_trace_id()
    if trace_id is not None:
        event_dict.setdefault("trace_id", trace_id)
        event_dict.setdefault("span_id", get_current_span_id())
    return event_dict


def build_processors(format: str, redact_secrets: bool) -> list[Processor]:
    """Processor chain ending in the renderer for ``format``."""
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_trace_context,
    ]
    if redact_secrets:
        processors.append(SecretRedactor())

    if format == "console":
        processors.append(structlog.dev.ConsoleRenderer(colors=True))
    else:
        processors.extend([
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ])
    return processors


def setup_logging(
    level: str = "INFO",
    format: str = "json",
    redact_secrets: bool = True,
) -> None:
    """Configure structured logging.

    Args:
        level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format: Output format - "json" for production, "console" for development
        redact_secrets: Whether to mask credentials in log events
    """
    structlog.configure(
        processors=build_processors(format, redact_secrets),
        wrapper_class=structlog.make_filtering_bound_logger(
            LOG_LEVELS.get(level.upper(), LOG_LEVELS["INFO"])
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(sys.stderr),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a logger instance bound to the given name.

    Args:
        name: Logger name (typically __name__ of the module)

    Returns:
        A bound structlog logger
    """
    return cast(structlog.stdlib.BoundLogger, structlog.get_logger(name))
