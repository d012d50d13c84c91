"""Span attribute helpers.

OpenTelemetry only accepts scalar attribute values. Every attribute the
service emits goes through ``scalar_attribute`` so that keys are always
present: an absent value becomes an empty string instead of being dropped.
"""

from collections.abc import Mapping
from typing import Any

from cloudnative.config.models.database import DatabaseConfig

AttributeValue = str | bool | int | float

DB_SYSTEM = "postgresql"


def scalar_attribute(value: Any) -> AttributeValue:
    """Coerce a value to a span-safe scalar."""
    if value is None:
        return ""
    if isinstance(value, str | bool | int | float):
        return value
    return str(value)


def sanitize_attributes(attributes: Mapping[str, Any] | None) -> dict[str, AttributeValue]:
    """Apply ``scalar_attribute`` to every value of a mapping."""
    if not attributes:
        return {}
    return {key: scalar_attribute(value) for key, value in attributes.items()}


def db_attributes(config: DatabaseConfig, table: str) -> dict[str, AttributeValue]:
    """Static database semantic attributes for one table."""
    return {
        "db.system": DB_SYSTEM,
        "db.name": config.name,
        "db.sql.table": table,
        "net.peer.name": config.host,
        "net.peer.port": config.port,
    }


def http_attributes(method: str, route: str) -> dict[str, AttributeValue]:
    """HTTP attributes carried onto database spans."""
    return {
        "http.method": method,
        "http.route": route,
    }
