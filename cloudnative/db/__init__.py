"""Database utilities: connection pool and store error hierarchy."""

from cloudnative.db.errors import (
    ConnectionError,
    StoreError,
    ValidationError,
)
from cloudnative.db.pool import PostgresPool

__all__ = [
    "PostgresPool",
    "StoreError",
    "ConnectionError",
    "ValidationError",
]
