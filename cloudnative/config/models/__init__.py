"""Configuration section models."""

from cloudnative.config.models.api import APIConfig, RateLimitConfig
from cloudnative.config.models.database import DatabaseConfig
from cloudnative.config.models.observability import ObservabilityConfig

__all__ = [
    "APIConfig",
    "RateLimitConfig",
    "DatabaseConfig",
    "ObservabilityConfig",
]
