"""API server configuration models."""

from pydantic import BaseModel, Field


class RateLimitConfig(BaseModel):
    """Fixed-window rate limit applied to /api/ routes."""

    enabled: bool = Field(default=True, description="Enable rate limiting")
    window_seconds: int = Field(default=15 * 60, gt=0, description="Window length in seconds")
    max_requests: int = Field(default=100, gt=0, description="Requests allowed per window")
    message: str = Field(
        default="Too many requests from this IP, please try again later.",
        description="Plain-text body returned with 429 responses",
    )


class APIConfig(BaseModel):
    """HTTP server configuration."""

    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=3000, ge=1, le=65535, description="Listen port")
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
