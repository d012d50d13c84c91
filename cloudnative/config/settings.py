"""Root settings model for cloudnative configuration."""

import os
from typing import Any, Literal

from pydantic import Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from cloudnative.config.models.api import APIConfig
from cloudnative.config.models.database import DatabaseConfig
from cloudnative.config.models.observability import ObservabilityConfig

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

# Deployment variables consumed verbatim (no CLOUDNATIVE_ prefix),
# mapped to their (section, field) location in Settings.
SERVICE_ENV_VARS: dict[str, tuple[str, str]] = {
    "DB_HOST": ("database", "host"),
    "DB_PORT": ("database", "port"),
    "DB_NAME": ("database", "name"),
    "DB_USER": ("database", "user"),
    "DB_PASSWORD": ("database", "password"),
    "PORT": ("api", "port"),
    "OTEL_EXPORTER_OTLP_ENDPOINT": ("observability", "otlp_endpoint"),
    "OTEL_SERVICE_NAME": ("observability", "service_name"),
    "SERVICE_VERSION": ("observability", "service_version"),
    "CLOUDNATIVE_LOG_FORMAT": ("observability", "log_format"),
}

# Module-level variable to store TOML config for settings source
_toml_config: dict[str, Any] = {}


def set_toml_config(config: dict[str, Any]) -> None:
    """Set the TOML configuration to be used by Settings."""
    global _toml_config
    _toml_config = config


class TomlConfigSettingsSource(PydanticBaseSettingsSource):
    """Custom settings source that reads from TOML configuration."""

    def get_field_value(
        self, field: Any, field_name: str  # noqa: ARG002
    ) -> tuple[Any, str, bool]:
        """Get field value from TOML config."""
        value = _toml_config.get(field_name)
        return value, field_name, value is not None

    def __call__(self) -> dict[str, Any]:
        """Return the TOML config values."""
        return _toml_config.copy()


class ServiceEnvSettingsSource(PydanticBaseSettingsSource):
    """Settings source for the unprefixed deployment variables.

    Container manifests set DB_HOST, PORT, OTEL_SERVICE_NAME and friends
    directly; this source folds them into the nested sections.
    """

    def get_field_value(
        self, field: Any, field_name: str  # noqa: ARG002
    ) -> tuple[Any, str, bool]:
        """Field-level lookup is unused; values come from __call__."""
        return None, field_name, False

    def __call__(self) -> dict[str, Any]:
        """Collect the deployment variables that are set and non-empty."""
        values: dict[str, dict[str, str]] = {}
        for env_name, (section, field_name) in SERVICE_ENV_VARS.items():
            raw = os.environ.get(env_name)
            if raw:
                values.setdefault(section, {})[field_name] = raw
        return values


class Settings(BaseSettings):
    """Root configuration object containing all nested configuration sections.

    Configuration is loaded in this order:
    1. Pydantic model defaults (in code)
    2. config/default.toml (base configuration)
    3. config/{CLOUDNATIVE_ENV}.toml (environment overrides)
    4. Deployment variables (DB_HOST, PORT, OTEL_EXPORTER_OTLP_ENDPOINT, ...)
    5. CLOUDNATIVE_* environment variables (runtime overrides)
    """

    model_config = SettingsConfigDict(
        env_prefix="CLOUDNATIVE_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    # Application settings
    app_name: str = Field(default="cloudnative", description="Application name for logging")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: LogLevel = Field(default="INFO", description="Logging level")

    # Nested configuration sections
    api: APIConfig = Field(default_factory=APIConfig, description="API server configuration")
    database: DatabaseConfig = Field(
        default_factory=DatabaseConfig,
        description="Items database configuration",
    )
    observability: ObservabilityConfig = Field(
        default_factory=ObservabilityConfig,
        description="Observability configuration",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize settings sources to include TOML config.

        Priority order (highest to lowest):
        1. init_settings (constructor arguments)
        2. env_settings (CLOUDNATIVE_* environment variables)
        3. service env (DB_HOST, PORT, OTEL_* ...)
        4. toml_settings (config/*.toml files)
        5. (defaults from model)
        """
        return (
            init_settings,
            env_settings,
            ServiceEnvSettingsSource(settings_cls),
            TomlConfigSettingsSource(settings_cls),
        )
