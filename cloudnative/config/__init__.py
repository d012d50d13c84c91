"""Service configuration.

Values are resolved per field, lowest precedence first:

1. model defaults
2. config/default.toml, then config/{CLOUDNATIVE_ENV}.toml
3. deployment variables set by the container manifest (DB_HOST, DB_PORT,
   DB_NAME, DB_USER, DB_PASSWORD, PORT, OTEL_EXPORTER_OTLP_ENDPOINT,
   OTEL_SERVICE_NAME, SERVICE_VERSION)
4. CLOUDNATIVE_<SECTION>__<FIELD> overrides

    settings = get_settings()
    settings.database.dsn
    settings.observability.otlp_endpoint
"""

from functools import lru_cache

from cloudnative.config.loader import load_config
from cloudnative.config.settings import Settings, set_toml_config


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings once per process.

    TOML layers are read first and handed to the TOML settings source;
    environment sources are applied on top by pydantic-settings.
    """
    set_toml_config(load_config())
    return Settings()


def reload_settings() -> Settings:
    """Drop the cached settings and load them again."""
    get_settings.cache_clear()
    return get_settings()


__all__ = ["get_settings", "reload_settings", "Settings"]
