"""Shared test fixtures for the cloudnative test suite."""

import os
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from opentelemetry.sdk.trace import ReadableSpan
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from cloudnative.api.app import create_app
from cloudnative.api.dependencies import AppContext
from cloudnative.config.models import APIConfig, DatabaseConfig, ObservabilityConfig
from cloudnative.config.settings import Settings, set_toml_config
from cloudnative.items.store import ItemStore
from cloudnative.items.stores.inmemory import InMemoryItemStore
from cloudnative.observability.telemetry import TelemetryPipeline, bootstrap_telemetry


@pytest.fixture
def test_config_dir(tmp_path: Path) -> Path:
    """Create a temporary config directory for testing."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def mock_toml_files(test_config_dir: Path) -> Callable[[dict[str, str]], None]:
    """Factory fixture to create TOML files in the test config directory.

    Usage:
        def test_something(mock_toml_files):
            mock_toml_files({
                "default.toml": "app_name = 'test'",
                "development.toml": "debug = true",
            })
    """

    def _create_toml_files(files: dict[str, str]) -> None:
        for filename, content in files.items():
            toml_file = test_config_dir / filename
            toml_file.write_text(content)

    return _create_toml_files


class EnvOverrideContext:
    """Context manager for temporarily setting environment variables."""

    def __init__(self, overrides: dict[str, str]) -> None:
        self.overrides = overrides
        self.original_env: dict[str, str | None] = {}

    def __enter__(self) -> None:
        for key, value in self.overrides.items():
            self.original_env[key] = os.environ.get(key)
            os.environ[key] = value

    def __exit__(self, *args: Any) -> None:
        for key in self.overrides:
            original = self.original_env[key]
            if original is None:
                os.environ.pop(key, None)
            else:
                os.environ[key] = original


@pytest.fixture
def env_override() -> Generator[Callable[[dict[str, str]], EnvOverrideContext], None, None]:
    """Context manager for temporarily setting environment variables.

    Usage:
        def test_something(env_override):
            with env_override({"DB_HOST": "db.internal"}):
                # test code here
    """

    def _env_override(overrides: dict[str, str]) -> EnvOverrideContext:
        return EnvOverrideContext(overrides)

    yield _env_override


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Generator[None, None, None]:
    """Clear the settings cache and TOML source before and after each test.

    This ensures test isolation for configuration tests.
    """
    from cloudnative.config import get_settings

    get_settings.cache_clear()
    set_toml_config({})
    yield
    get_settings.cache_clear()
    set_toml_config({})


@pytest.fixture
def span_exporter() -> InMemorySpanExporter:
    """Collects finished spans in memory."""
    return InMemorySpanExporter()


@pytest.fixture
def observability_config() -> ObservabilityConfig:
    """Observability settings that never bind the metrics port."""
    return ObservabilityConfig(
        service_name="backend-api-test",
        service_version="0.0.1",
        start_metrics_server=False,
        shutdown_timeout_seconds=1.0,
    )


@pytest.fixture
def telemetry(
    observability_config: ObservabilityConfig, span_exporter: InMemorySpanExporter
) -> Generator[TelemetryPipeline, None, None]:
    """Started pipeline exporting spans synchronously to memory."""
    pipeline = bootstrap_telemetry(
        observability_config, span_exporter=span_exporter, install_global=False
    )
    yield pipeline
    pipeline.shutdown(timeout_seconds=1.0)


@pytest.fixture
def api_config() -> APIConfig:
    """API settings; tests override the rate limit through this fixture."""
    return APIConfig()


@pytest.fixture
def settings(api_config: APIConfig, observability_config: ObservabilityConfig) -> Settings:
    """Settings wired to the in-memory item store."""
    return Settings(
        api=api_config,
        database=DatabaseConfig(backend="inmemory", host="db.test", port=5432, name="items_db"),
        observability=observability_config,
    )


@pytest.fixture
def item_store() -> ItemStore:
    """In-memory item store."""
    return InMemoryItemStore()


@pytest.fixture
def app(settings: Settings, telemetry: TelemetryPipeline, item_store: ItemStore) -> FastAPI:
    """Application built from an explicit context."""
    return create_app(AppContext(settings=settings, telemetry=telemetry, items=item_store))


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    """Test client with the application lifespan running."""
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client


@pytest.fixture
def spans_named(
    span_exporter: InMemorySpanExporter,
) -> Callable[[str], list[ReadableSpan]]:
    """Lookup of finished spans by name, in end order."""

    def _spans_named(name: str) -> list[ReadableSpan]:
        return [span for span in span_exporter.get_finished_spans() if span.name == name]

    return _spans_named
