"""Layered TOML configuration.

``config/default.toml`` is the base layer and ``config/<env>.toml`` is laid
over it, where ``<env>`` comes from CLOUDNATIVE_ENV. Either file may be
absent; model defaults fill whatever neither provides.
"""

import os
import tomllib
from pathlib import Path
from typing import Any

CONFIG_DIR_ENV = "CLOUDNATIVE_CONFIG_DIR"
ENVIRONMENT_ENV = "CLOUDNATIVE_ENV"
DEFAULT_ENVIRONMENT = "production"

# Parent directories searched for config/ when CLOUDNATIVE_CONFIG_DIR is unset
_SEARCH_DEPTH = 5


def get_config_dir() -> Path:
    """Locate the configuration directory.

    An explicit CLOUDNATIVE_CONFIG_DIR must exist. Otherwise the first
    ``config/`` found walking up from the working directory is used, or
    ``config`` relative to it when there is none.

    Raises:
        FileNotFoundError: If CLOUDNATIVE_CONFIG_DIR names a missing directory
    """
    explicit = os.environ.get(CONFIG_DIR_ENV)
    if explicit:
        path = Path(explicit)
        if not path.is_dir():
            raise FileNotFoundError(f"Config directory not found: {explicit}")
        return path

    cwd = Path.cwd()
    for directory in [cwd, *cwd.parents][:_SEARCH_DEPTH]:
        candidate = directory / "config"
        if candidate.is_dir():
            return candidate

    return Path("config")


def get_environment() -> str:
    """Deployment environment name, 'production' unless CLOUDNATIVE_ENV says otherwise."""
    return os.environ.get(ENVIRONMENT_ENV, DEFAULT_ENVIRONMENT)


def load_toml(file_path: Path) -> dict[str, Any]:
    """Parse one TOML file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        tomllib.TOMLDecodeError: If the TOML syntax is invalid
    """
    try:
        with file_path.open("rb") as f:
            return tomllib.load(f)
    except FileNotFoundError as e:
        raise FileNotFoundError(f"Configuration file not found: {file_path}") from e


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge ``override`` into a copy of ``base``.

    Tables present on both sides are merged key by key; any other value
    in ``override`` replaces the one in ``base``.
    """
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def load_config() -> dict[str, Any]:
    """Merge the default and environment layers into one dictionary."""
    config_dir = get_config_dir()
    layers = [config_dir / "default.toml", config_dir / f"{get_environment()}.toml"]

    config: dict[str, Any] = {}
    for layer in layers:
        if layer.is_file():
            config = deep_merge(config, load_toml(layer))
    return config
