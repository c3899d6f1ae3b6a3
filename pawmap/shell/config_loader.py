"""Configuration Loader - Imperative Shell.

This module handles loading configuration from YAML files and
environment variables. All I/O is contained here.

Models (Config, BackendConfig) are defined in pawmap/core/config.py
to avoid information leakage between layers.
"""

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from pawmap.core.config import BackendConfig, Config
from pawmap.core.geo import Coordinate
from pawmap.shell.secret_client import SECRET_PREFIX, SecretClient, parse_placeholder


logger = logging.getLogger(__name__)


DEFAULT_CONFIG_PATH = "config/config.yaml"


def _get_secret_client() -> SecretClient | None:
    """Get a Secret Manager client when a GCP project is configured.

    Returns None for local development.
    """
    project_id = os.environ.get("GCP_PROJECT") or os.environ.get("GOOGLE_CLOUD_PROJECT")
    if project_id:
        return SecretClient(project_id)
    return None


def _resolve_value(value: Any, secret_client: SecretClient | None = None) -> Any:
    """Resolve a value that may contain a secret or env var placeholder.

    Args:
        value: Value to resolve (may be a ${...} placeholder)
        secret_client: Client for resolving ${secret:...} placeholders

    Returns:
        Resolved value, or the original value if it cannot be resolved
    """
    if not isinstance(value, str):
        return value

    if secret_client:
        return secret_client.resolve(value)

    # No secret client - only handle env vars
    spec = parse_placeholder(value)
    if spec is not None and not spec.startswith(SECRET_PREFIX):
        env_value = os.environ.get(spec)
        if env_value:
            return env_value
        logger.warning("Environment variable %s not set", spec)

    return value


def _parse_backend(
    data: dict[str, Any],
    secret_client: SecretClient | None = None,
) -> BackendConfig:
    """Parse backend settings from config data."""
    defaults = BackendConfig()
    limit = data.get("fallback_row_limit")

    return BackendConfig(
        url=_resolve_value(data.get("url", ""), secret_client),
        api_key=_resolve_value(data.get("api_key", ""), secret_client),
        nearby_function=data.get("nearby_function", defaults.nearby_function),
        animals_table=data.get("animals_table", defaults.animals_table),
        emergencies_table=data.get("emergencies_table", defaults.emergencies_table),
        fallback_row_limit=int(limit) if limit is not None else None,
        timeout_seconds=int(data.get("timeout_seconds", defaults.timeout_seconds)),
    )


def _parse_center(data: dict[str, Any] | None) -> Coordinate | None:
    """Parse an optional default center from config data."""
    if not data:
        return None
    return Coordinate(
        latitude=float(data["latitude"]),
        longitude=float(data["longitude"]),
    )


def load_config_from_dict(data: dict[str, Any]) -> Config:
    """Load configuration from a dictionary.

    This is a pure-ish function (only placeholder expansion has side effects).

    Args:
        data: Configuration dictionary

    Returns:
        Parsed Config object
    """
    secret_client = _get_secret_client()
    defaults = Config()

    return Config(
        backend=_parse_backend(data.get("backend", {}), secret_client),
        default_radius_km=float(data.get("default_radius_km", defaults.default_radius_km)),
        cluster_radius_degrees=float(
            data.get("cluster_radius_degrees", defaults.cluster_radius_degrees)
        ),
        clustering_enabled=bool(data.get("clustering_enabled", defaults.clustering_enabled)),
        region_delta=float(data.get("region_delta", defaults.region_delta)),
        tracking_interval_seconds=float(
            data.get("tracking_interval_seconds", defaults.tracking_interval_seconds)
        ),
        filter_debounce_seconds=float(
            data.get("filter_debounce_seconds", defaults.filter_debounce_seconds)
        ),
        default_center=_parse_center(data.get("default_center")),
    )


def load_config(config_path: str | Path | None = None) -> Config:
    """Load configuration from a YAML file.

    This method performs file I/O.

    Args:
        config_path: Path to YAML config file.
                    If None, uses CONFIG_PATH env var or default.

    Returns:
        Parsed Config object

    Raises:
        yaml.YAMLError: If config file is invalid YAML
    """
    if config_path is None:
        config_path = os.environ.get("CONFIG_PATH", DEFAULT_CONFIG_PATH)

    path = Path(config_path)

    logger.info("Loading configuration from %s", path)

    if not path.exists():
        logger.warning("Config file not found: %s, using defaults", path)
        return Config()

    with open(path, "r") as f:
        data = yaml.safe_load(f)

    if data is None:
        logger.warning("Config file is empty, using defaults")
        return Config()

    config = load_config_from_dict(data)

    logger.info(
        "Loaded config: backend %s, radius %.1f km, clustering %s",
        config.backend.url or "<unset>",
        config.default_radius_km,
        "on" if config.clustering_enabled else "off",
    )

    return config


def load_config_from_env() -> Config:
    """Load configuration from environment variables.

    Useful for simple deployments without a YAML file.

    Environment variables:
        PAWMAP_BACKEND_URL: Backend base URL
        PAWMAP_BACKEND_KEY: Public API key (or ${secret:NAME})
        PAWMAP_RADIUS_KM: Default search radius
        PAWMAP_CLUSTER_RADIUS: Cluster radius in degrees

    Returns:
        Config object from environment
    """
    secret_client = _get_secret_client()
    defaults = Config()

    backend_url = os.environ.get("PAWMAP_BACKEND_URL", "")
    if not backend_url:
        logger.warning("PAWMAP_BACKEND_URL not set")

    return Config(
        backend=BackendConfig(
            url=backend_url,
            api_key=_resolve_value(os.environ.get("PAWMAP_BACKEND_KEY", ""), secret_client),
        ),
        default_radius_km=float(
            os.environ.get("PAWMAP_RADIUS_KM", defaults.default_radius_km)
        ),
        cluster_radius_degrees=float(
            os.environ.get("PAWMAP_CLUSTER_RADIUS", defaults.cluster_radius_degrees)
        ),
    )
