"""Imperative Shell - I/O and side effects.

This module contains all code that interacts with external systems:
- Backend REST client (HTTP)
- Entity repository with fallback query path
- Location provider and position sources
- Maps application hand-off
- Configuration loading (environment/files/Secret Manager)

Keep this layer thin and simple. All map logic should be in core.
"""

from pawmap.shell.backend_client import BackendClient
from pawmap.shell.entity_repository import EntityRepository, NearbyEntities
from pawmap.shell.location_provider import (
    GeolocationAPISource,
    LocationProvider,
    StaticPositionSource,
)
from pawmap.shell.maps_launcher import MapsLauncher
from pawmap.shell.config_loader import load_config, load_config_from_env

__all__ = [
    "BackendClient",
    "EntityRepository",
    "NearbyEntities",
    "GeolocationAPISource",
    "LocationProvider",
    "StaticPositionSource",
    "MapsLauncher",
    "load_config",
    "load_config_from_env",
]
