"""Functional Core - Pure functions with no side effects.

This module contains all map engine logic as pure functions:
- Coordinates and distance math
- Backend row parsing into typed entities
- Multi-criteria filtering
- Marker clustering
- Navigation link building

All functions here are deterministic and have no I/O.
"""

from pawmap.core.geo import Coordinate, UserRegion, calculate_distance, distance_km
from pawmap.core.entities import (
    Animal,
    EmergencyReport,
    EntityRef,
    parse_animals,
    parse_emergencies,
)
from pawmap.core.filters import FilterCriteria, FilteredEntities, apply_filters
from pawmap.core.clustering import MarkerCluster, cluster_entities
from pawmap.core.navigation import NavigationLinks, build_navigation_links

__all__ = [
    # Geo
    "Coordinate",
    "UserRegion",
    "calculate_distance",
    "distance_km",
    # Entities
    "Animal",
    "EmergencyReport",
    "EntityRef",
    "parse_animals",
    "parse_emergencies",
    # Filters
    "FilterCriteria",
    "FilteredEntities",
    "apply_filters",
    # Clustering
    "MarkerCluster",
    "cluster_entities",
    # Navigation
    "NavigationLinks",
    "build_navigation_links",
]
