"""Render model assembly - Pure functions.

Combines filtering and clustering into the immutable model handed to the
view layer, and serializes it. All functions are pure with no side effects.
"""

from dataclasses import dataclass
from typing import Any, Iterable

from pawmap.core.clustering import (
    DEFAULT_CLUSTER_RADIUS_DEGREES,
    MarkerCluster,
    cluster_entities,
    unclustered_entities,
)
from pawmap.core.entities import Animal, EmergencyReport, Entity, severity_rank
from pawmap.core.filters import FilterCriteria, apply_filters


@dataclass(frozen=True)
class RenderModel:
    """What the map draws.

    Attributes:
        animals: Filtered animals
        emergencies: Filtered emergency reports
        clusters: Clusters over the filtered entities (empty when disabled)
    """
    animals: tuple[Animal, ...] = ()
    emergencies: tuple[EmergencyReport, ...] = ()
    clusters: tuple[MarkerCluster, ...] = ()

    def unclustered(self) -> list[Entity]:
        """Entities drawn as individual markers."""
        return unclustered_entities(self.animals, self.emergencies, self.clusters)

    def counts(self) -> dict[str, int]:
        """Legend counts."""
        stray = sum(1 for a in self.animals if a.category == "stray")
        return {
            "animals": len(self.animals),
            "stray": stray,
            "not_stray": len(self.animals) - stray,
            "emergencies": len(self.emergencies),
            "clusters": len(self.clusters),
        }

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON responses."""
        return {
            "animals": [animal_to_dict(a) for a in self.animals],
            "emergencies": [emergency_to_dict(e) for e in self.emergencies],
            "clusters": [cluster_to_dict(c) for c in self.clusters],
            "unclustered": [str(e.ref) for e in self.unclustered()],
            "counts": self.counts(),
        }


def build_render_model(
    animals: Iterable[Animal],
    emergencies: Iterable[EmergencyReport],
    criteria: FilterCriteria,
    clustering_enabled: bool = True,
    cluster_radius_degrees: float = DEFAULT_CLUSTER_RADIUS_DEGREES,
) -> RenderModel:
    """Filter, then optionally cluster, a fetched entity set.

    Pure function.

    Args:
        animals: Fetched, distance-annotated animals
        emergencies: Fetched, distance-annotated emergency reports
        criteria: Active filter criteria
        clustering_enabled: Whether to group nearby markers
        cluster_radius_degrees: Clustering threshold

    Returns:
        RenderModel for the view layer
    """
    filtered = apply_filters(criteria, animals, emergencies)

    clusters: tuple[MarkerCluster, ...] = ()
    if clustering_enabled:
        clusters = tuple(cluster_entities(
            filtered.animals,
            filtered.emergencies,
            cluster_radius_degrees,
        ))

    return RenderModel(
        animals=filtered.animals,
        emergencies=filtered.emergencies,
        clusters=clusters,
    )


def animal_to_dict(animal: Animal) -> dict[str, Any]:
    return {
        "id": animal.id,
        "name": animal.name,
        "category": animal.category,
        "breed": animal.breed,
        "size": animal.size,
        "owner_name": animal.owner_name,
        "age": animal.age,
        "rating": animal.rating,
        "latitude": animal.coordinate.latitude,
        "longitude": animal.coordinate.longitude,
        "distance_km": animal.distance_km,
    }


def emergency_to_dict(report: EmergencyReport) -> dict[str, Any]:
    return {
        "id": report.id,
        "category": report.category,
        "severity": report.severity,
        "severity_rank": severity_rank(report.severity),
        "description": report.description,
        "latitude": report.coordinate.latitude,
        "longitude": report.coordinate.longitude,
        "volunteers_needed": report.volunteers_needed,
        "volunteers_responded": report.volunteers_responded,
        "stale_volunteer_count": report.has_stale_volunteer_count,
        "created_at": report.created_at.isoformat() if report.created_at else None,
        "distance_km": report.distance_km,
    }


def cluster_to_dict(cluster: MarkerCluster) -> dict[str, Any]:
    return {
        "id": cluster.id,
        "latitude": cluster.center.latitude,
        "longitude": cluster.center.longitude,
        "count": cluster.count,
        "members": [str(ref) for ref in cluster.member_ids],
    }
