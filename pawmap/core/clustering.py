"""Marker clustering - Pure functions.

Groups spatially-close map entities so markers do not draw on top of each
other. All functions are pure with no side effects.

The grouping is greedy and strictly pairwise: a candidate only pulls in
entities within the radius of the candidate itself. Chains of near
neighbours are not merged, so membership depends on input order when three
entities are mutually near but not all pairwise within the radius.
"""

from dataclasses import dataclass
from typing import Iterable

from pawmap.core.entities import Animal, EmergencyReport, Entity, EntityRef
from pawmap.core.geo import Coordinate, centroid, degree_distance


# Grouping threshold in raw lat/lon degrees (roughly 1 km at mid latitudes)
DEFAULT_CLUSTER_RADIUS_DEGREES = 0.01


@dataclass(frozen=True)
class MarkerCluster:
    """A group of at least two entities drawn as one marker.

    Attributes:
        id: Stable id derived from the seed entity
        center: Mean coordinate of the members
        member_ids: Members, seed first
    """
    id: str
    center: Coordinate
    member_ids: tuple[EntityRef, ...]

    def __post_init__(self) -> None:
        if len(self.member_ids) < 2:
            raise ValueError("A cluster needs at least two members")

    @property
    def count(self) -> int:
        return len(self.member_ids)


def _candidates(
    animals: Iterable[Animal],
    emergencies: Iterable[EmergencyReport],
) -> list[Entity]:
    """Animals first, then emergencies, each in input order."""
    return [*animals, *emergencies]


def cluster_entities(
    animals: Iterable[Animal],
    emergencies: Iterable[EmergencyReport],
    radius_degrees: float = DEFAULT_CLUSTER_RADIUS_DEGREES,
) -> list[MarkerCluster]:
    """Group nearby entities into clusters.

    Pure function. O(n^2) in the number of entities, fine for a few hundred.

    Args:
        animals: Filtered animals
        emergencies: Filtered emergency reports
        radius_degrees: Planar distance in degrees below which two entities
            are considered neighbours

    Returns:
        Clusters in seed order. Entities with no neighbour are not included.
    """
    candidates = _candidates(animals, emergencies)
    processed: set[EntityRef] = set()
    clusters: list[MarkerCluster] = []

    for candidate in candidates:
        if candidate.ref in processed:
            continue

        neighbours = [
            other for other in candidates
            if other.ref not in processed
            and other.ref != candidate.ref
            and degree_distance(candidate.coordinate, other.coordinate) < radius_degrees
        ]

        if not neighbours:
            continue

        members = [candidate, *neighbours]
        processed.update(m.ref for m in members)

        clusters.append(MarkerCluster(
            id=f"cluster-{candidate.ref}",
            center=centroid([m.coordinate for m in members]),
            member_ids=tuple(m.ref for m in members),
        ))

    return clusters


def unclustered_entities(
    animals: Iterable[Animal],
    emergencies: Iterable[EmergencyReport],
    clusters: Iterable[MarkerCluster],
) -> list[Entity]:
    """Entities that are rendered as individual markers.

    Pure function. Preserves candidate order.
    """
    clustered = {ref for cluster in clusters for ref in cluster.member_ids}
    return [
        e for e in _candidates(animals, emergencies)
        if e.ref not in clustered
    ]
