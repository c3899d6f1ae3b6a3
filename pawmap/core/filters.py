"""Multi-criteria entity filtering - Pure functions.

Every predicate looks only at immutable entity fields and the criteria, so
the predicates commute: any application order gives the same result, and
applying the pipeline twice changes nothing. All functions are pure with no
side effects.
"""

import math
from dataclasses import dataclass
from typing import Callable, Iterable, Sequence

from pawmap.core.entities import (
    ANIMAL_CATEGORIES,
    SEVERITIES,
    Animal,
    EmergencyReport,
    Entity,
)


ALL = "all"

# Category selector values besides the specific animal categories
CATEGORY_ANIMALS = "animals"
CATEGORY_EMERGENCIES = "emergencies"

CATEGORIES = (ALL, CATEGORY_ANIMALS, CATEGORY_EMERGENCIES) + ANIMAL_CATEGORIES

DEFAULT_RADIUS_KM = 50.0


@dataclass(frozen=True)
class FilterCriteria:
    """The active filter controls.

    Attributes:
        query: Free-text search, matched case-insensitively
        category: One of CATEGORIES
        min_age: Lower age bound in years (inclusive)
        max_age: Upper age bound in years (inclusive)
        size: Animal size to match exactly, or 'all'
        severity: Emergency severity to match exactly, or 'all'
        radius_km: Maximum distance from the query center
    """
    query: str = ""
    category: str = ALL
    min_age: float = 0.0
    max_age: float = math.inf
    size: str = ALL
    severity: str = ALL
    radius_km: float = DEFAULT_RADIUS_KM

    def __post_init__(self) -> None:
        if self.category not in CATEGORIES:
            raise ValueError(f"Unknown category {self.category!r}")
        if self.severity != ALL and self.severity not in SEVERITIES:
            raise ValueError(f"Unknown severity {self.severity!r}")
        if self.min_age > self.max_age:
            raise ValueError(
                f"min_age ({self.min_age}) > max_age ({self.max_age})"
            )
        if not self.radius_km > 0:
            raise ValueError(f"radius_km must be positive, got {self.radius_km}")

    @property
    def normalized_query(self) -> str:
        return self.query.strip().lower()


@dataclass(frozen=True)
class FilteredEntities:
    """Result of running the filter pipeline.

    Attributes:
        animals: Animals that passed, in input order
        emergencies: Emergency reports that passed, in input order
    """
    animals: tuple[Animal, ...] = ()
    emergencies: tuple[EmergencyReport, ...] = ()

    @property
    def total(self) -> int:
        return len(self.animals) + len(self.emergencies)


Predicate = Callable[[Entity, FilterCriteria], bool]


def searchable_fields(entity: Entity) -> tuple[str | None, ...]:
    """Fields the free-text query is matched against.

    Pure function.
    """
    if isinstance(entity, Animal):
        return (entity.name, entity.breed, entity.owner_name, entity.category)
    return (entity.category, entity.description, entity.severity)


def matches_text(entity: Entity, criteria: FilterCriteria) -> bool:
    """Case-insensitive substring match. An empty query matches everything."""
    query = criteria.normalized_query
    if not query:
        return True

    return any(
        query in field.lower()
        for field in searchable_fields(entity)
        if field
    )


def matches_category(entity: Entity, criteria: FilterCriteria) -> bool:
    """Select which collection is shown, optionally one animal category."""
    category = criteria.category

    if category == ALL:
        return True
    if category == CATEGORY_ANIMALS:
        return isinstance(entity, Animal)
    if category == CATEGORY_EMERGENCIES:
        return isinstance(entity, EmergencyReport)

    return isinstance(entity, Animal) and entity.category == category


def matches_age_range(entity: Entity, criteria: FilterCriteria) -> bool:
    """Inclusive age range. Entities without an age pass."""
    if not isinstance(entity, Animal) or entity.age is None:
        return True
    return criteria.min_age <= entity.age <= criteria.max_age


def matches_size(entity: Entity, criteria: FilterCriteria) -> bool:
    if criteria.size == ALL or not isinstance(entity, Animal):
        return True
    return entity.size == criteria.size


def matches_severity(entity: Entity, criteria: FilterCriteria) -> bool:
    if criteria.severity == ALL or not isinstance(entity, EmergencyReport):
        return True
    return entity.severity == criteria.severity


def matches_radius(entity: Entity, criteria: FilterCriteria) -> bool:
    """Distance within radius. An unknown distance passes."""
    if entity.distance_km is None:
        return True
    return entity.distance_km <= criteria.radius_km


PREDICATES: tuple[Predicate, ...] = (
    matches_text,
    matches_category,
    matches_age_range,
    matches_size,
    matches_severity,
    matches_radius,
)


def passes(
    entity: Entity,
    criteria: FilterCriteria,
    predicates: Sequence[Predicate] = PREDICATES,
) -> bool:
    """Check an entity against every predicate.

    Pure function.
    """
    return all(predicate(entity, criteria) for predicate in predicates)


def filter_entities(
    entities: Iterable[Entity],
    criteria: FilterCriteria,
    predicates: Sequence[Predicate] = PREDICATES,
) -> list[Entity]:
    """Stable filter of a single collection.

    Pure function.
    """
    return [e for e in entities if passes(e, criteria, predicates)]


def apply_filters(
    criteria: FilterCriteria,
    animals: Iterable[Animal],
    emergencies: Iterable[EmergencyReport],
    predicates: Sequence[Predicate] = PREDICATES,
) -> FilteredEntities:
    """Run the filter pipeline over both collections independently.

    Pure function. Input order is preserved and entities are never modified.

    Args:
        criteria: Active filter criteria
        animals: Distance-annotated animals
        emergencies: Distance-annotated emergency reports
        predicates: Predicates to apply (all of PREDICATES by default)

    Returns:
        FilteredEntities with the surviving animals and emergencies
    """
    return FilteredEntities(
        animals=tuple(filter_entities(animals, criteria, predicates)),
        emergencies=tuple(filter_entities(emergencies, criteria, predicates)),
    )


def requires_refetch(previous: FilterCriteria, current: FilterCriteria) -> bool:
    """Only a radius change needs new data from the backend.

    Pure function.
    """
    return previous.radius_km != current.radius_km
