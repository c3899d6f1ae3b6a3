"""Entity Repository - Imperative Shell.

Fetches the animals and open emergency reports around a point. The
proximity remote procedure is the primary path; when it fails the
repository reads the table directly and computes distances client-side.
Parsing and distance math are in the core module.
"""

import logging
from dataclasses import dataclass

from pawmap.core.config import BackendConfig
from pawmap.core.entities import (
    Animal,
    EmergencyReport,
    Entity,
    parse_animals,
    parse_emergencies,
)
from pawmap.core.errors import BackendError, RepositoryError
from pawmap.core.geo import Coordinate
from pawmap.shell.backend_client import BackendClient


logger = logging.getLogger(__name__)


# Server-side pre-filter; (0, 0) and type checks happen during parsing
LOCATED_FILTERS = {
    "latitude": "not.is.null",
    "longitude": "not.is.null",
}


@dataclass(frozen=True)
class NearbyEntities:
    """Everything found around a center point.

    Attributes:
        animals: Animals within the radius, distance-annotated
        emergencies: Open emergency reports within the radius, distance-annotated
        used_fallback: True if the proximity function failed and the
            table read was used for animals
    """
    animals: tuple[Animal, ...]
    emergencies: tuple[EmergencyReport, ...]
    used_fallback: bool = False


def _within(entities: list[Entity], radius_km: float) -> list[Entity]:
    return [
        e for e in entities
        if e.distance_km is None or e.distance_km <= radius_km
    ]


class EntityRepository:
    """Reads map entities from the backend.

    This is part of the imperative shell - it performs network I/O through
    the backend client.
    """

    def __init__(
        self,
        backend: BackendClient,
        config: BackendConfig | None = None,
    ) -> None:
        """Initialize repository.

        Args:
            backend: Backend REST client
            config: Function and table names (defaults if not provided)
        """
        self.backend = backend
        self.config = config or BackendConfig()

    def _fetch_animals_primary(
        self,
        center: Coordinate,
        radius_km: float,
    ) -> list[Animal]:
        rows = self.backend.call_function(
            self.config.nearby_function,
            {
                "user_lat": center.latitude,
                "user_lng": center.longitude,
                "radius_km": radius_km,
            },
        )
        animals = parse_animals(rows, center)
        logger.debug("Dropped %d invalid animal rows", len(rows) - len(animals))
        return animals

    def _fetch_animals_fallback(
        self,
        center: Coordinate,
        radius_km: float,
    ) -> list[Animal]:
        rows = self.backend.select_rows(
            self.config.animals_table,
            filters=LOCATED_FILTERS,
            limit=self.config.fallback_row_limit,
        )
        animals = parse_animals(rows, center)
        logger.debug("Dropped %d invalid animal rows", len(rows) - len(animals))
        return animals

    def fetch_animals(
        self,
        center: Coordinate,
        radius_km: float,
    ) -> tuple[list[Animal], bool]:
        """Fetch animals around center, falling back to a table read.

        This method performs network I/O.

        Args:
            center: Query center
            radius_km: Search radius in kilometers

        Returns:
            (animals within radius, whether the fallback path was used)

        Raises:
            RepositoryError: If both the primary and the fallback query fail
        """
        try:
            animals = self._fetch_animals_primary(center, radius_km)
            return _within(animals, radius_km), False
        except BackendError as primary_error:
            logger.warning(
                "Proximity function failed (%s), falling back to table read",
                primary_error,
            )

            try:
                animals = self._fetch_animals_fallback(center, radius_km)
            except BackendError as fallback_error:
                logger.error("Fallback animal read failed: %s", fallback_error)
                raise RepositoryError(
                    f"Could not load animals: {primary_error}; "
                    f"fallback: {fallback_error}"
                ) from fallback_error

            return _within(animals, radius_km), True

    def fetch_emergencies(
        self,
        center: Coordinate,
        radius_km: float,
    ) -> list[EmergencyReport]:
        """Fetch open emergency reports around center.

        This method performs network I/O.

        Raises:
            RepositoryError: If the table read fails
        """
        try:
            rows = self.backend.select_rows(
                self.config.emergencies_table,
                filters={"status": "eq.open", **LOCATED_FILTERS},
            )
        except BackendError as e:
            logger.error("Emergency read failed: %s", e)
            raise RepositoryError(f"Could not load emergencies: {e}") from e

        reports = parse_emergencies(rows, center)
        logger.debug(
            "Dropped %d invalid or closed emergency rows",
            len(rows) - len(reports),
        )
        return _within(reports, radius_km)

    def fetch_nearby(
        self,
        center: Coordinate,
        radius_km: float,
    ) -> NearbyEntities:
        """Fetch both entity collections around center.

        A failure in either half fails the whole call.

        Args:
            center: Query center
            radius_km: Search radius in kilometers

        Returns:
            NearbyEntities with distance-annotated animals and emergencies

        Raises:
            RepositoryError: If animals (both paths) or emergencies cannot be read
        """
        animals, used_fallback = self.fetch_animals(center, radius_km)
        emergencies = self.fetch_emergencies(center, radius_km)

        logger.info(
            "Found %d animals and %d emergencies within %.1f km%s",
            len(animals),
            len(emergencies),
            radius_km,
            " (fallback)" if used_fallback else "",
        )

        return NearbyEntities(
            animals=tuple(animals),
            emergencies=tuple(emergencies),
            used_fallback=used_fallback,
        )
