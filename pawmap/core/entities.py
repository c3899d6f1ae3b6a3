"""Map entity models and parsing - Pure functions.

This module turns loosely-typed backend rows into typed Animal and
EmergencyReport objects. Rows that cannot be placed on the map are dropped,
not raised. All functions are pure with no side effects.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Union

from pawmap.core.geo import Coordinate, distance_km, is_valid_coordinate


ANIMAL = "animal"
EMERGENCY = "emergency"

ANIMAL_CATEGORIES = ("stray", "owned", "rescue", "foster")
SEVERITIES = ("low", "medium", "high")

# Reports whose severity is missing or not in SEVERITIES
UNKNOWN_SEVERITY = "unknown"

# Rows without an explicit type are somebody's dog
DEFAULT_ANIMAL_CATEGORY = "owned"


@dataclass(frozen=True)
class EntityRef:
    """Identifies an entity across both collections.

    Attributes:
        kind: ANIMAL or EMERGENCY
        id: Backend row id
    """
    kind: str
    id: str

    def __str__(self) -> str:
        return f"{self.kind}:{self.id}"


@dataclass(frozen=True)
class Animal:
    """Immutable dog model.

    Attributes:
        id: Backend row id
        name: Dog name
        coordinate: Last known location
        category: Usually one of ANIMAL_CATEGORIES; other backend types are kept
        breed: Breed description (optional)
        size: Size label such as small/medium/large (optional)
        owner_id: Owning user id (optional)
        owner_name: Owner display name (optional)
        age: Age in years (optional)
        rating: Average review rating (optional)
        distance_km: Distance from the query center, set per fetch
    """
    id: str
    name: str
    coordinate: Coordinate
    category: str = DEFAULT_ANIMAL_CATEGORY
    breed: str | None = None
    size: str | None = None
    owner_id: str | None = None
    owner_name: str | None = None
    age: float | None = None
    rating: float | None = None
    distance_km: float | None = None

    @property
    def ref(self) -> EntityRef:
        return EntityRef(ANIMAL, self.id)

    @property
    def label(self) -> str:
        return self.name


@dataclass(frozen=True)
class EmergencyReport:
    """Immutable open emergency report.

    Attributes:
        id: Backend row id
        category: Emergency type (e.g. 'injured', 'lost')
        severity: One of SEVERITIES, or UNKNOWN_SEVERITY
        description: Free-text description
        coordinate: Reported location
        volunteers_needed: Volunteers requested
        volunteers_responded: Volunteers who answered
        created_at: When the report was filed (UTC)
        contact_info: Reporter contact details (optional)
        distance_km: Distance from the query center, set per fetch
    """
    id: str
    category: str
    severity: str
    description: str
    coordinate: Coordinate
    volunteers_needed: int = 0
    volunteers_responded: int = 0
    created_at: datetime | None = None
    contact_info: str | None = None
    distance_km: float | None = None

    @property
    def ref(self) -> EntityRef:
        return EntityRef(EMERGENCY, self.id)

    @property
    def label(self) -> str:
        return self.category

    @property
    def has_stale_volunteer_count(self) -> bool:
        """More responders than requested means the row is out of date."""
        return self.volunteers_responded > self.volunteers_needed


Entity = Union[Animal, EmergencyReport]


def severity_rank(severity: str) -> int:
    """Rank a severity for visual priority: low=0, medium=1, high=2.

    Pure function. Unknown severities rank below 'low'.
    """
    try:
        return SEVERITIES.index(severity)
    except ValueError:
        return -1


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _optional_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 timestamp, assuming UTC when no offset is given."""
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _parse_coordinate(row: dict[str, Any]) -> Coordinate | None:
    latitude = row.get("latitude")
    longitude = row.get("longitude")
    if not is_valid_coordinate(latitude, longitude):
        return None
    return Coordinate(latitude=float(latitude), longitude=float(longitude))


def _resolve_distance(
    row: dict[str, Any],
    coordinate: Coordinate,
    center: Coordinate | None,
) -> float | None:
    """Use the server-computed distance, else compute it from center."""
    server_distance = _optional_float(row.get("distance_km"))
    if server_distance is not None:
        return server_distance
    if center is not None:
        return distance_km(center, coordinate)
    return None


def parse_animal(
    row: dict[str, Any],
    center: Coordinate | None = None,
) -> Animal | None:
    """Parse a single backend dog row into an Animal.

    Pure function: takes raw dict, returns typed Animal or None if invalid.

    Args:
        row: Row from the dogs table or the proximity function
        center: Query center; when given, distance_km is computed from it

    Returns:
        Animal or None if the row has no id or no usable location
    """
    try:
        row_id = row.get("id")
        if row_id is None or row_id == "":
            return None

        coordinate = _parse_coordinate(row)
        if coordinate is None:
            return None

        # Types outside ANIMAL_CATEGORIES are kept as-is and count as not stray
        category = (_optional_str(row.get("dog_type")) or DEFAULT_ANIMAL_CATEGORY).lower()

        return Animal(
            id=str(row_id),
            name=_optional_str(row.get("name")) or "Unknown",
            coordinate=coordinate,
            category=category,
            breed=_optional_str(row.get("breed")),
            size=_optional_str(row.get("size")),
            owner_id=_optional_str(row.get("owner_id")),
            owner_name=_optional_str(row.get("owner_name")),
            age=_optional_float(row.get("age")),
            rating=_optional_float(row.get("rating_average")),
            distance_km=_resolve_distance(row, coordinate, center),
        )
    except (AttributeError, TypeError, ValueError):
        return None


def parse_emergency(
    row: dict[str, Any],
    center: Coordinate | None = None,
) -> EmergencyReport | None:
    """Parse a single backend emergency_requests row into an EmergencyReport.

    Pure function: takes raw dict, returns typed report or None if invalid.
    Only open reports are accepted.

    Args:
        row: Row from the emergency_requests table
        center: Query center; when given, distance_km is computed from it

    Returns:
        EmergencyReport or None if the row is closed, malformed or unplaceable
    """
    try:
        row_id = row.get("id")
        if row_id is None or row_id == "":
            return None

        status = row.get("status")
        if status is not None and str(status).lower() != "open":
            return None

        coordinate = _parse_coordinate(row)
        if coordinate is None:
            return None

        severity = (_optional_str(row.get("severity")) or "").lower()
        if severity not in SEVERITIES:
            severity = UNKNOWN_SEVERITY

        return EmergencyReport(
            id=str(row_id),
            category=_optional_str(row.get("emergency_type")) or "other",
            severity=severity,
            description=_optional_str(row.get("description")) or "",
            coordinate=coordinate,
            volunteers_needed=int(row.get("volunteers_needed") or 0),
            volunteers_responded=int(row.get("volunteers_responded") or 0),
            created_at=_parse_timestamp(row.get("created_at")),
            contact_info=_optional_str(row.get("contact_info")),
            distance_km=_resolve_distance(row, coordinate, center),
        )
    except (AttributeError, TypeError, ValueError):
        return None


def parse_animals(
    rows: list[dict[str, Any]],
    center: Coordinate | None = None,
) -> list[Animal]:
    """Parse backend rows into Animals, dropping invalid ones.

    Pure function. Preserves row order.
    """
    animals = (parse_animal(row, center) for row in rows)
    return [a for a in animals if a is not None]


def parse_emergencies(
    rows: list[dict[str, Any]],
    center: Coordinate | None = None,
) -> list[EmergencyReport]:
    """Parse backend rows into open EmergencyReports, dropping invalid ones.

    Pure function. Preserves row order.
    """
    reports = (parse_emergency(row, center) for row in rows)
    return [e for e in reports if e is not None]
