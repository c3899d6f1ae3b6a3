"""Geographic calculations - Pure functions.

This module provides coordinates, viewport regions and distance math for
map entities. All functions are pure with no side effects.
"""

import math
from dataclasses import dataclass
from typing import Any


# Earth's radius in kilometers
EARTH_RADIUS_KM = 6371.0

# Default viewport span in degrees (a few kilometers across)
DEFAULT_REGION_DELTA = 0.02


@dataclass(frozen=True)
class Coordinate:
    """A latitude/longitude pair.

    Attributes:
        latitude: Latitude in degrees
        longitude: Longitude in degrees
    """
    latitude: float
    longitude: float

    @property
    def is_valid(self) -> bool:
        """Check the coordinate is usable for distance math.

        A (0, 0) pair is upstream noise, not a real location.
        """
        return is_valid_coordinate(self.latitude, self.longitude)


@dataclass(frozen=True)
class UserRegion:
    """The current map viewport.

    Attributes:
        center: Viewport center
        latitude_delta: Vertical span in degrees (zoom proxy)
        longitude_delta: Horizontal span in degrees (zoom proxy)
    """
    center: Coordinate
    latitude_delta: float = DEFAULT_REGION_DELTA
    longitude_delta: float = DEFAULT_REGION_DELTA


def _is_number(value: Any) -> bool:
    # bool is an int subclass but never a coordinate
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_valid_coordinate(latitude: Any, longitude: Any) -> bool:
    """Check that a raw latitude/longitude pair is a real location.

    Pure function.

    Rejects missing values, non-numeric values, NaN/infinity, values out of
    range and the (0, 0) sentinel.

    Args:
        latitude: Raw latitude value
        longitude: Raw longitude value

    Returns:
        True if the pair can be placed on the map
    """
    if not (_is_number(latitude) and _is_number(longitude)):
        return False

    if not (math.isfinite(latitude) and math.isfinite(longitude)):
        return False

    if not (-90 <= latitude <= 90 and -180 <= longitude <= 180):
        return False

    return not (latitude == 0 and longitude == 0)


def calculate_distance(
    lat1: float,
    lon1: float,
    lat2: float,
    lon2: float,
) -> float:
    """Calculate distance between two points using Haversine formula.

    Pure function.

    Args:
        lat1: Latitude of first point
        lon1: Longitude of first point
        lat2: Latitude of second point
        lon2: Longitude of second point

    Returns:
        Distance in kilometers
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    delta_lat = math.radians(lat2 - lat1)
    delta_lon = math.radians(lon2 - lon1)

    a = (
        math.sin(delta_lat / 2) ** 2
        + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(delta_lon / 2) ** 2
    )
    # Rounding can push a a hair above 1 for antipodal points
    a = min(1.0, max(0.0, a))
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def distance_km(a: Coordinate, b: Coordinate) -> float:
    """Great-circle distance between two coordinates in kilometers."""
    return calculate_distance(a.latitude, a.longitude, b.latitude, b.longitude)


def degree_distance(a: Coordinate, b: Coordinate) -> float:
    """Planar Euclidean distance in raw lat/lon degrees.

    Pure function. Only meaningful at city scale; used for visual grouping,
    never as a metric result.
    """
    return math.hypot(a.latitude - b.latitude, a.longitude - b.longitude)


def centroid(coordinates: list[Coordinate]) -> Coordinate:
    """Arithmetic mean of a non-empty list of coordinates.

    Pure function.

    Raises:
        ValueError: If coordinates is empty
    """
    if not coordinates:
        raise ValueError("centroid of an empty coordinate list")

    count = len(coordinates)
    return Coordinate(
        latitude=sum(c.latitude for c in coordinates) / count,
        longitude=sum(c.longitude for c in coordinates) / count,
    )
