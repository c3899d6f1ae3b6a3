"""Location Provider - Imperative Shell.

Acquires the user's position from a position source and exposes it as a
map region. Sources are injected so the pipeline can run against fakes,
a fixed point, or an HTTP geolocation service.
"""

import asyncio
import logging
from typing import Any, Callable, Protocol

import requests

from pawmap.core.errors import PermissionDenied, PositionUnavailable
from pawmap.core.geo import DEFAULT_REGION_DELTA, Coordinate, UserRegion, is_valid_coordinate


logger = logging.getLogger(__name__)


DEFAULT_TRACKING_INTERVAL = 1.0

# Default timeout for geolocation requests (seconds)
DEFAULT_TIMEOUT = 10

GEOLOCATION_API_URL = "https://ipapi.co/json/"


class PositionSource(Protocol):
    """Something that can tell where the user is."""

    async def request_permission(self) -> bool:
        """Ask for access. Returns False if the user declines."""
        ...

    async def current_position(self) -> Coordinate:
        """Get a position fix.

        Raises:
            PositionUnavailable: If no fix can be obtained
        """
        ...


class StaticPositionSource:
    """A source that always reports the same point."""

    def __init__(self, coordinate: Coordinate, permission_granted: bool = True) -> None:
        self.coordinate = coordinate
        self.permission_granted = permission_granted

    async def request_permission(self) -> bool:
        return self.permission_granted

    async def current_position(self) -> Coordinate:
        return self.coordinate


class GeolocationAPISource:
    """Approximate position from an HTTP geolocation service.

    The service must answer with a JSON object carrying 'latitude' and
    'longitude'. Blocking HTTP runs in a worker thread.
    """

    def __init__(
        self,
        url: str = GEOLOCATION_API_URL,
        timeout: int = DEFAULT_TIMEOUT,
        permission_granted: bool = True,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self.permission_granted = permission_granted

    async def request_permission(self) -> bool:
        return self.permission_granted

    def _fetch(self) -> dict[str, Any]:
        response = requests.get(self.url, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    async def current_position(self) -> Coordinate:
        logger.info("Requesting position from %s", self.url)

        try:
            data = await asyncio.to_thread(self._fetch)
        except (requests.RequestException, ValueError) as e:
            logger.warning("Geolocation request failed: %s", str(e))
            raise PositionUnavailable(f"Geolocation request failed: {e}") from e

        if not isinstance(data, dict):
            raise PositionUnavailable("Geolocation response is not an object")

        latitude = data.get("latitude")
        longitude = data.get("longitude")
        if not is_valid_coordinate(latitude, longitude):
            raise PositionUnavailable(
                f"Geolocation returned no usable position: {latitude}, {longitude}"
            )

        return Coordinate(latitude=float(latitude), longitude=float(longitude))


class LocationProvider:
    """Turns position fixes into map regions.

    This is part of the imperative shell - it awaits the permission prompt
    and the position fix.
    """

    def __init__(
        self,
        source: PositionSource,
        region_delta: float = DEFAULT_REGION_DELTA,
        tracking_interval: float = DEFAULT_TRACKING_INTERVAL,
    ) -> None:
        """Initialize location provider.

        Args:
            source: Where positions come from
            region_delta: Viewport span in degrees for a fresh fix
            tracking_interval: Seconds between fixes while tracking
        """
        self.source = source
        self.region_delta = region_delta
        self.tracking_interval = tracking_interval

    async def acquire(self) -> UserRegion:
        """Acquire the current position once.

        Returns:
            Region centered on the user with the default viewport span

        Raises:
            PermissionDenied: If the user declined location access
            PositionUnavailable: If no usable fix could be obtained
        """
        if not await self.source.request_permission():
            logger.warning("Location permission denied")
            raise PermissionDenied("Location permission is required to use the map")

        position = await self.source.current_position()
        if not position.is_valid:
            raise PositionUnavailable(
                f"Position source returned an unusable fix: "
                f"{position.latitude}, {position.longitude}"
            )

        logger.info(
            "Acquired position (%.4f, %.4f)",
            position.latitude,
            position.longitude,
        )

        return UserRegion(
            center=position,
            latitude_delta=self.region_delta,
            longitude_delta=self.region_delta,
        )

    async def track(
        self,
        on_region: Callable[[UserRegion], None],
        interval: float | None = None,
    ) -> None:
        """Re-acquire the position on an interval until cancelled.

        Only reports regions; it never triggers a data refresh. Transient
        fix failures are logged and skipped.

        Args:
            on_region: Called with every new region
            interval: Seconds between fixes (provider default if None)

        Raises:
            PermissionDenied: If permission is revoked while tracking
        """
        delay = self.tracking_interval if interval is None else interval
        logger.info("Tracking position every %.1fs", delay)

        while True:
            try:
                on_region(await self.acquire())
            except PositionUnavailable as e:
                logger.warning("Skipping tracking update: %s", e)
            await asyncio.sleep(delay)
