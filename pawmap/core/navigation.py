"""Navigation hand-off links - Pure functions.

Builds the URLs used to hand a destination over to an external maps
application. The actual opening (I/O) is handled by the shell layer.
"""

from dataclasses import dataclass
from urllib.parse import quote

from pawmap.core.geo import Coordinate


IOS = "ios"
ANDROID = "android"


@dataclass(frozen=True)
class NavigationLinks:
    """Where to send the user for directions.

    Attributes:
        native_url: Platform deep link, None when the platform has none
        web_url: Browser fallback, always usable
    """
    native_url: str | None
    web_url: str


def format_lat_lng(coordinate: Coordinate) -> str:
    """Format a coordinate as 'lat,lng'.

    Pure function.
    """
    return f"{coordinate.latitude},{coordinate.longitude}"


def build_native_url(
    destination: Coordinate,
    label: str,
    platform: str,
) -> str | None:
    """Build the platform maps deep link.

    Pure function.

    Args:
        destination: Where to navigate to
        label: Destination name shown by the maps app
        platform: IOS or ANDROID; anything else has no native link

    Returns:
        Deep link URL, or None for unsupported platforms
    """
    lat_lng = format_lat_lng(destination)
    encoded_label = quote(label, safe="")

    if platform == IOS:
        return f"maps://app?saddr=&daddr={lat_lng}&q={encoded_label}"
    if platform == ANDROID:
        return f"google.navigation:q={lat_lng}({encoded_label})"
    return None


def build_web_url(destination: Coordinate, label: str) -> str:
    """Build the Google Maps directions URL used when no native app handles the link.

    Pure function.
    """
    lat_lng = format_lat_lng(destination)
    encoded_label = quote(label, safe="")
    return (
        "https://www.google.com/maps/dir/?api=1"
        f"&destination={lat_lng}&destination_place_id={encoded_label}"
    )


def build_navigation_links(
    destination: Coordinate,
    label: str,
    platform: str,
) -> NavigationLinks:
    """Build both the native and the web navigation link.

    Pure function.
    """
    return NavigationLinks(
        native_url=build_native_url(destination, label, platform),
        web_url=build_web_url(destination, label),
    )
