"""Maps Launcher - Imperative Shell.

Hands a destination over to an external maps application. Link building
is in the core module; this module only asks an opener to open it.
"""

import logging
import webbrowser
from dataclasses import dataclass
from typing import Protocol

from pawmap.core.geo import Coordinate
from pawmap.core.navigation import build_navigation_links


logger = logging.getLogger(__name__)


class URLOpener(Protocol):
    """Opens URLs with whatever handler the platform has registered."""

    def can_open(self, url: str) -> bool:
        ...

    def open(self, url: str) -> bool:
        ...


class BrowserOpener:
    """Opens web URLs in the default browser. Has no native maps handler."""

    def can_open(self, url: str) -> bool:
        return url.startswith(("http://", "https://"))

    def open(self, url: str) -> bool:
        return webbrowser.open(url)


@dataclass
class LaunchResult:
    """Result of a navigation hand-off.

    Attributes:
        success: Whether a maps application was opened
        url: The URL that was (or would have been) opened
        error: Error message if failed
    """
    success: bool
    url: str
    error: str | None = None


class MapsLauncher:
    """Opens turn-by-turn directions in an external maps application.

    This is part of the imperative shell - it performs platform I/O.
    """

    def __init__(
        self,
        opener: URLOpener | None = None,
        platform: str = "web",
    ) -> None:
        """Initialize maps launcher.

        Args:
            opener: URL opener (default browser if not provided)
            platform: 'ios', 'android', or anything else for web-only
        """
        self.opener = opener or BrowserOpener()
        self.platform = platform

    def navigate_to(self, destination: Coordinate, label: str) -> LaunchResult:
        """Open directions to destination.

        Uses the native deep link when a handler is registered, otherwise
        (or when the native app refuses it) the web maps URL.

        Args:
            destination: Where to go
            label: Destination name shown by the maps app

        Returns:
            LaunchResult indicating success or failure
        """
        links = build_navigation_links(destination, label, self.platform)

        url = links.web_url
        try:
            if links.native_url and self.opener.can_open(links.native_url):
                logger.info("Opening maps for %s: %s", label, links.native_url)
                if self.opener.open(links.native_url):
                    return LaunchResult(success=True, url=links.native_url)
                logger.warning("Native maps refused %s, falling back to web", links.native_url)

            logger.info("Opening maps for %s: %s", label, url)
            if not self.opener.open(url):
                return LaunchResult(success=False, url=url, error="No handler opened the URL")

            return LaunchResult(success=True, url=url)

        except Exception as e:
            logger.error("Error opening maps: %s", str(e))
            return LaunchResult(success=False, url=url, error=str(e))
