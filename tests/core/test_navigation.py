"""Tests for navigation link building."""

from pawmap.core.geo import Coordinate
from pawmap.core.navigation import (
    ANDROID,
    IOS,
    build_native_url,
    build_navigation_links,
    build_web_url,
    format_lat_lng,
)


DESTINATION = Coordinate(40.7128, -74.006)


class TestBuildNativeUrl:
    """Tests for build_native_url()."""

    def test_ios(self):
        url = build_native_url(DESTINATION, "Rex", IOS)
        assert url == "maps://app?saddr=&daddr=40.7128,-74.006&q=Rex"

    def test_android(self):
        url = build_native_url(DESTINATION, "Rex", ANDROID)
        assert url == "google.navigation:q=40.7128,-74.006(Rex)"

    def test_label_is_encoded(self):
        url = build_native_url(DESTINATION, "Rex & Co/2", IOS)
        assert url.endswith("&q=Rex%20%26%20Co%2F2")

    def test_other_platform_has_no_native_link(self):
        assert build_native_url(DESTINATION, "Rex", "web") is None


class TestBuildWebUrl:
    def test_google_maps_directions(self):
        url = build_web_url(DESTINATION, "Lost dog")
        assert url == (
            "https://www.google.com/maps/dir/?api=1"
            "&destination=40.7128,-74.006&destination_place_id=Lost%20dog"
        )


class TestBuildNavigationLinks:
    def test_web_always_present(self):
        links = build_navigation_links(DESTINATION, "Rex", "web")
        assert links.native_url is None
        assert links.web_url.startswith("https://www.google.com/maps/dir/")

    def test_both_links_for_ios(self):
        links = build_navigation_links(DESTINATION, "Rex", IOS)
        assert links.native_url.startswith("maps://")
        assert links.web_url.startswith("https://")


def test_format_lat_lng():
    assert format_lat_lng(Coordinate(1.5, -2.25)) == "1.5,-2.25"
