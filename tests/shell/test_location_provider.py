"""Tests for the location provider and position sources."""

import asyncio

import pytest
import requests
import responses

from pawmap.core.errors import PermissionDenied, PositionUnavailable
from pawmap.core.geo import Coordinate
from pawmap.shell.location_provider import (
    GeolocationAPISource,
    LocationProvider,
    StaticPositionSource,
)


GEO_URL = "https://geo.example.com/json/"


class FlakySource:
    """Fails every other fix."""

    def __init__(self):
        self.calls = 0

    async def request_permission(self):
        return True

    async def current_position(self):
        self.calls += 1
        if self.calls % 2 == 0:
            raise PositionUnavailable("no fix")
        return Coordinate(40.0 + self.calls * 0.001, -74.0)


class TestAcquire:
    """Tests for LocationProvider.acquire()."""

    @pytest.mark.asyncio
    async def test_returns_region_with_default_delta(self):
        provider = LocationProvider(StaticPositionSource(Coordinate(40.0, -74.0)))

        region = await provider.acquire()

        assert region.center == Coordinate(40.0, -74.0)
        assert region.latitude_delta == 0.02
        assert region.longitude_delta == 0.02

    @pytest.mark.asyncio
    async def test_custom_delta(self):
        provider = LocationProvider(
            StaticPositionSource(Coordinate(40.0, -74.0)),
            region_delta=0.05,
        )

        region = await provider.acquire()

        assert region.latitude_delta == 0.05

    @pytest.mark.asyncio
    async def test_permission_denied(self):
        provider = LocationProvider(
            StaticPositionSource(Coordinate(40.0, -74.0), permission_granted=False)
        )

        with pytest.raises(PermissionDenied):
            await provider.acquire()

    @pytest.mark.asyncio
    async def test_unusable_fix(self):
        provider = LocationProvider(StaticPositionSource(Coordinate(0.0, 0.0)))

        with pytest.raises(PositionUnavailable):
            await provider.acquire()


class TestTrack:
    """Tests for LocationProvider.track()."""

    @pytest.mark.asyncio
    async def test_reports_regions_and_skips_failures(self):
        source = FlakySource()
        provider = LocationProvider(source)
        regions = []

        task = asyncio.create_task(provider.track(regions.append, interval=0.001))
        while source.calls < 5:
            await asyncio.sleep(0.001)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert len(regions) >= 2
        assert all(r.center.latitude > 40.0 for r in regions)

    @pytest.mark.asyncio
    async def test_permission_denied_stops_tracking(self):
        provider = LocationProvider(
            StaticPositionSource(Coordinate(40.0, -74.0), permission_granted=False)
        )

        with pytest.raises(PermissionDenied):
            await provider.track(lambda region: None, interval=0.001)


class TestGeolocationAPISource:
    """Tests for GeolocationAPISource."""

    @pytest.mark.asyncio
    async def test_parses_position(self):
        with responses.RequestsMock() as rsps:
            rsps.add(
                responses.GET,
                GEO_URL,
                json={"latitude": 40.7128, "longitude": -74.006, "city": "New York"},
                status=200,
            )

            position = await GeolocationAPISource(GEO_URL).current_position()

        assert position == Coordinate(40.7128, -74.006)

    @pytest.mark.asyncio
    async def test_http_error_is_unavailable(self):
        with responses.RequestsMock() as rsps:
            rsps.add(responses.GET, GEO_URL, status=429)

            with pytest.raises(PositionUnavailable):
                await GeolocationAPISource(GEO_URL).current_position()

    @pytest.mark.asyncio
    async def test_connection_error_is_unavailable(self):
        with responses.RequestsMock() as rsps:
            rsps.add(responses.GET, GEO_URL, body=requests.ConnectionError("down"))

            with pytest.raises(PositionUnavailable):
                await GeolocationAPISource(GEO_URL).current_position()

    @pytest.mark.asyncio
    async def test_missing_coordinates_is_unavailable(self):
        with responses.RequestsMock() as rsps:
            rsps.add(responses.GET, GEO_URL, json={"error": True}, status=200)

            with pytest.raises(PositionUnavailable):
                await GeolocationAPISource(GEO_URL).current_position()
