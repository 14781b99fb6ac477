"""Tests for the mock collaborators."""

from __future__ import annotations

import asyncio
import time
from datetime import datetime, timezone

import pytest

from geocontext.exceptions import (
    LocationTimeoutError,
    PermissionDeniedError,
    ProviderError,
)
from geocontext.models import Address, Coordinate, LocationReading, LocationScene
from geocontext.providers.mock import (
    BEIJING,
    MockAddressProvider,
    MockLocationProvider,
    MockPOIProvider,
    MockWeatherProvider,
)

SOMEWHERE = Coordinate(lat=48.8566, lon=2.3522)


@pytest.mark.unit
class TestMockLocation:
    def test_default_reading(self) -> None:
        reading = asyncio.run(MockLocationProvider().current_reading(5.0))
        assert reading.coordinate == BEIJING
        assert reading.altitude == 50.0
        assert reading.is_valid

    def test_custom_reading(self) -> None:
        custom = LocationReading(
            coordinate=SOMEWHERE,
            altitude=35.0,
            timestamp=datetime(2026, 1, 1, tzinfo=timezone.utc),
        )
        provider = MockLocationProvider(custom)
        assert asyncio.run(provider.current_reading(5.0)) is custom
        assert provider.calls == 1

    def test_error(self) -> None:
        provider = MockLocationProvider(error=PermissionDeniedError(what="Denied"))
        with pytest.raises(PermissionDeniedError):
            asyncio.run(provider.current_reading(5.0))

    def test_delay_beyond_deadline_times_out(self) -> None:
        provider = MockLocationProvider(delay=1.0)
        start = time.monotonic()
        with pytest.raises(LocationTimeoutError):
            asyncio.run(provider.current_reading(0.05))
        assert time.monotonic() - start < 0.5

    def test_delay_within_deadline(self) -> None:
        provider = MockLocationProvider(delay=0.01)
        assert asyncio.run(provider.current_reading(1.0)).altitude == 50.0


@pytest.mark.unit
class TestMockAddress:
    def test_default_address(self) -> None:
        addr = asyncio.run(MockAddressProvider().reverse_geocode(BEIJING))
        assert addr.locality == "Beijing"
        assert addr.sub_locality == "Chaoyang"
        assert addr.coordinate == BEIJING

    def test_custom_address(self) -> None:
        provider = MockAddressProvider(Address(locality="Paris"))
        addr = asyncio.run(provider.reverse_geocode(SOMEWHERE))
        assert addr.locality == "Paris"

    def test_error(self) -> None:
        provider = MockAddressProvider(error=ProviderError(what="down"))
        with pytest.raises(ProviderError):
            asyncio.run(provider.reverse_geocode(BEIJING))

    def test_search_matches_title_and_subtitle(self) -> None:
        provider = MockAddressProvider()
        results = asyncio.run(provider.search_address("starbucks"))
        assert [r.title for r in results] == ["Starbucks Sanlitun", "Starbucks Wangfujing"]
        dongcheng = asyncio.run(provider.search_address("Dongcheng"))
        assert len(dongcheng) == 3

    def test_search_sorted_by_distance_when_biased(self) -> None:
        results = asyncio.run(
            MockAddressProvider().search_address("Starbucks", near=BEIJING, limit=1)
        )
        assert [r.title for r in results] == ["Starbucks Wangfujing"]
        assert results[0].coordinate == Coordinate(lat=39.9139, lon=116.4105)

    def test_search_without_match(self) -> None:
        provider = MockAddressProvider()
        assert asyncio.run(provider.search_address("Eiffel Tower")) == []
        assert asyncio.run(provider.search_address("   ")) == []

    def test_search_error(self) -> None:
        provider = MockAddressProvider(error=ProviderError(what="down"))
        with pytest.raises(ProviderError):
            asyncio.run(provider.search_address("Starbucks"))


@pytest.mark.unit
class TestMockWeather:
    def test_delay_within_range(self) -> None:
        provider = MockWeatherProvider(delay_range=(0.05, 0.1), seed=1)
        start = time.monotonic()
        weather = asyncio.run(provider.current_weather(BEIJING))
        elapsed = time.monotonic() - start
        assert 0.04 <= elapsed < 0.5
        assert 40 <= weather.humidity <= 80
        assert weather.attribution_url is not None

    def test_seed_is_deterministic(self) -> None:
        a = asyncio.run(MockWeatherProvider((0.0, 0.0), seed=42).current_weather(BEIJING))
        b = asyncio.run(MockWeatherProvider((0.0, 0.0), seed=42).current_weather(BEIJING))
        assert a == b

    def test_always_failing(self) -> None:
        provider = MockWeatherProvider(
            (0.0, 0.0), simulate_failures=True, failure_probability=1.0, seed=3
        )
        with pytest.raises(ProviderError, match="Simulated network failure"):
            asyncio.run(provider.current_weather(BEIJING))

    def test_never_failing(self) -> None:
        provider = MockWeatherProvider(
            (0.0, 0.0), simulate_failures=True, failure_probability=0.0, seed=3
        )
        assert asyncio.run(provider.current_weather(BEIJING)).condition

    def test_default_range(self) -> None:
        assert MockWeatherProvider().delay_range == (0.5, 4.0)

    def test_invalid_range(self) -> None:
        with pytest.raises(ValueError):
            MockWeatherProvider(delay_range=(2.0, 1.0))

    def test_cancellable(self) -> None:
        provider = MockWeatherProvider(delay_range=(5.0, 5.0))

        async def main() -> None:
            await asyncio.wait_for(provider.current_weather(BEIJING), 0.05)

        start = time.monotonic()
        with pytest.raises(asyncio.TimeoutError):
            asyncio.run(main())
        assert time.monotonic() - start < 1.0


@pytest.mark.unit
class TestMockPOI:
    def test_work_scene(self) -> None:
        items = asyncio.run(
            MockPOIProvider().search(BEIJING, LocationScene.WORK.poi_keywords)
        )
        assert [p.name for p in items][:2] == ["SAP Labs China", "Tech Park Tower A"]
        assert len(items) == 4

    def test_travel_scene(self) -> None:
        items = asyncio.run(
            MockPOIProvider().search(BEIJING, LocationScene.TRAVEL.poi_keywords)
        )
        names = {p.name for p in items}
        assert "Forbidden City" in names
        assert "Temple of Heaven" in names
        assert len(items) == 5

    def test_distances(self) -> None:
        items = asyncio.run(MockPOIProvider().search(BEIJING, ["office"]))
        assert items[0].distance_str == "50m"

    def test_radius_and_limit(self) -> None:
        provider = MockPOIProvider()
        near = asyncio.run(provider.search(BEIJING, ["office"], radius_m=150))
        assert [p.name for p in near] == ["SAP Labs China", "Tech Park Tower A"]
        first = asyncio.run(provider.search(BEIJING, ["scenic"], limit=2))
        assert [p.name for p in first] == ["Forbidden City", "Tiananmen Square"]
