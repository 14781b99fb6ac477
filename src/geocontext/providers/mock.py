"""Deterministic and simulated collaborators.

Used by the test suite, by the command-line driver's ``--mock`` flag,
and anywhere real sensors or network services are unavailable. Every
class here reports ``is_mock = True``.
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Sequence
from datetime import datetime

from geocontext.config import Config
from geocontext.exceptions import (
    GeoContextError,
    LocationTimeoutError,
    ProviderError,
)
from geocontext.geo import haversine_distance
from geocontext.models import (
    Address,
    AddressSearchResult,
    Coordinate,
    LocationReading,
    POIItem,
    WeatherSnapshot,
)
from geocontext.providers.base import (
    AddressProvider,
    LocationProvider,
    POIProvider,
    WeatherProvider,
)

logger = logging.getLogger(__name__)

BEIJING = Coordinate(lat=39.9042, lon=116.4074)

_ATTRIBUTION_URL = "https://example.invalid/mock-weather/legal"

# (condition, icon, base temperature in °C)
_MOCK_CONDITIONS: tuple[tuple[str, str, float], ...] = (
    ("Sunny", "sun.max.fill", 25.0),
    ("Cloudy", "cloud.fill", 20.0),
    ("Partly Cloudy", "cloud.sun.fill", 22.0),
    ("Rainy", "cloud.rain.fill", 18.0),
    ("Windy", "wind", 16.0),
    ("Thunderstorms", "cloud.bolt.rain.fill", 15.0),
    ("Snow", "snowflake", 0.0),
    ("Foggy", "cloud.fog.fill", 12.0),
)

_WORK_POIS: tuple[tuple[str, str, float], ...] = (
    ("SAP Labs China", "Office Building", 50.0),
    ("Tech Park Tower A", "Business Center", 120.0),
    ("Innovation Hub", "Co-working Space", 200.0),
    ("City Center Mall", "Shopping", 350.0),
)

_TRAVEL_POIS: tuple[tuple[str, str, float], ...] = (
    ("Forbidden City", "Historic Site", 500.0),
    ("Tiananmen Square", "Landmark", 800.0),
    ("Wangfujing Street", "Shopping District", 1200.0),
    ("Beijing Duck Restaurant", "Restaurant", 300.0),
    ("Temple of Heaven", "Tourist Attraction", 2500.0),
)

# (title, subtitle, lat, lon)
_SEARCHABLE_PLACES: tuple[tuple[str, str, float, float], ...] = (
    ("Starbucks Sanlitun", "Sanlitun Road, Chaoyang, Beijing", 39.9365, 116.4477),
    ("Starbucks Wangfujing", "Wangfujing Street, Dongcheng, Beijing", 39.9139, 116.4105),
    ("Forbidden City", "4 Jingshan Front Street, Dongcheng, Beijing", 39.9163, 116.3972),
    ("Temple of Heaven", "Tiantan Road, Dongcheng, Beijing", 39.8822, 116.4066),
    ("Beijing South Railway Station", "Fengtai, Beijing", 39.8652, 116.3786),
)


def _default_reading() -> LocationReading:
    return LocationReading(
        coordinate=BEIJING,
        altitude=50.0,
        horizontal_accuracy=5.0,
        vertical_accuracy=3.0,
        timestamp=datetime.now().astimezone(),
    )


class MockLocationProvider(LocationProvider):
    """Location source returning a fixed reading.

    Args:
        reading: Reading to return. Defaults to central Beijing at 50 m.
        delay: Simulated fix time in seconds.
        error: Exception raised instead of returning a reading.
        config: Configuration snapshot (unused beyond the base class).

    Example:
        >>> provider = MockLocationProvider()
        >>> asyncio.run(provider.current_reading(5.0)).altitude
        50.0
    """

    _name: str = "mock"
    is_mock: bool = True

    def __init__(
        self,
        reading: LocationReading | None = None,
        *,
        delay: float = 0.0,
        error: GeoContextError | None = None,
        config: Config | None = None,
    ) -> None:
        super().__init__(config)
        self.reading = reading if reading is not None else _default_reading()
        self.delay = delay
        self.error = error
        self.calls = 0

    async def current_reading(self, deadline: float) -> LocationReading:
        self.calls += 1
        if self.delay > deadline:
            await asyncio.sleep(deadline)
            raise LocationTimeoutError(
                what="Location request timed out",
                cause=f"Simulated fix takes {self.delay:.1f}s, deadline {deadline:.1f}s",
                fix="Lower the mock delay or use accurate mode",
            )
        if self.delay > 0:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.reading


class MockAddressProvider(AddressProvider):
    """Reverse geocoder returning a fixed address.

    Address search matches a small built-in list of Beijing places by
    case-insensitive substring, closest to *near* first when given.

    Args:
        address: Address to return. Defaults to Chaoyang, Beijing.
        delay: Simulated lookup time in seconds.
        error: Exception raised instead of returning an address.
        config: Configuration snapshot.
    """

    _name: str = "mock"
    is_mock: bool = True

    def __init__(
        self,
        address: Address | None = None,
        *,
        delay: float = 0.0,
        error: Exception | None = None,
        config: Config | None = None,
    ) -> None:
        super().__init__(config)
        self.address = address if address is not None else Address.from_components(
            country="China",
            country_code="CN",
            administrative_area="Beijing",
            locality="Beijing",
            sub_locality="Chaoyang",
        )
        self.delay = delay
        self.error = error

    async def reverse_geocode(self, coordinate: Coordinate) -> Address:
        if self.delay > 0:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.address.model_copy(update={"coordinate": coordinate})

    async def search_address(
        self,
        query: str,
        *,
        near: Coordinate | None = None,
        limit: int = 10,
    ) -> list[AddressSearchResult]:
        if self.delay > 0:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        needle = query.strip().lower()
        matches = [
            (title, subtitle, Coordinate(lat=lat, lon=lon))
            for title, subtitle, lat, lon in _SEARCHABLE_PLACES
            if needle and (needle in title.lower() or needle in subtitle.lower())
        ]
        if near is not None:
            matches.sort(key=lambda m: haversine_distance(near, m[2]))
        return [
            AddressSearchResult(title=title, subtitle=subtitle, coordinate=coordinate)
            for title, subtitle, coordinate in matches[:limit]
        ]


class MockWeatherProvider(WeatherProvider):
    """Weather source with simulated latency and failures.

    Each call sleeps for a random duration drawn from *delay_range*, so
    with the default range some calls outlive a 3 s weather deadline.

    Args:
        delay_range: ``(min, max)`` simulated latency in seconds.
        simulate_failures: Whether calls fail randomly.
        failure_probability: Probability of a simulated failure.
        seed: Seed for the internal random generator.
        config: Configuration snapshot.
    """

    _name: str = "mock"
    is_mock: bool = True

    def __init__(
        self,
        delay_range: tuple[float, float] = (0.5, 4.0),
        *,
        simulate_failures: bool = False,
        failure_probability: float = 0.2,
        seed: int | None = None,
        config: Config | None = None,
    ) -> None:
        super().__init__(config)
        low, high = delay_range
        if low < 0 or high < low:
            msg = f"invalid delay range: {delay_range!r}"
            raise ValueError(msg)
        self.delay_range = (low, high)
        self.simulate_failures = simulate_failures
        self.failure_probability = failure_probability
        self._rng = random.Random(seed)  # noqa: S311

    async def current_weather(self, coordinate: Coordinate) -> WeatherSnapshot:
        delay = self._rng.uniform(*self.delay_range)
        logger.debug("Mock weather request started (delay: %.1fs)", delay)
        await asyncio.sleep(delay)

        if self.simulate_failures and self._rng.random() < self.failure_probability:
            raise ProviderError(
                what="Mock weather request failed",
                cause="Simulated network failure",
                fix="Disable simulate_failures",
            )

        condition, icon, base = self._rng.choice(_MOCK_CONDITIONS)
        weather = WeatherSnapshot(
            condition=condition,
            temperature=base + self._rng.uniform(-5.0, 5.0),
            humidity=self._rng.randint(40, 80),
            icon_name=icon,
            attribution_url=_ATTRIBUTION_URL,
        )
        logger.debug("Mock weather completed: %s", weather.display_string)
        return weather


class MockPOIProvider(POIProvider):
    """POI source returning a scene-dependent fixed list.

    Office keywords yield office buildings; anything else yields
    Beijing landmarks.

    Args:
        delay: Simulated search time in seconds.
        config: Configuration snapshot.
    """

    _name: str = "mock"
    is_mock: bool = True

    def __init__(self, *, delay: float = 0.0, config: Config | None = None) -> None:
        super().__init__(config)
        self.delay = delay

    async def search(
        self,
        coordinate: Coordinate,
        keywords: Sequence[str],
        *,
        radius_m: float | None = None,
        limit: int | None = None,
    ) -> list[POIItem]:
        if self.delay > 0:
            await asyncio.sleep(self.delay)

        is_work = "office" in keywords or "business" in keywords
        source = _WORK_POIS if is_work else _TRAVEL_POIS
        items = [
            POIItem(name=name, category=category, distance=distance)
            for name, category, distance in source
            if radius_m is None or distance <= radius_m
        ]
        if limit is not None:
            items = items[:limit]
        logger.debug("Mock POI search completed: %d items", len(items))
        return items
