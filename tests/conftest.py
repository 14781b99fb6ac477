"""Shared test fixtures for the GeoContext test suite."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from geocontext.config import Config
from geocontext.geo import EARTH_RADIUS_M
from geocontext.models import (
    Address,
    AddressSearchResult,
    Coordinate,
    LocationReading,
    POIItem,
    WeatherSnapshot,
)
from geocontext.orchestrator import ContextOrchestrator
from geocontext.providers.base import (
    AddressProvider,
    LocationProvider,
    POIProvider,
    WeatherProvider,
)

BEIJING_TZ = timezone(timedelta(hours=8))
START = datetime(2026, 1, 31, 18, 30, 0, tzinfo=BEIJING_TZ)
BEIJING = Coordinate(lat=39.9042, lon=116.4074)

_METERS_PER_DEGREE_LAT = EARTH_RADIUS_M * 3.141592653589793 / 180.0


class FakeClock:
    """Manually advanced clock returning timezone-aware instants."""

    def __init__(self, start: datetime = START) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


def make_reading(
    coordinate: Coordinate = BEIJING,
    altitude: float = 50.0,
    timestamp: datetime = START,
) -> LocationReading:
    return LocationReading(
        coordinate=coordinate,
        altitude=altitude,
        horizontal_accuracy=5.0,
        vertical_accuracy=3.0,
        timestamp=timestamp,
    )


def offset_north(coordinate: Coordinate, meters: float) -> Coordinate:
    """Return *coordinate* moved *meters* due north."""
    return Coordinate(
        lat=coordinate.lat + meters / _METERS_PER_DEGREE_LAT,
        lon=coordinate.lon,
    )


class StubLocationProvider(LocationProvider):
    _name = "stub"

    def __init__(
        self,
        reading: LocationReading | None = None,
        *,
        error: BaseException | None = None,
    ) -> None:
        super().__init__(Config())
        self.reading = reading if reading is not None else make_reading()
        self.error = error
        self.deadlines: list[float] = []

    async def current_reading(self, deadline: float) -> LocationReading:
        self.deadlines.append(deadline)
        if self.error is not None:
            raise self.error
        return self.reading


class StubAddressProvider(AddressProvider):
    _name = "stub"

    def __init__(
        self,
        address: Address | None = None,
        *,
        error: Exception | None = None,
        delay: float = 0.0,
    ) -> None:
        super().__init__(Config())
        self.address = address if address is not None else Address.from_components(
            country="China",
            administrative_area="Beijing",
            locality="Beijing",
            sub_locality="Chaoyang",
        )
        self.error = error
        self.delay = delay
        self.calls = 0
        self.results: list[AddressSearchResult] = [
            AddressSearchResult(title="Starbucks", subtitle="Sanlitun, Beijing")
        ]
        self.searches: list[tuple[str, Coordinate | None, int]] = []

    async def reverse_geocode(self, coordinate: Coordinate) -> Address:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.address

    async def search_address(
        self,
        query: str,
        *,
        near: Coordinate | None = None,
        limit: int = 10,
    ) -> list[AddressSearchResult]:
        self.searches.append((query, near, limit))
        if self.error is not None:
            raise self.error
        return list(self.results)


class StubWeatherProvider(WeatherProvider):
    _name = "stub"

    def __init__(
        self,
        weather: WeatherSnapshot | None = None,
        *,
        error: Exception | None = None,
        delay: float = 0.0,
        hang: bool = False,
        mock: bool = False,
    ) -> None:
        super().__init__(Config())
        self.weather = weather if weather is not None else WeatherSnapshot(
            condition="Sunny", temperature=25.7, humidity=40
        )
        self.error = error
        self.delay = delay
        self.hang = hang
        self.is_mock = mock
        self.calls = 0
        self.cancelled = False

    async def current_weather(self, coordinate: Coordinate) -> WeatherSnapshot:
        self.calls += 1
        try:
            if self.hang:
                await asyncio.Event().wait()
            if self.delay:
                await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        if self.error is not None:
            raise self.error
        return self.weather


class StubPOIProvider(POIProvider):
    _name = "stub"

    def __init__(
        self,
        items: Sequence[POIItem] = (),
        *,
        error: Exception | None = None,
    ) -> None:
        super().__init__(Config())
        self.items = list(items)
        self.error = error
        self.keywords: list[tuple[str, ...]] = []
        self.bounds: list[tuple[float | None, int | None]] = []

    async def search(
        self,
        coordinate: Coordinate,
        keywords: Sequence[str],
        *,
        radius_m: float | None = None,
        limit: int | None = None,
    ) -> list[POIItem]:
        self.keywords.append(tuple(keywords))
        self.bounds.append((radius_m, limit))
        if self.error is not None:
            raise self.error
        return list(self.items)


@pytest.fixture(autouse=True)
def _isolate_environment(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
) -> None:
    """Reset module-level config and point credentials at an empty path."""
    import geocontext.config as _cfg

    monkeypatch.setattr(_cfg, "_default_config", Config())
    monkeypatch.setenv("GEOCONTEXT_CREDENTIALS", str(tmp_path / "missing.json"))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fast_config() -> Config:
    """Config with a short weather deadline so timeout tests run quickly."""
    return Config(weather_timeout_s=0.1)


@pytest.fixture
def location() -> StubLocationProvider:
    return StubLocationProvider()


@pytest.fixture
def address() -> StubAddressProvider:
    return StubAddressProvider()


@pytest.fixture
def weather() -> StubWeatherProvider:
    return StubWeatherProvider()


@pytest.fixture
def poi() -> StubPOIProvider:
    return StubPOIProvider(
        [
            POIItem(name="SAP Labs China", category="Office Building", distance=50),
            POIItem(name="Tech Park Tower A", category="Business Center", distance=120),
        ]
    )


@pytest.fixture
def orchestrator(
    location: StubLocationProvider,
    address: StubAddressProvider,
    weather: StubWeatherProvider,
    poi: StubPOIProvider,
    fast_config: Config,
    clock: FakeClock,
) -> ContextOrchestrator:
    return ContextOrchestrator(
        location,
        address,
        weather,
        poi,
        config=fast_config,
        clock=clock,
    )
