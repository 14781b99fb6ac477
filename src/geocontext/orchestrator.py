"""Context orchestrator: the fetch path behind every photo.

One ``fetch_context`` call reads the device position, consults the
single-slot cache, and on a miss fans out to the address, weather and
POI sources concurrently before assembling the result. Only the
location read can fail the call; every other source degrades into an
empty optional field or a flag.

The same collaborators also back two lookups outside the photo path:
nearby search (with its own result cache) and forward address search.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import TypeVar

from geocontext.builder import build_context
from geocontext.cache import (
    CacheStatus,
    ContextCache,
    NearbyCache,
    NearbyCacheStats,
    _local_now,
    nearby_cache_key,
)
from geocontext.config import Config, get_default_config
from geocontext.context import CameraContext
from geocontext.deadline import with_deadline
from geocontext.exceptions import LocationError, LocationTimeoutError
from geocontext.geo import haversine_distance
from geocontext.models import (
    AddressSearchResult,
    Coordinate,
    LocationMode,
    LocationReading,
    LocationScene,
    POIItem,
)
from geocontext.providers.base import (
    AddressProvider,
    LocationProvider,
    POIProvider,
    WeatherProvider,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

_MAX_NEARBY_RADIUS_M = 50_000.0


class ContextOrchestrator:
    """Produce display-ready ``CameraContext`` objects for the device.

    Construct one instance per device/session and share it; there is no
    global instance. Collaborators and the clock are injected so the
    orchestrator runs identically against real services and test stubs.

    Args:
        location_provider: Source of position fixes.
        address_provider: Reverse geocoder.
        weather_provider: Current-conditions source; its ``is_mock``
            flag is recorded in every context this instance produces.
        poi_provider: Nearby points-of-interest search.
        config: Configuration snapshot. Uses the module default if
            omitted.
        clock: Returns the current local instant. Defaults to wall time.

    Example:
        >>> orchestrator = create_orchestrator()  # doctest: +SKIP
        >>> ctx = asyncio.run(orchestrator.fetch_context("work", "fast"))  # doctest: +SKIP
        >>> ctx.display.title  # doctest: +SKIP
        'Beijing Chaoyang'
    """

    def __init__(
        self,
        location_provider: LocationProvider,
        address_provider: AddressProvider,
        weather_provider: WeatherProvider,
        poi_provider: POIProvider,
        *,
        config: Config | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._config = config if config is not None else get_default_config()
        self._clock = clock or _local_now
        self._location = location_provider
        self._address = address_provider
        self._weather = weather_provider
        self._poi = poi_provider
        self._using_mock_weather = bool(weather_provider.is_mock)
        self._cache = ContextCache(
            distance_threshold_m=self._config.cache_distance_m,
            time_threshold_s=self._config.cache_time_s,
            clock=self._clock,
        )
        self._nearby_cache = NearbyCache(
            ttl_s=self._config.nearby_cache_ttl_s,
            max_entries=self._config.nearby_cache_size,
            clock=self._clock,
        )

    @property
    def config(self) -> Config:
        return self._config

    @property
    def using_mock_weather(self) -> bool:
        """Whether contexts from this instance carry mock weather."""
        return self._using_mock_weather

    async def fetch_context(
        self,
        scene: LocationScene | str = LocationScene.WORK,
        mode: LocationMode | str = LocationMode.FAST,
    ) -> CameraContext:
        """Return the geographic context for the current position.

        Args:
            scene: Calling context; selects the POI keywords.
            mode: Location speed/accuracy trade-off; selects the
                deadline handed to the location source.

        Returns:
            A fully populated context. ``flags.from_cache`` tells whether
            it was reused from the previous call.

        Raises:
            LocationUnavailableError: If no position fix is available.
            PermissionDeniedError: If location access is denied.
            LocationTimeoutError: If the location read times out.
            ValueError: If *scene* or *mode* is not a known value.
        """
        scene = LocationScene(scene)
        mode = LocationMode(mode)
        logger.info("Fetching context: scene=%s mode=%s", scene.value, mode.value)

        reading = await self._read_location(mode)

        cached = self._cache.get(reading.coordinate)
        if cached is not None:
            logger.info("Context cache hit")
            return cached
        logger.info("Context cache miss; querying sources")

        captured_at = self._clock()
        coordinate = reading.coordinate
        (address, _), (weather, weather_failed), (poi_list, _) = await asyncio.gather(
            self._absorb(self._address.reverse_geocode(coordinate), "address"),
            self._absorb(
                with_deadline(
                    self._weather.current_weather(coordinate),
                    self._config.weather_timeout_s,
                    label="weather",
                ),
                "weather",
            ),
            self._absorb(self._poi.search(coordinate, scene.poi_keywords), "poi"),
        )

        context = build_context(
            reading=reading,
            address=address,
            weather=weather,
            poi_list=poi_list or (),
            captured_at=captured_at,
            weather_timed_out=weather_failed,
            scene=scene,
            mode=mode,
            using_mock_weather=self._using_mock_weather,
            altitude_unit=self._config.altitude_unit,
        )
        self._cache.put(reading, context)
        return context

    async def fetch_work_context(self) -> CameraContext:
        """Fetch with the ``work`` scene in ``fast`` mode."""
        return await self.fetch_context(LocationScene.WORK, LocationMode.FAST)

    async def fetch_travel_context(self) -> CameraContext:
        """Fetch with the ``travel`` scene in ``accurate`` mode."""
        return await self.fetch_context(LocationScene.TRAVEL, LocationMode.ACCURATE)

    async def fetch_burst_context(self) -> CameraContext:
        """Fetch for one shot of a burst.

        Uses ``fast`` mode so that consecutive shots at the same spot are
        served from the cache.
        """
        return await self.fetch_context(LocationScene.WORK, LocationMode.FAST)

    def clear_cache(self) -> None:
        """Force the next fetch to query every source."""
        self._cache.clear()

    def cache_status(self) -> CacheStatus:
        return self._cache.status()

    async def search_nearby(
        self,
        keyword: str | None = None,
        *,
        center: Coordinate | None = None,
        radius_m: float | None = None,
        limit: int = 20,
        scene: LocationScene | str = LocationScene.WORK,
        use_cache: bool = True,
    ) -> list[POIItem]:
        """Search points of interest around a position.

        Results never feed into a context. They are kept in a separate
        cache for ``Config.nearby_cache_ttl_s``, keyed by centre, radius
        and keyword.

        Args:
            keyword: Free-text or category keyword, e.g. ``"cafe"``. When
                omitted, the POI keywords of *scene* are used.
            center: Search centre. Uses the current position if omitted.
            radius_m: Search radius in metres, at most 50 km. Defaults to
                ``Config.poi_radius_m``.
            limit: Maximum number of results.
            scene: Scene whose keywords apply when *keyword* is omitted.
            use_cache: Serve from and store into the nearby cache.

        Returns:
            Points of interest within the radius, closest first.

        Raises:
            ValueError: If *radius_m* or *limit* is out of range.
            LocationError: If *center* is omitted and the position
                cannot be read.
        """
        radius = radius_m if radius_m is not None else self._config.poi_radius_m
        if not 0 < radius <= _MAX_NEARBY_RADIUS_M:
            msg = f"radius_m must be in (0, {_MAX_NEARBY_RADIUS_M:.0f}], got {radius}"
            raise ValueError(msg)
        if limit <= 0:
            msg = f"limit must be greater than 0, got {limit}"
            raise ValueError(msg)
        scene = LocationScene(scene)

        if center is None:
            reading = await self._read_location(LocationMode.FAST)
            center = reading.coordinate

        term = keyword.strip() if keyword else ""
        keywords = (term,) if term else scene.poi_keywords
        key = nearby_cache_key(center, radius, term or f"scene:{scene.value}")
        if use_cache:
            cached = self._nearby_cache.get(key, limit)
            if cached is not None:
                logger.info("Nearby search cache hit: %s", key)
                return cached

        logger.info(
            "Nearby search: center=%.4f,%.4f radius=%.0fm keywords=%s",
            center.lat,
            center.lon,
            radius,
            ",".join(keywords),
        )
        items, _ = await self._absorb(
            self._poi.search(center, keywords, radius_m=radius, limit=limit), "poi"
        )
        ranked = []
        for item in items or ():
            distance = item.distance
            if item.coordinate is not None:
                distance = haversine_distance(center, item.coordinate)
            if distance <= radius:
                ranked.append((distance, item))
        ranked.sort(key=lambda pair: pair[0])
        places = [item for _, item in ranked]

        # an empty list may be a swallowed provider failure; do not pin it
        if use_cache and places:
            self._nearby_cache.put(key, places, limit)
        return places[:limit]

    def clear_nearby_cache(self) -> None:
        """Drop every cached nearby-search result."""
        self._nearby_cache.clear()

    def nearby_cache_stats(self) -> NearbyCacheStats:
        return self._nearby_cache.stats()

    async def search_address(
        self,
        query: str,
        *,
        near: Coordinate | None = None,
        limit: int = 10,
    ) -> list[AddressSearchResult]:
        """Forward-search places and addresses matching *query*.

        Results are biased towards *near*, or towards the current position
        when *near* is omitted. If the position cannot be read the search
        runs without a bias.

        Args:
            query: Free text, e.g. ``"Starbucks"``. Blank text yields ``[]``.
            near: Position to bias results towards.
            limit: Maximum number of results.

        Returns:
            Matches in the order the address provider ranks them.

        Raises:
            ProviderError: If the address provider fails or has no
                forward search.
        """
        text = query.strip()
        if not text:
            return []
        if near is None:
            try:
                near = (await self._read_location(LocationMode.FAST)).coordinate
            except LocationError as exc:
                logger.warning("Address search runs without location bias: %s", exc.what)
        return await self._address.search_address(text, near=near, limit=limit)

    async def _read_location(self, mode: LocationMode) -> LocationReading:
        deadline = self._config.location_deadline(mode)
        try:
            return await self._location.current_reading(deadline)
        except (asyncio.TimeoutError, TimeoutError):
            raise LocationTimeoutError(
                what="Location request timed out",
                cause=f"No fix within {deadline:.0f}s in {mode.value} mode",
                fix="Retry, or use fast mode for a quicker fix",
            ) from None

    async def _absorb(
        self,
        operation: Awaitable[T],
        source: str,
    ) -> tuple[T | None, bool]:
        """Await one fan-out branch; return ``(result, failed)``.

        Any failure is logged and turned into ``(None, True)`` so that one
        source can never fail the whole fetch.
        """
        try:
            return await operation, False
        except Exception as exc:  # noqa: BLE001
            logger.warning("%s lookup failed: %s", source.capitalize(), exc)
            return None, True

