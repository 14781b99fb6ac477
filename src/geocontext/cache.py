"""Context cache and nearby-search cache.

Holds at most one entry: the last produced ``CameraContext`` and the
reading it was produced for. There is exactly one slot because there is
one device and one photography session; sharding would buy nothing.

Reuse is decided at read time only. An entry is never expired in the
background; a stale entry simply stops producing hits.

Nearby searches get a separate keyed cache with a fixed lifetime, since a
list of places changes far more slowly than the weather.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from geocontext.config import (
    CACHE_DISTANCE_THRESHOLD_M,
    CACHE_TIME_THRESHOLD_S,
    NEARBY_CACHE_SIZE,
    NEARBY_CACHE_TTL_S,
)
from geocontext.geo import elapsed_seconds, haversine_distance

if TYPE_CHECKING:
    from geocontext.context import CameraContext
    from geocontext.models import Coordinate, LocationReading, POIItem

logger = logging.getLogger(__name__)

NearbyKey = tuple[str, str, int, str]


def _local_now() -> datetime:
    return datetime.now().astimezone()


@dataclass(frozen=True)
class CacheEntry:
    """The cached reading and the context built for it.

    Args:
        reading: Location fix the context was produced for.
        context: Context as originally produced (``from_cache=False``).
    """

    __slots__ = ("reading", "context")

    reading: LocationReading
    context: CameraContext


@dataclass(frozen=True)
class CacheStatus:
    """Read-only snapshot of the cache slot.

    Args:
        has_entry: Whether the slot holds an entry.
        last_timestamp: ``raw.timestamp`` of the cached context, or
            ``None`` when empty.

    Example:
        >>> CacheStatus(has_entry=False, last_timestamp=None).has_entry
        False
    """

    __slots__ = ("has_entry", "last_timestamp")

    has_entry: bool
    last_timestamp: datetime | None


class ContextCache:
    """Thread-safe single-entry cache with distance/age reuse policy.

    A lookup hits iff an entry exists, the great-circle distance to the
    cached reading is strictly below ``distance_threshold_m`` and the
    age of the cached context is strictly below ``time_threshold_s``.

    All methods hold one lock for the duration of a comparison or a
    reference swap; nothing is awaited while it is held. Cache methods
    never raise.

    Args:
        distance_threshold_m: Reuse radius in metres.
        time_threshold_s: Reuse window in seconds.
        clock: Returns the current instant; defaults to local wall time.

    Example:
        >>> cache = ContextCache()
        >>> cache.get(Coordinate(lat=0, lon=0)) is None
        True
    """

    def __init__(
        self,
        distance_threshold_m: float = CACHE_DISTANCE_THRESHOLD_M,
        time_threshold_s: float = CACHE_TIME_THRESHOLD_S,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._distance_threshold_m = distance_threshold_m
        self._time_threshold_s = time_threshold_s
        self._clock = clock or _local_now
        self._lock = threading.Lock()
        self._entry: CacheEntry | None = None

    @property
    def distance_threshold_m(self) -> float:
        return self._distance_threshold_m

    @property
    def time_threshold_s(self) -> float:
        return self._time_threshold_s

    def get(self, coordinate: Coordinate) -> CameraContext | None:
        """Return a refreshed copy of the cached context on a hit.

        The copy carries the current instant in ``raw.timestamp`` and
        ``display.time_str`` and has ``flags.from_cache`` set. The stored
        entry is left as is.

        Args:
            coordinate: Current device position.

        Returns:
            Refreshed context, or ``None`` on a miss.
        """
        with self._lock:
            entry = self._entry
            if entry is None:
                return None

            now = self._clock()
            distance = haversine_distance(coordinate, entry.reading.coordinate)
            age = elapsed_seconds(entry.context.raw.timestamp, now)
            logger.debug("Cache check: distance=%.1fm age=%.1fs", distance, age)

            if distance < self._distance_threshold_m and age < self._time_threshold_s:
                return entry.context.with_updated_timestamp(now)
            return None

    def put(self, reading: LocationReading, context: CameraContext) -> None:
        """Replace the cached entry. The last writer wins."""
        with self._lock:
            self._entry = CacheEntry(reading=reading, context=context)

    def clear(self) -> None:
        """Drop the cached entry unconditionally."""
        with self._lock:
            self._entry = None
        logger.debug("Context cache cleared")

    def status(self) -> CacheStatus:
        """Return whether an entry exists and its context timestamp."""
        with self._lock:
            entry = self._entry
        if entry is None:
            return CacheStatus(has_entry=False, last_timestamp=None)
        return CacheStatus(has_entry=True, last_timestamp=entry.context.raw.timestamp)


def nearby_cache_key(center: Coordinate, radius_m: float, keyword: str | None) -> NearbyKey:
    """Key for a nearby search.

    Coordinates are rounded to four decimals (about 11 m) so that small
    position jitter reuses the same entry.

    Example:
        >>> from geocontext.models import Coordinate
        >>> nearby_cache_key(Coordinate(lat=39.90421, lon=116.40739), 500.0, "Cafe")
        ('39.9042', '116.4074', 500, 'cafe')
    """
    label = keyword.strip().lower() if keyword and keyword.strip() else "default"
    return f"{center.lat:.4f}", f"{center.lon:.4f}", int(radius_m), label


@dataclass(frozen=True)
class NearbyCacheStats:
    """Read-only snapshot of the nearby-search cache.

    Args:
        count: Number of stored searches, expired ones included until
            they are next looked up or evicted.
        oldest_age_s: Age of the oldest entry in seconds, or ``None``
            when empty.
    """

    __slots__ = ("count", "oldest_age_s")

    count: int
    oldest_age_s: float | None


@dataclass(frozen=True)
class _NearbyEntry:
    __slots__ = ("places", "fetch_limit", "stored_at")

    places: tuple[POIItem, ...]
    fetch_limit: int
    stored_at: datetime


class NearbyCache:
    """Thread-safe keyed cache of nearby-search results.

    An entry is served while its age is at most ``ttl_s``. Each entry
    remembers the limit it was fetched with; a later request for more
    results misses unless the stored search already returned everything
    it found.

    Args:
        ttl_s: Entry lifetime in seconds.
        max_entries: Size bound; expired entries go first, then the
            oldest ones.
        clock: Returns the current instant; defaults to local wall time.
    """

    def __init__(
        self,
        ttl_s: float = NEARBY_CACHE_TTL_S,
        max_entries: int = NEARBY_CACHE_SIZE,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._ttl_s = ttl_s
        self._max_entries = max_entries
        self._clock = clock or _local_now
        self._lock = threading.Lock()
        self._entries: dict[NearbyKey, _NearbyEntry] = {}

    def get(self, key: NearbyKey, limit: int) -> list[POIItem] | None:
        """Return at most *limit* cached places for *key*, or ``None``."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if elapsed_seconds(entry.stored_at, self._clock()) > self._ttl_s:
                del self._entries[key]
                logger.debug("Nearby cache entry expired: %s", key)
                return None
            truncated = len(entry.places) >= entry.fetch_limit
            if limit > entry.fetch_limit and truncated:
                return None
            return list(entry.places[:limit])

    def put(self, key: NearbyKey, places: list[POIItem], fetch_limit: int) -> None:
        """Store *places*, found by a search capped at *fetch_limit*."""
        with self._lock:
            now = self._clock()
            self._entries[key] = _NearbyEntry(tuple(places), fetch_limit, now)
            if len(self._entries) > self._max_entries:
                self._evict(now)

    def _evict(self, now: datetime) -> None:
        self._entries = {
            k: e
            for k, e in self._entries.items()
            if elapsed_seconds(e.stored_at, now) <= self._ttl_s
        }
        if len(self._entries) > self._max_entries:
            newest = sorted(
                self._entries.items(), key=lambda item: item[1].stored_at, reverse=True
            )
            self._entries = dict(newest[: self._max_entries])

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
        logger.debug("Nearby cache cleared")

    def stats(self) -> NearbyCacheStats:
        with self._lock:
            if not self._entries:
                return NearbyCacheStats(count=0, oldest_age_s=None)
            oldest = min(e.stored_at for e in self._entries.values())
            age = elapsed_seconds(oldest, self._clock())
            return NearbyCacheStats(count=len(self._entries), oldest_age_s=age)
