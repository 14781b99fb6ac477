"""Camera context result model.

A ``CameraContext`` is one result seen through three views:

* ``display`` - precomputed strings for the watermark/UI,
* ``raw`` - the underlying reading, address, POIs, weather and timestamp,
* ``flags`` - how the result was produced.

Contexts are immutable. A cache hit produces a *new* context through
``with_updated_timestamp``; the cached instance is never touched.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from geocontext.models import (
    Address,
    LocationMode,
    LocationReading,
    LocationScene,
    POIItem,
    WeatherSnapshot,
)


def format_time(moment: datetime) -> str:
    """Format an instant as ``YYYY-MM-DD HH:MM:SS.mmm``.

    Millisecond precision keeps burst shots taken less than a second
    apart distinguishable.

    Example:
        >>> format_time(datetime(2026, 1, 31, 18, 30, 0, 250000))
        '2026-01-31 18:30:00.250'
    """
    return f"{moment:%Y-%m-%d %H:%M:%S}.{moment.microsecond // 1000:03d}"


class Display(BaseModel):
    """Human-readable strings, ready to render."""

    model_config = ConfigDict(frozen=True)

    title: str
    subtitle: str
    weather_str: str
    time_str: str
    altitude_str: str = ""
    coordinate_str: str = ""


class Raw(BaseModel):
    """Source data the display strings were derived from."""

    model_config = ConfigDict(frozen=True)

    reading: LocationReading
    address: Address | None = None
    poi_list: tuple[POIItem, ...] = ()
    timestamp: datetime
    weather: WeatherSnapshot | None = None


class Flags(BaseModel):
    """How this context was produced."""

    model_config = ConfigDict(frozen=True)

    from_cache: bool = False
    using_mock_weather: bool = False
    weather_timed_out: bool = False
    scene: LocationScene = LocationScene.WORK
    mode: LocationMode = LocationMode.FAST


class CameraContext(BaseModel):
    """Complete, display-ready geographic context for one photo.

    Example:
        >>> ctx.display.title  # doctest: +SKIP
        'Beijing Chaoyang'
        >>> ctx.flags.from_cache  # doctest: +SKIP
        False
    """

    model_config = ConfigDict(frozen=True)

    display: Display
    raw: Raw
    flags: Flags

    def with_updated_timestamp(self, now: datetime) -> CameraContext:
        """Return a cache-hit copy stamped with *now*.

        Only ``raw.timestamp``, ``display.time_str`` and
        ``flags.from_cache`` differ from ``self``.

        Args:
            now: Instant at which the cache was consulted.

        Returns:
            New context; ``self`` is left unchanged.
        """
        return self.model_copy(
            update={
                "display": self.display.model_copy(
                    update={"time_str": format_time(now)}
                ),
                "raw": self.raw.model_copy(update={"timestamp": now}),
                "flags": self.flags.model_copy(update={"from_cache": True}),
            }
        )

    def __repr__(self) -> str:
        """Return a compact summary: title, time and source flags."""
        parts = [
            f"title={self.display.title!r}",
            f"time={self.display.time_str!r}",
            f"from_cache={self.flags.from_cache}",
        ]
        if self.flags.weather_timed_out:
            parts.append("weather_timed_out=True")
        return f"CameraContext({', '.join(parts)})"
