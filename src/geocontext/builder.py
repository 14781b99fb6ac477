"""Context assembly: raw source outputs to a ``CameraContext``.

Everything here is pure and deterministic. No I/O, no awaiting, no
clock reads; the capture instant is an argument.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from geocontext.context import CameraContext, Display, Flags, Raw, format_time
from geocontext.models import (
    Address,
    AltitudeUnit,
    Coordinate,
    LocationMode,
    LocationReading,
    LocationScene,
    POIItem,
    WeatherSnapshot,
)


def format_coordinate(coordinate: Coordinate) -> str:
    """Format a coordinate with hemisphere letters and four decimals.

    Example:
        >>> format_coordinate(Coordinate(lat=39.9042, lon=116.4074))
        '39.9042°N, 116.4074°E'
        >>> format_coordinate(Coordinate(lat=-33.8688, lon=-70.6693))
        '33.8688°S, 70.6693°W'
    """
    lat_dir = "N" if coordinate.lat >= 0 else "S"
    lon_dir = "E" if coordinate.lon >= 0 else "W"
    return (
        f"{abs(coordinate.lat):.4f}°{lat_dir}, "
        f"{abs(coordinate.lon):.4f}°{lon_dir}"
    )


def format_altitude(altitude_m: float, unit: AltitudeUnit = AltitudeUnit.METERS) -> str:
    """Format an altitude given in metres, e.g. ``"50.0 m"`` or ``"164.0 ft"``."""
    return f"{unit.convert(altitude_m):.1f} {unit.symbol}"


def format_weather(weather: WeatherSnapshot | None) -> str:
    """Weather display string, ``"-- 0°C"`` when *weather* is absent."""
    if weather is None:
        return WeatherSnapshot.EMPTY.display_string
    return weather.display_string


def build_title(address: Address | None, coordinate: Coordinate) -> str:
    """Pick the display title.

    Precedence (first non-empty wins): ``"{locality} {sub_locality}"``,
    locality, administrative area, formatted address, then the raw
    coordinate string.
    """
    if address is not None:
        if address.locality and address.sub_locality:
            return f"{address.locality} {address.sub_locality}"
        for candidate in (
            address.locality,
            address.administrative_area,
            address.formatted_address,
        ):
            if candidate:
                return candidate
    return format_coordinate(coordinate)


def build_subtitle(address: Address | None, poi_list: Sequence[POIItem]) -> str:
    """Pick the display subtitle.

    Precedence: first area of interest, thoroughfare, address name,
    first POI name, empty string.
    """
    if address is not None:
        if address.areas_of_interest and address.areas_of_interest[0]:
            return address.areas_of_interest[0]
        if address.thoroughfare:
            return address.thoroughfare
        if address.name:
            return address.name
    if poi_list:
        return poi_list[0].name
    return ""


def build_context(
    reading: LocationReading,
    address: Address | None,
    weather: WeatherSnapshot | None,
    poi_list: Sequence[POIItem],
    captured_at: datetime,
    weather_timed_out: bool,
    scene: LocationScene,
    mode: LocationMode,
    *,
    using_mock_weather: bool = False,
    altitude_unit: AltitudeUnit = AltitudeUnit.METERS,
) -> CameraContext:
    """Assemble a fresh (non-cached) ``CameraContext``.

    Args:
        reading: Location fix the context describes.
        address: Reverse-geocoded address, ``None`` on failure.
        weather: Current weather, ``None`` on failure or timeout.
        poi_list: Nearby points of interest, possibly empty.
        captured_at: Instant the fetch started; becomes ``raw.timestamp``.
        weather_timed_out: Whether the weather source failed or timed out.
        scene: Echoed request scene.
        mode: Echoed request mode.
        using_mock_weather: Whether the weather source is a mock.
        altitude_unit: Unit for ``display.altitude_str``.

    Returns:
        Context with ``flags.from_cache`` set to ``False``.

    Example:
        >>> ctx = build_context(reading, addr, None, [], now, True,
        ...                     LocationScene.WORK, LocationMode.FAST)  # doctest: +SKIP
        >>> ctx.display.weather_str  # doctest: +SKIP
        '-- 0°C'
    """
    pois = tuple(poi_list)
    coordinate = reading.coordinate

    display = Display(
        title=build_title(address, coordinate),
        subtitle=build_subtitle(address, pois),
        weather_str=format_weather(weather),
        time_str=format_time(captured_at),
        altitude_str=format_altitude(reading.altitude, altitude_unit),
        coordinate_str=format_coordinate(coordinate),
    )
    raw = Raw(
        reading=reading,
        address=address,
        poi_list=pois,
        timestamp=captured_at,
        weather=weather,
    )
    flags = Flags(
        from_cache=False,
        using_mock_weather=using_mock_weather,
        weather_timed_out=weather_timed_out,
        scene=scene,
        mode=mode,
    )
    return CameraContext(display=display, raw=raw, flags=flags)
