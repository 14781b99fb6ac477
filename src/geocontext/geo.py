"""Clock and distance helpers. Pure functions, no state."""

from __future__ import annotations

import math
from datetime import datetime
from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt

if TYPE_CHECKING:
    from collections.abc import Sequence

    from geocontext.models import Coordinate

EARTH_RADIUS_M = 6_371_000.0

_COMPASS_POINTS = ("N", "NE", "E", "SE", "S", "SW", "W", "NW")


def elapsed_seconds(start: datetime, end: datetime) -> float:
    """Return the seconds from *start* to *end* (negative if *end* is earlier)."""
    return (end - start).total_seconds()


def haversine_distance(a: Coordinate, b: Coordinate) -> float:
    """Great-circle distance between two coordinates using the Haversine formula.

    Args:
        a: First coordinate.
        b: Second coordinate.

    Returns:
        Distance in metres.

    Example:
        >>> from geocontext.models import Coordinate
        >>> round(haversine_distance(Coordinate(lat=0, lon=0), Coordinate(lat=0, lon=1)))
        111195
    """
    lat1 = math.radians(a.lat)
    lat2 = math.radians(b.lat)
    dlat = math.radians(b.lat - a.lat)
    dlon = math.radians(b.lon - a.lon)

    h = (
        math.sin(dlat / 2) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))

    return EARTH_RADIUS_M * c


def haversine_distances(
    origin: Coordinate,
    lats: Sequence[float] | npt.NDArray[np.float64],
    lons: Sequence[float] | npt.NDArray[np.float64],
) -> npt.NDArray[np.float64]:
    """Vectorised great-circle distances from *origin* to many points.

    Args:
        origin: Reference coordinate.
        lats: Latitudes of the target points in degrees.
        lons: Longitudes of the target points in degrees.

    Returns:
        Array of distances in metres, same length as *lats*.
    """
    lat_arr = np.radians(np.asarray(lats, dtype=np.float64))
    lon_arr = np.radians(np.asarray(lons, dtype=np.float64))
    lat0 = math.radians(origin.lat)
    lon0 = math.radians(origin.lon)

    h = (
        np.sin((lat_arr - lat0) / 2) ** 2
        + math.cos(lat0) * np.cos(lat_arr) * np.sin((lon_arr - lon0) / 2) ** 2
    )
    c = 2 * np.arctan2(np.sqrt(h), np.sqrt(1 - h))
    result: npt.NDArray[np.float64] = EARTH_RADIUS_M * c
    return result


def bearing(a: Coordinate, b: Coordinate) -> float:
    """Initial bearing from *a* to *b* in degrees, normalised to ``[0, 360)``."""
    lat1 = math.radians(a.lat)
    lat2 = math.radians(b.lat)
    dlon = math.radians(b.lon - a.lon)

    y = math.sin(dlon) * math.cos(lat2)
    x = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(
        dlon
    )
    return (math.degrees(math.atan2(y, x)) + 360.0) % 360.0


def compass_direction(degrees: float) -> str:
    """Map a bearing to one of the eight compass points.

    Example:
        >>> compass_direction(95.0)
        'E'
    """
    index = int(((degrees % 360.0) + 22.5) % 360.0 // 45.0)
    return _COMPASS_POINTS[index]


def bounding_box(center: Coordinate, half_size_m: float) -> tuple[float, float, float, float]:
    """Square box around *center* as ``(west, south, east, north)`` degrees.

    Latitudes are clamped to ``[-90, 90]``; longitudes are not wrapped.

    Example:
        >>> from geocontext.models import Coordinate
        >>> west, south, east, north = bounding_box(Coordinate(lat=0, lon=0), 111195)
        >>> round(north, 3), round(east, 3)
        (1.0, 1.0)
    """
    dlat = math.degrees(half_size_m / EARTH_RADIUS_M)
    cos_lat = max(math.cos(math.radians(center.lat)), 1e-6)
    dlon = dlat / cos_lat
    return (
        center.lon - dlon,
        max(center.lat - dlat, -90.0),
        center.lon + dlon,
        min(center.lat + dlat, 90.0),
    )
