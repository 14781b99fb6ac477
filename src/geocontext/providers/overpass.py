"""Points of interest through the OpenStreetMap Overpass API.

Scene keywords are translated into OSM tag filters and combined into a
single ``around:`` query. Distances to every returned element are
computed in one vectorised pass.
"""

from __future__ import annotations

import logging
import re
import threading
from collections.abc import Sequence
from typing import Any

import numpy as np
import requests

from geocontext.config import Config
from geocontext.geo import haversine_distances
from geocontext.models import Coordinate, POIItem
from geocontext.providers._http import (
    parse_json,
    request_with_retry,
    run_cancellable,
)
from geocontext.providers.base import POIProvider

logger = logging.getLogger(__name__)

_SERVICE = "Overpass"

# keyword -> OSM tag filters; ``None`` as value means "any value"
_KEYWORD_TAGS: dict[str, tuple[tuple[str, str | None], ...]] = {
    "office": (("office", None),),
    "building": (("building", "office"), ("building", "commercial")),
    "company": (("office", "company"),),
    "business": (("office", None), ("amenity", "coworking_space")),
    "scenic": (("tourism", "viewpoint"), ("leisure", "park")),
    "landmark": (("historic", None), ("tourism", "artwork")),
    "restaurant": (("amenity", "restaurant"),),
    "attraction": (("tourism", "attraction"), ("tourism", "museum")),
    "hotel": (("tourism", "hotel"), ("tourism", "hostel")),
    "cafe": (("amenity", "cafe"),),
    "shopping": (("shop", "mall"), ("shop", "department_store")),
}

_CATEGORY_KEYS = ("tourism", "historic", "amenity", "office", "shop", "leisure", "building")


def _tag_selector(key: str, value: str | None) -> str:
    if value is None:
        return f'["{key}"]'
    return f'["{key}"="{value}"]'


def build_query(
    coordinate: Coordinate,
    keywords: Sequence[str],
    radius_m: float,
    timeout_s: float,
) -> str:
    """Build an Overpass QL query for *keywords* around *coordinate*.

    Unknown keywords fall back to a case-insensitive name match; the
    keyword is matched literally, never as a regular expression.

    Example:
        >>> q = build_query(Coordinate(lat=1, lon=2), ["restaurant"], 500, 10)
        >>> '["amenity"="restaurant"](around:500,1.000000,2.000000)' in q
        True
    """
    around = f"(around:{radius_m:.0f},{coordinate.lat:.6f},{coordinate.lon:.6f})"
    selectors: list[str] = []
    for keyword in keywords:
        tags = _KEYWORD_TAGS.get(keyword.lower())
        if tags is None:
            # regex-escape, then escape for the QL string literal
            pattern = re.escape(keyword).replace("\\", "\\\\").replace('"', '\\"')
            selectors.append(f'["name"~"{pattern}",i]')
            continue
        selectors.extend(_tag_selector(k, v) for k, v in tags)

    unique = list(dict.fromkeys(selectors))
    body = "".join(f"nwr{sel}{around};" for sel in unique)
    return f"[out:json][timeout:{int(timeout_s)}];({body});out center tags;"


def _element_position(element: dict[str, Any]) -> tuple[float, float] | None:
    if "lat" in element and "lon" in element:
        return float(element["lat"]), float(element["lon"])
    center = element.get("center")
    if isinstance(center, dict) and "lat" in center and "lon" in center:
        return float(center["lat"]), float(center["lon"])
    return None


def _element_category(tags: dict[str, Any]) -> str:
    for key in _CATEGORY_KEYS:
        value = tags.get(key)
        if value:
            if value == "yes":
                return key.replace("_", " ").title()
            return str(value).replace("_", " ").title()
    return ""


def parse_elements(
    origin: Coordinate,
    elements: Sequence[dict[str, Any]],
    limit: int,
) -> list[POIItem]:
    """Turn Overpass elements into ``POIItem`` objects, closest first.

    Elements without a name or a position are dropped.

    Args:
        origin: Search centre used for distances.
        elements: ``elements`` array of the Overpass response.
        limit: Maximum number of items kept.

    Returns:
        At most *limit* items sorted by distance.
    """
    named: list[tuple[dict[str, Any], tuple[float, float]]] = []
    for element in elements:
        tags = element.get("tags") or {}
        position = _element_position(element)
        if not tags.get("name") or position is None:
            continue
        named.append((element, position))

    if not named:
        return []

    lats = np.array([pos[0] for _, pos in named], dtype=np.float64)
    lons = np.array([pos[1] for _, pos in named], dtype=np.float64)
    distances = haversine_distances(origin, lats, lons)
    order = np.argsort(distances, kind="stable")[:limit]

    items: list[POIItem] = []
    for idx in order:
        element, (lat, lon) = named[int(idx)]
        tags = element["tags"]
        items.append(
            POIItem(
                id=f"{element.get('type', 'node')}/{element.get('id', idx)}",
                name=str(tags["name"]),
                category=_element_category(tags),
                distance=float(distances[idx]),
                coordinate=Coordinate(lat=lat, lon=lon),
            )
        )
    return items


class OverpassPOIProvider(POIProvider):
    """POI adapter for the Overpass API interpreter.

    Never raises: any failure is logged and yields an empty list.

    Args:
        config: Frozen configuration snapshot; supplies the default search
            radius and result limit and the endpoint.

    Example:
        >>> provider = OverpassPOIProvider(config=Config())
        >>> provider.name
        'overpass'
    """

    _name: str = "overpass"

    def __init__(self, config: Config | None = None) -> None:
        super().__init__(config)
        self._session: requests.Session = requests.Session()
        self._session.headers["User-Agent"] = self._config.user_agent

    async def search(
        self,
        coordinate: Coordinate,
        keywords: Sequence[str],
        *,
        radius_m: float | None = None,
        limit: int | None = None,
    ) -> list[POIItem]:
        if not keywords:
            return []
        radius = radius_m if radius_m is not None else self._config.poi_radius_m
        max_items = limit if limit is not None else self._config.poi_limit
        try:
            return await run_cancellable(
                self._search_sync, coordinate, list(keywords), radius, max_items
            )
        except Exception as exc:  # noqa: BLE001
            logger.warning("Overpass search failed: %s", exc)
            return []

    def _search_sync(
        self,
        coordinate: Coordinate,
        keywords: list[str],
        radius_m: float,
        limit: int,
        cancel_event: threading.Event,
    ) -> list[POIItem]:
        query = build_query(coordinate, keywords, radius_m, self._config.http_timeout_s)
        resp = request_with_retry(
            self._session,
            "post",
            self._config.overpass_url,
            service=_SERVICE,
            cancel_event=cancel_event,
            data={"data": query},
            timeout=self._config.http_timeout_s,
        )
        payload = parse_json(resp, service=_SERVICE)
        elements = payload.get("elements") if isinstance(payload, dict) else None
        if not isinstance(elements, list):
            logger.warning("Overpass response has no elements array")
            return []
        items = parse_elements(coordinate, elements, limit)
        logger.debug("Overpass returned %d named POIs", len(items))
        return items
