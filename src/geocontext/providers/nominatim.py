"""Reverse geocoding and address search through OpenStreetMap Nominatim."""

from __future__ import annotations

import logging
import threading
from typing import Any

import requests

from geocontext.config import Config
from geocontext.exceptions import NoResultError, ProviderError
from geocontext.geo import bounding_box
from geocontext.models import Address, AddressSearchResult, Coordinate
from geocontext.providers._http import (
    parse_json,
    request_with_retry,
    run_cancellable,
)
from geocontext.providers.base import AddressProvider

logger = logging.getLogger(__name__)

_SERVICE = "Nominatim"

# Nominatim ``address`` keys in priority order for each Address field.
_LOCALITY_KEYS = ("city", "town", "village", "municipality", "hamlet")
_SUB_LOCALITY_KEYS = ("city_district", "district", "suburb", "borough", "quarter")
_ADMIN_AREA_KEYS = ("state", "province", "region")
_SUB_ADMIN_AREA_KEYS = ("county", "state_district")
_THOROUGHFARE_KEYS = ("road", "pedestrian", "footway", "street")
_AOI_KEYS = (
    "tourism",
    "historic",
    "amenity",
    "leisure",
    "building",
    "office",
    "shop",
    "attraction",
)


def _first(details: dict[str, Any], keys: tuple[str, ...]) -> str | None:
    for key in keys:
        value = details.get(key)
        if value:
            return str(value)
    return None


def parse_reverse_response(payload: dict[str, Any]) -> Address:
    """Map a Nominatim ``jsonv2`` reverse response onto ``Address``.

    Args:
        payload: Decoded JSON body.

    Returns:
        Structured address.

    Raises:
        NoResultError: If Nominatim reports no match.
    """
    if "error" in payload:
        raise NoResultError(
            what="No address found for this location",
            cause=f"Nominatim: {payload['error']}",
            fix="The coordinate may be at sea or in an unmapped area",
        )

    details: dict[str, Any] = payload.get("address") or {}
    areas = tuple(str(details[k]) for k in _AOI_KEYS if details.get(k))

    coordinate = None
    if "lat" in payload and "lon" in payload:
        coordinate = Coordinate(lat=float(payload["lat"]), lon=float(payload["lon"]))

    country_code = details.get("country_code")
    return Address(
        formatted_address=str(payload.get("display_name") or ""),
        country=details.get("country"),
        country_code=country_code.upper() if country_code else None,
        administrative_area=_first(details, _ADMIN_AREA_KEYS),
        sub_administrative_area=_first(details, _SUB_ADMIN_AREA_KEYS),
        locality=_first(details, _LOCALITY_KEYS),
        sub_locality=_first(details, _SUB_LOCALITY_KEYS),
        thoroughfare=_first(details, _THOROUGHFARE_KEYS),
        sub_thoroughfare=details.get("house_number"),
        postal_code=details.get("postcode"),
        areas_of_interest=areas,
        name=payload.get("name") or None,
        coordinate=coordinate,
    )


def parse_search_results(payload: list[Any]) -> list[AddressSearchResult]:
    """Map a Nominatim ``jsonv2`` search response onto search results.

    The title is the place name, or the first part of ``display_name``
    when the place is unnamed; the subtitle is the rest of the display
    name.
    """
    results: list[AddressSearchResult] = []
    for place in payload:
        if not isinstance(place, dict):
            continue
        display = str(place.get("display_name") or "")
        parts = [p.strip() for p in display.split(",") if p.strip()]
        title = str(place.get("name") or "") or (parts[0] if parts else "")
        if not title:
            continue
        if parts and parts[0] == title:
            parts = parts[1:]
        address = parse_reverse_response(place)
        results.append(
            AddressSearchResult(
                title=title,
                subtitle=", ".join(parts),
                coordinate=address.coordinate,
                address=address,
            )
        )
    return results


class NominatimAddressProvider(AddressProvider):
    """Address adapter for the Nominatim ``/reverse`` and ``/search`` endpoints.

    Uses a ``requests.Session`` driven from a worker thread. Nominatim's
    usage policy requires an identifying ``User-Agent``, taken from
    ``Config.user_agent``.

    Args:
        config: Frozen configuration snapshot.

    Example:
        >>> provider = NominatimAddressProvider(config=Config())
        >>> provider.name
        'nominatim'
    """

    _name: str = "nominatim"

    def __init__(self, config: Config | None = None) -> None:
        super().__init__(config)
        self._session: requests.Session = requests.Session()
        self._session.headers["User-Agent"] = self._config.user_agent

    async def reverse_geocode(self, coordinate: Coordinate) -> Address:
        return await run_cancellable(self._reverse_geocode_sync, coordinate)

    def _reverse_geocode_sync(
        self,
        coordinate: Coordinate,
        cancel_event: threading.Event,
    ) -> Address:
        params = {
            "format": "jsonv2",
            "lat": f"{coordinate.lat:.6f}",
            "lon": f"{coordinate.lon:.6f}",
            "addressdetails": 1,
        }
        resp = request_with_retry(
            self._session,
            "get",
            f"{self._config.nominatim_url}/reverse",
            service=_SERVICE,
            cancel_event=cancel_event,
            params=params,
            timeout=self._config.http_timeout_s,
        )
        payload = parse_json(resp, service=_SERVICE)
        if not isinstance(payload, dict):
            raise ProviderError(
                what="Invalid Nominatim response",
                cause=f"Expected a JSON object, got {type(payload).__name__}",
                fix="Check the configured nominatim_url",
            )
        address = parse_reverse_response(payload)
        logger.debug("Nominatim resolved %s", address.formatted_address)
        return address

    async def search_address(
        self,
        query: str,
        *,
        near: Coordinate | None = None,
        limit: int = 10,
    ) -> list[AddressSearchResult]:
        return await run_cancellable(self._search_address_sync, query, near, limit)

    def _search_address_sync(
        self,
        query: str,
        near: Coordinate | None,
        limit: int,
        cancel_event: threading.Event,
    ) -> list[AddressSearchResult]:
        params: dict[str, Any] = {
            "q": query,
            "format": "jsonv2",
            "addressdetails": 1,
            "limit": limit,
        }
        if near is not None:
            west, south, east, north = bounding_box(near, self._config.address_search_radius_m)
            # bias only; matches outside the box are still returned
            params["viewbox"] = f"{west:.6f},{north:.6f},{east:.6f},{south:.6f}"
            params["bounded"] = 0
        resp = request_with_retry(
            self._session,
            "get",
            f"{self._config.nominatim_url}/search",
            service=_SERVICE,
            cancel_event=cancel_event,
            params=params,
            timeout=self._config.http_timeout_s,
        )
        payload = parse_json(resp, service=_SERVICE)
        if not isinstance(payload, list):
            raise ProviderError(
                what="Invalid Nominatim response",
                cause=f"Expected a JSON array, got {type(payload).__name__}",
                fix="Check the configured nominatim_url",
            )
        results = parse_search_results(payload)
        logger.debug("Nominatim search for %r returned %d results", query, len(results))
        return results[:limit]
