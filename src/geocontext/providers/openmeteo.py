"""Current weather through the Open-Meteo forecast API.

The free endpoint needs no key. When an API key is configured, either
in ``Config.open_meteo_api_key`` or under ``open_meteo.api_key`` in the
credentials file, requests go to the commercial customer endpoint.
"""

from __future__ import annotations

import logging
import threading
from typing import Any

import requests

from geocontext.config import (
    Config,
    load_credentials,
    resolve_credentials_path,
)
from geocontext.exceptions import ProviderError
from geocontext.models import Coordinate, WeatherSnapshot
from geocontext.providers._http import (
    parse_json,
    request_with_retry,
    run_cancellable,
)
from geocontext.providers.base import ProviderCredentials, WeatherProvider

logger = logging.getLogger(__name__)

_SERVICE = "Open-Meteo"
_CUSTOMER_URL = "https://customer-api.open-meteo.com"
_ATTRIBUTION_URL = "https://open-meteo.com/en/license"
_CURRENT_FIELDS = "temperature_2m,relative_humidity_2m,weather_code,is_day"

# WMO weather interpretation codes -> (label, day icon, night icon)
_WMO_CODES: dict[int, tuple[str, str, str]] = {
    0: ("Clear", "sun.max.fill", "moon.stars.fill"),
    1: ("Mostly Clear", "sun.max.fill", "moon.fill"),
    2: ("Partly Cloudy", "cloud.sun.fill", "cloud.moon.fill"),
    3: ("Cloudy", "cloud.fill", "cloud.fill"),
    45: ("Foggy", "cloud.fog.fill", "cloud.fog.fill"),
    48: ("Foggy", "cloud.fog.fill", "cloud.fog.fill"),
    51: ("Drizzle", "cloud.drizzle.fill", "cloud.drizzle.fill"),
    53: ("Drizzle", "cloud.drizzle.fill", "cloud.drizzle.fill"),
    55: ("Drizzle", "cloud.drizzle.fill", "cloud.drizzle.fill"),
    56: ("Freezing Drizzle", "cloud.sleet.fill", "cloud.sleet.fill"),
    57: ("Freezing Drizzle", "cloud.sleet.fill", "cloud.sleet.fill"),
    61: ("Rain", "cloud.rain.fill", "cloud.rain.fill"),
    63: ("Rain", "cloud.rain.fill", "cloud.rain.fill"),
    65: ("Heavy Rain", "cloud.heavyrain.fill", "cloud.heavyrain.fill"),
    66: ("Freezing Rain", "cloud.sleet.fill", "cloud.sleet.fill"),
    67: ("Freezing Rain", "cloud.sleet.fill", "cloud.sleet.fill"),
    71: ("Snow", "snowflake", "snowflake"),
    73: ("Snow", "snowflake", "snowflake"),
    75: ("Heavy Snow", "cloud.snow.fill", "cloud.snow.fill"),
    77: ("Flurries", "cloud.snow", "cloud.snow"),
    80: ("Sun Showers", "cloud.sun.rain.fill", "cloud.moon.rain.fill"),
    81: ("Rain", "cloud.rain.fill", "cloud.rain.fill"),
    82: ("Heavy Rain", "cloud.heavyrain.fill", "cloud.heavyrain.fill"),
    85: ("Snow", "cloud.snow.fill", "cloud.snow.fill"),
    86: ("Heavy Snow", "cloud.snow.fill", "cloud.snow.fill"),
    95: ("Thunderstorms", "cloud.bolt.rain.fill", "cloud.bolt.rain.fill"),
    96: ("Thunderstorms", "cloud.bolt.rain.fill", "cloud.bolt.rain.fill"),
    99: ("Strong Storms", "cloud.bolt.rain.fill", "cloud.bolt.rain.fill"),
}


def describe_weather_code(code: int, *, is_day: bool = True) -> tuple[str, str]:
    """Return ``(condition, icon_name)`` for a WMO weather code.

    Example:
        >>> describe_weather_code(0)
        ('Clear', 'sun.max.fill')
        >>> describe_weather_code(1234)
        ('Unknown', 'questionmark')
    """
    entry = _WMO_CODES.get(code)
    if entry is None:
        return "Unknown", "questionmark"
    label, day_icon, night_icon = entry
    return label, day_icon if is_day else night_icon


def parse_current_weather(payload: dict[str, Any]) -> WeatherSnapshot:
    """Map the ``current`` block of a forecast response to ``WeatherSnapshot``.

    Raises:
        ProviderError: If the block or one of its fields is missing.
    """
    current = payload.get("current")
    if not isinstance(current, dict):
        raise ProviderError(
            what="Invalid Open-Meteo response",
            cause="Response has no 'current' block",
            fix="Check the configured open_meteo_url",
        )
    try:
        temperature = float(current["temperature_2m"])
        humidity = round(float(current["relative_humidity_2m"]))
        code = int(current["weather_code"])
    except (KeyError, TypeError, ValueError) as exc:
        raise ProviderError(
            what="Invalid Open-Meteo response",
            cause=f"Missing or malformed current field: {exc}",
            fix="Check the configured open_meteo_url",
        ) from exc

    condition, icon = describe_weather_code(code, is_day=bool(current.get("is_day", 1)))
    return WeatherSnapshot(
        condition=condition,
        temperature=temperature,
        humidity=min(max(humidity, 0), 100),
        icon_name=icon,
        attribution_url=_ATTRIBUTION_URL,
    )


class OpenMeteoWeatherProvider(WeatherProvider):
    """Weather adapter for the Open-Meteo ``/v1/forecast`` endpoint.

    Args:
        config: Frozen configuration snapshot.

    Example:
        >>> provider = OpenMeteoWeatherProvider(config=Config())
        >>> provider.name
        'open-meteo'
    """

    _name: str = "open-meteo"

    def __init__(self, config: Config | None = None) -> None:
        super().__init__(config)
        self._session: requests.Session = requests.Session()
        self._session.headers["User-Agent"] = self._config.user_agent
        self._credentials = self._load_credentials()

    def _load_credentials(self) -> ProviderCredentials:
        """Resolve the API key from config, then the credentials file."""
        if self._config.open_meteo_api_key:
            return ProviderCredentials(api_key=self._config.open_meteo_api_key)
        path = resolve_credentials_path(self._config.credentials_file)
        if path is None:
            return ProviderCredentials()
        section = load_credentials(path).get("open_meteo") or {}
        api_key = section.get("api_key", "") if isinstance(section, dict) else ""
        if api_key:
            logger.debug("Using Open-Meteo API key from %s", path)
        return ProviderCredentials(api_key=api_key)

    @property
    def base_url(self) -> str:
        """Endpoint base; the customer API when a key is configured."""
        if self._credentials.api_key:
            return _CUSTOMER_URL
        return self._config.open_meteo_url

    async def current_weather(self, coordinate: Coordinate) -> WeatherSnapshot:
        return await run_cancellable(self._current_weather_sync, coordinate)

    def _current_weather_sync(
        self,
        coordinate: Coordinate,
        cancel_event: threading.Event,
    ) -> WeatherSnapshot:
        params: dict[str, Any] = {
            "latitude": f"{coordinate.lat:.4f}",
            "longitude": f"{coordinate.lon:.4f}",
            "current": _CURRENT_FIELDS,
            "timezone": "auto",
        }
        if self._credentials.api_key:
            params["apikey"] = self._credentials.api_key

        resp = request_with_retry(
            self._session,
            "get",
            f"{self.base_url}/v1/forecast",
            service=_SERVICE,
            cancel_event=cancel_event,
            params=params,
            # one attempt never outlives the weather deadline
            timeout=min(self._config.http_timeout_s, self._config.weather_timeout_s),
        )
        payload = parse_json(resp, service=_SERVICE)
        if not isinstance(payload, dict):
            raise ProviderError(
                what="Invalid Open-Meteo response",
                cause=f"Expected a JSON object, got {type(payload).__name__}",
                fix="Check the configured open_meteo_url",
            )
        weather = parse_current_weather(payload)
        logger.debug("Open-Meteo returned %s", weather.display_string)
        return weather
