"""Configuration and credential management for GeoContext.

Every orchestrator and provider captures a frozen ``Config`` snapshot at
construction time, so later ``configure()`` calls never affect instances
that already exist.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

from geocontext.exceptions import ConfigurationError
from geocontext.models import AltitudeUnit, LocationMode

logger = logging.getLogger(__name__)

_CREDENTIALS_ENV_VAR = "GEOCONTEXT_CREDENTIALS"
_DEFAULT_CREDENTIALS_PATH = Path("~/.geocontext/credentials.json")

# Reuse thresholds. These are the only two knobs that change whether a
# burst of photos shares one context.
CACHE_DISTANCE_THRESHOLD_M = 20.0
CACHE_TIME_THRESHOLD_S = 120.0

# Weather never waits longer than this, whatever the location mode.
WEATHER_TIMEOUT_S = 3.0

FAST_LOCATION_TIMEOUT_S = 5.0
ACCURATE_LOCATION_TIMEOUT_S = 15.0

# Nearby-search results are reused for 15 minutes, at most 50 entries.
NEARBY_CACHE_TTL_S = 15 * 60.0
NEARBY_CACHE_SIZE = 50


class Config(BaseModel):
    """SDK configuration model.

    Args:
        cache_distance_m: Maximum distance for a cache hit (strict ``<``).
        cache_time_s: Maximum age in seconds for a cache hit (strict ``<``).
        weather_timeout_s: Deadline applied to every weather lookup.
        fast_location_timeout_s: Location deadline passed in ``fast`` mode.
        accurate_location_timeout_s: Location deadline passed in
            ``accurate`` mode.
        altitude_unit: Unit used for the display altitude string.
        poi_radius_m: Search radius for POI lookups.
        poi_limit: Maximum number of POIs kept per lookup.
        nearby_cache_ttl_s: Lifetime of a cached nearby-search result.
        nearby_cache_size: Maximum number of cached nearby searches.
        address_search_radius_m: Half size of the box that biases
            address search towards the current position.
        http_timeout_s: Connect/read timeout for HTTP adapters.
        user_agent: ``User-Agent`` header sent by HTTP adapters.
        nominatim_url: Base URL of the Nominatim service.
        open_meteo_url: Base URL of the Open-Meteo forecast API.
        overpass_url: Overpass API interpreter endpoint.
        open_meteo_api_key: Optional key for the commercial Open-Meteo API.
        credentials_file: Optional explicit credentials file path.

    Example:
        >>> cfg = Config(weather_timeout_s=2.0)
        >>> cfg.cache_distance_m
        20.0
    """

    model_config = ConfigDict(frozen=True, validate_default=True, extra="forbid")

    cache_distance_m: float = CACHE_DISTANCE_THRESHOLD_M
    cache_time_s: float = CACHE_TIME_THRESHOLD_S
    weather_timeout_s: float = WEATHER_TIMEOUT_S
    fast_location_timeout_s: float = FAST_LOCATION_TIMEOUT_S
    accurate_location_timeout_s: float = ACCURATE_LOCATION_TIMEOUT_S
    altitude_unit: AltitudeUnit = AltitudeUnit.METERS
    poi_radius_m: float = 500.0
    poi_limit: int = 20
    nearby_cache_ttl_s: float = NEARBY_CACHE_TTL_S
    nearby_cache_size: int = NEARBY_CACHE_SIZE
    address_search_radius_m: float = 5000.0
    http_timeout_s: float = 10.0
    user_agent: str = "geocontext/0.1 (+https://pypi.org/project/geocontext/)"
    nominatim_url: str = "https://nominatim.openstreetmap.org"
    open_meteo_url: str = "https://api.open-meteo.com"
    overpass_url: str = "https://overpass-api.de/api/interpreter"
    open_meteo_api_key: str = ""
    credentials_file: Path | None = None

    @field_validator(
        "cache_distance_m",
        "cache_time_s",
        "weather_timeout_s",
        "fast_location_timeout_s",
        "accurate_location_timeout_s",
        "poi_radius_m",
        "http_timeout_s",
        "nearby_cache_ttl_s",
        "address_search_radius_m",
    )
    @classmethod
    def _validate_positive(cls, v: float) -> float:
        """Ensure thresholds and deadlines are positive."""
        if v <= 0:
            msg = "value must be greater than 0"
            raise ValueError(msg)
        return v

    @field_validator("poi_limit", "nearby_cache_size")
    @classmethod
    def _validate_count(cls, v: int) -> int:
        if v <= 0:
            msg = "value must be greater than 0"
            raise ValueError(msg)
        return v

    @field_validator("nominatim_url", "open_meteo_url", "overpass_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("credentials_file", mode="before")
    @classmethod
    def _expand_credentials_file(
        cls,
        v: str | Path | None,
    ) -> Path | None:
        """Expand ``~`` in the credentials path."""
        if v is None:
            return None
        return Path(v).expanduser()

    def location_deadline(self, mode: LocationMode | str) -> float:
        """Return the location-read deadline for *mode* in seconds.

        Args:
            mode: ``LocationMode`` member or its string value.

        Returns:
            Deadline handed to the location collaborator.
        """
        if LocationMode(mode) is LocationMode.ACCURATE:
            return self.accurate_location_timeout_s
        return self.fast_location_timeout_s


_default_config = Config()


def configure(**kwargs: Any) -> None:
    """Set module-level default configuration.

    Creates a new ``Config`` from the current defaults merged with
    the provided keyword arguments.

    Args:
        **kwargs: Any ``Config`` field (e.g. ``weather_timeout_s``,
            ``user_agent``, ``poi_limit``).

    Raises:
        ValidationError: If a provided value fails pydantic validation.

    Example:
        >>> configure(poi_limit=10, user_agent="my-camera/1.0")
    """
    global _default_config  # noqa: PLW0603
    current = _default_config.model_dump()
    current.update(kwargs)
    _default_config = Config(**current)


def get_default_config() -> Config:
    """Return the current module-level default configuration.

    Returns:
        The active ``Config`` instance.
    """
    return _default_config


def resolve_credentials_path(
    explicit: Path | None = None,
) -> Path | None:
    """Resolve the credentials file path.

    Resolution order:
        1. *explicit* argument (highest priority)
        2. ``GEOCONTEXT_CREDENTIALS`` environment variable
        3. Default ``~/.geocontext/credentials.json``

    Emits a warning if the file exists and is readable by group or
    others on POSIX systems.

    Args:
        explicit: An explicit path passed via ``Config``.

    Returns:
        Resolved ``Path``, or ``None`` if no credentials file exists
        at the chosen location.
    """
    if explicit is not None:
        path = Path(explicit).expanduser()
    elif os.environ.get(_CREDENTIALS_ENV_VAR):
        path = Path(os.environ[_CREDENTIALS_ENV_VAR]).expanduser()
    else:
        path = _DEFAULT_CREDENTIALS_PATH.expanduser()

    if not path.exists():
        return None

    _check_file_permissions(path)
    return path


def _check_file_permissions(path: Path) -> None:
    """Warn if *path* is readable by group or others.

    Skipped on Windows where POSIX permission bits are not meaningful.
    """
    if sys.platform == "win32":
        return
    try:
        mode = path.stat().st_mode
        if mode & 0o077:
            logger.warning(
                "Credentials file %s has overly permissive "
                "permissions (%o). Consider running: "
                "chmod 600 %s",
                path,
                mode & 0o777,
                path,
            )
    except OSError:
        pass


def load_credentials(path: Path) -> dict[str, Any]:
    """Load and parse a JSON credentials file.

    Args:
        path: Absolute or ``~``-expanded path to the JSON file.

    Returns:
        Parsed credentials dictionary.

    Raises:
        ConfigurationError: If the file is missing or contains
            invalid JSON.
    """
    resolved = Path(path).expanduser()
    try:
        text = resolved.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise ConfigurationError(
            what="Cannot read credentials file",
            cause=f"File not found: {resolved}",
            fix=(
                f"Create {resolved} with provider credentials, "
                f"or set the {_CREDENTIALS_ENV_VAR} environment variable"
            ),
        ) from None
    except PermissionError:
        raise ConfigurationError(
            what="Cannot read credentials file",
            cause=f"Permission denied: {resolved}",
            fix=f"Check file permissions on {resolved}",
        ) from None

    try:
        parsed: Any = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ConfigurationError(
            what="Invalid credentials file format",
            cause=f"JSON parse error in {resolved}: {exc}",
            fix=(
                "Ensure the file contains valid JSON with structure: "
                '{"open_meteo": {"api_key": "..."}}'
            ),
        ) from None

    if not isinstance(parsed, dict):
        raise ConfigurationError(
            what="Invalid credentials file format",
            cause=f"Expected a JSON object in {resolved}, got {type(parsed).__name__}",
            fix=(
                "Ensure the file contains a JSON object with structure: "
                '{"open_meteo": {"api_key": "..."}}'
            ),
        )

    return parsed
