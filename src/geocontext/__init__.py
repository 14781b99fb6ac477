"""GeoContext: display-ready geographic context for every photo.

Example:
    >>> import asyncio
    >>> import geocontext as gc
    >>>
    >>> orchestrator = gc.create_orchestrator(address="mock", weather="mock", poi="mock")
    >>> ctx = asyncio.run(orchestrator.fetch_context("travel", "accurate"))
    >>> print(ctx.display.title, ctx.display.weather_str)  # doctest: +SKIP
"""

from geocontext.__about__ import __version__
from geocontext.api import create_orchestrator
from geocontext.cache import CacheStatus, NearbyCacheStats
from geocontext.config import Config, configure
from geocontext.context import CameraContext, Display, Flags, Raw
from geocontext.deadline import with_deadline
from geocontext.exceptions import (
    ConfigurationError,
    DeadlineExceededError,
    GeoContextError,
    LocationError,
    LocationTimeoutError,
    LocationUnavailableError,
    NoResultError,
    PermissionDeniedError,
    ProviderError,
    UnauthorizedError,
)
from geocontext.models import (
    Address,
    AddressSearchResult,
    AltitudeUnit,
    Coordinate,
    LocationMode,
    LocationReading,
    LocationScene,
    POIItem,
    WeatherSnapshot,
)
from geocontext.orchestrator import ContextOrchestrator

__all__ = [
    # Version
    "__version__",
    # Orchestration
    "ContextOrchestrator",
    "create_orchestrator",
    "with_deadline",
    "CacheStatus",
    "NearbyCacheStats",
    # Configuration
    "Config",
    "configure",
    # Results
    "CameraContext",
    "Display",
    "Flags",
    "Raw",
    # Models
    "Address",
    "AddressSearchResult",
    "AltitudeUnit",
    "Coordinate",
    "LocationMode",
    "LocationReading",
    "LocationScene",
    "POIItem",
    "WeatherSnapshot",
    # Exceptions
    "ConfigurationError",
    "DeadlineExceededError",
    "GeoContextError",
    "LocationError",
    "LocationTimeoutError",
    "LocationUnavailableError",
    "NoResultError",
    "PermissionDeniedError",
    "ProviderError",
    "UnauthorizedError",
]
