"""Top-level factory for wiring an orchestrator.

Each collaborator argument accepts either a provider instance or a
registry name, making the common cases one-liners.

Example:
    >>> import geocontext as gc
    >>> orchestrator = gc.create_orchestrator(weather="mock", poi="mock")
    >>> ctx = asyncio.run(orchestrator.fetch_work_context())  # doctest: +SKIP
    >>> print(ctx.display.title)  # doctest: +SKIP
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import TypeVar

from geocontext.config import Config, get_default_config
from geocontext.exceptions import ConfigurationError
from geocontext.orchestrator import ContextOrchestrator
from geocontext.providers import get_provider
from geocontext.providers.base import (
    AddressProvider,
    LocationProvider,
    POIProvider,
    Provider,
    WeatherProvider,
)

P = TypeVar("P", bound=Provider)


def _resolve_provider(
    kind: str,
    choice: P | str,
    expected: type[P],
    config: Config,
) -> P:
    """Resolve an instance-or-name argument to a provider instance.

    Raises:
        ConfigurationError: If the name is unknown or the instance does
            not implement the contract for *kind*.
    """
    provider = get_provider(kind, choice, config) if isinstance(choice, str) else choice
    if not isinstance(provider, expected):
        raise ConfigurationError(
            what=f"Invalid {kind} provider: {type(provider).__name__}",
            cause=f"Expected an instance of {expected.__name__}",
            fix=f"Pass a {expected.__name__} subclass instance or a registered name",
        )
    return provider


def create_orchestrator(
    config: Config | None = None,
    *,
    location: LocationProvider | str = "mock",
    address: AddressProvider | str = "nominatim",
    weather: WeatherProvider | str = "open-meteo",
    poi: POIProvider | str = "overpass",
    clock: Callable[[], datetime] | None = None,
) -> ContextOrchestrator:
    """Build a ``ContextOrchestrator`` from provider names or instances.

    Args:
        config: Configuration snapshot shared by the orchestrator and the
            providers it creates. Uses the module default if omitted.
        location: Location source; only ``"mock"`` is registered, real
            devices pass their own ``LocationProvider``.
        address: Reverse geocoder name or instance.
        weather: Weather source name or instance.
        poi: POI source name or instance.
        clock: Injectable clock returning the current local instant.

    Returns:
        A ready-to-use orchestrator with an empty cache.

    Raises:
        ConfigurationError: If a provider name is unknown or an instance
            has the wrong type.

    Example:
        >>> orchestrator = create_orchestrator(
        ...     address="mock", weather="mock", poi="mock",
        ... )
        >>> orchestrator.using_mock_weather
        True
    """
    cfg = config if config is not None else get_default_config()
    return ContextOrchestrator(
        location_provider=_resolve_provider("location", location, LocationProvider, cfg),
        address_provider=_resolve_provider("address", address, AddressProvider, cfg),
        weather_provider=_resolve_provider("weather", weather, WeatherProvider, cfg),
        poi_provider=_resolve_provider("poi", poi, POIProvider, cfg),
        config=cfg,
        clock=clock,
    )
