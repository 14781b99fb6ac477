"""Provider registry for the four collaborator kinds.

Provides ``get_provider()`` to instantiate configured collaborators by
kind and name:

* ``location``: ``mock``
* ``address``: ``mock``, ``nominatim``
* ``weather``: ``mock``, ``open-meteo``
* ``poi``: ``mock``, ``overpass``
"""

from __future__ import annotations

from geocontext.config import Config, get_default_config
from geocontext.exceptions import ConfigurationError
from geocontext.providers.base import Provider

_PROVIDER_REGISTRY: dict[str, dict[str, type[Provider]]] = {}
_REGISTRY_INITIALIZED = False


def _init_registry() -> None:
    """Populate the provider registry on first use (lazy import)."""
    global _REGISTRY_INITIALIZED  # noqa: PLW0603
    if _REGISTRY_INITIALIZED:
        return

    from geocontext.providers.mock import (
        MockAddressProvider,
        MockLocationProvider,
        MockPOIProvider,
        MockWeatherProvider,
    )
    from geocontext.providers.nominatim import NominatimAddressProvider
    from geocontext.providers.openmeteo import OpenMeteoWeatherProvider
    from geocontext.providers.overpass import OverpassPOIProvider

    _PROVIDER_REGISTRY.update(
        {
            "location": {"mock": MockLocationProvider},
            "address": {
                "mock": MockAddressProvider,
                "nominatim": NominatimAddressProvider,
            },
            "weather": {
                "mock": MockWeatherProvider,
                "open-meteo": OpenMeteoWeatherProvider,
            },
            "poi": {
                "mock": MockPOIProvider,
                "overpass": OverpassPOIProvider,
            },
        }
    )
    _REGISTRY_INITIALIZED = True


def get_registered_names(kind: str) -> list[str]:
    """Return sorted provider names registered for *kind*.

    Args:
        kind: Collaborator kind (``"location"``, ``"address"``,
            ``"weather"`` or ``"poi"``).

    Returns:
        Sorted list of provider identifiers, empty for unknown kinds.
    """
    _init_registry()
    return sorted(_PROVIDER_REGISTRY.get(kind.lower(), {}))


def get_provider(kind: str, name: str, config: Config | None = None) -> Provider:
    """Return a configured provider instance by kind and name.

    Kind and name are case-insensitive.

    Args:
        kind: Collaborator kind (``"location"``, ``"address"``,
            ``"weather"`` or ``"poi"``).
        name: Provider identifier within that kind, e.g. ``"nominatim"``.
        config: Frozen configuration snapshot. Uses the module default
            if omitted.

    Returns:
        A provider instance ready for use.

    Raises:
        ConfigurationError: If *kind* or *name* is not registered.

    Example:
        >>> provider = get_provider("weather", "open-meteo", Config())
        >>> provider.name
        'open-meteo'
    """
    _init_registry()
    kind_key = kind.lower()
    if kind_key not in _PROVIDER_REGISTRY:
        valid = ", ".join(sorted(_PROVIDER_REGISTRY))
        raise ConfigurationError(
            what=f"Unknown provider kind: {kind!r}",
            cause=f"Valid kinds are: {valid}",
            fix=f"Use one of: {valid}",
        )

    providers = _PROVIDER_REGISTRY[kind_key]
    key = name.lower()
    if key not in providers:
        valid = ", ".join(sorted(providers))
        raise ConfigurationError(
            what=f"Unknown {kind_key} provider: {name!r}",
            cause=f"Valid {kind_key} providers are: {valid}",
            fix=f"Use one of: {valid}",
        )
    cfg = config if config is not None else get_default_config()
    return providers[key](config=cfg)


__all__ = ["get_provider", "get_registered_names"]
