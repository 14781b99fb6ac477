"""Collaborator contracts consumed by the orchestrator.

Defines one abstract base class per data source. The orchestrator only
ever talks to these interfaces, so real adapters and deterministic
stubs are interchangeable.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from pydantic import BaseModel, ConfigDict

from geocontext.config import Config, get_default_config
from geocontext.exceptions import ProviderError
from geocontext.models import (
    Address,
    AddressSearchResult,
    Coordinate,
    LocationReading,
    POIItem,
    WeatherSnapshot,
)


class ProviderCredentials(BaseModel):
    """Credentials for authenticating with a data provider.

    Args:
        api_key: API key for key-based authentication.

    Example:
        >>> ProviderCredentials(api_key="placeholder").api_key
        'placeholder'
    """

    model_config = ConfigDict(frozen=True)

    api_key: str = ""


class Provider:
    """Common state for all collaborators.

    Subclasses set the ``_name`` class attribute to a unique identifier
    and ``is_mock`` to ``True`` when they produce synthetic data.

    Args:
        config: Frozen configuration snapshot; the module default is
            used when omitted.
    """

    _name: str = ""
    is_mock: bool = False

    def __init__(self, config: Config | None = None) -> None:
        self._config = config if config is not None else get_default_config()

    @property
    def name(self) -> str:
        """Provider identifier used in the registry and in logs."""
        return self._name


class LocationProvider(Provider, ABC):
    """Source of device position fixes."""

    @abstractmethod
    async def current_reading(self, deadline: float) -> LocationReading:
        """Produce the current position fix.

        The provider owns its deadline policy; *deadline* tells it how
        long the caller is prepared to wait for this mode.

        Args:
            deadline: Maximum time to spend, in seconds.

        Returns:
            The current reading.

        Raises:
            LocationUnavailableError: If no fix can be produced.
            PermissionDeniedError: If location access is not granted.
            LocationTimeoutError: If *deadline* elapses first.
        """
        ...


class AddressProvider(Provider, ABC):
    """Reverse geocoding source, optionally with forward search."""

    @abstractmethod
    async def reverse_geocode(self, coordinate: Coordinate) -> Address:
        """Resolve *coordinate* into a structured address.

        Raises:
            NoResultError: If no address exists for the coordinate.
            ProviderError: On any other failure.
        """
        ...

    async def search_address(
        self,
        query: str,
        *,
        near: Coordinate | None = None,
        limit: int = 10,
    ) -> list[AddressSearchResult]:
        """Find places and addresses matching free-text *query*.

        Args:
            query: Non-empty search text.
            near: Bias results towards this position when given.
            limit: Maximum number of results.

        Raises:
            ProviderError: If the provider has no forward search or the
                lookup fails.
        """
        raise ProviderError(
            what=f"Address search is not supported by {self.name or type(self).__name__}",
            cause="The address provider only implements reverse geocoding",
            fix="Use the nominatim or mock address provider",
        )


class WeatherProvider(Provider, ABC):
    """Current-conditions weather source."""

    @abstractmethod
    async def current_weather(self, coordinate: Coordinate) -> WeatherSnapshot:
        """Fetch current weather at *coordinate*.

        Implementations must tolerate cancellation: the orchestrator
        cancels this call when its deadline passes. Blocking work in a
        worker thread must stop too (see ``run_cancellable``).

        Raises:
            UnauthorizedError: If the provider rejects the credentials.
            ProviderError: On any other failure.
        """
        ...


class POIProvider(Provider, ABC):
    """Points-of-interest search."""

    @abstractmethod
    async def search(
        self,
        coordinate: Coordinate,
        keywords: Sequence[str],
        *,
        radius_m: float | None = None,
        limit: int | None = None,
    ) -> list[POIItem]:
        """Search for points of interest around *coordinate*.

        Never raises on missing data or provider trouble; returns an
        empty list instead. Closest-first ordering is preferred.

        Args:
            coordinate: Search centre.
            keywords: Search keywords (see ``LocationScene.poi_keywords``).
            radius_m: Search radius; the provider default when omitted.
            limit: Maximum number of results; the provider default when
                omitted.

        Returns:
            Matching points of interest, possibly empty.
        """
        ...
