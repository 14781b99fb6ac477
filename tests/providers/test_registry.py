"""Tests for the provider registry get_provider() function."""

from __future__ import annotations

import pytest

from geocontext.config import Config
from geocontext.exceptions import ConfigurationError
from geocontext.providers import get_provider, get_registered_names
from geocontext.providers.base import (
    AddressProvider,
    LocationProvider,
    POIProvider,
    WeatherProvider,
)
from geocontext.providers.mock import (
    MockAddressProvider,
    MockLocationProvider,
    MockPOIProvider,
    MockWeatherProvider,
)
from geocontext.providers.nominatim import NominatimAddressProvider
from geocontext.providers.openmeteo import OpenMeteoWeatherProvider
from geocontext.providers.overpass import OverpassPOIProvider


@pytest.fixture(autouse=True)
def _reset_registry(monkeypatch: pytest.MonkeyPatch) -> None:
    """Reset provider registry before each test."""
    import geocontext.providers as _prov

    monkeypatch.setattr(_prov, "_REGISTRY_INITIALIZED", False)
    monkeypatch.setattr(_prov, "_PROVIDER_REGISTRY", {})


# ── Registry returns correct provider types ─────────────────────────


@pytest.mark.unit
class TestRegistryReturns:
    """Verify get_provider() returns correct provider instances."""

    @pytest.mark.parametrize(
        ("kind", "name", "expected"),
        [
            ("location", "mock", MockLocationProvider),
            ("address", "mock", MockAddressProvider),
            ("address", "nominatim", NominatimAddressProvider),
            ("weather", "mock", MockWeatherProvider),
            ("weather", "open-meteo", OpenMeteoWeatherProvider),
            ("poi", "mock", MockPOIProvider),
            ("poi", "overpass", OverpassPOIProvider),
        ],
    )
    def test_returns_registered_class(
        self, kind: str, name: str, expected: type
    ) -> None:
        assert isinstance(get_provider(kind, name, Config()), expected)

    @pytest.mark.parametrize(
        ("kind", "contract"),
        [
            ("location", LocationProvider),
            ("address", AddressProvider),
            ("weather", WeatherProvider),
            ("poi", POIProvider),
        ],
    )
    def test_mock_implements_contract(self, kind: str, contract: type) -> None:
        assert isinstance(get_provider(kind, "mock", Config()), contract)

    def test_registered_names(self) -> None:
        assert get_registered_names("weather") == ["mock", "open-meteo"]
        assert get_registered_names("location") == ["mock"]
        assert get_registered_names("unknown") == []


# ── Case-insensitive lookup ──────────────────────────────────────────


@pytest.mark.unit
class TestCaseInsensitive:
    """Verify provider lookup is case-insensitive."""

    def test_uppercase_name(self) -> None:
        assert isinstance(get_provider("address", "NOMINATIM"), NominatimAddressProvider)

    def test_mixed_case_kind(self) -> None:
        assert isinstance(get_provider("Weather", "Open-Meteo"), OpenMeteoWeatherProvider)


# ── Unknown provider ─────────────────────────────────────────────────


@pytest.mark.unit
class TestUnknownProvider:
    """Verify unknown names raise ConfigurationError."""

    def test_unknown_name_raises(self) -> None:
        with pytest.raises(ConfigurationError):
            get_provider("weather", "nonexistent", Config())

    def test_error_mentions_valid_providers(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            get_provider("poi", "nonexistent", Config())
        msg = str(exc_info.value)
        assert "mock" in msg
        assert "overpass" in msg
        assert "nonexistent" in msg

    def test_unknown_kind_raises(self) -> None:
        with pytest.raises(ConfigurationError, match="Unknown provider kind"):
            get_provider("altimeter", "mock", Config())

    def test_location_has_no_network_adapter(self) -> None:
        with pytest.raises(ConfigurationError):
            get_provider("location", "nominatim", Config())

    def test_error_has_three_part_attributes(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            get_provider("address", "nonexistent", Config())
        err = exc_info.value
        assert err.what != ""
        assert err.cause != ""
        assert err.fix != ""


# ── Provider config ──────────────────────────────────────────────────


@pytest.mark.unit
class TestProviderConfig:
    """Verify returned provider has the correct config reference."""

    def test_provider_has_correct_config(self) -> None:
        cfg = Config(poi_limit=4)
        provider = get_provider("poi", "overpass", cfg)
        assert provider._config is cfg

    def test_each_call_returns_new_instance(self) -> None:
        cfg = Config()
        p1 = get_provider("address", "nominatim", cfg)
        p2 = get_provider("address", "nominatim", cfg)
        assert p1 is not p2
