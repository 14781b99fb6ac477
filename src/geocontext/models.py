"""Domain models shared by providers, the builder and the orchestrator.

All models are frozen pydantic models: a reading or an address, once
produced by a collaborator, is never mutated downstream.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field

_FEET_PER_METER = 3.28084


class LocationScene(str, Enum):
    """Calling context of a photo; biases POI keywords."""

    WORK = "work"
    TRAVEL = "travel"

    @property
    def poi_keywords(self) -> tuple[str, ...]:
        """POI search keywords for this scene."""
        if self is LocationScene.WORK:
            return ("office", "building", "company", "business")
        return ("scenic", "landmark", "restaurant", "attraction", "hotel")

    @property
    def display_name(self) -> str:
        return "Work Mode" if self is LocationScene.WORK else "Travel Mode"


class LocationMode(str, Enum):
    """Speed/accuracy trade-off for the location read."""

    FAST = "fast"
    ACCURATE = "accurate"

    @property
    def display_name(self) -> str:
        return "Fast" if self is LocationMode.FAST else "Accurate"


class AltitudeUnit(str, Enum):
    """Display unit for altitude values."""

    METERS = "meters"
    FEET = "feet"

    @property
    def symbol(self) -> str:
        return "m" if self is AltitudeUnit.METERS else "ft"

    def convert(self, meters: float) -> float:
        """Convert a value in metres into this unit."""
        if self is AltitudeUnit.FEET:
            return meters * _FEET_PER_METER
        return meters

    def to_meters(self, value: float) -> float:
        """Convert a value in this unit back into metres."""
        if self is AltitudeUnit.FEET:
            return value / _FEET_PER_METER
        return value


class Coordinate(BaseModel):
    """WGS84 coordinate in degrees.

    Example:
        >>> Coordinate(lat=39.9042, lon=116.4074).lat
        39.9042
    """

    model_config = ConfigDict(frozen=True)

    lat: float = Field(ge=-90.0, le=90.0)
    lon: float = Field(ge=-180.0, le=180.0)


class LocationReading(BaseModel):
    """One position fix produced by the location collaborator.

    Args:
        coordinate: Position of the fix.
        altitude: Altitude above sea level in metres.
        horizontal_accuracy: Horizontal accuracy radius in metres
            (negative means invalid).
        vertical_accuracy: Vertical accuracy in metres (negative means
            invalid).
        timestamp: Capture instant of the fix.
        speed: Ground speed in m/s, ``-1`` when unknown.
        course: Heading in degrees, ``-1`` when unknown.
        floor: Building floor level, if known.
    """

    model_config = ConfigDict(frozen=True)

    coordinate: Coordinate
    altitude: float = 0.0
    horizontal_accuracy: float = 0.0
    vertical_accuracy: float = 0.0
    timestamp: datetime
    speed: float = -1.0
    course: float = -1.0
    floor: int | None = None

    @property
    def is_valid(self) -> bool:
        """``True`` when the horizontal accuracy is usable."""
        return 0 <= self.horizontal_accuracy < 1000  # noqa: PLR2004

    @property
    def is_altitude_valid(self) -> bool:
        """``True`` when the vertical accuracy is usable."""
        return 0 <= self.vertical_accuracy < 100  # noqa: PLR2004


class Address(BaseModel):
    """Structured reverse-geocoding result.

    Example:
        >>> addr = Address.from_components(locality="Beijing", sub_locality="Chaoyang")
        >>> addr.formatted_address
        'Chaoyang, Beijing'
    """

    model_config = ConfigDict(frozen=True)

    formatted_address: str = ""
    country: str | None = None
    country_code: str | None = None
    administrative_area: str | None = None
    sub_administrative_area: str | None = None
    locality: str | None = None
    sub_locality: str | None = None
    thoroughfare: str | None = None
    sub_thoroughfare: str | None = None
    postal_code: str | None = None
    areas_of_interest: tuple[str, ...] = ()
    name: str | None = None
    coordinate: Coordinate | None = None

    @classmethod
    def from_components(cls, **fields: object) -> Address:
        """Build an address, deriving ``formatted_address`` from its parts.

        Non-empty parts are joined with ``", "`` in the order number,
        street, sub-locality, locality, administrative area, postal code,
        country. An explicit ``formatted_address`` keyword wins.
        """
        if not fields.get("formatted_address"):
            order = (
                "sub_thoroughfare",
                "thoroughfare",
                "sub_locality",
                "locality",
                "administrative_area",
                "postal_code",
                "country",
            )
            parts = [str(fields[k]) for k in order if fields.get(k)]
            fields["formatted_address"] = ", ".join(parts)
        return cls.model_validate(fields)

    @property
    def city_name(self) -> str | None:
        """Locality, or the administrative area as a fallback."""
        return self.locality or self.administrative_area

    @property
    def short_address(self) -> str:
        """Landmark and city, e.g. ``"Forbidden City, Beijing"``."""
        landmark = (
            self.areas_of_interest[0] if self.areas_of_interest else self.name or ""
        )
        return ", ".join(p for p in (landmark, self.city_name or "") if p)

    @property
    def street_address(self) -> str | None:
        if not self.thoroughfare:
            return None
        if self.sub_thoroughfare:
            return f"{self.sub_thoroughfare} {self.thoroughfare}"
        return self.thoroughfare


class WeatherSnapshot(BaseModel):
    """Current weather at a coordinate.

    The attribution URLs are carried through untouched for display and
    licence compliance.

    Example:
        >>> WeatherSnapshot(condition="Sunny", temperature=25.7, humidity=40).display_string
        'Sunny 25°C'
    """

    model_config = ConfigDict(frozen=True)

    EMPTY: ClassVar[WeatherSnapshot]
    """Placeholder rendered when weather is absent."""

    condition: str
    temperature: float
    humidity: int = Field(default=0, ge=0, le=100)
    icon_name: str = "sun.max"
    attribution_url: str | None = None
    attribution_logo_url: str | None = None

    @property
    def display_string(self) -> str:
        """``"{condition} {temperature}°C"`` with the temperature truncated."""
        return f"{self.condition} {int(self.temperature)}°C"


WeatherSnapshot.EMPTY = WeatherSnapshot(
    condition="--",
    temperature=0.0,
    humidity=0,
    icon_name="questionmark",
)


class POIItem(BaseModel):
    """A point of interest near the reference location."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    name: str
    category: str = ""
    distance: float = Field(default=0.0, ge=0.0)
    coordinate: Coordinate | None = None

    @property
    def distance_str(self) -> str:
        """``"350m"`` below one kilometre, ``"1.2km"`` above."""
        if self.distance < 1000:  # noqa: PLR2004
            return f"{int(self.distance)}m"
        return f"{self.distance / 1000:.1f}km"


class AddressSearchResult(BaseModel):
    """One match of a forward address search.

    Example:
        >>> AddressSearchResult(title="Starbucks", subtitle="Sanlitun, Beijing").full_text
        'Starbucks, Sanlitun, Beijing'
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    title: str
    subtitle: str = ""
    coordinate: Coordinate | None = None
    address: Address | None = None

    @property
    def full_text(self) -> str:
        return f"{self.title}, {self.subtitle}" if self.subtitle else self.title
