"""Tests for the CameraContext model and its cache-hit copy."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from geocontext.builder import build_context
from geocontext.context import CameraContext, format_time
from geocontext.models import (
    Address,
    Coordinate,
    LocationMode,
    LocationReading,
    LocationScene,
    POIItem,
    WeatherSnapshot,
)

TZ = timezone(timedelta(hours=8))
CAPTURED_AT = datetime(2026, 1, 31, 18, 30, 0, tzinfo=TZ)


@pytest.fixture
def ctx() -> CameraContext:
    reading = LocationReading(
        coordinate=Coordinate(lat=39.9042, lon=116.4074),
        altitude=50.0,
        timestamp=CAPTURED_AT,
    )
    return build_context(
        reading,
        Address(locality="Beijing", sub_locality="Chaoyang"),
        WeatherSnapshot(condition="Sunny", temperature=25.7),
        [POIItem(name="Tech Park", distance=120)],
        CAPTURED_AT,
        False,
        LocationScene.WORK,
        LocationMode.FAST,
    )


@pytest.mark.unit
class TestFormatTime:
    def test_millisecond_precision(self) -> None:
        moment = datetime(2026, 1, 31, 18, 30, 0, 250000)
        assert format_time(moment) == "2026-01-31 18:30:00.250"

    def test_sub_second_instants_distinct(self) -> None:
        a = datetime(2026, 1, 31, 18, 30, 0, 0)
        b = a + timedelta(milliseconds=500)
        assert format_time(a) != format_time(b)

    def test_zero_padded(self) -> None:
        assert format_time(datetime(2026, 2, 3, 4, 5, 6, 7000)) == "2026-02-03 04:05:06.007"


@pytest.mark.unit
class TestWithUpdatedTimestamp:
    def test_only_time_and_flag_change(self, ctx: CameraContext) -> None:
        later = CAPTURED_AT + timedelta(seconds=30)
        copy = ctx.with_updated_timestamp(later)

        assert copy.raw.timestamp == later
        assert copy.display.time_str == "2026-01-31 18:30:30.000"
        assert copy.flags.from_cache is True

        assert copy.display.title == ctx.display.title
        assert copy.display.subtitle == ctx.display.subtitle
        assert copy.display.weather_str == ctx.display.weather_str
        assert copy.display.altitude_str == ctx.display.altitude_str
        assert copy.display.coordinate_str == ctx.display.coordinate_str
        assert copy.raw.reading == ctx.raw.reading
        assert copy.raw.address == ctx.raw.address
        assert copy.raw.weather == ctx.raw.weather
        assert copy.raw.poi_list == ctx.raw.poi_list
        assert copy.flags.weather_timed_out == ctx.flags.weather_timed_out
        assert copy.flags.scene == ctx.flags.scene
        assert copy.flags.mode == ctx.flags.mode

    def test_receiver_unchanged(self, ctx: CameraContext) -> None:
        ctx.with_updated_timestamp(CAPTURED_AT + timedelta(seconds=5))
        assert ctx.raw.timestamp == CAPTURED_AT
        assert ctx.display.time_str == "2026-01-31 18:30:00.000"
        assert ctx.flags.from_cache is False


@pytest.mark.unit
class TestImmutability:
    def test_frozen(self, ctx: CameraContext) -> None:
        with pytest.raises(ValidationError):
            ctx.flags = ctx.flags  # type: ignore[misc]

    def test_nested_frozen(self, ctx: CameraContext) -> None:
        with pytest.raises(ValidationError):
            ctx.display.title = "x"  # type: ignore[misc]

    def test_repr(self, ctx: CameraContext) -> None:
        r = repr(ctx)
        assert "Beijing Chaoyang" in r
        assert "from_cache=False" in r
