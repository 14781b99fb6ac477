#!/usr/bin/env python3
"""Fetch and print the camera context for a position.

The position comes from ``--lat/--lon`` (a fixed-reading location
source); address, weather and POIs come from the live OpenStreetMap and
Open-Meteo services unless ``--mock`` is given.

Usage:
    python fetch_context.py --lat 39.9042 --lon 116.4074 --scene travel

Example:
    python fetch_context.py --mock --burst 5 --interval 0.5
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import datetime

# Check imports before running
try:
    import geocontext as gc
except ImportError:
    print("Error: geocontext not installed. Run: pip install -e .")
    sys.exit(1)

from geocontext.providers.mock import MockLocationProvider


def print_context(ctx: gc.CameraContext, index: int | None = None) -> None:
    """Print the display view and source flags of one context."""
    prefix = f"[{index}] " if index is not None else ""
    source = "cache" if ctx.flags.from_cache else "fresh"
    print(f"{prefix}{ctx.display.time_str}  ({source})")
    print(f"  Title:      {ctx.display.title}")
    print(f"  Subtitle:   {ctx.display.subtitle or '-'}")
    print(f"  Weather:    {ctx.display.weather_str}")
    print(f"  Altitude:   {ctx.display.altitude_str}")
    print(f"  Coordinate: {ctx.display.coordinate_str}")
    if ctx.flags.weather_timed_out:
        print("  Note:       weather unavailable (failed or timed out)")
    if ctx.raw.poi_list:
        print("  Nearby:")
        for poi in ctx.raw.poi_list[:5]:
            print(f"    - {poi.name} ({poi.category or 'place'}, {poi.distance_str})")


async def run(args: argparse.Namespace) -> None:
    """Build an orchestrator from *args* and fetch one or more contexts."""
    reading = gc.LocationReading(
        coordinate=gc.Coordinate(lat=args.lat, lon=args.lon),
        altitude=args.altitude,
        horizontal_accuracy=5.0,
        vertical_accuracy=3.0,
        timestamp=datetime.now().astimezone(),
    )
    config = gc.Config(altitude_unit=args.unit)
    source = "mock" if args.mock else None
    orchestrator = gc.create_orchestrator(
        config,
        location=MockLocationProvider(reading, config=config),
        address=source or "nominatim",
        weather=source or "open-meteo",
        poi=source or "overpass",
    )

    if args.burst <= 1:
        ctx = await orchestrator.fetch_context(args.scene, args.mode)
        print_context(ctx)
        return

    for i in range(args.burst):
        ctx = await orchestrator.fetch_burst_context()
        print_context(ctx, index=i + 1)
        if i < args.burst - 1:
            await asyncio.sleep(args.interval)


def main() -> None:
    """Parse arguments and fetch context."""
    parser = argparse.ArgumentParser(
        description="Fetch display-ready geographic context for a position.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python fetch_context.py --lat 39.9042 --lon 116.4074 --scene travel --mode accurate
  python fetch_context.py --mock --burst 5 --interval 0.5
        """,
    )
    parser.add_argument(
        "--lat",
        type=float,
        default=39.9042,
        help="Latitude in WGS84 degrees (default: 39.9042)",
    )
    parser.add_argument(
        "--lon",
        type=float,
        default=116.4074,
        help="Longitude in WGS84 degrees (default: 116.4074)",
    )
    parser.add_argument(
        "--altitude",
        type=float,
        default=50.0,
        help="Altitude in metres (default: 50)",
    )
    parser.add_argument(
        "--unit",
        choices=[u.value for u in gc.AltitudeUnit],
        default="meters",
        help="Altitude display unit (default: meters)",
    )
    parser.add_argument(
        "--scene",
        choices=[s.value for s in gc.LocationScene],
        default="work",
        help="Photo scene; selects POI keywords (default: work)",
    )
    parser.add_argument(
        "--mode",
        choices=[m.value for m in gc.LocationMode],
        default="fast",
        help="Location mode (default: fast)",
    )
    parser.add_argument(
        "--mock",
        action="store_true",
        help="Use simulated address, weather and POI sources",
    )
    parser.add_argument(
        "--burst",
        type=int,
        default=1,
        help="Number of consecutive shots to simulate (default: 1)",
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=0.5,
        help="Seconds between burst shots (default: 0.5)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Validate coordinates
    if not -90 <= args.lat <= 90:
        print(f"Error: Invalid latitude {args.lat}. Must be between -90 and 90.")
        sys.exit(1)
    if not -180 <= args.lon <= 180:
        print(f"Error: Invalid longitude {args.lon}. Must be between -180 and 180.")
        sys.exit(1)

    try:
        asyncio.run(run(args))
    except gc.GeoContextError as e:
        print(f"\nError fetching context: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
