"""Command-line client: runs the WeatherService operations in-process."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import UTC, datetime

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import Settings, load_settings
from .exceptions import ConfigError
from .log_setup import setup_logger
from .rpc import (
    Location,
    Locations,
    LocationSearchParams,
    RpcError,
    WeatherProviders,
    WeatherQueryParams,
    WeatherReply,
    create_endpoint,
)


def parse_args() -> argparse.Namespace:
    """Parse forecast gateway CLI arguments."""
    parser = argparse.ArgumentParser(
        description="Query weather forecasts from every configured provider at once."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("providers", help="List configured weather providers.")

    locations = subparsers.add_parser("locations", help="Search places by name.")
    locations.add_argument("query", help='Place query such as "Paris,,FR" or "Austin,TX,US".')

    weather = subparsers.add_parser("weather", help="Fetch a daily forecast.")
    weather.add_argument("--lat", type=float, default=None, help="Latitude in degrees.")
    weather.add_argument("--lon", type=float, default=None, help="Longitude in degrees.")
    weather.add_argument("--place", type=str, default=None, help="Place name, e.g. Berlin.")
    weather.add_argument(
        "--provider",
        dest="providers",
        action="append",
        default=None,
        help="Provider to query (repeatable); defaults to all configured providers.",
    )
    weather.add_argument(
        "--date",
        type=str,
        default="",
        help="Forecast day as mm.dd.yyyy; defaults to today (UTC).",
    )
    return parser.parse_args()


def _format_value(value: float | None, suffix: str = "") -> str:
    return f"{value:g}{suffix}" if value is not None else "-"


def _print_providers(console: Console, reply: WeatherProviders) -> None:
    if not reply.providers:
        console.print("No weather providers configured.")
        return
    console.print("Configured providers: " + ", ".join(reply.providers))


def _print_locations(console: Console, reply: Locations) -> None:
    if not reply.locations:
        console.print("No matching locations found.")
        return

    table = Table(title="Matching Locations")
    table.add_column("Name", overflow="fold")
    table.add_column("State")
    table.add_column("Country")
    table.add_column("Lat")
    table.add_column("Lon")
    for location in reply.locations:
        table.add_row(
            location.name,
            location.state or "-",
            location.country or "-",
            _format_value(location.lat),
            _format_value(location.lon),
        )
    console.print(table)


def _print_weather(console: Console, reply: WeatherReply) -> None:
    console.print(f"status={reply.status} providers={len(reply.results)}")

    table = Table(title="Daily Forecast")
    table.add_column("Provider")
    table.add_column("Day (UTC)")
    table.add_column("Avg")
    table.add_column("Min")
    table.add_column("Max")
    table.add_column("Humidity")
    table.add_column("Wind")
    table.add_column("Condition / Error", overflow="fold")

    for result in reply.results:
        forecast = result.forecast
        if forecast is None:
            error = result.error
            detail = f"[red]{error.kind}[/red] {escape(error.reason)}" if error is not None else "-"
            table.add_row(result.provider, "-", "-", "-", "-", "-", "-", detail)
            continue

        wind = _format_value(forecast.wind_speed, " m/s")
        if forecast.wind_deg is not None:
            wind = f"{wind} @ {forecast.wind_deg:g}°"
        table.add_row(
            result.provider,
            datetime.fromtimestamp(forecast.dt, tz=UTC).date().isoformat(),
            _format_value(forecast.avg_t, " °C"),
            _format_value(forecast.min_t, " °C"),
            _format_value(forecast.max_t, " °C"),
            _format_value(forecast.humidity, " %"),
            wind,
            escape(forecast.condition),
        )
    console.print(table)


async def _run(
    args: argparse.Namespace,
    settings: Settings,
    logger: logging.Logger,
    console: Console,
) -> None:
    async with create_endpoint(settings, logger) as endpoint:
        if args.command == "providers":
            _print_providers(console, await endpoint.get_weather_providers())
        elif args.command == "locations":
            reply = await endpoint.get_locations(LocationSearchParams(query=args.query))
            _print_locations(console, reply)
        else:
            params = WeatherQueryParams(
                providers=args.providers or [],
                location=Location(name=args.place or "", lat=args.lat, lon=args.lon),
                date=args.date,
            )
            _print_weather(console, await endpoint.get_weather(params))


def main() -> int:
    """Run one gateway operation and print the reply."""
    args = parse_args()
    logger = setup_logger()
    console = Console()

    try:
        settings = load_settings()
    except ConfigError as exc:
        logger.error("Configuration failure: %s", exc)
        return 2

    logger.setLevel(settings.log_level)
    logger.debug("Loaded configuration: %s", settings.safe_summary())

    try:
        asyncio.run(_run(args, settings, logger, console))
    except RpcError as exc:
        logger.error("Request failed: %s", exc)
        console.print(f"[red]{exc.code}[/red] {escape(exc.message)}")
        return 4
    return 0


if __name__ == "__main__":
    sys.exit(main())
