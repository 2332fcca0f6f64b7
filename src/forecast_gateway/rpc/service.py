"""RPC-facing WeatherService endpoint.

Wire requests are validated here and never reach a provider when invalid.
Every failure leaves this module as an ``RpcError`` carrying a gRPC-style status
code and a short, sanitized message; per-provider failures of a successful call
are reported inside the reply instead.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, date, datetime, timedelta
from enum import StrEnum
from typing import Any

import httpx
from pydantic import ValidationError

from ..aggregator import ForecastAggregator
from ..config import Settings
from ..exceptions import (
    AllProvidersFailed,
    ClientRequestInvalid,
    LocationSearchError,
    NoProviderAvailable,
)
from ..locations import LocationSearchClient
from ..models import AggregationResult, Forecast, ForecastRequest, ProviderId
from ..models import Location as CoreLocation
from ..redaction import sanitize_text
from ..registry import ALL_PROVIDERS, ProviderRegistry
from .messages import (
    LocationSearchParams,
    Locations,
    ProviderErrorDescriptor,
    ProviderResult,
    ReplyStatus,
    WeatherForecast,
    WeatherProviders,
    WeatherQueryParams,
    WeatherReply,
)
from .messages import Location as WireLocation

DATE_FORMAT = "%m.%d.%Y"


class StatusCode(StrEnum):
    """Subset of gRPC status codes produced by the endpoint."""

    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    FAILED_PRECONDITION = "FAILED_PRECONDITION"
    UNAVAILABLE = "UNAVAILABLE"


class RpcError(Exception):
    """Request-level failure returned to the RPC caller."""

    def __init__(self, code: StatusCode, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


def _utc_today() -> date:
    return datetime.now(UTC).date()


class WeatherServiceEndpoint:
    """Implements GetWeather, GetWeatherProviders and GetLocations."""

    def __init__(
        self,
        registry: ProviderRegistry,
        aggregator: ForecastAggregator,
        logger: logging.Logger,
        *,
        location_search: LocationSearchClient | None = None,
        forecast_days: int = 7,
        today: Callable[[], date] = _utc_today,
    ) -> None:
        self.registry = registry
        self.aggregator = aggregator
        self.location_search = location_search
        self.logger = logger
        self.forecast_days = forecast_days
        self._today = today

    async def __aenter__(self) -> WeatherServiceEndpoint:
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, exc_tb: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.registry.aclose()
        if self.location_search is not None:
            await self.location_search.aclose()

    async def get_weather_providers(self) -> WeatherProviders:
        """Return the configured providers in registry order."""
        return WeatherProviders(providers=[str(provider) for provider in self.registry.configured])

    async def get_locations(self, params: LocationSearchParams | dict[str, Any]) -> Locations:
        """Search places matching "City,State,Country"; empty when nothing matches."""
        search_params = _parse_message(LocationSearchParams, params)
        query = search_params.query.strip()
        if not query:
            raise RpcError(StatusCode.INVALID_ARGUMENT, "Location query must not be empty.")
        if self.location_search is None:
            raise RpcError(
                StatusCode.FAILED_PRECONDITION,
                "Location search requires OpenWeatherMap to be configured.",
            )
        try:
            matches = await self.location_search.search(query)
        except LocationSearchError as exc:
            self.logger.warning("Location search failed: %s", exc)
            raise RpcError(StatusCode.UNAVAILABLE, sanitize_text(str(exc))) from exc
        return Locations(
            locations=[
                WireLocation(
                    name=match.name,
                    state=match.state,
                    country=match.country,
                    lat=match.lat,
                    lon=match.lon,
                )
                for match in matches
            ]
        )

    async def get_weather(self, params: WeatherQueryParams | dict[str, Any]) -> WeatherReply:
        """Validate the query, fan out to the selected providers and build the reply."""
        query = _parse_message(WeatherQueryParams, params)
        request = self._to_forecast_request(query)

        try:
            result = await self.aggregator.aggregate(request)
        except ClientRequestInvalid as exc:
            raise RpcError(StatusCode.INVALID_ARGUMENT, str(exc)) from exc
        except NoProviderAvailable as exc:
            raise RpcError(StatusCode.FAILED_PRECONDITION, str(exc)) from exc
        except AllProvidersFailed as exc:
            self.logger.error("Forecast request failed: %s", exc)
            raise RpcError(StatusCode.UNAVAILABLE, sanitize_text(str(exc))) from exc

        return _to_reply(result)

    def _to_forecast_request(self, query: WeatherQueryParams) -> ForecastRequest:
        return ForecastRequest(
            location=_to_location(query.location),
            providers=_to_selection(query.providers),
            forecast_date=self._to_date(query.date),
        )

    def _to_date(self, value: str) -> date | None:
        candidate = value.strip()
        if not candidate:
            return None
        try:
            requested = datetime.strptime(candidate, DATE_FORMAT).date()
        except ValueError as exc:
            raise RpcError(
                StatusCode.INVALID_ARGUMENT,
                f"Invalid date {candidate!r}; expected mm.dd.yyyy.",
            ) from exc

        today = self._today()
        last_day = today + timedelta(days=self.forecast_days - 1)
        if requested < today:
            raise RpcError(StatusCode.INVALID_ARGUMENT, "Date must not be in the past.")
        if requested > last_day:
            raise RpcError(
                StatusCode.INVALID_ARGUMENT,
                f"Date is beyond the {self.forecast_days}-day forecast horizon.",
            )
        return requested


def create_endpoint(
    settings: Settings,
    logger: logging.Logger,
    transport: httpx.AsyncBaseTransport | None = None,
) -> WeatherServiceEndpoint:
    """Build the registry, aggregator and location search from settings."""
    registry = ProviderRegistry.from_settings(settings, logger, transport=transport)
    aggregator = ForecastAggregator(
        registry,
        logger,
        call_timeout_seconds=settings.provider_call_timeout_seconds,
        max_retries=settings.provider_max_retries,
        retry_delay_seconds=settings.provider_retry_delay_seconds,
    )
    location_search: LocationSearchClient | None = None
    if settings.openweathermap_authorization:
        location_search = LocationSearchClient(
            api_key=settings.openweathermap_authorization,
            base_url=str(settings.openweathermap_base_url),
            logger=logger,
            timeout_seconds=settings.provider_http_timeout_seconds,
            limit=settings.location_search_limit,
            transport=transport,
        )
    return WeatherServiceEndpoint(
        registry,
        aggregator,
        logger,
        location_search=location_search,
        forecast_days=settings.forecast_days,
    )


def _parse_message(message_cls: Any, params: Any) -> Any:
    if isinstance(params, message_cls):
        return params
    try:
        return message_cls.model_validate(params)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or 'request'}: {error['msg']}"
            for error in exc.errors(include_url=False, include_input=False)
        )
        raise RpcError(StatusCode.INVALID_ARGUMENT, f"Malformed request: {problems}") from exc


def _to_selection(names: list[str]) -> tuple[ProviderId, ...] | None:
    known = {provider.value.lower(): provider for provider in ProviderId}
    selected: list[ProviderId] = []
    wants_all = False
    for raw_name in names:
        name = raw_name.strip()
        if name.lower() == ALL_PROVIDERS:
            wants_all = True
            continue
        provider = known.get(name.lower())
        if provider is None:
            raise RpcError(
                StatusCode.INVALID_ARGUMENT,
                f"Unknown weather provider {name!r}; expected one of "
                f"{', '.join(known.values())} or '{ALL_PROVIDERS}'.",
            )
        selected.append(provider)
    if wants_all or not selected:
        return None
    return tuple(selected)


def _to_location(location: WireLocation | None) -> CoreLocation:
    if location is None:
        raise RpcError(StatusCode.INVALID_ARGUMENT, "Location is required.")
    place = ",".join(part.strip() for part in (location.name, location.state, location.country) if part.strip())
    try:
        return CoreLocation(latitude=location.lat, longitude=location.lon, name=place or None)
    except ValidationError as exc:
        problems = "; ".join(
            error["msg"] for error in exc.errors(include_url=False, include_input=False)
        )
        raise RpcError(StatusCode.INVALID_ARGUMENT, f"Invalid location: {problems}") from exc


def _to_wire_forecast(forecast: Forecast) -> WeatherForecast:
    return WeatherForecast(
        dt=int(forecast.timestamp.timestamp()),
        min_t=forecast.temperature_min_c,
        max_t=forecast.temperature_max_c,
        avg_t=forecast.temperature_c,
        humidity=forecast.humidity_pct,
        wind_speed=forecast.wind.speed_ms,
        wind_deg=forecast.wind.direction_deg,
        condition=forecast.condition,
    )


def _to_reply(result: AggregationResult) -> WeatherReply:
    results: list[ProviderResult] = []
    for outcome in result.outcomes:
        if outcome.forecast is not None:
            results.append(
                ProviderResult(provider=str(outcome.provider), forecast=_to_wire_forecast(outcome.forecast))
            )
        else:
            failure = outcome.failure
            results.append(
                ProviderResult(
                    provider=str(outcome.provider),
                    error=ProviderErrorDescriptor(
                        kind=str(failure.kind),
                        reason=sanitize_text(failure.reason),
                        status_code=failure.status_code,
                    ),
                )
            )
    status = ReplyStatus.PARTIAL if result.is_partial else ReplyStatus.OK
    return WeatherReply(status=status, results=results)
