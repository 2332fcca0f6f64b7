"""Canonical forecast entities shared by providers, the aggregator and the RPC layer."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ProviderId(StrEnum):
    """Supported upstream providers, in registry declaration order."""

    OPENWEATHERMAP = "OpenWeatherMap"
    WEATHERAPI = "WeatherApi"


class ProviderErrorKind(StrEnum):
    """Failure classes recorded for a single provider call."""

    UNREACHABLE = "unreachable"
    REJECTED_BY_UPSTREAM = "rejected_by_upstream"
    MALFORMED_RESPONSE = "malformed_response"
    TIMEOUT = "timeout"
    DATE_NOT_COVERED = "date_not_covered"


class Location(BaseModel):
    """Coordinates or a free-text place query; coordinates win when both are set."""

    model_config = ConfigDict(frozen=True)

    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    name: str | None = None

    @model_validator(mode="after")
    def validate_form(self) -> Location:
        has_lat = self.latitude is not None
        has_lon = self.longitude is not None
        if has_lat != has_lon:
            raise ValueError("latitude and longitude must be set together.")
        if not has_lat and not (self.name and self.name.strip()):
            raise ValueError("location needs coordinates or a place name.")
        return self

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None


class ForecastRequest(BaseModel):
    """One forecast query; ``providers=None`` selects every configured provider."""

    model_config = ConfigDict(frozen=True)

    location: Location
    providers: tuple[ProviderId, ...] | None = None
    forecast_date: date | None = None


class Wind(BaseModel):
    """Wind reading; ``None`` fields mean the provider did not report them.

    ``speed_ms`` is whatever daily figure the provider publishes: OpenWeatherMap
    reports a representative daily speed, WeatherApi only the day's maximum
    (``maxwind_kph``). Values from the two providers are not directly comparable.
    """

    model_config = ConfigDict(frozen=True)

    speed_ms: float | None = None
    direction_deg: float | None = None


class Forecast(BaseModel):
    """Daily forecast in canonical metric units (degC, m/s, %).

    See ``Wind`` for how wind speed differs between providers.
    """

    model_config = ConfigDict(frozen=True)

    provider: ProviderId
    timestamp: datetime
    temperature_c: float
    temperature_min_c: float
    temperature_max_c: float
    humidity_pct: float | None = None
    wind: Wind = Field(default_factory=Wind)
    condition: str


class ProviderFailure(BaseModel):
    """Why one provider produced no forecast. ``reason`` is safe to show callers."""

    model_config = ConfigDict(frozen=True)

    provider: ProviderId
    kind: ProviderErrorKind
    reason: str
    status_code: int | None = None

    def describe(self) -> str:
        status = f" (HTTP {self.status_code})" if self.status_code is not None else ""
        return f"{self.provider}: {self.kind}{status} {self.reason}"


@dataclass(frozen=True, slots=True)
class ProviderOutcome:
    provider: ProviderId
    forecast: Forecast | None = None
    failure: ProviderFailure | None = None

    def __post_init__(self) -> None:
        if (self.forecast is None) == (self.failure is None):
            raise ValueError("ProviderOutcome needs exactly one of forecast or failure.")

    @property
    def ok(self) -> bool:
        return self.forecast is not None


@dataclass(frozen=True, slots=True)
class AggregationResult:
    """Per-provider outcomes of one request, in registry resolution order."""

    outcomes: tuple[ProviderOutcome, ...]

    @property
    def providers(self) -> tuple[ProviderId, ...]:
        return tuple(outcome.provider for outcome in self.outcomes)

    @property
    def succeeded(self) -> tuple[Forecast, ...]:
        return tuple(o.forecast for o in self.outcomes if o.forecast is not None)

    @property
    def failures(self) -> tuple[ProviderFailure, ...]:
        return tuple(o.failure for o in self.outcomes if o.failure is not None)

    @property
    def is_partial(self) -> bool:
        return bool(self.succeeded) and bool(self.failures)

    def as_mapping(self) -> dict[ProviderId, Forecast | ProviderFailure]:
        return {
            outcome.provider: outcome.forecast if outcome.forecast is not None else outcome.failure
            for outcome in self.outcomes
        }
