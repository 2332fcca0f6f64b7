"""Wire messages of the WeatherService RPC contract."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class _Message(BaseModel):
    model_config = ConfigDict(extra="forbid")


class Location(_Message):
    """Wire location: a place (name/state/country) and/or coordinates."""

    name: str = ""
    state: str = ""
    country: str = ""
    lat: float | None = None
    lon: float | None = None


class WeatherQueryParams(_Message):
    """``providers`` empty or ``["all"]`` selects every configured provider."""

    providers: list[str] = Field(default_factory=list)
    location: Location | None = None
    date: str = Field(default="", description="Forecast day as mm.dd.yyyy; empty means today")


class WeatherForecast(_Message):
    dt: int
    min_t: float
    max_t: float
    avg_t: float
    humidity: float | None = None
    wind_speed: float | None = None
    wind_deg: float | None = None
    condition: str


class ProviderErrorDescriptor(_Message):
    kind: str
    reason: str
    status_code: int | None = None


class ProviderResult(_Message):
    provider: str
    forecast: WeatherForecast | None = None
    error: ProviderErrorDescriptor | None = None


class ReplyStatus(StrEnum):
    OK = "OK"
    PARTIAL = "PARTIAL"


class WeatherReply(_Message):
    status: ReplyStatus
    results: list[ProviderResult]


class WeatherProviders(_Message):
    providers: list[str]


class LocationSearchParams(_Message):
    query: str = ""


class Locations(_Message):
    locations: list[Location]
