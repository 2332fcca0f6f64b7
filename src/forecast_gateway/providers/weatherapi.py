"""WeatherApi (weatherapi.com) forecast client."""

from __future__ import annotations

from typing import Any

from ..models import Forecast, Location, ProviderId
from .base import ProviderClient
from .normalizers import normalize_weatherapi


class WeatherApiClient(ProviderClient):
    provider_id = ProviderId.WEATHERAPI
    forecast_path = "/v1/forecast.json"

    def build_params(self, location: Location) -> dict[str, Any]:
        # WeatherApi takes coordinates and place names through the same "q" parameter.
        return {
            "key": self._api_key,
            "q": self._location_query(location),
            "days": self.forecast_days,
            "aqi": "no",
            "alerts": "no",
        }

    def normalize(self, payload: dict[str, Any]) -> list[Forecast]:
        return normalize_weatherapi(payload)
