"""OpenWeatherMap daily forecast client."""

from __future__ import annotations

from typing import Any

from ..models import Forecast, Location, ProviderId
from .base import ProviderClient
from .normalizers import normalize_openweathermap


class OpenWeatherMapClient(ProviderClient):
    """Daily forecast from ``/data/2.5/forecast/daily`` in standard (Kelvin) units."""

    provider_id = ProviderId.OPENWEATHERMAP
    forecast_path = "/data/2.5/forecast/daily"

    def build_params(self, location: Location) -> dict[str, Any]:
        params: dict[str, Any] = {"cnt": self.forecast_days, "appid": self._api_key}
        if location.has_coordinates:
            params["lat"] = location.latitude
            params["lon"] = location.longitude
        else:
            params["q"] = self._location_query(location)
        return params

    def normalize(self, payload: dict[str, Any]) -> list[Forecast]:
        return normalize_openweathermap(payload)
