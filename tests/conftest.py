"""Shared upstream payload fixtures for forecast gateway tests."""

from __future__ import annotations

from typing import Any

import pytest

# 2025-10-19 and 2025-10-20, 12:00 UTC.
DAY_ONE_NOON = 1760875200
DAY_TWO_NOON = 1760961600


@pytest.fixture
def openweathermap_payload() -> dict[str, Any]:
    return {
        "city": {"id": 2950159, "name": "Berlin", "country": "DE"},
        "cod": "200",
        "cnt": 2,
        "list": [
            {
                "dt": DAY_ONE_NOON,
                "temp": {
                    "day": 293.15,
                    "min": 288.15,
                    "max": 296.15,
                    "night": 289.0,
                    "eve": 291.0,
                    "morn": 288.5,
                },
                "pressure": 1015,
                "humidity": 60,
                "weather": [
                    {"id": 800, "main": "Clear", "description": "clear sky", "icon": "01d"}
                ],
                "speed": 3.5,
                "deg": 210,
            },
            {
                "dt": DAY_TWO_NOON,
                "temp": {"day": 283.15, "min": 280.65, "max": 285.15},
                "humidity": 85,
                "weather": [
                    {"id": 500, "main": "Rain", "description": "light rain", "icon": "10d"}
                ],
                "speed": 6.2,
                "deg": 300,
            },
        ],
    }


@pytest.fixture
def weatherapi_payload() -> dict[str, Any]:
    return {
        "location": {"name": "Berlin", "country": "Germany", "lat": 52.52, "lon": 13.4},
        "forecast": {
            "forecastday": [
                {
                    "date": "2025-10-19",
                    "date_epoch": DAY_ONE_NOON - 43200,
                    "day": {
                        "maxtemp_c": 23.0,
                        "mintemp_c": 15.0,
                        "avgtemp_c": 20.0,
                        "maxwind_kph": 18.0,
                        "avghumidity": 60,
                        "condition": {"text": "Sunny", "code": 1000},
                    },
                },
                {
                    "date": "2025-10-20",
                    "date_epoch": DAY_TWO_NOON - 43200,
                    "day": {
                        "maxtemp_c": 12.0,
                        "mintemp_c": 7.5,
                        "avgtemp_c": 10.0,
                        "maxwind_kph": 25.2,
                        "avghumidity": 85,
                        "condition": {"text": "Patchy rain nearby", "code": 1063},
                    },
                },
            ]
        },
    }


_CONFIG_ENV_VARS = (
    "OPENWEATHERMAP_AUTHORIZATION",
    "WEATHER_API_AUTHORIZATION",
    "WEATHER_SERVER_ADDRESS",
    "OPENWEATHERMAP_BASE_URL",
    "WEATHER_API_BASE_URL",
    "PROVIDER_HTTP_TIMEOUT_SECONDS",
    "PROVIDER_CALL_TIMEOUT_SECONDS",
    "PROVIDER_MAX_RETRIES",
    "PROVIDER_RETRY_DELAY_SECONDS",
    "FORECAST_DAYS",
    "LOCATION_SEARCH_LIMIT",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _isolated_config_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
