"""Upstream forecast provider integrations."""

from .base import ProviderClient
from .normalizers import normalize_openweathermap, normalize_weatherapi
from .openweathermap import OpenWeatherMapClient
from .weatherapi import WeatherApiClient

__all__ = [
    "OpenWeatherMapClient",
    "ProviderClient",
    "WeatherApiClient",
    "normalize_openweathermap",
    "normalize_weatherapi",
]
