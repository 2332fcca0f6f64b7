"""WeatherService RPC contract and endpoint."""

from .messages import (
    Location,
    Locations,
    LocationSearchParams,
    ProviderErrorDescriptor,
    ProviderResult,
    ReplyStatus,
    WeatherForecast,
    WeatherProviders,
    WeatherQueryParams,
    WeatherReply,
)
from .service import RpcError, StatusCode, WeatherServiceEndpoint, create_endpoint

__all__ = [
    "Location",
    "LocationSearchParams",
    "Locations",
    "ProviderErrorDescriptor",
    "ProviderResult",
    "ReplyStatus",
    "RpcError",
    "StatusCode",
    "WeatherForecast",
    "WeatherProviders",
    "WeatherQueryParams",
    "WeatherReply",
    "WeatherServiceEndpoint",
    "create_endpoint",
]
