"""Start-up built, read-only registry of configured provider clients."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import Any, Literal

import httpx

from .config import Settings
from .exceptions import UnconfiguredProvider
from .models import ProviderId
from .providers import OpenWeatherMapClient, ProviderClient, WeatherApiClient

ALL_PROVIDERS = "all"

ProviderSelector = ProviderId | Iterable[ProviderId] | Literal["all"] | None

PROVIDER_CLIENTS: Mapping[ProviderId, type[ProviderClient]] = MappingProxyType(
    {
        ProviderId.OPENWEATHERMAP: OpenWeatherMapClient,
        ProviderId.WEATHERAPI: WeatherApiClient,
    }
)


class ProviderRegistry:
    """Configured clients keyed by provider, always iterated in declaration order."""

    def __init__(self, clients: Mapping[ProviderId, ProviderClient]) -> None:
        ordered = {provider: clients[provider] for provider in ProviderId if provider in clients}
        self._clients: Mapping[ProviderId, ProviderClient] = MappingProxyType(ordered)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        logger: logging.Logger,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> ProviderRegistry:
        base_urls = {
            ProviderId.OPENWEATHERMAP: str(settings.openweathermap_base_url),
            ProviderId.WEATHERAPI: str(settings.weather_api_base_url),
        }
        clients: dict[ProviderId, ProviderClient] = {}
        for provider, api_key in settings.api_keys().items():
            client_cls = PROVIDER_CLIENTS[provider]
            clients[provider] = client_cls(
                api_key=api_key,
                base_url=base_urls[provider],
                logger=logger,
                timeout_seconds=settings.provider_http_timeout_seconds,
                forecast_days=settings.forecast_days,
                transport=transport,
            )
        logger.info(
            "Provider registry built: %s",
            ", ".join(str(provider) for provider in clients) or "no providers configured",
        )
        return cls(clients)

    @property
    def configured(self) -> tuple[ProviderId, ...]:
        return tuple(self._clients)

    def resolve(self, selector: ProviderSelector = ALL_PROVIDERS) -> tuple[ProviderClient, ...]:
        """Resolve a selector to clients in declaration order.

        ``None`` or ``"all"`` yields every configured client (possibly none).
        Explicit selections are de-duplicated; any unconfigured provider raises
        ``UnconfiguredProvider`` before a client is returned.
        """
        if selector is None or selector == ALL_PROVIDERS:
            return tuple(self._clients.values())

        if isinstance(selector, ProviderId):
            requested = {selector}
        else:
            requested = set(selector)

        for provider in ProviderId:
            if provider in requested and provider not in self._clients:
                raise UnconfiguredProvider(provider)
        return tuple(client for provider, client in self._clients.items() if provider in requested)

    async def aclose(self) -> None:
        for client in self._clients.values():
            await client.aclose()

    async def __aenter__(self) -> ProviderRegistry:
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, exc_tb: Any) -> None:
        await self.aclose()
