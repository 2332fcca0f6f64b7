"""Provider-agnostic forecast client contract and shared HTTP handling."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import UTC, date
from typing import Any, ClassVar

import httpx

from ..exceptions import ProviderError
from ..models import Forecast, Location, ProviderErrorKind, ProviderId
from ..redaction import sanitize_for_logging


class ProviderClient(ABC):
    """Base contract for upstream forecast providers used by the aggregator.

    A client issues exactly one GET per ``fetch`` and never retries; retry
    policy belongs to the caller. The underlying ``httpx.AsyncClient`` is shared
    by concurrent requests and holds no per-request state.
    """

    provider_id: ClassVar[ProviderId]
    forecast_path: ClassVar[str]

    def __init__(
        self,
        *,
        api_key: str,
        base_url: str,
        logger: logging.Logger,
        timeout_seconds: float = 5.0,
        forecast_days: int = 7,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self.logger = logger
        self.forecast_days = forecast_days
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout_seconds,
            transport=transport,
            headers={
                "Accept": "application/json",
                "User-Agent": "forecast-gateway/0.1",
            },
        )

    async def __aenter__(self) -> ProviderClient:
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, exc_tb: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def fetch(self, location: Location, forecast_date: date | None = None) -> Forecast:
        """Fetch the daily forecast for ``forecast_date`` (first reported day when ``None``)."""
        payload = await self._request_json(self.build_params(location))
        forecasts = self.normalize(payload)
        return self._select_day(forecasts, forecast_date)

    @abstractmethod
    def build_params(self, location: Location) -> dict[str, Any]:
        """Return the query parameters for the forecast endpoint, API key included."""

    @abstractmethod
    def normalize(self, payload: dict[str, Any]) -> list[Forecast]:
        """Map the provider's JSON payload onto canonical forecasts."""

    async def _request_json(self, params: dict[str, Any]) -> dict[str, Any]:
        self.logger.debug(
            "%s request %s params=%s",
            self.provider_id,
            self.forecast_path,
            sanitize_for_logging(params),
        )
        try:
            response = await self._client.get(self.forecast_path, params=params)
        except httpx.TimeoutException as exc:
            raise self._error(
                f"Request timed out ({type(exc).__name__}).", ProviderErrorKind.TIMEOUT
            ) from exc
        except httpx.HTTPError as exc:
            raise self._error(
                f"Request failed ({type(exc).__name__}).", ProviderErrorKind.UNREACHABLE
            ) from exc

        if not response.is_success:
            # Upstream bodies may echo the request URL and key; only the status is kept.
            raise self._error(
                f"Upstream rejected the request with HTTP {response.status_code}.",
                ProviderErrorKind.REJECTED_BY_UPSTREAM,
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise self._error(
                "Upstream returned a non-JSON response.", ProviderErrorKind.MALFORMED_RESPONSE
            ) from exc

        if not isinstance(payload, dict):
            raise self._error(
                f"Upstream returned unexpected payload type {type(payload).__name__}.",
                ProviderErrorKind.MALFORMED_RESPONSE,
            )
        return payload

    def _select_day(self, forecasts: list[Forecast], forecast_date: date | None) -> Forecast:
        if forecast_date is None:
            return forecasts[0]
        for forecast in forecasts:
            if forecast.timestamp.astimezone(UTC).date() == forecast_date:
                return forecast
        raise self._error(
            f"No forecast reported for {forecast_date.isoformat()}.",
            ProviderErrorKind.DATE_NOT_COVERED,
        )

    def _error(
        self,
        message: str,
        kind: ProviderErrorKind,
        *,
        status_code: int | None = None,
    ) -> ProviderError:
        return ProviderError(message, provider=self.provider_id, kind=kind, status_code=status_code)

    @staticmethod
    def _location_query(location: Location) -> str:
        if location.has_coordinates:
            return f"{location.latitude},{location.longitude}"
        return (location.name or "").strip()
