"""Place-name search through the OpenWeatherMap geocoding API."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, ValidationError

from .exceptions import LocationSearchError


class PlaceMatch(BaseModel):
    """One geocoding candidate."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str
    state: str = ""
    country: str = ""
    lat: float
    lon: float


class LocationSearchClient:
    """Resolves "City,State,Country" style queries to coordinates.

    An empty list is a valid answer: it means the query matched nothing.
    """

    search_path = "/geo/1.0/direct"

    def __init__(
        self,
        *,
        api_key: str,
        base_url: str,
        logger: logging.Logger,
        timeout_seconds: float = 5.0,
        limit: int = 5,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self.logger = logger
        self.limit = limit
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout_seconds,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    async def __aenter__(self) -> LocationSearchClient:
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, exc_tb: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def search(self, query: str) -> list[PlaceMatch]:
        params = {"q": query, "limit": self.limit, "appid": self._api_key}
        try:
            response = await self._client.get(self.search_path, params=params)
        except httpx.HTTPError as exc:
            raise LocationSearchError(
                f"Geocoding request failed ({type(exc).__name__})."
            ) from exc
        if not response.is_success:
            raise LocationSearchError(
                f"Geocoding request rejected with HTTP {response.status_code}."
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise LocationSearchError("Geocoding returned a non-JSON response.") from exc
        if not isinstance(payload, list):
            raise LocationSearchError(
                f"Geocoding returned unexpected payload type {type(payload).__name__}."
            )

        try:
            matches = [PlaceMatch.model_validate(item) for item in payload]
        except ValidationError as exc:
            raise LocationSearchError(
                f"Geocoding returned {exc.error_count()} malformed record(s)."
            ) from exc
        self.logger.info(
            "Location search returned %d match(es).",
            len(matches),
            extra={"matches": len(matches)},
        )
        return matches
