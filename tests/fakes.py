"""In-process provider clients for aggregator and endpoint tests."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from datetime import UTC, date, datetime
from typing import Any

from forecast_gateway.exceptions import ProviderError
from forecast_gateway.models import Forecast, Location, ProviderErrorKind, ProviderId, Wind
from forecast_gateway.providers import ProviderClient


def make_forecast(provider: ProviderId, temperature_c: float = 20.0) -> Forecast:
    return Forecast(
        provider=provider,
        timestamp=datetime(2025, 10, 19, 12, tzinfo=UTC),
        temperature_c=temperature_c,
        temperature_min_c=temperature_c - 5,
        temperature_max_c=temperature_c + 3,
        humidity_pct=60.0,
        wind=Wind(speed_ms=3.5, direction_deg=210.0),
        condition="Clear, clear sky",
    )


def make_error(
    provider: ProviderId,
    kind: ProviderErrorKind,
    status_code: int | None = None,
    message: str = "stubbed failure",
) -> ProviderError:
    return ProviderError(message, provider=provider, kind=kind, status_code=status_code)


class FakeProviderClient(ProviderClient):
    """Replays scripted outcomes; the last one repeats once the script runs out."""

    forecast_path = "/fake"

    def __init__(
        self,
        provider_id: ProviderId,
        outcomes: Sequence[Forecast | ProviderError] | Forecast | ProviderError,
        delay_seconds: float = 0.0,
    ) -> None:
        self.provider_id = provider_id  # type: ignore[misc]
        if isinstance(outcomes, (Forecast, ProviderError)):
            outcomes = [outcomes]
        self.outcomes = list(outcomes)
        self.delay_seconds = delay_seconds
        self.calls: list[tuple[Location, date | None]] = []
        self.cancelled = False
        self.closed = False

    async def fetch(self, location: Location, forecast_date: date | None = None) -> Forecast:
        self.calls.append((location, forecast_date))
        try:
            await asyncio.sleep(self.delay_seconds)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        outcome = self.outcomes[min(len(self.calls), len(self.outcomes)) - 1]
        if isinstance(outcome, ProviderError):
            raise outcome
        return outcome

    def build_params(self, location: Location) -> dict[str, Any]:
        raise NotImplementedError

    def normalize(self, payload: dict[str, Any]) -> list[Forecast]:
        raise NotImplementedError

    async def aclose(self) -> None:
        self.closed = True
