"""Concurrent fan-out of one forecast request across the selected providers."""

from __future__ import annotations

import asyncio
import logging

from .exceptions import AllProvidersFailed, NoProviderAvailable, ProviderError
from .log_setup import provider_context
from .models import (
    AggregationResult,
    Forecast,
    ForecastRequest,
    ProviderErrorKind,
    ProviderFailure,
    ProviderOutcome,
)
from .providers import ProviderClient
from .registry import ProviderRegistry

RATE_LIMITED_STATUS = 429


def is_retryable(exc: ProviderError) -> bool:
    if exc.kind == ProviderErrorKind.UNREACHABLE:
        return True
    if exc.kind != ProviderErrorKind.REJECTED_BY_UPSTREAM or exc.status_code is None:
        return False
    return exc.status_code == RATE_LIMITED_STATUS or exc.status_code >= 500


class ForecastAggregator:
    """Runs every resolved provider concurrently and keeps registry order in the result.

    Each provider call gets its own deadline. A provider that fails or times out
    is recorded in its slot; the request only fails when no provider answered.
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        logger: logging.Logger,
        *,
        call_timeout_seconds: float = 8.0,
        max_retries: int = 0,
        retry_delay_seconds: float = 0.25,
    ) -> None:
        self.registry = registry
        self.logger = logger
        self.call_timeout_seconds = call_timeout_seconds
        self.max_retries = max_retries
        self.retry_delay_seconds = retry_delay_seconds

    async def aggregate(self, request: ForecastRequest) -> AggregationResult:
        clients = self.registry.resolve(request.providers)
        if not clients:
            raise NoProviderAvailable("No configured provider matches the request.")

        # Cancelling the caller cancels the group and every in-flight provider call.
        async with asyncio.TaskGroup() as group:
            tasks = [group.create_task(self._call(client, request)) for client in clients]

        result = AggregationResult(outcomes=tuple(task.result() for task in tasks))
        outcomes = {
            str(outcome.provider): "ok" if outcome.ok else str(outcome.failure.kind)
            for outcome in result.outcomes
        }
        self.logger.info(
            "Forecast aggregation finished: %s",
            ", ".join(f"{provider}={state}" for provider, state in outcomes.items()),
            extra={"outcomes": outcomes},
        )
        if not result.succeeded:
            raise AllProvidersFailed(result.failures)
        return result

    async def _call(self, client: ProviderClient, request: ForecastRequest) -> ProviderOutcome:
        provider = client.provider_id
        try:
            async with asyncio.timeout(self.call_timeout_seconds):
                forecast = await self._fetch_with_retry(client, request)
        except TimeoutError:
            failure = ProviderFailure(
                provider=provider,
                kind=ProviderErrorKind.TIMEOUT,
                reason=f"No reply within {self.call_timeout_seconds:g}s.",
            )
        except ProviderError as exc:
            failure = exc.to_failure()
        else:
            return ProviderOutcome(provider=provider, forecast=forecast)

        self.logger.warning(
            "Provider %s failed: %s",
            provider,
            failure.describe(),
            extra=provider_context(provider, failure.kind, failure.status_code),
        )
        return ProviderOutcome(provider=provider, failure=failure)

    async def _fetch_with_retry(self, client: ProviderClient, request: ForecastRequest) -> Forecast:
        attempt = 0
        while True:
            try:
                return await client.fetch(request.location, request.forecast_date)
            except ProviderError as exc:
                if attempt >= self.max_retries or not is_retryable(exc):
                    raise
                attempt += 1
                self.logger.warning(
                    "Provider %s attempt %d failed (%s); retrying",
                    client.provider_id,
                    attempt,
                    exc.kind,
                    extra=provider_context(
                        client.provider_id, exc.kind, exc.status_code, attempt=attempt
                    ),
                )
                await asyncio.sleep(self.retry_delay_seconds)
