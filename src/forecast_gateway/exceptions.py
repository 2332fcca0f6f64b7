"""Application exception classes."""

from __future__ import annotations

from collections.abc import Sequence

from .models import ProviderErrorKind, ProviderFailure, ProviderId


class ConfigError(Exception):
    """Raised when configuration is invalid or incomplete."""


class ClientRequestInvalid(Exception):
    """Raised when a forecast request is rejected before any provider is called."""


class UnconfiguredProvider(ClientRequestInvalid):
    """Raised when a request selects a provider that has no API key configured."""

    def __init__(self, provider: ProviderId) -> None:
        super().__init__(f"Provider {provider} is not configured on this server.")
        self.provider = provider


class ProviderError(Exception):
    """Raised when one provider request or its normalization fails."""

    def __init__(
        self,
        message: str,
        *,
        provider: ProviderId,
        kind: ProviderErrorKind,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.provider = provider
        self.kind = kind
        self.status_code = status_code

    def to_failure(self) -> ProviderFailure:
        return ProviderFailure(
            provider=self.provider,
            kind=self.kind,
            reason=str(self),
            status_code=self.status_code,
        )


class NoProviderAvailable(Exception):
    """Raised when a request resolves to zero configured providers."""


class AllProvidersFailed(Exception):
    """Raised when every selected provider failed; carries each failure in order."""

    def __init__(self, failures: Sequence[ProviderFailure]) -> None:
        self.failures = tuple(failures)
        details = "; ".join(failure.describe() for failure in self.failures)
        super().__init__(f"All selected providers failed: {details}")


class LocationSearchError(Exception):
    """Raised when the geocoding lookup fails or returns malformed data."""
