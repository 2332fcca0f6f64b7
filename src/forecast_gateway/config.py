"""Typed settings loader for the forecast gateway."""

from __future__ import annotations

from typing import Any

from pydantic import AnyHttpUrl, Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigError
from .models import ProviderId


class Settings(BaseSettings):
    """Settings loaded from environment variables, `.env` and `.weather_server_config`."""

    model_config = SettingsConfigDict(
        env_file=(".weather_server_config", ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    openweathermap_authorization: str | None = Field(
        default=None, alias="OPENWEATHERMAP_AUTHORIZATION", repr=False
    )
    weather_api_authorization: str | None = Field(
        default=None, alias="WEATHER_API_AUTHORIZATION", repr=False
    )
    weather_server_address: str = Field(default="[::1]:50051", alias="WEATHER_SERVER_ADDRESS")

    openweathermap_base_url: AnyHttpUrl = Field(
        default="https://api.openweathermap.org",
        alias="OPENWEATHERMAP_BASE_URL",
    )
    weather_api_base_url: AnyHttpUrl = Field(
        default="https://api.weatherapi.com",
        alias="WEATHER_API_BASE_URL",
    )

    provider_http_timeout_seconds: float = Field(default=5.0, alias="PROVIDER_HTTP_TIMEOUT_SECONDS")
    provider_call_timeout_seconds: float = Field(default=8.0, alias="PROVIDER_CALL_TIMEOUT_SECONDS")
    provider_max_retries: int = Field(default=0, alias="PROVIDER_MAX_RETRIES")
    provider_retry_delay_seconds: float = Field(default=0.25, alias="PROVIDER_RETRY_DELAY_SECONDS")
    forecast_days: int = Field(default=7, alias="FORECAST_DAYS")
    location_search_limit: int = Field(default=5, alias="LOCATION_SEARCH_LIMIT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    @field_validator(
        "openweathermap_authorization",
        "weather_api_authorization",
        mode="before",
    )
    @classmethod
    def empty_string_to_none(cls, value: Any) -> Any:
        """Treat blank keys as an unconfigured provider."""
        if isinstance(value, str) and value.strip() == "":
            return None
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError("LOG_LEVEL must be one of DEBUG, INFO, WARNING, ERROR, CRITICAL.")
        return level

    @model_validator(mode="after")
    def validate_limits(self) -> Settings:
        """Validate timeouts, retry policy and request limits."""
        if self.provider_http_timeout_seconds <= 0:
            raise ValueError("PROVIDER_HTTP_TIMEOUT_SECONDS must be > 0.")
        if self.provider_call_timeout_seconds <= 0:
            raise ValueError("PROVIDER_CALL_TIMEOUT_SECONDS must be > 0.")
        if self.provider_call_timeout_seconds < self.provider_http_timeout_seconds:
            raise ValueError(
                "PROVIDER_CALL_TIMEOUT_SECONDS cannot be smaller than "
                "PROVIDER_HTTP_TIMEOUT_SECONDS."
            )
        if self.provider_max_retries < 0:
            raise ValueError("PROVIDER_MAX_RETRIES must be >= 0.")
        if self.provider_retry_delay_seconds < 0:
            raise ValueError("PROVIDER_RETRY_DELAY_SECONDS must be >= 0.")
        if not (1 <= self.forecast_days <= 16):
            raise ValueError("FORECAST_DAYS must be between 1 and 16.")
        if not (1 <= self.location_search_limit <= 5):
            raise ValueError("LOCATION_SEARCH_LIMIT must be between 1 and 5.")
        host, sep, port = self.weather_server_address.rpartition(":")
        if not sep or not host or not port.isdigit():
            raise ValueError("WEATHER_SERVER_ADDRESS must look like 'host:port'.")
        return self

    def api_keys(self) -> dict[ProviderId, str]:
        """Return the configured provider keys in declaration order."""
        keys = {
            ProviderId.OPENWEATHERMAP: self.openweathermap_authorization,
            ProviderId.WEATHERAPI: self.weather_api_authorization,
        }
        return {provider: key for provider, key in keys.items() if key}

    def safe_summary(self) -> dict[str, Any]:
        """Return config summary safe for logging (no credentials)."""
        return {
            "server_address": self.weather_server_address,
            "configured_providers": [str(provider) for provider in self.api_keys()],
            "openweathermap_base_url": str(self.openweathermap_base_url),
            "weather_api_base_url": str(self.weather_api_base_url),
            "provider_http_timeout_seconds": self.provider_http_timeout_seconds,
            "provider_call_timeout_seconds": self.provider_call_timeout_seconds,
            "provider_max_retries": self.provider_max_retries,
            "forecast_days": self.forecast_days,
            "location_search_limit": self.location_search_limit,
        }


def load_settings() -> Settings:
    """Load and validate settings, raising ConfigError on failure."""
    try:
        return Settings()
    except ValidationError as exc:
        # Input values are left out; they may contain API keys.
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or 'settings'}: {error['msg']}"
            for error in exc.errors(include_url=False, include_input=False)
        )
        raise ConfigError(f"Invalid configuration: {problems}") from exc
    except OSError as exc:
        raise ConfigError(f"Failed reading environment/config files: {exc}") from exc
