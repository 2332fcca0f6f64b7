"""Settings loading, credential handling and log redaction."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import pytest

from forecast_gateway.config import Settings, load_settings
from forecast_gateway.exceptions import ConfigError
from forecast_gateway.log_setup import JsonConsoleFormatter, provider_context, setup_logger
from forecast_gateway.models import ProviderId
from forecast_gateway.redaction import REDACTED, sanitize_for_logging, sanitize_text


def test_defaults_without_any_configuration(monkeypatch: Any, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)

    settings = load_settings()

    assert settings.weather_server_address == "[::1]:50051"
    assert settings.api_keys() == {}
    assert settings.forecast_days == 7
    assert settings.provider_call_timeout_seconds == 8.0
    assert settings.log_level == "INFO"


def test_keys_from_environment_in_declaration_order(monkeypatch: Any, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("WEATHER_API_AUTHORIZATION", " wapi-key ")
    monkeypatch.setenv("OPENWEATHERMAP_AUTHORIZATION", "owm-key")

    settings = load_settings()

    assert list(settings.api_keys()) == [ProviderId.OPENWEATHERMAP, ProviderId.WEATHERAPI]
    assert settings.api_keys()[ProviderId.WEATHERAPI] == "wapi-key"


def test_blank_key_means_unconfigured(monkeypatch: Any, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("OPENWEATHERMAP_AUTHORIZATION", "   ")
    monkeypatch.setenv("WEATHER_API_AUTHORIZATION", "wapi-key")

    assert list(load_settings().api_keys()) == [ProviderId.WEATHERAPI]


def test_server_config_file_is_read(monkeypatch: Any, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    (tmp_path / ".weather_server_config").write_text(
        "OPENWEATHERMAP_AUTHORIZATION=file-key\nWEATHER_SERVER_ADDRESS=0.0.0.0:6000\n",
        encoding="utf-8",
    )

    settings = load_settings()

    assert settings.openweathermap_authorization == "file-key"
    assert settings.weather_server_address == "0.0.0.0:6000"


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("PROVIDER_HTTP_TIMEOUT_SECONDS", "0"),
        ("PROVIDER_CALL_TIMEOUT_SECONDS", "1"),
        ("PROVIDER_MAX_RETRIES", "-1"),
        ("FORECAST_DAYS", "17"),
        ("LOCATION_SEARCH_LIMIT", "0"),
        ("WEATHER_SERVER_ADDRESS", "localhost"),
        ("LOG_LEVEL", "chatty"),
    ],
)
def test_invalid_values_raise_config_error(
    monkeypatch: Any, tmp_path: Path, name: str, value: str
) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv(name, value)

    with pytest.raises(ConfigError):
        load_settings()


def test_config_error_does_not_echo_values(monkeypatch: Any, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("OPENWEATHERMAP_AUTHORIZATION", "owm-very-secret")
    monkeypatch.setenv("FORECAST_DAYS", "owm-very-secret")

    with pytest.raises(ConfigError) as exc_info:
        load_settings()

    assert "owm-very-secret" not in str(exc_info.value)
    assert "FORECAST_DAYS" in str(exc_info.value)


def test_safe_summary_and_repr_hide_keys() -> None:
    settings = Settings(
        _env_file=None,
        OPENWEATHERMAP_AUTHORIZATION="owm-very-secret",
        WEATHER_API_AUTHORIZATION="wapi-very-secret",
    )

    summary = json.dumps(settings.safe_summary())

    assert "very-secret" not in summary
    assert "very-secret" not in repr(settings)
    assert settings.safe_summary()["configured_providers"] == ["OpenWeatherMap", "WeatherApi"]


def test_sanitize_text_strips_query_credentials() -> None:
    text = (
        "GET https://api.openweathermap.org/data/2.5/forecast/daily?lat=1&appid=abc123&cnt=7 "
        "and https://api.weatherapi.com/v1/forecast.json?key=def456&q=Paris"
    )

    sanitized = sanitize_text(text)

    assert "abc123" not in sanitized
    assert "def456" not in sanitized
    assert "q=Paris" in sanitized
    assert "cnt=7" in sanitized


def test_sanitize_for_logging_redacts_nested_keys() -> None:
    payload = {
        "appid": "abc123",
        "key": "def456",
        "q": "Paris",
        "headers": [{"Authorization": "Bearer xyz"}],
    }

    sanitized = sanitize_for_logging(payload)

    assert sanitized["appid"] == REDACTED
    assert sanitized["key"] == REDACTED
    assert sanitized["q"] == "Paris"
    assert sanitized["headers"][0]["Authorization"] == REDACTED


def test_json_formatter_sanitizes_messages() -> None:
    record = logging.LogRecord(
        name="forecast_gateway",
        level=logging.WARNING,
        pathname=__file__,
        lineno=1,
        msg="upstream said %s",
        args=("invalid appid=abc123",),
        exc_info=None,
    )

    event = json.loads(JsonConsoleFormatter().format(record))

    assert event["level"] == "WARNING"
    assert event["logger"] == "forecast_gateway"
    assert "abc123" not in event["message"]


def test_setup_logger_is_idempotent() -> None:
    logger = setup_logger("forecast_gateway.test_setup", level="DEBUG")
    again = setup_logger("forecast_gateway.test_setup")

    assert logger is again
    assert len(again.handlers) == 1
    assert isinstance(again.handlers[0].formatter, JsonConsoleFormatter)


def test_json_formatter_carries_provider_context() -> None:
    logger = logging.getLogger("forecast_gateway.test_context")
    record = logger.makeRecord(
        logger.name,
        logging.WARNING,
        __file__,
        1,
        "Provider %s failed",
        ("WeatherApi",),
        None,
        extra=provider_context(
            ProviderId.WEATHERAPI, "rejected_by_upstream", 401, attempt=2
        ),
    )

    event = json.loads(JsonConsoleFormatter().format(record))

    assert event["provider"] == "WeatherApi"
    assert event["kind"] == "rejected_by_upstream"
    assert event["status_code"] == 401
    assert event["attempt"] == 2
    assert "outcomes" not in event


def test_json_formatter_redacts_context_values() -> None:
    record = logging.LogRecord(
        name="forecast_gateway",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="done",
        args=(),
        exc_info=None,
    )
    record.outcomes = {"OpenWeatherMap": "ok", "note": "retry with appid=abc123"}

    event = json.loads(JsonConsoleFormatter().format(record))

    assert event["outcomes"]["OpenWeatherMap"] == "ok"
    assert "abc123" not in json.dumps(event)
