"""Per-provider mapping of native forecast payloads onto canonical ``Forecast`` values.

Each ``normalize_*`` function is pure: it only reads the decoded JSON payload and
either returns the daily forecasts in payload order or raises
``ProviderError(MALFORMED_RESPONSE)``. Required fields are never defaulted;
optional fields that are missing or of the wrong type become ``None``.

Canonical units: degrees Celsius, metres per second, percent. All numbers are
rounded to ``PRECISION`` decimal places.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from ..exceptions import ProviderError
from ..models import Forecast, ProviderErrorKind, ProviderId, Wind

PRECISION = 2
KELVIN_OFFSET = 273.15


def kelvin_to_celsius(value: float) -> float:
    return round(value - KELVIN_OFFSET, PRECISION)


def kph_to_ms(value: float) -> float:
    return round(value / 3.6, PRECISION)


def normalize_openweathermap(payload: dict[str, Any]) -> list[Forecast]:
    """Normalize an OpenWeatherMap ``/data/2.5/forecast/daily`` payload (standard units)."""
    provider = ProviderId.OPENWEATHERMAP
    days = _require_list(payload, "list", provider)

    forecasts: list[Forecast] = []
    for index, day in enumerate(days):
        where = f"list[{index}]"
        if not isinstance(day, dict):
            raise _malformed(provider, f"{where} is not an object")
        temp = _require_dict(day, "temp", provider, where)
        conditions = _require_list(day, "weather", provider, where)
        if not isinstance(conditions[0], dict):
            raise _malformed(provider, f"{where}.weather[0] is not an object")
        main = _require_str(conditions[0], "main", provider, f"{where}.weather[0]")
        description = _optional_str(conditions[0].get("description"))

        forecasts.append(
            Forecast(
                provider=provider,
                timestamp=_epoch_to_utc(_require_number(day, "dt", provider, where), provider),
                temperature_c=kelvin_to_celsius(_require_number(temp, "day", provider, f"{where}.temp")),
                temperature_min_c=kelvin_to_celsius(_require_number(temp, "min", provider, f"{where}.temp")),
                temperature_max_c=kelvin_to_celsius(_require_number(temp, "max", provider, f"{where}.temp")),
                humidity_pct=_round(_optional_number(day.get("humidity"))),
                wind=Wind(
                    speed_ms=_round(_optional_number(day.get("speed"))),
                    direction_deg=_round(_optional_number(day.get("deg"))),
                ),
                condition=f"{main}, {description}" if description else main,
            )
        )
    return forecasts


def normalize_weatherapi(payload: dict[str, Any]) -> list[Forecast]:
    """Normalize a WeatherApi ``/v1/forecast.json`` payload."""
    provider = ProviderId.WEATHERAPI
    forecast_block = _require_dict(payload, "forecast", provider)
    days = _require_list(forecast_block, "forecastday", provider, "forecast")

    forecasts: list[Forecast] = []
    for index, entry in enumerate(days):
        where = f"forecast.forecastday[{index}]"
        if not isinstance(entry, dict):
            raise _malformed(provider, f"{where} is not an object")
        day = _require_dict(entry, "day", provider, where)
        condition = _require_dict(day, "condition", provider, f"{where}.day")
        max_wind_kph = _optional_number(day.get("maxwind_kph"))

        forecasts.append(
            Forecast(
                provider=provider,
                timestamp=_epoch_to_utc(_require_number(entry, "date_epoch", provider, where), provider),
                temperature_c=_round(_require_number(day, "avgtemp_c", provider, f"{where}.day")),
                temperature_min_c=_round(_require_number(day, "mintemp_c", provider, f"{where}.day")),
                temperature_max_c=_round(_require_number(day, "maxtemp_c", provider, f"{where}.day")),
                humidity_pct=_round(_optional_number(day.get("avghumidity"))),
                # Daily aggregates carry no wind direction; speed is the day's maximum.
                wind=Wind(
                    speed_ms=kph_to_ms(max_wind_kph) if max_wind_kph is not None else None,
                    direction_deg=None,
                ),
                condition=_require_str(condition, "text", provider, f"{where}.day.condition"),
            )
        )
    return forecasts


def _malformed(provider: ProviderId, detail: str) -> ProviderError:
    return ProviderError(
        f"Unexpected {provider} response schema: {detail}.",
        provider=provider,
        kind=ProviderErrorKind.MALFORMED_RESPONSE,
    )


def _path(where: str | None, key: str) -> str:
    return f"{where}.{key}" if where else key


def _require_dict(
    mapping: dict[str, Any], key: str, provider: ProviderId, where: str | None = None
) -> dict[str, Any]:
    value = mapping.get(key)
    if not isinstance(value, dict):
        raise _malformed(provider, f"missing '{_path(where, key)}' object")
    return value


def _require_list(
    mapping: dict[str, Any], key: str, provider: ProviderId, where: str | None = None
) -> list[Any]:
    value = mapping.get(key)
    if not isinstance(value, list):
        raise _malformed(provider, f"missing '{_path(where, key)}' list")
    if not value:
        raise _malformed(provider, f"'{_path(where, key)}' is empty")
    return value


def _require_number(
    mapping: dict[str, Any], key: str, provider: ProviderId, where: str | None = None
) -> float:
    value = _optional_number(mapping.get(key))
    if value is None:
        raise _malformed(provider, f"missing or non-numeric '{_path(where, key)}'")
    return value


def _require_str(
    mapping: dict[str, Any], key: str, provider: ProviderId, where: str | None = None
) -> str:
    value = _optional_str(mapping.get(key))
    if value is None:
        raise _malformed(provider, f"missing or empty '{_path(where, key)}'")
    return value


def _optional_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    return None


def _optional_str(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _round(value: float | None) -> float | None:
    return round(value, PRECISION) if value is not None else None


def _epoch_to_utc(value: float, provider: ProviderId) -> datetime:
    try:
        return datetime.fromtimestamp(int(value), tz=UTC)
    except (OverflowError, OSError, ValueError) as exc:
        raise _malformed(provider, f"timestamp {value!r} out of range") from exc
