from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from .base import HttpProvider, ProviderError
from ..abstractions import WeatherSample


HOURLY_VARIABLES = ("temperature_2m", "wind_speed_10m", "wind_direction_10m")


def _ms_to_kph(value: Optional[float]) -> Optional[float]:
    if value is None:
        return None
    return value * 3.6


class OpenMeteoProvider(HttpProvider):
    base_url = "https://api.open-meteo.com/v1/forecast"
    name = "open-meteo"

    def __init__(self, base_url: Optional[str] = None, window_hours: int = 2, **kwargs) -> None:
        super().__init__(**kwargs)
        self.base_url = base_url or self.base_url
        self.window_hours = window_hours
        self._log = logging.getLogger(self.__class__.__name__)

    def nearest_hour(self, latitude: float, longitude: float, now: datetime) -> WeatherSample:
        """Return the hourly sample closest to ``now``.

        Raises :class:`ProviderError` when the request fails or the response
        has no hourly series.
        """
        window = timedelta(hours=self.window_hours)
        params = {
            "latitude": latitude,
            "longitude": longitude,
            "hourly": ",".join(HOURLY_VARIABLES),
            "start_hour": _hour_stamp(now - window),
            "end_hour": _hour_stamp(now + window),
            "timezone": "UTC",
        }
        response = self._request("GET", self.base_url, params=params)
        data = self._json(response)
        hourly = data.get("hourly") if isinstance(data, dict) else None
        if not isinstance(hourly, dict) or not isinstance(hourly.get("time"), list) or not hourly["time"]:
            raise ProviderError("missing hourly data")

        index = _closest_index(hourly["time"], now)
        return WeatherSample(
            temp_c=_safe_index(hourly.get("temperature_2m"), index),
            wind_kph=_ms_to_kph(_safe_index(hourly.get("wind_speed_10m"), index)),
            wind_dir=_safe_index(hourly.get("wind_direction_10m"), index),
        )

    # helpers ------------------------------------------------------------
    def _json(self, response) -> dict:
        try:
            return response.json()
        except ValueError as exc:
            self._log.error("Failed to decode JSON", exc_info=exc)
            raise ProviderError("invalid json") from exc


def _hour_stamp(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:00")


def _parse_time(value: object) -> Optional[datetime]:
    if not isinstance(value, str) or not value:
        return None
    if value.endswith("Z"):
        value = value[:-1]
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _closest_index(times: List[object], now: datetime) -> int:
    # Falls back to the first hour when no timestamp parses.
    best = 0
    best_diff = math.inf
    for idx, raw in enumerate(times):
        moment = _parse_time(raw)
        if moment is None:
            continue
        diff = abs((moment - now).total_seconds())
        if diff < best_diff:
            best, best_diff = idx, diff
    return best


def _safe_index(values: Optional[List[object]], index: int) -> Optional[float]:
    if not isinstance(values, list) or index >= len(values):
        return None
    value = values[index]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    value = float(value)
    return value if math.isfinite(value) else None


__all__ = ["OpenMeteoProvider", "HOURLY_VARIABLES"]
