from __future__ import annotations

import asyncio
import threading
from datetime import datetime
from typing import List, Tuple

from backend.core.abstractions import WeatherLookup, WeatherSample
from backend.core.geo import cell_key
from backend.core.providers.base import ProviderError, QuotaExceeded
from backend.core.providers.openmeteo import OpenMeteoProvider
from backend.core.services.weather_service import WeatherColocationCache


class _DummyProvider(WeatherLookup):
    name = "dummy"

    def __init__(self) -> None:
        self.calls: List[Tuple[float, float]] = []
        self._lock = threading.Lock()

    def nearest_hour(self, latitude: float, longitude: float, now: datetime) -> WeatherSample:
        with self._lock:
            self.calls.append((latitude, longitude))
        return WeatherSample(temp_c=latitude, wind_kph=10.0, wind_dir=90.0)


class _FailingProvider(WeatherLookup):
    name = "failing"

    def __init__(self, exc: Exception) -> None:
        self.exc = exc

    def nearest_hour(self, latitude: float, longitude: float, now: datetime) -> WeatherSample:
        raise self.exc


def test_one_lookup_per_cell(make_observation, now):
    provider = _DummyProvider()
    cache = WeatherColocationCache(provider)
    points = [
        make_observation(10.0, 20.0),
        make_observation(10.01, 20.01),
        make_observation(10.2, 19.9),
        make_observation(40.0, -70.0),
    ]

    result = asyncio.run(cache.enrich(points, now))

    assert len(provider.calls) == 2
    assert result.weather_cells == 2
    assert result.total_points == 4
    assert result.points[0].wx == result.points[1].wx == result.points[2].wx
    assert result.points[3].wx.temp_c == 40.0


def test_representative_is_first_observation_of_cell(make_observation, now):
    provider = _DummyProvider()
    cache = WeatherColocationCache(provider)
    points = [make_observation(10.01, 20.01), make_observation(10.0, 20.0)]

    result = asyncio.run(cache.enrich(points, now))

    assert provider.calls == [(10.01, 20.01)]
    assert all(p.wx.temp_c == 10.01 for p in result.points)


def test_lookups_are_capped(make_observation, now):
    provider = _DummyProvider()
    cache = WeatherColocationCache(provider)
    points = [make_observation(-80.0 + i, 0.0) for i in range(160)]

    result = asyncio.run(cache.enrich(points, now))

    assert len(provider.calls) == WeatherColocationCache.MAX_CELLS
    assert result.weather_cells == 150
    assert result.total_points == 160
    assert all(p.wx is not None for p in result.points[:150])
    assert all(p.wx is None for p in result.points[150:])


def test_lookups_never_exceed_distinct_cells(make_observation):
    cache = WeatherColocationCache(_DummyProvider(), max_cells=5)
    points = [make_observation(1.0, 1.0), make_observation(1.1, 1.1), make_observation(3.0, 3.0)]

    cells = cache.representative_cells(points)

    assert list(cells) == [cell_key(1.0, 1.0), cell_key(3.0, 3.0)]


def test_failed_lookup_leaves_points_without_weather(make_observation, now):
    for exc in (ProviderError("boom"), QuotaExceeded("quota exceeded")):
        cache = WeatherColocationCache(_FailingProvider(exc))

        result = asyncio.run(cache.enrich([make_observation(10.0, 20.0)], now))

        assert result.weather_cells == 0
        assert result.points[0].wx is None


def test_empty_input(now):
    cache = WeatherColocationCache(_DummyProvider())

    result = asyncio.run(cache.enrich([], now))

    assert result.points == []
    assert result.weather_cells == 0


def test_wrong_shape_weather_response_gives_no_sample(requests_mock, make_observation, now):
    url = "https://openmeteo.test/v1/forecast"
    requests_mock.get(url, json={"hourly": {"time": 5}})
    cache = WeatherColocationCache(OpenMeteoProvider(base_url=url))

    result = asyncio.run(cache.enrich([make_observation(10.0, 20.0)], now))

    assert result.weather_cells == 0
    assert result.total_points == 1
    assert result.points[0].wx is None
