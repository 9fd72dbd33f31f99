"""REST API views for balloon positions, tracks and weather."""
from __future__ import annotations

from datetime import datetime
from functools import lru_cache
from typing import Any, Dict

from django.conf import settings
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from backend.core.abstractions import Observation, WeatherSample
from backend.core.providers.base import RequestConfig
from backend.core.providers.openmeteo import OpenMeteoProvider
from backend.core.providers.windborne import WindborneFeed
from backend.core.services.balloon_service import BalloonService
from backend.core.services.tracks import TrackBuilder
from backend.core.services.weather_service import Enrichment, WeatherColocationCache


@lru_cache(maxsize=1)
def get_balloon_service() -> BalloonService:
    feed = WindborneFeed(
        base_url=settings.WINDBORNE_FEED_URL,
        request_config=RequestConfig(timeout=settings.HTTP_TIMEOUT, pool_maxsize=max(settings.WINDBORNE_HOURS, 1)),
    )
    provider = OpenMeteoProvider(
        base_url=settings.OPEN_METEO_URL,
        window_hours=settings.WEATHER_WINDOW_HOURS,
        request_config=RequestConfig(timeout=settings.HTTP_TIMEOUT, pool_maxsize=max(settings.WEATHER_MAX_CELLS, 1)),
    )
    return BalloonService(
        feed=feed,
        weather=WeatherColocationCache(provider, max_cells=settings.WEATHER_MAX_CELLS),
        track_builder=TrackBuilder(
            time_tolerance_hours=settings.TRACK_TIME_TOLERANCE_HOURS,
            distance_km_max=settings.TRACK_DISTANCE_KM_MAX,
        ),
        hours=settings.WINDBORNE_HOURS,
    )


def _isoformat(value: datetime) -> str:
    return value.astimezone(settings.DEFAULT_TIMEZONE).isoformat().replace("+00:00", "Z")


def _serialize_observation(observation: Observation) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"lat": observation.lat, "lon": observation.lon, "ts": _isoformat(observation.ts)}
    if observation.alt is not None:
        payload["alt"] = observation.alt
    return payload


def _serialize_weather(sample: WeatherSample) -> Dict[str, float]:
    fields = {"tempC": sample.temp_c, "windKph": sample.wind_kph, "windDir": sample.wind_dir}
    return {key: value for key, value in fields.items() if value is not None}


def serialize_latest(points, updated_at: datetime) -> Dict[str, Any]:
    return {"updatedAt": _isoformat(updated_at), "points": [_serialize_observation(p) for p in points]}


def serialize_tracks(tracks, updated_at: datetime) -> Dict[str, Any]:
    return {
        "updatedAt": _isoformat(updated_at),
        "tracks": [[_serialize_observation(p) for p in track] for track in tracks],
    }


def serialize_enrichment(enrichment: Enrichment, updated_at: datetime) -> Dict[str, Any]:
    points = []
    for point in enrichment.points:
        payload = _serialize_observation(point.observation)
        if point.wx is not None:
            payload["wx"] = _serialize_weather(point.wx)
        points.append(payload)
    return {
        "updatedAt": _isoformat(updated_at),
        "points": points,
        "meta": {"weatherCells": enrichment.weather_cells, "totalPoints": enrichment.total_points},
    }


class LatestPositionsView(APIView):
    """Positions from the most recent hour bucket."""

    permission_classes = [AllowAny]

    def get(self, request, *args, **kwargs):  # noqa: D401
        service = get_balloon_service()
        now = service.now()
        return Response(serialize_latest(service.latest(now), now), status=status.HTTP_200_OK)


class TracksView(APIView):
    """Tracks reconstructed over the rolling 24 hour window; never cached."""

    permission_classes = [AllowAny]

    def get(self, request, *args, **kwargs):  # noqa: D401
        service = get_balloon_service()
        tracks = service.tracks()
        response = Response(serialize_tracks(tracks, service.now()), status=status.HTTP_200_OK)
        response["Cache-Control"] = "no-store"
        return response


class EnrichedPositionsView(APIView):
    """Latest positions with the weather of their grid cell attached."""

    permission_classes = [AllowAny]

    def get(self, request, *args, **kwargs):  # noqa: D401
        service = get_balloon_service()
        enrichment = service.with_weather()
        return Response(serialize_enrichment(enrichment, service.now()), status=status.HTTP_200_OK)
