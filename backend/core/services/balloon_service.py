"""Service behind the latest, tracks and enriched position endpoints."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional

from asgiref.sync import async_to_sync

from backend.core.abstractions import FeedSource, Observation, Track
from backend.core.services.tracks import TrackBuilder
from backend.core.services.weather_service import Enrichment, WeatherColocationCache


logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


class BalloonService:
    """Combine the feed, the track engine and the weather cache.

    Every call starts from scratch: no tracks or weather survive between
    invocations.
    """

    def __init__(
        self,
        *,
        feed: FeedSource,
        weather: WeatherColocationCache,
        track_builder: Optional[TrackBuilder] = None,
        hours: int = 24,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.feed = feed
        self.weather = weather
        self.track_builder = track_builder or TrackBuilder()
        self.hours = hours
        self._clock = clock

    # Public API ---------------------------------------------------------
    def now(self) -> datetime:
        return self._clock()

    def latest(self, now: Optional[datetime] = None) -> List[Observation]:
        now = now or self.now()
        points = self.feed.fetch_latest(now)
        logger.info("Latest bucket: %s points", len(points))
        return points

    def tracks(self, now: Optional[datetime] = None) -> List[Track]:
        now = now or self.now()
        pool = async_to_sync(self.feed.fetch_window)(now, self.hours)
        tracks = self.track_builder.build(pool)
        logger.info("Reconstructed %s tracks from %s observations", len(tracks), len(pool))
        return tracks

    def with_weather(self, now: Optional[datetime] = None) -> Enrichment:
        now = now or self.now()
        points = self.feed.fetch_latest(now)
        enrichment = async_to_sync(self.weather.enrich)(points, now)
        logger.info(
            "Enriched %s points using %s weather cells",
            enrichment.total_points,
            enrichment.weather_cells,
        )
        return enrichment


__all__ = ["BalloonService", "utcnow"]
