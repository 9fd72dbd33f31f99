"""Core abstractions for the balloon feed domain."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Protocol


@dataclass(slots=True)
class Observation:
    """A single anonymous balloon position report.

    ``ts`` is assigned by the fetch pipeline, one value per hourly bucket, so
    every observation of a bucket shares the same timestamp.
    """

    lat: float
    lon: float
    ts: datetime
    alt: Optional[float] = None


@dataclass(frozen=True, slots=True)
class WeatherSample:
    """Nearest-hour weather for one grid cell.

    Wind speed is in km/h, wind direction is the compass bearing the wind
    blows *from*.
    """

    temp_c: Optional[float] = None
    wind_kph: Optional[float] = None
    wind_dir: Optional[float] = None


Track = List[Observation]


class FeedSource(Protocol):
    """Source of hourly balloon position buckets."""

    def fetch_bucket(self, offset: int, stamp: datetime) -> List[Observation]:
        """Return the observations of bucket ``offset`` stamped with ``stamp``."""
        ...

    def fetch_latest(self, now: datetime) -> List[Observation]:
        """Return the most recent bucket stamped with ``now``."""
        ...

    async def fetch_window(self, now: datetime, hours: Optional[int] = None) -> List[Observation]:
        """Return up to ``hours`` buckets, sorted oldest first."""
        ...


class WeatherLookup(Protocol):
    """A data source able to return one weather sample for a coordinate."""

    name: str

    def nearest_hour(self, latitude: float, longitude: float, now: datetime) -> WeatherSample:
        """Return the sample closest to ``now``; raise ``ProviderError`` when unavailable."""
        ...
