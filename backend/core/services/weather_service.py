"""Weather co-location cache: one lookup per occupied grid cell."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple

from backend.core.abstractions import Observation, WeatherLookup, WeatherSample
from backend.core.geo import cell_key
from backend.core.providers.base import ProviderError, QuotaExceeded


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EnrichedObservation:
    observation: Observation
    wx: Optional[WeatherSample]


@dataclass(frozen=True)
class Enrichment:
    points: List[EnrichedObservation]
    weather_cells: int

    @property
    def total_points(self) -> int:
        return len(self.points)


class WeatherColocationCache:
    """Bound external weather lookups by deduplicating observations onto cells.

    Cells beyond ``max_cells`` (in first-seen order) are not looked up and
    their observations stay without weather.  Nothing is kept between calls
    to :meth:`enrich`.
    """

    MAX_CELLS = 150

    def __init__(self, provider: WeatherLookup, max_cells: Optional[int] = None) -> None:
        self.provider = provider
        self.max_cells = self.MAX_CELLS if max_cells is None else max_cells
        self._log = logging.getLogger(self.__class__.__name__)

    def representative_cells(self, observations: Sequence[Observation]) -> Dict[str, Tuple[float, float]]:
        """Map each cell key to its first observation's coordinates, capped."""
        cells: Dict[str, Tuple[float, float]] = {}
        for observation in observations:
            key = cell_key(observation.lat, observation.lon)
            if key not in cells:
                cells[key] = (observation.lat, observation.lon)
        if len(cells) > self.max_cells:
            self._log.info("Capping weather lookups at %s of %s cells", self.max_cells, len(cells))
            cells = dict(list(cells.items())[: self.max_cells])
        return cells

    async def lookup_cells(self, cells: Dict[str, Tuple[float, float]], now: datetime) -> Dict[str, WeatherSample]:
        keys = list(cells)
        results = await asyncio.gather(
            *(asyncio.to_thread(self._lookup, key, *cells[key], now) for key in keys)
        )
        return {key: sample for key, sample in zip(keys, results) if sample is not None}

    async def enrich(self, observations: Sequence[Observation], now: datetime) -> Enrichment:
        cells = self.representative_cells(observations)
        samples = await self.lookup_cells(cells, now)
        points = [
            EnrichedObservation(observation, samples.get(cell_key(observation.lat, observation.lon)))
            for observation in observations
        ]
        return Enrichment(points=points, weather_cells=len(samples))

    def _lookup(self, key: str, latitude: float, longitude: float, now: datetime) -> Optional[WeatherSample]:
        try:
            return self.provider.nearest_hour(latitude, longitude, now)
        except QuotaExceeded:
            self._log.warning("Provider %s quota exceeded for cell %s", self.provider.name, key)
        except ProviderError as exc:
            self._log.warning("Provider %s failed for cell %s: %s", self.provider.name, key, exc)
        return None


__all__ = ["WeatherColocationCache", "Enrichment", "EnrichedObservation"]
