"""Greedy reconstruction of flight tracks from anonymous position reports."""
from __future__ import annotations

import logging
import math
from typing import Iterable, List, Optional

from backend.core.abstractions import Observation, Track
from backend.core.geo import haversine_km


logger = logging.getLogger(__name__)


class TrackBuilder:
    """Stitch time-ordered observations into tracks by nearest tail.

    Each observation joins the track whose tail is closest, provided the tail
    is within ``time_tolerance_hours`` of it and closer than
    ``distance_km_max``; otherwise it opens a new track.  Ties go to the
    earliest created track.  Balloons crossing paths within tolerance can be
    mis-assigned: there is no balloon identity in the feed to tell them apart.
    """

    TIME_TOLERANCE_HOURS = 2.0
    DISTANCE_KM_MAX = 80.0

    def __init__(
        self,
        time_tolerance_hours: Optional[float] = None,
        distance_km_max: Optional[float] = None,
    ) -> None:
        self.time_tolerance_hours = (
            self.TIME_TOLERANCE_HOURS if time_tolerance_hours is None else time_tolerance_hours
        )
        self.distance_km_max = self.DISTANCE_KM_MAX if distance_km_max is None else distance_km_max

    def build(self, observations: Iterable[Observation]) -> List[Track]:
        """Return tracks for ``observations``, which must be sorted by ``ts``."""
        tracks: List[Track] = []
        tolerance_s = self.time_tolerance_hours * 3600
        for observation in observations:
            best_track: Optional[Track] = None
            best = math.inf
            for track in tracks:
                last = track[-1]
                if abs((observation.ts - last.ts).total_seconds()) > tolerance_s:
                    continue
                distance = haversine_km(last.lat, last.lon, observation.lat, observation.lon)
                if distance < best:
                    best, best_track = distance, track
            if best_track is not None and best < self.distance_km_max:
                best_track.append(observation)
            else:
                tracks.append([observation])
        logger.debug("Built %s tracks", len(tracks))
        return tracks


def build_tracks(observations: Iterable[Observation], **kwargs) -> List[Track]:
    return TrackBuilder(**kwargs).build(observations)


__all__ = ["TrackBuilder", "build_tracks"]
