"""Normalisation of raw balloon feed payloads into :class:`Observation` records.

The upstream feed is known to serve corrupted payloads: truncated arrays,
``NaN`` coordinates, stray non-JSON lines.  Parsing is therefore tolerant at
every level and never raises; anything that cannot yield two finite
coordinates is dropped.
"""
from __future__ import annotations

import json
import logging
import math
from datetime import datetime
from typing import Any, Iterable, List, Optional

from backend.core.abstractions import Observation


logger = logging.getLogger(__name__)


def parse_observations(text: Optional[str], stamp: datetime) -> List[Observation]:
    """Parse a raw payload and stamp every observation with ``stamp``."""
    if not text or not isinstance(text, str):
        return []
    items = _load_items(text)
    observations: List[Observation] = []
    dropped = 0
    for item in items:
        observation = parse_entry(item, stamp)
        if observation is None:
            dropped += 1
            continue
        observations.append(observation)
    if dropped:
        logger.debug("Dropped %s malformed entries", dropped)
    return observations


def parse_entry(item: Any, stamp: datetime) -> Optional[Observation]:
    """Convert one positional list or mapping into an observation."""
    if isinstance(item, (list, tuple)):
        lat = _finite(_at(item, 0))
        lon = _finite(_at(item, 1))
        alt = _finite(_at(item, 2))
    elif isinstance(item, dict):
        lat = _finite(_field(item, "lat", 0))
        lon = _finite(_field(item, "lon", 1))
        alt = _finite(_field(item, "alt", 2))
    else:
        return None
    if lat is None or lon is None:
        return None
    return Observation(lat=lat, lon=lon, alt=alt, ts=stamp)


# helpers ------------------------------------------------------------
def _load_items(text: str) -> Iterable[Any]:
    try:
        data = json.loads(text)
    except (ValueError, RecursionError):
        return _load_lines(text)
    if isinstance(data, dict) and "tracks" in data:
        data = data["tracks"]
    if isinstance(data, list):
        return data
    logger.debug("Unexpected payload root %s", type(data).__name__)
    return []


def _load_lines(text: str) -> List[Any]:
    items: List[Any] = []
    skipped = 0
    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        try:
            items.append(json.loads(line))
        except (ValueError, RecursionError):
            skipped += 1
    if skipped:
        logger.debug("Skipped %s undecodable lines", skipped)
    return items


def _at(values: Any, index: int) -> Any:
    try:
        return values[index]
    except IndexError:
        return None


def _field(item: dict, name: str, index: int) -> Any:
    value = item.get(name)
    if value is None:
        value = item.get(str(index))
    return value


def _finite(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if not isinstance(value, (int, float, str)):
        return None
    if isinstance(value, str):
        value = value.strip() or "nan"
    try:
        number = float(value)
    except (OverflowError, ValueError):
        # integers beyond float range overflow instead of becoming inf
        return None
    if not math.isfinite(number):
        return None
    return number


__all__ = ["parse_observations", "parse_entry"]
