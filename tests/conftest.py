from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest

from backend.core.abstractions import Observation


@pytest.fixture
def now() -> datetime:
    return datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_observation(now):
    def factory(lat: float, lon: float, hours_ago: float = 0, alt: Optional[float] = None) -> Observation:
        return Observation(lat=lat, lon=lon, alt=alt, ts=now - timedelta(hours=hours_ago))

    return factory
