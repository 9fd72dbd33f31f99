"""Hourly balloon position feed."""
from __future__ import annotations

import asyncio
from datetime import datetime, timedelta
from typing import List, Optional

from .base import HttpProvider, ProviderError
from ..abstractions import Observation
from ..parser import parse_observations


class WindborneFeed(HttpProvider):
    """Fetches hour buckets ``00.json`` .. ``23.json`` of the constellation feed.

    Bucket ``offset`` holds the positions reported ``offset`` hours ago.  The
    payload carries no timestamps, so every observation of a bucket is stamped
    with ``now - offset hours``.
    """

    base_url = "https://a.windbornesystems.com/treasure"
    max_hours = 24

    def __init__(self, base_url: Optional[str] = None, **kwargs) -> None:
        super().__init__(**kwargs)
        self.base_url = (base_url or self.base_url).rstrip("/")

    def bucket_url(self, offset: int) -> str:
        return f"{self.base_url}/{offset:02d}.json"

    def fetch_bucket(self, offset: int, stamp: datetime) -> List[Observation]:
        """Return the bucket's observations, or ``[]`` when it cannot be read."""
        try:
            response = self._request("GET", self.bucket_url(offset))
        except ProviderError as exc:
            self._log.warning("Bucket %02d unavailable: %s", offset, exc)
            return []
        observations = parse_observations(response.text, stamp)
        self._log.debug("Bucket %02d yielded %s observations", offset, len(observations))
        return observations

    def fetch_latest(self, now: datetime) -> List[Observation]:
        return self.fetch_bucket(0, now)

    async def fetch_window(self, now: datetime, hours: Optional[int] = None) -> List[Observation]:
        """Fetch the rolling window concurrently and return it oldest first."""
        hours = min(self.max_hours if hours is None else hours, self.max_hours)
        buckets = await asyncio.gather(
            *(
                asyncio.to_thread(self.fetch_bucket, offset, now - timedelta(hours=offset))
                for offset in range(hours)
            )
        )
        pool = [observation for bucket in buckets for observation in bucket]
        # sort() is stable, so source order survives within a bucket.
        pool.sort(key=lambda observation: observation.ts)
        return pool


__all__ = ["WindborneFeed"]
