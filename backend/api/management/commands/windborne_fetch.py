"""Management command to fetch balloon data using the same stack as the API."""
from __future__ import annotations

import json
from typing import Any

from django.core.management.base import BaseCommand, CommandError

from backend.api.views import get_balloon_service, serialize_enrichment, serialize_latest, serialize_tracks

MODES = ("latest", "tracks", "weather")


class Command(BaseCommand):
    help = "Fetch latest positions, reconstructed tracks or weather-enriched positions"

    def add_arguments(self, parser) -> None:  # noqa: D401
        parser.add_argument("--mode", type=str, default="tracks", help="One of: latest, tracks, weather")

    def handle(self, *args: Any, **options: Any) -> None:  # noqa: D401
        mode = options.get("mode") or "tracks"
        if mode not in MODES:
            raise CommandError(f"Unknown mode {mode!r}; expected one of {', '.join(MODES)}")

        service = get_balloon_service()
        now = service.now()
        if mode == "latest":
            payload = serialize_latest(service.latest(now), now)
        elif mode == "tracks":
            payload = serialize_tracks(service.tracks(now), now)
        else:
            payload = serialize_enrichment(service.with_weather(now), now)
        self.stdout.write(json.dumps(payload))
