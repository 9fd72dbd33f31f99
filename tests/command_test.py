from __future__ import annotations

import json
from io import StringIO

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError


FEED = "https://feed.test/treasure"


def test_windborne_fetch_latest(requests_mock):
    requests_mock.get(f"{FEED}/00.json", text="[[10.0, 20.0, 5000]]")
    out = StringIO()

    call_command("windborne_fetch", "--mode", "latest", stdout=out)

    payload = json.loads(out.getvalue())
    assert [(p["lat"], p["lon"]) for p in payload["points"]] == [(10.0, 20.0)]


def test_windborne_fetch_rejects_unknown_mode():
    with pytest.raises(CommandError):
        call_command("windborne_fetch", "--mode", "history")
