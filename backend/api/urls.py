"""API URL configuration."""
from __future__ import annotations

from django.urls import path

from backend.api.views import EnrichedPositionsView, LatestPositionsView, TracksView

urlpatterns = [
    path("windborne", TracksView.as_view(), name="windborne-tracks"),
    path("windborne/latest", LatestPositionsView.as_view(), name="windborne-latest"),
    path("windborne/with-weather", EnrichedPositionsView.as_view(), name="windborne-with-weather"),
]
