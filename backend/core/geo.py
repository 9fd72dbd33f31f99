"""Geographic helpers shared by the track engine and the weather cache."""
from __future__ import annotations

import math

EARTH_RADIUS_KM = 6371.0
CELL_SIZE_DEG = 0.5


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two coordinates in kilometres."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)
    inner = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(min(1.0, inner)))


def _round_half_up(value: float) -> float:
    # Math.round semantics: halves go towards +infinity, unlike round().
    return math.floor(value + 0.5)


def snap_to_cell(value: float) -> float:
    """Snap a coordinate onto the 0.5 degree grid."""
    return _round_half_up(value / CELL_SIZE_DEG) * CELL_SIZE_DEG


def cell_key(lat: float, lon: float) -> str:
    """Return the ``"lat,lon"`` key of the weather cell holding a coordinate.

    >>> cell_key(10.01, 20.01)
    '10.0,20.0'
    >>> cell_key(-0.3, 179.8)
    '-0.5,180.0'
    """
    return f"{snap_to_cell(lat):.1f},{snap_to_cell(lon):.1f}"


__all__ = ["EARTH_RADIUS_KM", "haversine_km", "cell_key", "snap_to_cell"]
