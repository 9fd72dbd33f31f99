from __future__ import annotations

import pytest

from backend.core.geo import cell_key, haversine_km
from backend.core.services.tracks import TrackBuilder, build_tracks


def test_single_observation_forms_one_track(make_observation):
    obs = make_observation(10.0, 20.0)

    tracks = build_tracks([obs])

    assert tracks == [[obs]]


def test_identical_observations_merge(make_observation):
    first = make_observation(10.0, 20.0, alt=1.0)
    second = make_observation(10.0, 20.0, alt=2.0)

    assert build_tracks([first, second]) == [[first, second]]
    assert build_tracks([second, first]) == [[second, first]]


def test_time_gap_beyond_tolerance_splits(make_observation):
    older = make_observation(10.0, 20.0, hours_ago=3)
    newer = make_observation(10.0, 20.0)

    tracks = build_tracks([older, newer])

    assert tracks == [[older], [newer]]


def test_time_gap_at_tolerance_joins(make_observation):
    older = make_observation(10.0, 20.0, hours_ago=2)
    newer = make_observation(10.1, 20.0)

    assert len(build_tracks([older, newer])) == 1


def test_distance_beyond_threshold_splits(make_observation):
    first = make_observation(10.0, 20.0)
    # ~90 km north
    second = make_observation(10.0 + 90 / 111.195, 20.0)

    tracks = build_tracks([first, second])

    assert len(tracks) == 2
    assert haversine_km(first.lat, first.lon, second.lat, second.lon) == pytest.approx(90, rel=1e-3)


def test_observation_joins_nearest_tail(make_observation):
    a = make_observation(0.0, 0.0, hours_ago=1)
    b = make_observation(0.0, 1.0, hours_ago=1)
    follower = make_observation(0.0, 0.9)

    tracks = build_tracks([a, b, follower])

    assert tracks == [[a], [b, follower]]


def test_equidistant_tie_goes_to_first_track(make_observation):
    left = make_observation(0.0, -0.5, hours_ago=1)
    right = make_observation(0.0, 0.5, hours_ago=1)
    middle = make_observation(0.0, 0.0)

    tracks = build_tracks([left, right, middle])

    assert tracks == [[left, middle], [right]]


def test_only_tail_is_consulted(make_observation):
    start = make_observation(0.0, 0.0, hours_ago=2)
    drift = make_observation(0.0, 0.6, hours_ago=1)
    back_at_start = make_observation(0.0, 0.0)

    tracks = build_tracks([start, drift, back_at_start])

    assert tracks == [[start, drift, back_at_start]]


def test_custom_tolerances(make_observation):
    first = make_observation(10.0, 20.0, hours_ago=3)
    second = make_observation(10.0, 20.5)

    builder = TrackBuilder(time_tolerance_hours=4, distance_km_max=100)

    assert len(builder.build([first, second])) == 1


def test_haversine_is_symmetric_and_zero_on_identity():
    a = (48.85, 2.35)
    b = (-33.87, 151.21)

    assert haversine_km(*a, *b) == pytest.approx(haversine_km(*b, *a))
    assert haversine_km(*a, *a) == 0.0
    assert haversine_km(0.0, 0.0, 1.0, 0.0) == pytest.approx(111.195, rel=1e-4)


@pytest.mark.parametrize(
    ("lat", "lon", "expected"),
    [
        (10.01, 20.01, "10.0,20.0"),
        (10.25, 20.74, "10.5,20.5"),
        (-0.2, -0.24, "0.0,0.0"),
        (-0.3, 179.8, "-0.5,180.0"),
    ],
)
def test_cell_key(lat, lon, expected):
    assert cell_key(lat, lon) == expected
