from __future__ import annotations

import math

from route_runner.services.ai.intent import ParsedIntent
from route_runner.services.distance import (
    augment_intent,
    estimate_route_distance,
    generate_additional_waypoints,
)
from route_runner.services.geo import Location, haversine_miles, location_from_payload

SPACE_NEEDLE = Location(lat=47.6205, lng=-122.3493)
GREEN_LAKE = Location(lat=47.6798, lng=-122.3409)


def test_haversine_is_symmetric_and_zero_on_same_point():
    assert haversine_miles(SPACE_NEEDLE, SPACE_NEEDLE) == 0
    assert math.isclose(haversine_miles(SPACE_NEEDLE, GREEN_LAKE), haversine_miles(GREEN_LAKE, SPACE_NEEDLE))


def test_haversine_matches_known_city_distance():
    seattle = Location(lat=47.6062, lng=-122.3321)
    portland = Location(lat=45.5152, lng=-122.6784)
    assert 140 < haversine_miles(seattle, portland) < 150


def test_collinear_midpoint_does_not_change_estimate():
    a = Location(lat=47.0, lng=-122.0)
    b = Location(lat=47.1, lng=-122.0)
    c = Location(lat=47.2, lng=-122.0)
    assert math.isclose(estimate_route_distance([a, b, c]), estimate_route_distance([a, c]), rel_tol=1e-9)


def test_estimate_of_single_point_is_zero():
    assert estimate_route_distance([SPACE_NEEDLE]) == 0


def test_location_payload_accepts_lon_alias_and_rejects_out_of_range():
    assert location_from_payload({"lat": 47.6, "lon": -122.3}) == Location(lat=47.6, lng=-122.3)
    assert location_from_payload({"lat": 91, "lng": 0}) is None
    assert location_from_payload({"lat": "north", "lng": 0}) is None
    assert location_from_payload(None) is None


def test_additional_waypoint_count_follows_shortage():
    assert len(generate_additional_waypoints(SPACE_NEEDLE, GREEN_LAKE, 5.0, 2.7)) == 5
    assert len(generate_additional_waypoints(SPACE_NEEDLE, GREEN_LAKE, 3.0, 2.8)) == 2
    assert generate_additional_waypoints(SPACE_NEEDLE, GREEN_LAKE, 3.0, 3.5) == []


def test_additional_waypoints_alternate_sides_of_the_line():
    points = generate_additional_waypoints(SPACE_NEEDLE, GREEN_LAKE, 5.0, 1.0)
    # The line runs almost due north, so the zigzag shows up in longitude.
    assert points[0].lng < points[1].lng
    assert points[2].lng < points[1].lng


def test_augment_adds_waypoints_when_too_short_and_never_shortens():
    intent = ParsedIntent(start=SPACE_NEEDLE, end=GREEN_LAKE, distance_miles=10)
    before = estimate_route_distance(intent.points())

    augmented = augment_intent(intent)

    assert len(augmented.waypoints) >= 2
    assert augmented.start == intent.start
    assert augmented.end == intent.end
    assert estimate_route_distance(augmented.points()) >= before
    assert intent.waypoints == []


def test_augment_leaves_intent_within_tolerance_untouched():
    intent = ParsedIntent(start=SPACE_NEEDLE, end=GREEN_LAKE, distance_miles=4.5)
    assert augment_intent(intent) is intent


def test_augment_without_target_distance_is_noop():
    intent = ParsedIntent(start=SPACE_NEEDLE, end=GREEN_LAKE)
    assert augment_intent(intent) is intent


def test_augment_on_loop_collapses_synthetic_points_onto_start():
    intent = ParsedIntent(start=SPACE_NEEDLE, end=SPACE_NEEDLE, distance_miles=3)

    augmented = augment_intent(intent)

    assert augmented.waypoints
    assert all(point == SPACE_NEEDLE for point in augmented.waypoints)
