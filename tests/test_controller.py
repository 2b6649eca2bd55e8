import random

import pytest

from landmarkgps.controller import RouteRequest
from landmarkgps.geo import Coordinate, haversine_distance
from landmarkgps.models import Route, RouteFailure

from conftest import FAR, LANDMARK, NEAR, position


def make_route(*coords):
    return Route(points=tuple(coords), distance_m=100.0, duration_s=10.0)


# ---------------------------------------------------------------------------
# Proximity alert
# ---------------------------------------------------------------------------

def test_user_near_landmark_raises_alert_after_one_update(controller):
    outcome = controller.on_location_update(position(NEAR))

    assert outcome.alert_raised is True
    assert controller.alert_shown is True
    assert outcome.distance_m < 100


def test_user_far_from_landmark_requests_route_and_recenters(controller, surface):
    assert controller.auto_center is True

    outcome = controller.on_location_update(position(FAR))

    assert outcome.alert_raised is False
    assert controller.alert_shown is False
    assert outcome.route_request.origin == FAR
    assert outcome.route_request.destination == LANDMARK
    assert surface.region.center == FAR
    assert surface.region.span_m == 100.0


def test_positions_outside_threshold_never_raise_alert(controller):
    rng = random.Random(7)
    for _ in range(200):
        p = Coordinate(LANDMARK.lat + rng.uniform(-0.05, 0.05), LANDMARK.lon + rng.uniform(-0.05, 0.05))
        if haversine_distance(p, LANDMARK) < 100:
            continue
        assert controller.on_location_update(position(p)).alert_raised is False
    assert controller.alert_shown is False


def test_position_exactly_at_threshold_does_not_alert(controller):
    assert controller.check_proximity(100.0) is False
    assert controller.check_proximity(99.99) is True


def test_alert_raised_once_and_stays_until_dismissed(controller):
    assert controller.on_location_update(position(NEAR)).alert_raised is True
    # Inside again: already showing, not raised a second time
    assert controller.on_location_update(position(NEAR)).alert_raised is False
    # Moving away does not reset it
    controller.on_location_update(position(FAR))
    assert controller.alert_shown is True

    controller.dismiss_alert()
    assert controller.alert_shown is False


def test_alert_retriggers_after_dismissal_while_still_near(controller):
    controller.on_location_update(position(NEAR))
    controller.dismiss_alert()

    assert controller.on_location_update(position(NEAR)).alert_raised is True


# ---------------------------------------------------------------------------
# Auto-centre toggle
# ---------------------------------------------------------------------------

def test_toggle_twice_restores_mode_without_recentering(controller, surface):
    region = surface.region

    assert controller.toggle_auto_center() is False
    assert controller.toggle_auto_center() is True

    assert controller.auto_center is True
    assert surface.region == region


def test_no_recentering_when_auto_center_off(controller, surface):
    controller.toggle_auto_center()
    region = surface.region

    controller.on_location_update(position(FAR))

    assert surface.region == region
    assert surface.user_location == FAR


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

def test_successful_route_replaces_overlays(controller, surface):
    first = controller.on_location_update(position(FAR)).route_request
    old = make_route(FAR, LANDMARK)
    assert controller.on_route_computed(first, old) is True
    assert surface.overlays == (old,)

    second = controller.on_location_update(position(NEAR)).route_request
    new = make_route(NEAR, LANDMARK)
    assert controller.on_route_computed(second, new) is True

    assert surface.overlays == (new,)
    assert controller.route is new


def test_failed_route_leaves_overlays_unchanged(controller, surface):
    first = controller.on_location_update(position(FAR)).route_request
    route = make_route(FAR, LANDMARK)
    controller.on_route_computed(first, route)

    second = controller.on_location_update(position(NEAR)).route_request
    controller.on_route_failed(second, RouteFailure("no network"))

    assert surface.overlays == (route,)
    assert controller.route is route


def test_stale_route_result_is_dropped(controller, surface):
    older = controller.on_location_update(position(FAR)).route_request
    newer = controller.on_location_update(position(NEAR)).route_request
    newest_route = make_route(NEAR, LANDMARK)

    assert controller.on_route_computed(newer, newest_route) is True
    assert controller.on_route_computed(older, make_route(FAR, LANDMARK)) is False

    assert surface.overlays == (newest_route,)


def test_older_request_applies_if_nothing_newer_arrived_yet(controller, surface):
    older = controller.on_location_update(position(FAR)).route_request
    controller.on_location_update(position(NEAR))

    route = make_route(FAR, LANDMARK)
    assert controller.on_route_computed(older, route) is True
    assert surface.overlays == (route,)


def test_route_requests_have_increasing_generations(controller):
    a = controller.on_location_update(position(FAR)).route_request
    b = controller.on_location_update(position(FAR)).route_request
    assert isinstance(a, RouteRequest)
    assert b.generation == a.generation + 1


def test_car_annotation_starts_after_first_route(controller, surface):
    request = controller.on_location_update(position(FAR)).route_request
    assert surface.annotations == ()
    assert controller.car_active is False

    controller.on_route_computed(request, make_route(FAR, LANDMARK))

    assert controller.car_active is True
    assert len(surface.annotations) == 1
    assert surface.annotations[0].coordinate == FAR

    controller.on_location_update(position(NEAR))
    assert len(surface.annotations) == 1
    assert surface.annotations[0].coordinate == NEAR


# ---------------------------------------------------------------------------
# Heading and helpers
# ---------------------------------------------------------------------------

def test_heading_update_reaches_surface(controller, surface):
    controller.on_heading_update(370)
    assert controller.heading == pytest.approx(10)
    assert surface.heading == pytest.approx(10)


def test_distance_and_bearing_to_landmark(controller):
    assert controller.distance_to_landmark() is None
    assert controller.bearing_to_landmark() is None

    controller.on_location_update(position(FAR))

    assert controller.distance_to_landmark() == pytest.approx(haversine_distance(FAR, LANDMARK))
    # FAR is north-east of the landmark
    assert 180 < controller.bearing_to_landmark() < 270
