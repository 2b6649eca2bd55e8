import math

import pytest

from landmarkgps.geo import (
    Coordinate,
    bearing_to_direction,
    calculate_bearing,
    format_distance,
    haversine_distance,
    interpolate,
    local_offset,
    parse_coordinate,
    rotate,
    rotation_matrix,
)

from conftest import FAR, LANDMARK, NEAR


def test_haversine_distance_zero_for_same_point():
    assert haversine_distance(LANDMARK, LANDMARK) == 0


def test_haversine_distance_one_degree_latitude():
    d = haversine_distance(Coordinate(0, 0), Coordinate(1, 0))
    assert d == pytest.approx(111195, rel=1e-3)


def test_scenario_distances():
    assert haversine_distance(NEAR, LANDMARK) < 100
    assert 1000 < haversine_distance(FAR, LANDMARK) < 2000


@pytest.mark.parametrize("target, expected", [
    (Coordinate(1, 0), 0),
    (Coordinate(0, 1), 90),
    (Coordinate(-1, 0), 180),
    (Coordinate(0, -1), 270),
])
def test_calculate_bearing_cardinal(target, expected):
    assert calculate_bearing(Coordinate(0, 0), target) == pytest.approx(expected, abs=1e-6)


def test_bearing_to_direction():
    assert bearing_to_direction(0) == "N"
    assert bearing_to_direction(359) == "N"
    assert bearing_to_direction(45) == "NE"
    assert bearing_to_direction(200) == "SSW"
    assert bearing_to_direction(-90) == "W"


def test_rotation_matrix_is_clockwise_from_north():
    east, north = rotate((0.0, 1.0), 90)
    assert east == pytest.approx(1.0)
    assert north == pytest.approx(0.0, abs=1e-9)

    (m00, m01), (m10, m11) = rotation_matrix(30)
    assert m00 == pytest.approx(math.cos(math.pi / 6))
    assert m01 == pytest.approx(math.sin(math.pi / 6))
    assert m10 == pytest.approx(-math.sin(math.pi / 6))


def test_local_offset_matches_haversine_for_short_distances():
    east, north = local_offset(LANDMARK, FAR)
    assert east > 0 and north > 0
    assert math.hypot(east, north) == pytest.approx(haversine_distance(LANDMARK, FAR), rel=1e-3)


def test_interpolate_endpoints_and_midpoint():
    a, b = Coordinate(0, 0), Coordinate(10, 20)
    assert interpolate(a, b, 0) == a
    assert interpolate(a, b, 1) == b
    assert interpolate(a, b, 0.5) == Coordinate(5, 10)


def test_format_distance():
    assert format_distance(50.7) == "50 m"
    assert format_distance(1500) == "1.50 km"


def test_parse_coordinate():
    assert parse_coordinate("23.071653, 72.516995") == LANDMARK


@pytest.mark.parametrize("text", ["", "1", "1,2,3", "91,0", "0,181", "north,east"])
def test_parse_coordinate_rejects_bad_input(text):
    with pytest.raises(ValueError):
        parse_coordinate(text)
