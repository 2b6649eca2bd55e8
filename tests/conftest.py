import threading
from typing import List, Optional

import pytest

from landmarkgps.config import AppConfig
from landmarkgps.controller import AppController
from landmarkgps.geo import Coordinate
from landmarkgps.mapsurface import MapSurface, Region
from landmarkgps.models import Route, RouteFailure, UserPosition
from landmarkgps.routing import RouteProvider


LANDMARK = Coordinate(23.071653, 72.516995)
NEAR = Coordinate(23.0717, 72.5169)      # ~11 m from the landmark
FAR = Coordinate(23.0800, 72.5300)       # ~1.6 km from the landmark


class FakeRouteProvider(RouteProvider):
    """Returns a two-point route, or raises when told to fail."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.calls: List[tuple] = []
        self.called = threading.Event()

    def compute_route(self, origin: Coordinate, destination: Coordinate) -> Route:
        self.calls.append((origin, destination))
        self.called.set()
        if self.fail:
            raise RouteFailure("no route")
        return Route(points=(origin, destination), distance_m=1200.0, duration_s=240.0)


def position(coordinate: Coordinate, heading: Optional[float] = None) -> UserPosition:
    return UserPosition(coordinate=coordinate, heading=heading, accuracy=5.0, source="TEST")


@pytest.fixture
def config():
    return AppConfig()


@pytest.fixture
def surface(config):
    return MapSurface(Region(config.landmark.coordinate, config.initial_span_m), landmark=config.landmark)


@pytest.fixture
def controller(config, surface):
    return AppController(config, surface)
