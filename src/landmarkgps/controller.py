"""
State machine behind the LandmarkGPS screen.

Feed it location, heading and route results; it updates the map surface
and tells the caller when to ask for a route or show the proximity alert.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from .config import AppConfig
from .geo import Coordinate, calculate_bearing, haversine_distance
from .mapsurface import MapSurface
from .models import Route, RouteFailure, UserPosition

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RouteRequest:
    """One directions request; generation increases with every request."""

    generation: int
    origin: Coordinate
    destination: Coordinate


@dataclass(frozen=True)
class LocationOutcome:
    """What the UI has to do after a location update."""

    route_request: RouteRequest
    alert_raised: bool
    distance_m: float


class AppController:
    """
    Owns the screen state: position, heading, active route, alert and
    auto-centre mode.

    Not thread-safe. Call every method from the UI thread.

    Usage:
        controller = AppController(config, surface)

        # On every location update:
        outcome = controller.on_location_update(position)
        if outcome.alert_raised:
            show_alert()
        start_route_worker(outcome.route_request)

        # When the worker finishes:
        controller.on_route_computed(request, route)
    """

    def __init__(self, config: AppConfig, surface: MapSurface) -> None:
        self.config = config
        self.surface = surface
        self.position: Optional[UserPosition] = None
        self.heading: Optional[float] = None
        self.route: Optional[Route] = None
        self.alert_shown: bool = False
        self.auto_center: bool = config.auto_center
        self.car_active: bool = False
        self._generation: int = 0
        self._applied_generation: int = 0

    @property
    def landmark(self) -> Coordinate:
        return self.config.landmark.coordinate

    # ------------------------------------------------------------------
    # Location flow
    # ------------------------------------------------------------------

    def on_location_update(self, position: UserPosition) -> LocationOutcome:
        """Apply a new fix and return the route request to run for it."""
        self.position = position
        self.surface.update_user_location(position.coordinate)

        if self.auto_center:
            self.surface.center_on(position.coordinate, self.config.center_span_m)

        distance = haversine_distance(position.coordinate, self.landmark)
        alert_raised = self.check_proximity(distance)

        if self.car_active:
            self.surface.refresh_car(position.coordinate, self.heading)

        return LocationOutcome(
            route_request=self._next_route_request(position.coordinate),
            alert_raised=alert_raised,
            distance_m=distance,
        )

    def on_heading_update(self, heading: float) -> None:
        self.heading = heading % 360
        self.surface.set_heading(self.heading)

    def check_proximity(self, distance_m: float) -> bool:
        """Raise the alert when inside the threshold; True only when newly raised."""
        if distance_m < self.config.alert_distance_m and not self.alert_shown:
            self.alert_shown = True
            logger.info("Within %.0f m of %s", distance_m, self.config.landmark.name)
            return True
        return False

    def dismiss_alert(self) -> None:
        self.alert_shown = False

    # ------------------------------------------------------------------
    # Route flow
    # ------------------------------------------------------------------

    def _next_route_request(self, origin: Coordinate) -> RouteRequest:
        self._generation += 1
        return RouteRequest(self._generation, origin, self.landmark)

    def is_stale(self, request: RouteRequest) -> bool:
        """True when a newer route has already been applied."""
        return request.generation < self._applied_generation

    def on_route_computed(self, request: RouteRequest, route: Route) -> bool:
        """Make route the active one. Returns False if the result was stale."""
        if self.is_stale(request):
            logger.debug("Dropping stale route #%d (have #%d)", request.generation, self._applied_generation)
            return False

        self._applied_generation = request.generation
        self.route = route
        self.surface.set_overlays([route])
        self.car_active = True
        if self.position is not None:
            self.surface.refresh_car(self.position.coordinate, self.heading)
        return True

    def on_route_failed(self, request: RouteRequest, error: RouteFailure) -> None:
        """Keep whatever route is on screen."""
        logger.info("Route #%d failed: %s", request.generation, error)

    # ------------------------------------------------------------------
    # User toggle
    # ------------------------------------------------------------------

    def toggle_auto_center(self) -> bool:
        self.auto_center = not self.auto_center
        return self.auto_center

    # ------------------------------------------------------------------
    # Read-only helpers
    # ------------------------------------------------------------------

    def distance_to_landmark(self) -> Optional[float]:
        if self.position is None:
            return None
        return haversine_distance(self.position.coordinate, self.landmark)

    def bearing_to_landmark(self) -> Optional[float]:
        if self.position is None:
            return None
        return calculate_bearing(self.position.coordinate, self.landmark)
