"""
Driving directions for LandmarkGPS.

OSRMRouteProvider talks to an OSRM server over HTTP and returns the first
route as a polyline. OSRM wants coordinates as lon,lat; everything outside
this module uses Coordinate(lat, lon).
"""

import logging
from typing import Any, List

import requests

from .geo import Coordinate
from .models import Route, RouteFailure

logger = logging.getLogger(__name__)

USER_AGENT = "LandmarkGPS/1.0"


class RouteProvider:
    """Interface for a directions service."""

    def compute_route(self, origin: Coordinate, destination: Coordinate) -> Route:
        """Return a driving route from origin to destination or raise RouteFailure."""
        raise NotImplementedError


class OSRMRouteProvider(RouteProvider):
    """
    OSRM /route client.

    Args:
        base_url: server root, e.g. https://router.project-osrm.org
        timeout: seconds to wait for a response before giving up
    """

    profile = "driving"

    def __init__(self, base_url: str, timeout: float = 10.0) -> None:
        if not base_url:
            raise ValueError("OSRM base URL must not be empty")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def format_coordinates(self, coords: List[Coordinate]) -> str:
        """Convert coordinates to OSRM format 'lon,lat;lon,lat;...'"""
        return ";".join(f"{c.lon},{c.lat}" for c in coords)

    def route_url(self, origin: Coordinate, destination: Coordinate) -> str:
        return f"{self.base_url}/route/v1/{self.profile}/{self.format_coordinates([origin, destination])}"

    def compute_route(self, origin: Coordinate, destination: Coordinate) -> Route:
        url = self.route_url(origin, destination)
        try:
            response = requests.get(
                url,
                params={"overview": "full", "geometries": "geojson"},
                headers={"User-Agent": USER_AGENT},
                timeout=self.timeout,
            )
            data = response.json()
        except requests.RequestException as e:
            raise RouteFailure(f"Directions request failed: {e}") from e
        except ValueError as e:
            raise RouteFailure("Directions service returned invalid JSON") from e

        return self.parse_route(data)

    def parse_route(self, data: Any) -> Route:
        """Normalize an OSRM /route response into a Route."""
        if not isinstance(data, dict):
            raise RouteFailure("Directions service returned an unexpected body")
        if data.get("code") != "Ok":
            raise RouteFailure(f"OSRM error: {data.get('message', data.get('code', 'Unknown error'))}")

        routes = data.get("routes") or []
        if not isinstance(routes, list) or not routes:
            raise RouteFailure("No route found")

        # OSRM may return alternatives; the first is the recommended one
        route = routes[0]
        try:
            points = tuple(
                Coordinate(lat=float(lat), lon=float(lon))
                for lon, lat in route["geometry"]["coordinates"]
            )
            distance_m = float(route.get("distance", 0.0))
            duration_s = float(route.get("duration", 0.0))
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise RouteFailure("Route is malformed") from e
        if len(points) < 2:
            raise RouteFailure("Route has no usable geometry")

        logger.debug("Route with %d points, %.0f m", len(points), distance_m)
        return Route(points=points, distance_m=distance_m, duration_s=duration_s)
