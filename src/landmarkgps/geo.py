"""
Geometry helpers for LandmarkGPS.

Distances are in metres, angles in degrees clockwise from true north unless
a function says otherwise.
"""

import math
from dataclasses import dataclass
from typing import Tuple


EARTH_RADIUS_M = 6371000.0

DIRECTIONS = ["N", "NNE", "NE", "ENE", "E", "ESE", "SE", "SSE",
              "S", "SSW", "SW", "WSW", "W", "WNW", "NW", "NNW"]


@dataclass(frozen=True)
class Coordinate:
    """A latitude/longitude pair in decimal degrees."""

    lat: float
    lon: float

    def __str__(self) -> str:
        return f"{self.lat:.6f}, {self.lon:.6f}"


# =============================================================================
# DISTANCE AND BEARING
# =============================================================================

def haversine_distance(a: Coordinate, b: Coordinate) -> float:
    """Calculate distance between two points in metres."""
    lat1_rad, lat2_rad = math.radians(a.lat), math.radians(b.lat)
    delta_lat = math.radians(b.lat - a.lat)
    delta_lon = math.radians(b.lon - a.lon)
    h = math.sin(delta_lat/2)**2 + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(delta_lon/2)**2
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(h), math.sqrt(1-h))


def calculate_bearing(a: Coordinate, b: Coordinate) -> float:
    """Calculate bearing from a to b in degrees (0-360, 0=North)."""
    lat1_rad, lat2_rad = math.radians(a.lat), math.radians(b.lat)
    delta_lon = math.radians(b.lon - a.lon)
    x = math.sin(delta_lon) * math.cos(lat2_rad)
    y = math.cos(lat1_rad) * math.sin(lat2_rad) - math.sin(lat1_rad) * math.cos(lat2_rad) * math.cos(delta_lon)
    return (math.degrees(math.atan2(x, y)) + 360) % 360


def bearing_to_direction(bearing: float) -> str:
    """Convert bearing to compass direction."""
    return DIRECTIONS[int((bearing % 360 + 11.25) / 22.5) % 16]


def format_distance(meters: float) -> str:
    return f"{meters / 1000:.2f} km" if meters >= 1000 else f"{int(meters)} m"


# =============================================================================
# ROTATION
# =============================================================================

def degrees_to_radians(degrees: float) -> float:
    return degrees * math.pi / 180


def rotation_matrix(heading: float) -> Tuple[Tuple[float, float], Tuple[float, float]]:
    """
    2-D rotation for a compass heading.

    Operates on (east, north) vectors and turns clockwise, so the unit
    vector (0, 1) maps onto the direction of travel.
    """
    theta = degrees_to_radians(heading)
    c, s = math.cos(theta), math.sin(theta)
    return ((c, s), (-s, c))


def rotate(vector: Tuple[float, float], heading: float) -> Tuple[float, float]:
    (m00, m01), (m10, m11) = rotation_matrix(heading)
    x, y = vector
    return (m00 * x + m01 * y, m10 * x + m11 * y)


# =============================================================================
# LOCAL PROJECTION
# =============================================================================

def local_offset(origin: Coordinate, point: Coordinate) -> Tuple[float, float]:
    """
    Equirectangular (east, north) offset of point from origin, in metres.

    Good enough for the few kilometres a terminal map shows.
    """
    mean_lat = math.radians((origin.lat + point.lat) / 2)
    east = math.radians(point.lon - origin.lon) * math.cos(mean_lat) * EARTH_RADIUS_M
    north = math.radians(point.lat - origin.lat) * EARTH_RADIUS_M
    return east, north


def interpolate(a: Coordinate, b: Coordinate, fraction: float) -> Coordinate:
    """Point at fraction (0..1) along the straight line from a to b."""
    return Coordinate(
        lat=a.lat + (b.lat - a.lat) * fraction,
        lon=a.lon + (b.lon - a.lon) * fraction,
    )


def parse_coordinate(text: str) -> Coordinate:
    """Parse 'LAT,LON' into a Coordinate, validating ranges."""
    parts = [p.strip() for p in text.split(",")]
    if len(parts) != 2:
        raise ValueError(f"expected LAT,LON but got {text!r}")
    lat, lon = float(parts[0]), float(parts[1])
    if not -90 <= lat <= 90:
        raise ValueError(f"latitude out of range: {lat}")
    if not -180 <= lon <= 180:
        raise ValueError(f"longitude out of range: {lon}")
    return Coordinate(lat, lon)
