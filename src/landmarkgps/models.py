"""Value types and errors shared across LandmarkGPS."""

from dataclasses import dataclass
from typing import Optional, Tuple

from .geo import Coordinate


class LandmarkGPSError(Exception):
    """Base class for LandmarkGPS errors."""


class LocationFailure(LandmarkGPSError):
    """Location could not be determined (permission denied, no signal, timeout)."""


class RouteFailure(LandmarkGPSError):
    """Directions service returned no route."""


@dataclass(frozen=True)
class Landmark:
    name: str
    coordinate: Coordinate


@dataclass(frozen=True)
class UserPosition:
    """
    Latest known user fix.

    heading is degrees clockwise from true north, None when the provider
    cannot tell which way the user faces.
    """

    coordinate: Coordinate
    heading: Optional[float] = None
    accuracy: Optional[float] = None
    source: str = ""


@dataclass(frozen=True)
class Route:
    """A driving route as an ordered polyline."""

    points: Tuple[Coordinate, ...]
    distance_m: float = 0.0
    duration_s: float = 0.0

    def __len__(self) -> int:
        return len(self.points)

    @property
    def origin(self) -> Optional[Coordinate]:
        return self.points[0] if self.points else None

    @property
    def destination(self) -> Optional[Coordinate]:
        return self.points[-1] if self.points else None
