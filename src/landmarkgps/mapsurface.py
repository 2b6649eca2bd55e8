"""
Map state and character rasteriser.

MapSurface holds everything the map shows: the visible region, the route
overlays, the car annotation, the landmark marker and the user's location.
MapWidget in app.py only turns the grids from rasterize() into rich Text.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .geo import Coordinate, local_offset, rotate
from .models import Landmark, Route

logger = logging.getLogger(__name__)

# Terminal cells are roughly twice as tall as they are wide
CELL_ASPECT = 2.0

MIN_SPAN_M = 50.0
MAX_SPAN_M = 200000.0

ARROWS = ["▲", "◥", "▶", "◢", "▼", "◣", "◀", "◤"]

Grid = List[List[str]]


@dataclass(frozen=True)
class Region:
    """Visible area: centre point and horizontal span in metres."""

    center: Coordinate
    span_m: float


@dataclass(frozen=True)
class CarAnnotation:
    coordinate: Coordinate
    heading: Optional[float] = None


def heading_glyph(heading: Optional[float]) -> str:
    if heading is None:
        return "■"
    return ARROWS[int((heading % 360 + 22.5) / 45) % 8]


class MapSurface:
    """State of the map view."""

    def __init__(self, region: Region, landmark: Optional[Landmark] = None) -> None:
        self.region = region
        self.landmark = landmark
        self.overlays: Tuple[Route, ...] = ()
        self.annotations: Tuple[CarAnnotation, ...] = ()
        self.shows_user_location: bool = True
        self.user_location: Optional[Coordinate] = None
        self.heading: Optional[float] = None
        self.pan_x: int = 0
        self.pan_y: int = 0

    # ------------------------------------------------------------------
    # Overlays and annotations
    # ------------------------------------------------------------------

    def set_overlays(self, overlays: Sequence[Route]) -> None:
        """Replace every overlay with the given ones."""
        self.overlays = tuple(overlays)

    def refresh_car(self, coordinate: Coordinate, heading: Optional[float] = None) -> None:
        """Remove all annotations and add a single car at coordinate."""
        self.remove_annotations()
        self.annotations = (CarAnnotation(coordinate, heading if heading is not None else self.heading),)

    def remove_annotations(self) -> None:
        self.annotations = ()

    def update_user_location(self, coordinate: Coordinate) -> None:
        self.user_location = coordinate

    def set_heading(self, heading: float) -> None:
        self.heading = heading % 360
        if self.annotations:
            car = self.annotations[0]
            self.annotations = (CarAnnotation(car.coordinate, self.heading),)

    # ------------------------------------------------------------------
    # Region
    # ------------------------------------------------------------------

    def center_on(self, coordinate: Coordinate, span_m: float) -> None:
        """Re-centre and re-scale the visible region; clears any pan."""
        self.region = Region(coordinate, span_m)
        logger.debug("Map centred on %s (%.0f m)", coordinate, span_m)
        self.pan_x = 0
        self.pan_y = 0

    def zoom(self, factor: float) -> None:
        """factor > 1 zooms out, < 1 zooms in."""
        span = min(MAX_SPAN_M, max(MIN_SPAN_M, self.region.span_m * factor))
        self.region = Region(self.region.center, span)

    def pan(self, dx: int, dy: int) -> None:
        self.pan_x += dx
        self.pan_y += dy

    # ------------------------------------------------------------------
    # Projection
    # ------------------------------------------------------------------

    def project(self, coordinate: Coordinate, width: int, height: int) -> Tuple[int, int]:
        """Cell (column, row) of a coordinate; may lie outside the grid."""
        east, north = local_offset(self.region.center, coordinate)
        meters_per_col = self.region.span_m / max(1, width)
        meters_per_row = meters_per_col * CELL_ASPECT
        col = width // 2 + self.pan_x + int(round(east / meters_per_col))
        row = height // 2 + self.pan_y - int(round(north / meters_per_row))
        return col, row

    # ------------------------------------------------------------------
    # Rasterising
    # ------------------------------------------------------------------

    def rasterize(self, width: int, height: int) -> Tuple[Grid, Grid]:
        """
        Draw the map into a width x height character grid.

        Returns (chars, colours), where colours holds a colour name per cell
        ("" for background). Draw order: scale ticks, route, landmark, user
        location, car.
        """
        chars = [[" " for _ in range(width)] for _ in range(height)]
        colours = [["" for _ in range(width)] for _ in range(height)]

        def put(col: int, row: int, char: str, colour: str) -> None:
            if 0 <= col < width and 0 <= row < height:
                chars[row][col] = char
                colours[row][col] = colour

        # Compass points
        if width > 0 and height > 0:
            put(width // 2, 0, "N", "grey50")
            put(width // 2, height - 1, "S", "grey50")
            put(0, height // 2, "W", "grey50")
            put(width - 1, height // 2, "E", "grey50")

        for route in self.overlays:
            cells = [self.project(p, width, height) for p in route.points]
            for (c0, r0), (c1, r1) in zip(cells, cells[1:]):
                steps = max(abs(c1 - c0), abs(r1 - r0), 1)
                # Skip segments far off screen instead of walking them cell by cell
                if steps > 4 * (width + height) and not self._segment_visible(c0, r0, c1, r1, width, height):
                    continue
                for i in range(steps + 1):
                    put(c0 + round((c1 - c0) * i / steps), r0 + round((r1 - r0) * i / steps), "•", "blue")

        if self.landmark is not None:
            col, row = self.project(self.landmark.coordinate, width, height)
            put(col, row, "★", "yellow")
            for i, c in enumerate(self.landmark.name):
                put(col + 2 + i, row, c, "yellow")

        if self.shows_user_location and self.user_location is not None:
            col, row = self.project(self.user_location, width, height)
            put(col, row, "◉", "green")

        for car in self.annotations:
            col, row = self.project(car.coordinate, width, height)
            put(col, row, heading_glyph(car.heading), "bright_cyan")
            if car.heading is not None:
                # Nose of the car one cell ahead along the heading
                east, north = rotate((0.0, 1.0), car.heading)
                nose_col = col + int(round(east * CELL_ASPECT))
                nose_row = row - int(round(north))
                if (nose_col, nose_row) != (col, row):
                    put(nose_col, nose_row, "·", "bright_cyan")

        return chars, colours

    @staticmethod
    def _segment_visible(c0: int, r0: int, c1: int, r1: int, width: int, height: int) -> bool:
        return not (
            max(c0, c1) < 0 or min(c0, c1) >= width
            or max(r0, r1) < 0 or min(r0, r1) >= height
        )


def region_for(points: Sequence[Coordinate], padding: float = 1.3) -> Optional[Region]:
    """Smallest region (by span) that shows all points."""
    if not points:
        return None
    lat = sum(p.lat for p in points) / len(points)
    lon = sum(p.lon for p in points) / len(points)
    center = Coordinate(lat, lon)
    span = MIN_SPAN_M
    for p in points:
        east, north = local_offset(center, p)
        span = max(span, 2 * abs(east), 2 * abs(north) * CELL_ASPECT)
    return Region(center, min(MAX_SPAN_M, span * padding))
