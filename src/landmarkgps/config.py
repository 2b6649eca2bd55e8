"""
All tuneable settings in one place.

Build one AppConfig at startup and pass it to every component.
"""

from dataclasses import dataclass, field

from .geo import Coordinate
from .models import Landmark


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

DEFAULT_LANDMARK = Landmark("Tower Bridge", Coordinate(23.071653, 72.516995))

ALERT_DISTANCE_M: float = 100.0
CENTER_SPAN_M: float = 100.0

OSRM_BASE_URL: str = "https://router.project-osrm.org"


# ---------------------------------------------------------------------------
# Main config
# ---------------------------------------------------------------------------

@dataclass
class AppConfig:
    # Destination
    landmark: Landmark = field(default_factory=lambda: DEFAULT_LANDMARK)

    # Proximity alert
    alert_distance_m: float = ALERT_DISTANCE_M

    # Map
    center_span_m: float = CENTER_SPAN_M       # visible width when auto-centring
    initial_span_m: float = 2000.0             # visible width before the first fix
    auto_center: bool = True

    # Location
    location_interval_s: float = 2.0           # seconds between location polls

    # Routing
    osrm_base_url: str = OSRM_BASE_URL
    osrm_timeout_s: float = 10.0

    def __post_init__(self) -> None:
        if self.alert_distance_m <= 0:
            raise ValueError("alert_distance_m must be positive")
        if self.center_span_m <= 0 or self.initial_span_m <= 0:
            raise ValueError("map spans must be positive")
        if self.location_interval_s <= 0:
            raise ValueError("location_interval_s must be positive")
