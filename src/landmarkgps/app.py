#!/usr/bin/env python3
"""
LandmarkGPS - Terminal map that guides you to a landmark

FEATURES:
- Live location from macOS Location Services (IP fallback)
- Driving route to the landmark from OSRM, refreshed on every fix
- Car marker rotated to your heading
- Alert when you come within 100 m of the landmark
- Map that follows you, or stays where you leave it

CONTROLS:
- a: Toggle location-based region (auto-centre)
- r: Refresh GPS location now
- c: Centre on my position once
- f: Fit route on screen
- +/-: Zoom
- Mouse drag: Pan the view
- q: Quit
"""

import argparse
import logging
from typing import Optional

from textual import events, on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, Vertical
from textual.message import Message
from textual.screen import ModalScreen
from textual.widgets import Button, Footer, Header, Label, Static
from textual.logging import TextualHandler
from textual.worker import Worker, WorkerState
from rich.text import Text
from rich.style import Style

from .config import AppConfig
from .controller import AppController, RouteRequest
from .geo import Coordinate, bearing_to_direction, format_distance, parse_coordinate
from .location import (
    HeadingUpdate,
    LocationError,
    LocationEvent,
    LocationProvider,
    LocationSource,
    PositionUpdate,
    default_provider,
    describe_accuracy,
    simulated_approach,
)
from .mapsurface import MapSurface, Region, region_for
from .models import Landmark, Route, RouteFailure, UserPosition
from .routing import OSRMRouteProvider, RouteProvider

logger = logging.getLogger(__name__)


def region_button_label(enabled: bool) -> str:
    return "Disable Location-Based Region" if enabled else "Enable Location-Based Region"


# =============================================================================
# MESSAGES
# =============================================================================

class LocationEventReceived(Message):
    """A location event handed over from the location worker thread."""

    def __init__(self, event: LocationEvent) -> None:
        super().__init__()
        self.event = event


class RouteFinished(Message):
    """A route worker finished, with either a route or an error."""

    def __init__(
        self,
        request: RouteRequest,
        route: Optional[Route] = None,
        error: Optional[RouteFailure] = None,
    ) -> None:
        super().__init__()
        self.request = request
        self.route = route
        self.error = error


# =============================================================================
# UI COMPONENTS
# =============================================================================

class MapWidget(Static):
    """
    Map display widget.
    - Draws the route, landmark, your position and the car
    - Supports mouse drag to pan view
    """

    can_focus = True

    def __init__(self, surface: MapSurface, **kwargs):
        super().__init__(**kwargs)
        self.surface = surface
        self._dragging: bool = False
        self._drag_x: int = 0
        self._drag_y: int = 0
        self._width: int = 60
        self._height: int = 20

    def on_resize(self, event: events.Resize) -> None:
        self._width = event.size.width
        self._height = event.size.height

    def on_mouse_down(self, event: events.MouseDown) -> None:
        if event.button == 1:
            self._dragging = True
            self._drag_x = event.x
            self._drag_y = event.y
            self.capture_mouse()

    def on_mouse_up(self, event: events.MouseUp) -> None:
        self._dragging = False
        self.release_mouse()

    def on_mouse_move(self, event: events.MouseMove) -> None:
        if self._dragging:
            self.surface.pan(event.x - self._drag_x, event.y - self._drag_y)
            self._drag_x = event.x
            self._drag_y = event.y
            self.refresh()

    def render(self) -> Text:
        text = Text()
        chars, colours = self.surface.rasterize(self._width, self._height)
        for row_chars, row_colours in zip(chars, colours):
            for char, colour in zip(row_chars, row_colours):
                text.append(char, style=Style(color=colour) if colour else None)
            text.append("\n")
        return text


class InfoWidget(Static):
    """Shows navigation information."""

    def __init__(self, landmark: Landmark, **kwargs):
        super().__init__(**kwargs)
        self.landmark = landmark
        self.gps_status: str = "⏳ Waiting for location..."
        self.user_position: Optional[UserPosition] = None
        self.heading: Optional[float] = None
        self.distance: Optional[float] = None
        self.bearing: Optional[float] = None
        self.route: Optional[Route] = None
        self.auto_center: bool = True

    def update_info(
        self,
        gps_status: str,
        position: Optional[UserPosition],
        heading: Optional[float],
        distance: Optional[float],
        bearing: Optional[float],
        route: Optional[Route],
        auto_center: bool,
    ) -> None:
        self.gps_status = gps_status
        self.user_position = position
        self.heading = heading
        self.distance = distance
        self.bearing = bearing
        self.route = route
        self.auto_center = auto_center

    def render(self) -> Text:
        text = Text()

        text.append("┌─ NAVIGATION ─────────────────────────────────────────┐\n", style=Style(color="green"))

        # GPS Status
        if "Excellent" in self.gps_status or "Good" in self.gps_status:
            text.append(f"│ {self.gps_status:<53} │\n", style=Style(color="green", bold=True))
        elif "❌" in self.gps_status:
            text.append(f"│ {self.gps_status:<53} │\n", style=Style(color="red"))
        else:
            text.append(f"│ {self.gps_status:<53} │\n", style=Style(color="yellow"))

        # My Location
        if self.user_position is not None:
            loc_str = f"YOUR LOCATION: {self.user_position.coordinate}"
            if self.heading is not None:
                loc_str += f"  HDG {self.heading:.0f}°"
            text.append(f"│ {loc_str:<53} │\n", style=Style(color="white"))
        else:
            text.append(f"│ {'YOUR LOCATION: Unknown':<53} │\n", style=Style(color="yellow"))

        # Landmark
        text.append(f"│ DESTINATION: {self.landmark.name[:40]:<40} │\n", style=Style(color="white"))
        if self.distance is not None and self.bearing is not None:
            dir_str = bearing_to_direction(self.bearing)
            nav_str = f"DISTANCE: {format_distance(self.distance)}  |  DIRECTION: {self.bearing:.0f}° ({dir_str})"
            text.append(f"│ {nav_str:<53} │\n", style=Style(color="green"))
        else:
            text.append(f"│ {'':<53} │\n", style=Style(color="green"))

        # Route
        if self.route is not None:
            route_str = f"ROUTE: {format_distance(self.route.distance_m)}, {self.route.duration_s / 60:.0f} min by car"
            text.append(f"│ {route_str:<53} │\n", style=Style(color="blue"))
        else:
            text.append(f"│ {'ROUTE: Not calculated yet':<53} │\n", style=Style(color="grey50"))

        mode_str = f"FOLLOW ME: {'ON' if self.auto_center else 'OFF'}"
        text.append(f"│ {mode_str:<53} │\n", style=Style(color="cyan"))

        text.append("└───────────────────────────────────────────────────────┘\n", style=Style(color="green"))

        return text


class AlertScreen(ModalScreen[bool]):
    """Proximity alert with a single OK button."""

    DEFAULT_CSS = """
    AlertScreen {
        align: center middle;
    }

    #alert-dialog {
        width: 50;
        height: auto;
        border: heavy yellow;
        background: #111100;
        padding: 1 2;
    }

    #alert-title {
        text-style: bold;
        color: yellow;
        width: 100%;
        content-align: center middle;
    }

    #alert-message {
        width: 100%;
        margin: 1 0;
        content-align: center middle;
    }

    #alert-ok {
        width: 100%;
    }
    """

    BINDINGS = [
        Binding("escape", "acknowledge", "OK", show=False),
        Binding("enter", "acknowledge", "OK", show=False),
    ]

    def __init__(self, heading: str, message: str) -> None:
        super().__init__()
        self.alert_heading = heading
        self.alert_message = message

    def compose(self) -> ComposeResult:
        with Vertical(id="alert-dialog"):
            yield Label(self.alert_heading, id="alert-title")
            yield Label(self.alert_message, id="alert-message")
            yield Button("OK", variant="primary", id="alert-ok")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "alert-ok":
            event.stop()
            self.dismiss(True)

    def action_acknowledge(self) -> None:
        self.dismiss(True)


# =============================================================================
# MAIN APPLICATION
# =============================================================================

class LandmarkGPSApp(App):
    """
    LandmarkGPS - Terminal map that guides you to a landmark

    All screen state lives in the AppController and is only touched from
    message handlers. Location reads and route requests run in thread
    workers and report back with messages.
    """

    TITLE = "LandmarkGPS"

    CSS = """
    Screen {
        background: #000000;
    }

    #map-container {
        height: 1fr;
        border: heavy green;
        background: #000000;
    }

    #info-panel {
        height: auto;
        padding: 0 1;
    }

    #toggle-region {
        width: 100%;
    }

    Static {
        color: #00ff00;
    }

    Footer {
        background: #001100;
    }

    Header {
        background: #001100;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("a", "toggle_region", "Follow"),
        Binding("r", "refresh_gps", "GPS"),
        Binding("c", "center_me", "Centre"),
        Binding("f", "fit_route", "Fit"),
        Binding("plus", "zoom(0.5)", "Zoom in", show=False),
        Binding("minus", "zoom(2.0)", "Zoom out", show=False),
    ]

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        location_provider: Optional[LocationProvider] = None,
        route_provider: Optional[RouteProvider] = None,
    ):
        super().__init__()
        self.config = config or AppConfig()
        self.surface = MapSurface(
            Region(self.config.landmark.coordinate, self.config.initial_span_m),
            landmark=self.config.landmark,
        )
        self.controller = AppController(self.config, self.surface)
        self.location_source = LocationSource(location_provider or default_provider())
        self.router = route_provider or OSRMRouteProvider(
            self.config.osrm_base_url, timeout=self.config.osrm_timeout_s
        )
        self.gps_status: str = "⏳ Waiting for location..."
        self._unsubscribe = None

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)

        self.map_widget = MapWidget(self.surface, id="map")
        self.info_panel = InfoWidget(self.config.landmark, id="info-panel")

        with Container(id="map-container"):
            yield self.map_widget

        yield self.info_panel
        self.toggle_button = Button(region_button_label(self.controller.auto_center), id="toggle-region")
        yield self.toggle_button
        yield Footer()

    def on_mount(self) -> None:
        """Subscribe to location events and start polling."""
        self.sub_title = self.config.landmark.name
        self._unsubscribe = self.location_source.subscribe(self._on_location_event)
        self.location_source.start()
        self.set_interval(self.config.location_interval_s, self._poll_location)
        self._refresh_display()
        self.action_refresh_gps()

    def on_unmount(self) -> None:
        self.location_source.stop()
        if self._unsubscribe is not None:
            self._unsubscribe()

    def _refresh_display(self) -> None:
        """Refresh all displays with current state."""
        self.info_panel.update_info(
            self.gps_status,
            self.controller.position,
            self.controller.heading,
            self.controller.distance_to_landmark(),
            self.controller.bearing_to_landmark(),
            self.controller.route,
            self.controller.auto_center,
        )
        self.map_widget.refresh()
        self.info_panel.refresh()

    # === WORKERS ===

    def _on_location_event(self, event: LocationEvent) -> None:
        # May run on a worker thread; post_message is thread-safe
        self.post_message(LocationEventReceived(event))

    def _poll_location(self) -> None:
        if self.location_source.running:
            self._read_location(once=False)

    @work(thread=True, group="location", exit_on_error=False)
    def _read_location(self, once: bool) -> None:
        if once:
            self.location_source.request_once()
        else:
            self.location_source.tick()

    @work(thread=True, group="route", exit_on_error=False)
    def _compute_route(self, request: RouteRequest) -> None:
        try:
            route = self.router.compute_route(request.origin, request.destination)
        except RouteFailure as e:
            self.post_message(RouteFinished(request, error=e))
            return
        self.post_message(RouteFinished(request, route=route))

    # === MESSAGE HANDLERS ===

    @on(LocationEventReceived)
    def _handle_location_event(self, message: LocationEventReceived) -> None:
        event = message.event
        if isinstance(event, PositionUpdate):
            self._apply_position(event.position)
        elif isinstance(event, HeadingUpdate):
            self.controller.on_heading_update(event.heading)
        elif isinstance(event, LocationError):
            self.gps_status = f"❌ {str(event.error)[:50]}"
        self._refresh_display()

    def _apply_position(self, position: UserPosition) -> None:
        self.gps_status = f"📍 {position.source or 'GPS'}: {describe_accuracy(position.accuracy)}"
        outcome = self.controller.on_location_update(position)
        if outcome.alert_raised:
            self._show_alert()
        self._compute_route(outcome.route_request)

    @on(RouteFinished)
    def _handle_route_finished(self, message: RouteFinished) -> None:
        if message.route is not None:
            self.controller.on_route_computed(message.request, message.route)
        elif message.error is not None:
            self.controller.on_route_failed(message.request, message.error)
        self._refresh_display()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "toggle-region":
            self.action_toggle_region()

    def on_worker_state_changed(self, event: Worker.StateChanged) -> None:
        # Workers run with exit_on_error=False; a failed read or route keeps the app alive
        if event.state != WorkerState.ERROR:
            return
        logger.error("%s worker failed: %r", event.worker.group, event.worker.error)
        if event.worker.group == "location":
            self.gps_status = "❌ Location error"
            self._refresh_display()

    # === ALERT ===

    def _show_alert(self) -> None:
        name = self.config.landmark.name
        logger.debug("Showing proximity alert for %s", name)
        self.push_screen(AlertScreen(f"{name} Alert", f"You are near {name}."), self._alert_dismissed)

    def _alert_dismissed(self, result: Optional[bool]) -> None:
        self.controller.dismiss_alert()
        self._refresh_display()

    # === ACTIONS ===

    def action_toggle_region(self) -> None:
        """Toggle whether the map follows the user."""
        enabled = self.controller.toggle_auto_center()
        self.toggle_button.label = region_button_label(enabled)
        self._refresh_display()

    def action_refresh_gps(self) -> None:
        """One-shot location request."""
        self._read_location(once=True)

    def action_center_me(self) -> None:
        if self.controller.position is None:
            self.notify("No location yet - press 'r'")
            return
        self.surface.center_on(self.controller.position.coordinate, self.config.center_span_m)
        self._refresh_display()

    def action_fit_route(self) -> None:
        if self.controller.route is None:
            self.notify("No route yet")
            return
        region = region_for(list(self.controller.route.points) + [self.config.landmark.coordinate])
        self.surface.center_on(region.center, region.span_m)
        self._refresh_display()

    def action_zoom(self, factor: float) -> None:
        self.surface.zoom(factor)
        self._refresh_display()


# =============================================================================
# ENTRY POINT
# =============================================================================

def _coordinate_arg(text: str) -> Coordinate:
    try:
        return parse_coordinate(text)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def build_parser() -> argparse.ArgumentParser:
    defaults = AppConfig()
    parser = argparse.ArgumentParser(prog="landmarkgps", description="Terminal map that guides you to a landmark")
    parser.add_argument("--landmark", type=_coordinate_arg, default=defaults.landmark.coordinate,
                        metavar="LAT,LON", help="Landmark coordinate")
    parser.add_argument("--name", default=defaults.landmark.name, help="Landmark name")
    parser.add_argument("--alert-distance", type=float, default=defaults.alert_distance_m,
                        metavar="METRES", help="Proximity alert distance")
    parser.add_argument("--osrm-url", default=defaults.osrm_base_url, help="OSRM server base URL")
    parser.add_argument("--interval", type=float, default=defaults.location_interval_s,
                        metavar="SECONDS", help="Seconds between location updates")
    parser.add_argument("--no-auto-center", action="store_true", help="Start with the map not following you")
    parser.add_argument("--simulate", action="store_true", help="Drive toward the landmark instead of using GPS")
    parser.add_argument("--start", type=_coordinate_arg, default=Coordinate(23.0800, 72.5300),
                        metavar="LAT,LON", help="Start of the simulated drive")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Log level for the Textual console")
    return parser


def config_from_args(args: argparse.Namespace) -> AppConfig:
    return AppConfig(
        landmark=Landmark(args.name, args.landmark),
        alert_distance_m=args.alert_distance,
        auto_center=not args.no_auto_center,
        location_interval_s=args.interval,
        osrm_base_url=args.osrm_url,
    )


def run(argv=None):
    """Run the LandmarkGPS application."""
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        config = config_from_args(args)
    except ValueError as e:
        parser.error(str(e))

    # Log records go to the Textual devtools console (textual console)
    logging.basicConfig(level=args.log_level, handlers=[TextualHandler()])

    provider = simulated_approach(args.start, config.landmark.coordinate, steps=30) if args.simulate else None

    print("\n" + "=" * 50)
    print("  LandmarkGPS - Terminal map to a landmark")
    print("=" * 50)
    print(f"\nLandmark: {config.landmark.name} ({config.landmark.coordinate})")
    print("\nControls:")
    print("  a = Toggle follow-me region")
    print("  r = Refresh GPS location")
    print("  c = Centre on me   f = Fit route")
    print("  +/- = Zoom   Mouse drag = Pan view")
    print("  q = Quit")
    print("\n" + "=" * 50 + "\n")

    app = LandmarkGPSApp(config, location_provider=provider)
    app.run()


if __name__ == "__main__":
    run()
