"""
Location sources for LandmarkGPS.

Providers know how to take a single fix. LocationSource wraps one provider
and publishes typed events to subscribers:

    source = LocationSource(default_provider())
    unsubscribe = source.subscribe(print)
    source.start()
    source.request_once()

Events may be published from a worker thread. Subscribers that touch UI
state must hand them over to the UI thread themselves.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Union

from .geo import Coordinate, calculate_bearing, interpolate
from .models import LocationFailure, UserPosition

logger = logging.getLogger(__name__)


# =============================================================================
# PROVIDERS
# =============================================================================

class LocationProvider:
    """Interface for a one-shot position fix."""

    name = "unknown"

    def read(self) -> UserPosition:
        """Return the current position or raise LocationFailure."""
        raise NotImplementedError


def describe_accuracy(accuracy: Optional[float]) -> str:
    """Human label for a horizontal accuracy in metres."""
    if accuracy is None:
        return "unknown accuracy"
    if accuracy <= 10:
        return f"Excellent (±{accuracy:.0f}m)"
    elif accuracy <= 50:
        return f"Good (±{accuracy:.0f}m)"
    elif accuracy <= 100:
        return f"Fair (±{accuracy:.0f}m)"
    return f"Low accuracy (±{accuracy:.0f}m)"


class CoreLocationProvider(LocationProvider):
    """
    macOS Location Services through pyobjc.

    Raises ImportError on construction when pyobjc's CoreLocation bindings
    are missing. The location manager is created inside read(), on the
    thread that spins the run loop, since CoreLocation delivers fixes to the
    run loop of the thread that created the manager.
    """

    name = "GPS"

    def __init__(self, wait_s: float = 10.0) -> None:
        import CoreLocation
        from Foundation import NSDate, NSRunLoop

        self._cl = CoreLocation
        self._run_loop = NSRunLoop
        self._date = NSDate
        self._wait_ticks = max(1, int(wait_s / 0.1))

    def _spin(self) -> None:
        self._run_loop.currentRunLoop().runUntilDate_(self._date.dateWithTimeIntervalSinceNow_(0.1))

    def _authorize(self, manager) -> None:
        cl = self._cl
        status = cl.CLLocationManager.authorizationStatus()

        if status == cl.kCLAuthorizationStatusDenied:
            raise LocationFailure("Location DENIED - enable in System Settings > Privacy > Location Services")
        if status == cl.kCLAuthorizationStatusRestricted:
            raise LocationFailure("Location restricted by system")

        if status == cl.kCLAuthorizationStatusNotDetermined:
            manager.requestWhenInUseAuthorization()
            # Wait briefly for the user to answer the prompt
            for _ in range(30):
                self._spin()
                if cl.CLLocationManager.authorizationStatus() != cl.kCLAuthorizationStatusNotDetermined:
                    break

    def read(self) -> UserPosition:
        try:
            return self._read_fix()
        except LocationFailure:
            raise
        except Exception as e:
            raise LocationFailure(f"GPS error: {str(e)[:30]}") from e

    def _read_fix(self) -> UserPosition:
        manager = self._cl.CLLocationManager.alloc().init()
        self._authorize(manager)
        manager.setDesiredAccuracy_(self._cl.kCLLocationAccuracyBest)
        manager.startUpdatingLocation()
        try:
            for _ in range(self._wait_ticks):
                self._spin()
                loc = manager.location()
                if loc and loc.horizontalAccuracy() > 0:
                    course = loc.course()
                    return UserPosition(
                        coordinate=Coordinate(loc.coordinate().latitude, loc.coordinate().longitude),
                        heading=course if course >= 0 else None,
                        accuracy=loc.horizontalAccuracy(),
                        source=self.name,
                    )
        finally:
            manager.stopUpdatingLocation()
        raise LocationFailure("GPS timeout")


class IPLocationProvider(LocationProvider):
    """City-level location via IP geolocation."""

    name = "IP"

    def read(self) -> UserPosition:
        import geocoder

        try:
            g = geocoder.ip("me")
        except Exception as e:
            raise LocationFailure(f"IP lookup failed: {str(e)[:30]}") from e
        if not g.ok or g.lat is None or g.lng is None:
            raise LocationFailure("Could not determine location from IP")
        return UserPosition(
            coordinate=Coordinate(float(g.lat), float(g.lng)),
            accuracy=10000.0,
            source=self.name,
        )


class ScriptedProvider(LocationProvider):
    """
    Replays a fixed list of fixes, then keeps returning the last one.

    Entries may be LocationFailure instances, which are raised when reached.
    """

    name = "SIM"

    def __init__(self, fixes: Sequence[Union[UserPosition, LocationFailure]]) -> None:
        if not fixes:
            raise ValueError("ScriptedProvider needs at least one fix")
        self._fixes = list(fixes)
        self._index = 0

    def read(self) -> UserPosition:
        fix = self._fixes[min(self._index, len(self._fixes) - 1)]
        self._index += 1
        if isinstance(fix, LocationFailure):
            raise fix
        return fix


def simulated_approach(start: Coordinate, destination: Coordinate, steps: int = 20) -> ScriptedProvider:
    """Straight-line drive from start to destination, heading along the way."""
    if steps < 1:
        raise ValueError("steps must be at least 1")
    heading = calculate_bearing(start, destination)
    fixes = [
        UserPosition(
            coordinate=interpolate(start, destination, i / steps),
            heading=heading,
            accuracy=5.0,
            source=ScriptedProvider.name,
        )
        for i in range(steps + 1)
    ]
    return ScriptedProvider(fixes)


def default_provider() -> LocationProvider:
    """CoreLocation when pyobjc is available, otherwise IP geolocation."""
    try:
        return CoreLocationProvider()
    except ImportError:
        logger.info("CoreLocation unavailable, falling back to IP geolocation")
        return IPLocationProvider()


# =============================================================================
# EVENTS
# =============================================================================

@dataclass(frozen=True)
class PositionUpdate:
    position: UserPosition


@dataclass(frozen=True)
class HeadingUpdate:
    heading: float


@dataclass(frozen=True)
class LocationError:
    error: LocationFailure


LocationEvent = Union[PositionUpdate, HeadingUpdate, LocationError]
Listener = Callable[[LocationEvent], None]


# =============================================================================
# SOURCE
# =============================================================================

class LocationSource:
    """
    Publishes position, heading and error events from a provider.

    The host drives continuous delivery by calling tick() on an interval;
    ticks are ignored until start() is called. request_once() always reads.
    """

    def __init__(self, provider: LocationProvider) -> None:
        self.provider = provider
        self.latest: Optional[UserPosition] = None
        self._listeners: List[Listener] = []
        self._running = False
        self._read_lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._running

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def start(self) -> None:
        self._running = True
        logger.debug("Location updates started (%s)", self.provider.name)

    def stop(self) -> None:
        self._running = False
        logger.debug("Location updates stopped")

    def tick(self) -> Optional[UserPosition]:
        """Interval hook for continuous delivery. Skipped while a read is underway."""
        if not self._running or not self._read_lock.acquire(blocking=False):
            return None
        try:
            fix = self._read()
        finally:
            self._read_lock.release()
        return self._publish(fix)

    def request_once(self) -> Optional[UserPosition]:
        """Take one fix now and publish it. Failures are published, not raised."""
        with self._read_lock:
            fix = self._read()
        return self._publish(fix)

    def _read(self) -> Union[UserPosition, LocationFailure]:
        try:
            position = self.provider.read()
        except LocationFailure as e:
            logger.warning("Error getting location: %s", e)
            return e
        self.latest = position
        return position

    def _publish(self, fix: Union[UserPosition, LocationFailure]) -> Optional[UserPosition]:
        if isinstance(fix, LocationFailure):
            self._emit(LocationError(fix))
            return None
        self._emit(PositionUpdate(fix))
        if fix.heading is not None:
            self._emit(HeadingUpdate(fix.heading))
        return fix

    def _emit(self, event: LocationEvent) -> None:
        for listener in list(self._listeners):
            listener(event)
