"""
LandmarkGPS - Terminal map that guides you to a landmark

Tracks your location and heading, draws the driving route to a fixed
landmark and raises an alert when you come within 100 m of it.
"""

__version__ = "1.0.0"

from .app import run

__all__ = ["run"]
