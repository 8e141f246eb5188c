"""
Geospatial helpers.

We keep a tiny geometry layer here so tracing and matching can do distance and
bearing calculations without pulling in heavier GIS dependencies.
"""

from __future__ import annotations

from dataclasses import dataclass
from math import asin, atan2, cos, degrees, isfinite, radians, sin, sqrt

EARTH_RADIUS_M = 6_371_000


@dataclass(frozen=True)
class GeoPoint:
    """A latitude/longitude pair in decimal degrees."""

    lat: float
    lon: float

    def is_valid(self) -> bool:
        """True when both coordinates are finite and inside the WGS84 ranges."""
        if not (isfinite(self.lat) and isfinite(self.lon)):
            return False
        return -90.0 <= self.lat <= 90.0 and -180.0 <= self.lon <= 180.0

    def as_tuple(self) -> tuple[float, float]:
        return (self.lat, self.lon)


def haversine_m(a: GeoPoint, b: GeoPoint) -> float:
    """Compute great-circle distance in meters between two points."""
    lat1 = radians(a.lat)
    lon1 = radians(a.lon)
    lat2 = radians(b.lat)
    lon2 = radians(b.lon)

    dlat = lat2 - lat1
    dlon = lon2 - lon1

    h = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
    # Rounding can push `h` a hair above 1 for antipodal points.
    return 2 * EARTH_RADIUS_M * asin(sqrt(min(1.0, h)))


def bearing_deg(a: GeoPoint, b: GeoPoint) -> float:
    """Initial great-circle bearing from `a` to `b` in degrees.

    0 is north, 90 is east. The result stays in the `atan2` range (-180, 180],
    so due west is -90 and due south is 180. Equal points give 0.
    """
    lat1 = radians(a.lat)
    lat2 = radians(b.lat)
    dlon = radians(b.lon - a.lon)

    x = sin(dlon) * cos(lat2)
    y = cos(lat1) * sin(lat2) - sin(lat1) * cos(lat2) * cos(dlon)
    if x == 0 and y == 0:
        return 0.0
    return degrees(atan2(x, y))
