from __future__ import annotations

import math

from ..core.constants import EARTH_RADIUS_METERS
from .model import Coordinate, GeofenceResult, SiteConfig


def distance_meters(a: Coordinate, b: Coordinate) -> float:
    """Great-circle distance between two points (haversine)."""

    d_lat = math.radians(b.lat - a.lat)
    d_lng = math.radians(b.lng - a.lng)
    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(a.lat)) * math.cos(math.radians(b.lat)) * math.sin(d_lng / 2) ** 2
    )
    h = min(1.0, h)
    return EARTH_RADIUS_METERS * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def is_inside(point: Coordinate, center: Coordinate, radius_meters: float) -> bool:
    return distance_meters(point, center) <= radius_meters


def evaluate(point: Coordinate, site: SiteConfig) -> GeofenceResult:
    distance = distance_meters(point, site.center)
    return GeofenceResult(inside=distance <= site.allowed_radius_meters, distance_meters=distance)
