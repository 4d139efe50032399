from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..core.exceptions import InvalidCoordinate


@dataclass(frozen=True)
class Coordinate:
    lat: float
    lng: float

    def __post_init__(self):
        for name, value, bound in (("lat", self.lat, 90.0), ("lng", self.lng, 180.0)):
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise InvalidCoordinate(f"{name} must be a number, got {value!r}")
            if math.isnan(value) or math.isinf(value) or abs(value) > bound:
                raise InvalidCoordinate(f"{name} out of range: {value!r}")

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Coordinate":
        if not isinstance(data, dict):
            raise InvalidCoordinate(f"location must be an object, got {data!r}")
        try:
            return cls(lat=data["lat"], lng=data["lng"])
        except KeyError as exc:
            raise InvalidCoordinate(f"location is missing {exc.args[0]!r}") from exc

    def to_dict(self) -> Dict[str, float]:
        return {"lat": self.lat, "lng": self.lng}


@dataclass(frozen=True)
class SiteConfig:
    """Geofence of the single site: center and allowed radius."""

    center: Coordinate
    allowed_radius_meters: float

    def __post_init__(self):
        if self.allowed_radius_meters < 0:
            raise ValueError("allowed_radius_meters must be >= 0")


@dataclass(frozen=True)
class GeofenceResult:
    inside: bool
    distance_meters: float
