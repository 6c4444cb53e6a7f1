from __future__ import annotations

import math
from dataclasses import dataclass

EARTH_RADIUS_MILES = 3959.0

HUB_LATITUDE = 47.1853
HUB_LONGITUDE = -122.2928
SERVICE_RADIUS_MILES = 20.0


def valid_coordinates(latitude: float, longitude: float) -> bool:
    return (
        math.isfinite(latitude)
        and math.isfinite(longitude)
        and -90 <= latitude <= 90
        and -180 <= longitude <= 180
    )


def distance_miles(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance between two points in decimal degrees, in miles.

    Raises ValueError for non-finite input.
    """
    if not all(math.isfinite(value) for value in (lat1, lng1, lat2, lng2)):
        raise ValueError("coordinates must be finite numbers")
    dlat = math.radians(lat2 - lat1)
    dlng = math.radians(lng2 - lng1)
    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(math.radians(lat1))
        * math.cos(math.radians(lat2))
        * math.sin(dlng / 2) ** 2
    )
    # rounding can push a a hair past 1.0 for antipodal points
    a = min(1.0, max(0.0, a))
    return EARTH_RADIUS_MILES * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


@dataclass(frozen=True)
class ServiceArea:
    latitude: float = HUB_LATITUDE
    longitude: float = HUB_LONGITUDE
    radius_miles: float = SERVICE_RADIUS_MILES

    def distance_from_hub(self, latitude: float, longitude: float) -> float:
        return distance_miles(self.latitude, self.longitude, latitude, longitude)

    def within_radius(self, distance: float) -> bool:
        return distance <= self.radius_miles

    def center(self) -> dict[str, float]:
        return {"lat": self.latitude, "lng": self.longitude}
