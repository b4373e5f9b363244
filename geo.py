"""
Great-circle distance helpers.

All coordinates are (lat, lng) in WGS84 degrees. Validation is the
caller's job: out-of-range input yields a number, just not a useful one.
"""

import math
from typing import NamedTuple, Tuple

EARTH_RADIUS_KM = 6371.0


class Coordinates(NamedTuple):
    lat: float
    lng: float


def distance_km(a: Tuple[float, float], b: Tuple[float, float]) -> float:
    """Haversine distance between two (lat, lng) points in kilometers."""
    lat1, lng1 = a
    lat2, lng2 = b
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lng2 - lng1)

    h = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return EARTH_RADIUS_KM * c


def is_valid_coordinate(lat, lng) -> bool:
    """True for finite numbers inside lat [-90, 90] and lng [-180, 180]."""
    try:
        lat = float(lat)
        lng = float(lng)
    except (TypeError, ValueError):
        return False
    if not (math.isfinite(lat) and math.isfinite(lng)):
        return False
    return -90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0
