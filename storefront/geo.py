"""
Haversine distance from the store to a delivery location.
"""
import math
from typing import Optional, Tuple

EARTH_RADIUS_KM = 6371


def haversine_km(
    lat1: float, lon1: float,
    lat2: float, lon2: float
) -> float:
    """
    Return great-circle distance in km between two (lat, lon) points.
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlam = math.radians(lon2 - lon1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlam / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def distance_from_store(config: dict, location: Optional[dict]) -> Optional[float]:
    """Distance in km from the store to location ({'lat', 'lng'}); None if location missing."""
    if not location:
        return None
    store = config['location']
    return haversine_km(store['lat'], store['lng'], location['lat'], location['lng'])


def check_delivery_radius(config: dict, location: Optional[dict]) -> Tuple[Optional[float], Optional[str]]:
    """
    Return (distance_km, None) when deliverable, else (distance_km, error message).
    distance is rounded to 2 places.
    """
    dist = distance_from_store(config, location)
    if dist is None:
        return None, 'Please share your location for delivery'
    radius = config['max_delivery_radius']
    if dist > radius:
        return round(dist, 2), (
            f'Sorry, we only deliver within {radius:g} km. '
            f'Your location is {dist:.1f} km away.'
        )
    return round(dist, 2), None
