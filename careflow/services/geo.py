# careflow/services/geo.py
from math import radians, sin, cos, asin, sqrt

EARTH_RADIUS_MILES = 3959.0

def distance_miles(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Great-circle (haversine) distance in miles.
    Inputs are assumed to be valid lat/lon degrees; validate at the API edge.
    """
    dlat = radians(lat2 - lat1)
    dlon = radians(lon2 - lon1)
    s = sin(dlat/2)**2 + cos(radians(lat1)) * cos(radians(lat2)) * sin(dlon/2)**2
    # rounding can push s just past 1 for near-antipodal points
    s = min(1.0, max(0.0, s))
    return 2 * EARTH_RADIUS_MILES * asin(sqrt(s))

def distance_between(a, b) -> float:
    """a, b: objects with .lat / .lng (LatLng)"""
    return distance_miles(a.lat, a.lng, b.lat, b.lng)
