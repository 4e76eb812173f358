"""
services/location/geo.py
Great-circle distance and walking ETA for the nearby search.
"""

import math

EARTH_RADIUS_METERS = 6371000


def haversine_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Distance in meters between two lat/lng points."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)

    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    return EARTH_RADIUS_METERS * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def walking_eta_minutes(distance_meters: float, speed_kmh: float) -> int:
    meters_per_minute = speed_kmh * 1000 / 60
    return round(distance_meters / meters_per_minute)
