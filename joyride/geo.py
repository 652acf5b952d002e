"""Spherical-earth helpers. Everything uses the same radius so projected points and measured distances agree."""

import math

from geopy.distance import great_circle

from .config import EARTH_RADIUS_M, METERS_PER_MILE
from .models import Coordinate


def validate_coordinate(lat: float, lon: float) -> Coordinate:
    """Raises ValueError unless -90 <= lat <= 90 and -180 <= lon <= 180."""
    if not -90.0 <= lat <= 90.0:
        raise ValueError(f"Latitude must be between -90 and 90, got {lat}")
    if not -180.0 <= lon <= 180.0:
        raise ValueError(f"Longitude must be between -180 and 180, got {lon}")
    return Coordinate(lat, lon)


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlam = math.radians(lon2 - lon1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlam / 2) ** 2
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def distance_between_m(a: Coordinate, b: Coordinate) -> float:
    return haversine_m(a.lat, a.lon, b.lat, b.lon)


def miles_to_m(miles: float) -> float:
    return miles * METERS_PER_MILE


def bearing_to_point(lat: float, lon: float, bearing_deg: float, miles: float) -> Coordinate:
    """Direct geodesic problem on a sphere: the point `miles` away from (lat, lon) along `bearing_deg`."""
    d = great_circle(kilometers=miles_to_m(miles) / 1000.0, radius=EARTH_RADIUS_M / 1000.0)
    dest = d.destination(point=(lat, lon), bearing=bearing_deg)
    return Coordinate(dest.latitude, dest.longitude)
