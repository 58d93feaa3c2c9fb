"""
Geodesy helpers - Great-circle distances on a spherical Earth.

Provides:
- Haversine distance between two points
- Vectorized route length for whole polylines
"""

import math
from typing import Sequence

import numpy as np

from drivecoach.telemetry.fix import RoutePoint


EARTH_RADIUS_KM = 6371.0  # Mean Earth radius


def haversine_km(
    lat1: float,
    lon1: float,
    lat2: float,
    lon2: float,
    radius_km: float = EARTH_RADIUS_KM,
) -> float:
    """Great-circle distance between two points.

    Args:
        lat1: Latitude of first point in degrees
        lon1: Longitude of first point in degrees
        lat2: Latitude of second point in degrees
        lon2: Longitude of second point in degrees
        radius_km: Sphere radius

    Returns:
        Distance in km
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * radius_km * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def leg_distances_km(
    points: Sequence[RoutePoint],
    radius_km: float = EARTH_RADIUS_KM,
) -> np.ndarray:
    """Distances between consecutive route points.

    Args:
        points: Ordered route points
        radius_km: Sphere radius

    Returns:
        Array of length len(points) - 1 (empty for fewer than 2 points)
    """
    if len(points) < 2:
        return np.array([])

    lat = np.radians([p.lat for p in points])
    lng = np.radians([p.lng for p in points])

    d_phi = np.diff(lat)
    d_lambda = np.diff(lng)

    a = np.sin(d_phi / 2) ** 2 + np.cos(lat[:-1]) * np.cos(lat[1:]) * np.sin(d_lambda / 2) ** 2
    return 2 * radius_km * np.arctan2(np.sqrt(a), np.sqrt(1 - a))


def route_distance_km(
    points: Sequence[RoutePoint],
    radius_km: float = EARTH_RADIUS_KM,
) -> float:
    """Total length of a route, computed in one shot."""
    return float(np.sum(leg_distances_km(points, radius_km)))
