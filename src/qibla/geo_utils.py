# geo_utils.py
# Pure mathematical / geographic helper functions.
# No side effects, no I/O.

import math

from .models import GeoPoint
from .qibla_config import EARTH_RADIUS_KM


def normalize_angle(deg: float) -> float:
    """
    Reduce an angle to [0, 360).

    Args:
        deg: Any angle in degrees, negative values included.

    Returns:
        Equivalent angle in [0, 360).
    """
    result = deg % 360.0
    # Tiny negative inputs round up to exactly 360.0
    if result >= 360.0:
        return 0.0
    return result


def angle_difference(a: float, b: float) -> float:
    """
    Shortest signed rotation from angle a to angle b.

    Args:
        a: Start angle in degrees.
        b: End angle in degrees.

    Returns:
        Difference in (-180, 180]; positive means b is clockwise from a.
    """
    diff = normalize_angle(b - a)
    if diff > 180.0:
        diff -= 360.0
    return diff


def bearing(origin: GeoPoint, target: GeoPoint) -> float:
    """
    Initial great-circle bearing from origin to target in degrees [0, 360).

    Uses the spherical law of sines form:
        θ = atan2(sin Δλ · cos φ2, cos φ1 · sin φ2 − sin φ1 · cos φ2 · cos Δλ)

    Coincident points give a finite, implementation-defined value.

    Args:
        origin: Start point.
        target: Destination point.

    Returns:
        Bearing clockwise from true north.
    """
    phi1, phi2 = math.radians(origin.lat), math.radians(target.lat)
    d_lon = math.radians(target.lon - origin.lon)
    y = math.sin(d_lon) * math.cos(phi2)
    x = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(d_lon)
    return normalize_angle(math.degrees(math.atan2(y, x)))


def distance(a: GeoPoint, b: GeoPoint, radius_km: float = EARTH_RADIUS_KM) -> float:
    """
    Great-circle (haversine) distance between two points.

    Args:
        a, b:      Points in decimal degrees.
        radius_km: Sphere radius; defaults to Earth's mean radius.

    Returns:
        Distance in kilometres, always >= 0.
    """
    phi1, phi2 = math.radians(a.lat), math.radians(b.lat)
    d_lat = math.radians(b.lat - a.lat)
    d_lon = math.radians(b.lon - a.lon)
    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lon / 2) ** 2
    )
    h = min(1.0, max(0.0, h))
    return radius_km * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
