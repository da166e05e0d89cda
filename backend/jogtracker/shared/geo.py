"""
Geographic utility functions.

All distance math in the tracker goes through `haversine`; keep it the
only implementation.
"""
import math

# Mean Earth radius in meters
EARTH_RADIUS_M = 6_371_000.0


def haversine(
    lat1: float, lon1: float,
    lat2: float, lon2: float
) -> float:
    """
    Great-circle distance in meters between two (lat, lon) points in degrees.

    Symmetric, and exactly 0 for identical points.
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = phi2 - phi1
    d_lambda = math.radians(lon2 - lon1)

    h = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    # Rounding can push h a hair above 1 for antipodal points
    h = min(1.0, h)

    return 2 * EARTH_RADIUS_M * math.asin(math.sqrt(h))


def meters_to_km(meters: float) -> float:
    return meters / 1000


def ms_to_minutes(ms: float) -> float:
    return ms / 60_000
