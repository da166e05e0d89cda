"""
SessionMetrics

Pace and speed from distance and elapsed time.

Formulas:
    pace (min/km)  = (duration_ms / 60000) / (distance_m / 1000)
    speed (km/h)   = 60 / pace

Both fall back to 0 when undefined so formatting never sees NaN/Infinity.
"""

import math
from dataclasses import dataclass

from jogtracker.shared.geo import meters_to_km, ms_to_minutes


@dataclass(frozen=True)
class DerivedMetrics:
    """Pace and speed for one (distance, duration) pair."""
    avg_pace_min_per_km: float
    speed_kmh: float


def _finite_or_zero(value: float) -> float:
    return value if math.isfinite(value) else 0.0


def derive(distance_meters: float, duration_ms: float) -> DerivedMetrics:
    """
    Derive average pace and speed.

    Args:
        distance_meters: Measured distance
        duration_ms: Active (non-paused) duration

    Returns:
        DerivedMetrics, zeros where not computable
    """
    pace = 0.0
    if distance_meters > 0:
        pace = _finite_or_zero(ms_to_minutes(duration_ms) / meters_to_km(distance_meters))

    speed = 0.0
    if pace > 0:
        speed = _finite_or_zero(60 / pace)

    return DerivedMetrics(avg_pace_min_per_km=pace, speed_kmh=speed)
