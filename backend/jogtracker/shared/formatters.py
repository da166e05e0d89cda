"""
Formatting utilities for display.

Used by the CLI and any UI polling live stats.
"""

import math
from datetime import datetime


def format_duration(ms: float) -> str:
    """
    Format milliseconds as 'M:SS' or 'H:MM:SS'.

    Args:
        ms: Duration in milliseconds

    Returns:
        Formatted string (e.g., '5:07' or '1:02:09')
    """
    if ms <= 0 or not math.isfinite(ms):
        return "0:00"

    seconds = int(ms // 1000)
    minutes = seconds // 60
    hours = minutes // 60

    if hours > 0:
        return f"{hours}:{minutes % 60:02d}:{seconds % 60:02d}"
    return f"{minutes}:{seconds % 60:02d}"


def format_distance(meters: float) -> str:
    """
    Format distance.

    Args:
        meters: Distance in meters

    Returns:
        Formatted string (e.g., '850m' or '12.50km')
    """
    if meters < 1000:
        return f"{round(meters)}m"
    return f"{meters / 1000:.2f}km"


def format_pace(pace_min_km: float | None) -> str:
    """
    Format pace as 'M:SS' (minutes per km).

    Zero, missing and non-finite paces render as '0:00'.
    """
    if not pace_min_km or not math.isfinite(pace_min_km):
        return "0:00"

    minutes = int(pace_min_km)
    seconds = round((pace_min_km - minutes) * 60)
    if seconds == 60:
        minutes += 1
        seconds = 0

    return f"{minutes}:{seconds:02d}"


def format_speed(speed_kmh: float) -> str:
    """Format speed as 'X.X km/h'."""
    if not math.isfinite(speed_kmh) or speed_kmh <= 0:
        return "0.0 km/h"
    return f"{speed_kmh:.1f} km/h"


def format_timestamp(timestamp_ms: int) -> str:
    """Format epoch milliseconds as local 'YYYY-MM-DD HH:MM'."""
    return datetime.fromtimestamp(timestamp_ms / 1000).strftime("%Y-%m-%d %H:%M")


def format_last_save_time(last_save_ms: int | None, now_ms: int) -> str:
    """
    Describe how long ago the last successful save happened.

    Args:
        last_save_ms: Epoch ms of last save, None if never saved
        now_ms: Current epoch ms

    Returns:
        'Never', 'Just now', '<n>m ago' or local 'HH:MM:SS'
    """
    if not last_save_ms:
        return "Never"

    diff = now_ms - last_save_ms
    if diff < 60_000:
        return "Just now"
    if diff < 3_600_000:
        return f"{diff // 60_000}m ago"
    return datetime.fromtimestamp(last_save_ms / 1000).strftime("%H:%M:%S")
