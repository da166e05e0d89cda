"""
Shared utilities (NOT business logic).

Usage:
    from jogtracker.shared import haversine, format_pace
    from jogtracker.shared.clock import ManualClock
"""
from .geo import (
    haversine,
    meters_to_km,
    ms_to_minutes,
    EARTH_RADIUS_M,
)
from .formatters import (
    format_duration,
    format_distance,
    format_pace,
    format_speed,
    format_timestamp,
    format_last_save_time,
)
from .constants import (
    TrackingState,
    TaskPriority,
    SaveStatus,
    StorageKey,
    BACKUP_VERSION,
)
from .clock import Clock, ManualClock, now_ms

__all__ = [
    # geo
    "haversine",
    "meters_to_km",
    "ms_to_minutes",
    "EARTH_RADIUS_M",
    # formatters
    "format_duration",
    "format_distance",
    "format_pace",
    "format_speed",
    "format_timestamp",
    "format_last_save_time",
    # constants
    "TrackingState",
    "TaskPriority",
    "SaveStatus",
    "StorageKey",
    "BACKUP_VERSION",
    # clock
    "Clock",
    "ManualClock",
    "now_ms",
]
