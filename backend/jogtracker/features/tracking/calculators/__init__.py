"""
Tracking calculators.

Usage:
    from jogtracker.features.tracking.calculators import (
        GeoFixFilter, DistanceAccumulator, derive,
    )

Components:
- GeoFixFilter: minimum-movement jitter filter
- DistanceAccumulator: Haversine sum with outlier segment rejection
- derive: pace/speed from distance and duration
- overall_stats / filter_by_date_range / recent_sessions: history analytics
"""

from .fix_filter import GeoFixFilter, fix_distance
from .distance import DistanceAccumulator, total_distance
from .metrics import DerivedMetrics, derive
from .history import overall_stats, filter_by_date_range, recent_sessions

__all__ = [
    "GeoFixFilter",
    "fix_distance",
    "DistanceAccumulator",
    "total_distance",
    "DerivedMetrics",
    "derive",
    "overall_stats",
    "filter_by_date_range",
    "recent_sessions",
]
