"""
DistanceAccumulator

Total distance over a trajectory:
1. Take the GeoFixFilter-accepted subsequence (minimum movement)
2. Sum consecutive Haversine segments
3. Skip segments outside (min_segment_m, max_segment_m] - signal loss and
   multipath produce single-step jumps that would inflate the total

Pure function of its input: safe to call for every live-stats poll and once
more at completion for the authoritative value.
"""

import logging
from dataclasses import dataclass, field
from typing import Sequence

from jogtracker.features.tracking.config import TrackingConfig
from jogtracker.features.tracking.schemas import Fix
from .fix_filter import GeoFixFilter, fix_distance

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DistanceAccumulator:
    """
    Great-circle distance accumulator with jump rejection.

    Usage:
        accumulator = DistanceAccumulator()
        meters = accumulator.total_distance(session.positions)
    """
    fix_filter: GeoFixFilter = field(default_factory=GeoFixFilter)
    min_segment_m: float = TrackingConfig.MIN_SEGMENT_METERS
    max_segment_m: float = TrackingConfig.MAX_SEGMENT_METERS

    def is_valid_segment(self, meters: float) -> bool:
        """True if a single step is plausible movement."""
        return self.min_segment_m < meters <= self.max_segment_m

    def total_distance(self, positions: Sequence[Fix]) -> float:
        """
        Calculate total measured distance.

        Args:
            positions: Raw trajectory in arrival order

        Returns:
            Distance in meters (>= 0). 0 with fewer than 2 accepted fixes.
        """
        if len(positions) < 2:
            return 0.0

        accepted = self.fix_filter.filter(positions)
        if len(accepted) < 2:
            return 0.0

        total = 0.0
        for i in range(1, len(accepted)):
            segment = fix_distance(accepted[i - 1], accepted[i])
            if self.is_valid_segment(segment):
                total += segment
            else:
                logger.debug(f"Segment {i} rejected: {segment:.2f}m")

        return total


_DEFAULT_ACCUMULATOR = DistanceAccumulator()


def total_distance(positions: Sequence[Fix]) -> float:
    """Total distance with default thresholds."""
    return _DEFAULT_ACCUMULATOR.total_distance(positions)
