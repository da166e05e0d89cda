"""
GeoFixFilter

Rejects GPS jitter before it reaches distance measurement:
- The first fix is always accepted
- A later fix is accepted only if it moved at least `min_movement_m`
  from the last ACCEPTED fix (not the last raw one)

Rejected fixes are a routine outcome, not an error. They stay in the
session's stored trajectory; only the measured subsequence skips them.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from jogtracker.shared.geo import haversine
from jogtracker.features.tracking.config import TrackingConfig
from jogtracker.features.tracking.schemas import Fix

logger = logging.getLogger(__name__)


def fix_distance(a: Fix, b: Fix) -> float:
    """Great-circle distance between two fixes in meters."""
    return haversine(a.latitude, a.longitude, b.latitude, b.longitude)


@dataclass(frozen=True)
class GeoFixFilter:
    """
    Minimum-movement filter.

    Usage:
        fix_filter = GeoFixFilter(min_movement_m=1.0)
        if fix_filter.accept(last_accepted, candidate):
            ...
    """
    min_movement_m: float = TrackingConfig.MIN_MOVEMENT_METERS

    def accept(self, previous_accepted: Optional[Fix], candidate: Fix) -> bool:
        """
        Decide whether `candidate` counts as movement.

        Args:
            previous_accepted: Last fix that passed the filter, None if none yet
            candidate: Fix under consideration

        Returns:
            True if candidate should be part of the measured trajectory
        """
        if previous_accepted is None:
            return True
        return fix_distance(previous_accepted, candidate) >= self.min_movement_m

    def filter(self, positions: Iterable[Fix]) -> List[Fix]:
        """Return the accepted subsequence of `positions`, order preserved."""
        accepted: List[Fix] = []
        last: Optional[Fix] = None
        rejected = 0

        for fix in positions:
            if self.accept(last, fix):
                accepted.append(fix)
                last = fix
            else:
                rejected += 1

        if rejected:
            logger.debug(
                f"Fix filter kept {len(accepted)} of {len(accepted) + rejected} "
                f"(min movement {self.min_movement_m}m)"
            )
        return accepted
