"""
Tracking configuration constants.

Contains the default thresholds for fix filtering and distance measurement.
Runtime overrides come from `jogtracker.config.settings`.
"""


class TrackingConfig:
    """Default thresholds for fix filtering and measurement."""

    # ==========================================================================
    # Minimum movement filter
    # ==========================================================================
    # A fix closer than this to the last accepted fix is GPS jitter at rest.
    MIN_MOVEMENT_METERS = 1.0

    # ==========================================================================
    # Segment outlier window (exclusive lower, inclusive upper)
    # ==========================================================================
    # Segments outside (MIN, MAX] are left out of the distance sum but the
    # fixes stay in the stored trajectory.
    MIN_SEGMENT_METERS = 0.1
    MAX_SEGMENT_METERS = 200.0

    # Periodic history backup (seconds)
    BACKUP_INTERVAL_SECONDS = 30.0
