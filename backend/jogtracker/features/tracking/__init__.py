"""
Session tracking module.

Usage:
    from jogtracker.features.tracking import SessionLifecycle, Fix
    from jogtracker.features.tracking import TrackingService
    from jogtracker.features.tracking.calculators import DistanceAccumulator

Components:
- SessionLifecycle: idle/running/paused/completed state machine
- RecoveryCoordinator: rebuilds an in-flight session after restart
- TrackingService: lifecycle + persistence + location feed

Note: TrackingService is imported lazily, since it depends on the
persistence and location features which import schemas from here.
"""

from .schemas import (
    Fix,
    Session,
    TrackingSnapshot,
    SessionBackup,
    LiveStats,
    OverallStats,
    generate_session_id,
)
from .exceptions import TrackingError, InvalidTransitionError, PermissionDeniedError
from .history import SessionHistory
from .lifecycle import SessionLifecycle
from .recovery import RecoveryCoordinator, RecoveryResult


def __getattr__(name):
    if name == "TrackingService":
        from .service import TrackingService
        return TrackingService
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    # Schemas
    "Fix",
    "Session",
    "TrackingSnapshot",
    "SessionBackup",
    "LiveStats",
    "OverallStats",
    "generate_session_id",
    # Errors
    "TrackingError",
    "InvalidTransitionError",
    "PermissionDeniedError",
    # Lifecycle
    "SessionHistory",
    "SessionLifecycle",
    "RecoveryCoordinator",
    "RecoveryResult",
    # Service
    "TrackingService",
]
