"""
Tracking errors.

Filtered fixes are not errors. Persistence failures are reported by return
value and save status, never raised into tracking code.
"""

from jogtracker.shared.constants import TrackingState


class TrackingError(Exception):
    """Base exception for tracking errors."""
    pass


class InvalidTransitionError(TrackingError):
    """Lifecycle call made in a state that forbids it."""

    def __init__(self, action: str, state: TrackingState):
        self.action = action
        self.state = state
        super().__init__(f"Cannot {action} while {state.value}")


class PermissionDeniedError(TrackingError):
    """Tracking requested without location permission."""
    pass
