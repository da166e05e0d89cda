"""
Recovery after an unexpected restart.

On startup the latest persisted TrackingSnapshot decides whether a session
was in flight. If so, the lifecycle is rebuilt directly in RUNNING or
PAUSED from the snapshot's timing anchors and embedded session. Anything
else (no snapshot, not tracking, unreadable snapshot) leaves the tracker
IDLE. Recovery never raises.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from jogtracker.shared.clock import Clock, now_ms
from jogtracker.shared.formatters import format_distance, format_duration

from .calculators import DistanceAccumulator
from .history import SessionHistory
from .lifecycle import SessionLifecycle

logger = logging.getLogger(__name__)

NoticeCallback = Callable[[str], None]


@dataclass
class RecoveryResult:
    """Outcome of a recovery attempt."""
    lifecycle: Optional[SessionLifecycle] = None
    notice: Optional[str] = None

    @property
    def restored(self) -> bool:
        return self.lifecycle is not None


class RecoveryCoordinator:
    """
    Rebuilds in-progress tracking state from the session store.

    Usage:
        coordinator = RecoveryCoordinator(store, history=history)
        result = coordinator.recover()
        if result.restored:
            lifecycle = result.lifecycle
    """

    def __init__(
        self,
        store,
        clock: Clock = now_ms,
        accumulator: Optional[DistanceAccumulator] = None,
        history: Optional[SessionHistory] = None,
        on_notice: Optional[NoticeCallback] = None,
    ):
        self.store = store
        self._clock = clock
        self._accumulator = accumulator
        self._history = history
        self._on_notice = on_notice

    def recover(self) -> RecoveryResult:
        """
        Restore the in-flight session, if there is one.

        Returns:
            RecoveryResult; `lifecycle` is None when the tracker stays IDLE
        """
        snapshot = self.store.load_app_state()

        if snapshot is None:
            logger.info("No tracking snapshot, starting idle")
            return RecoveryResult()

        if not snapshot.is_tracking or snapshot.session is None:
            logger.info("Snapshot has no active session, starting idle")
            return RecoveryResult()

        try:
            lifecycle = SessionLifecycle.restore(
                snapshot,
                clock=self._clock,
                accumulator=self._accumulator,
                history=self._history,
            )
        except ValueError as e:
            logger.warning(f"Snapshot not restorable, starting idle: {e}")
            return RecoveryResult()

        stats = lifecycle.live_stats()
        notice = (
            f"Restored {'paused' if snapshot.is_paused else 'running'} session "
            f"({format_distance(stats.distance_meters)}, {format_duration(stats.duration_ms)})"
        )
        logger.info(f"{notice}: {snapshot.session.id}, {len(snapshot.session.positions)} fixes")

        if self._on_notice is not None:
            try:
                self._on_notice(notice)
            except Exception:
                logger.exception("Recovery notice callback failed")

        return RecoveryResult(lifecycle=lifecycle, notice=notice)
