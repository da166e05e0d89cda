"""
Session lifecycle state machine.

States:
    IDLE -> RUNNING -> (PAUSED <-> RUNNING) -> COMPLETED

Timing bookkeeping:
- start_time_ms is the timing anchor. It starts at wall-clock start and is
  shifted forward by every paused interval on resume(), so
  `now - start_time_ms` is always active (non-paused) time.
- paused_at_ms is the wall-clock time of the current pause.

The Session keeps its real wall-clock start; only the anchor moves.

All transitions and reads hold one re-entrant lock, so a position feed
thread and a UI polling thread can share an instance.
"""

import logging
import threading
from typing import Callable, Optional

from jogtracker.shared.clock import Clock, now_ms
from jogtracker.shared.constants import TrackingState

from .calculators import DistanceAccumulator, derive
from .exceptions import InvalidTransitionError
from .history import SessionHistory
from .schemas import Fix, LiveStats, Session, TrackingSnapshot, generate_session_id

logger = logging.getLogger(__name__)


class SessionLifecycle:
    """
    Owns one Session from start() to complete().

    Usage:
        lifecycle = SessionLifecycle(history=history)
        lifecycle.start()
        lifecycle.add_position(fix)
        stats = lifecycle.live_stats()
        session = lifecycle.complete()

    A completed lifecycle is terminal; start a new instance for the next
    session. `restore()` is the only way to get an instance that did not
    begin in IDLE.
    """

    def __init__(
        self,
        clock: Clock = now_ms,
        accumulator: Optional[DistanceAccumulator] = None,
        history: Optional[SessionHistory] = None,
        id_factory: Callable[[int], str] = generate_session_id,
    ):
        self._clock = clock
        self._accumulator = accumulator or DistanceAccumulator()
        self._history = history
        self._id_factory = id_factory
        self._lock = threading.RLock()

        self._state = TrackingState.IDLE
        self._session: Optional[Session] = None
        self._start_time_ms = 0
        self._paused_at_ms = 0

        # Fixes refused because the lifecycle was not RUNNING
        self.rejected_fix_count = 0

    # =========================================================================
    # Construction from a snapshot
    # =========================================================================

    @classmethod
    def restore(
        cls,
        snapshot: TrackingSnapshot,
        clock: Clock = now_ms,
        accumulator: Optional[DistanceAccumulator] = None,
        history: Optional[SessionHistory] = None,
    ) -> "SessionLifecycle":
        """
        Rebuild an in-flight lifecycle, bypassing start().

        Raises:
            ValueError: snapshot does not describe an active session
        """
        if not snapshot.is_tracking or snapshot.session is None:
            raise ValueError("Snapshot has no active session")
        if snapshot.session.is_completed:
            raise ValueError(f"Session {snapshot.session.id} is already completed")

        lifecycle = cls(clock=clock, accumulator=accumulator, history=history)
        lifecycle._session = snapshot.session
        lifecycle._start_time_ms = snapshot.start_time_ms
        lifecycle._paused_at_ms = snapshot.paused_at_ms
        lifecycle._state = (
            TrackingState.PAUSED if snapshot.is_paused else TrackingState.RUNNING
        )
        return lifecycle

    # =========================================================================
    # Read-only views
    # =========================================================================

    @property
    def state(self) -> TrackingState:
        with self._lock:
            return self._state

    @property
    def session(self) -> Optional[Session]:
        with self._lock:
            return self._session

    @property
    def start_time_ms(self) -> int:
        with self._lock:
            return self._start_time_ms

    @property
    def paused_at_ms(self) -> int:
        with self._lock:
            return self._paused_at_ms

    @property
    def is_active(self) -> bool:
        """True while RUNNING or PAUSED."""
        return self.state in (TrackingState.RUNNING, TrackingState.PAUSED)

    # =========================================================================
    # Transitions
    # =========================================================================

    def _require(self, action: str, *allowed: TrackingState) -> None:
        if self._state not in allowed:
            logger.warning(f"Invalid transition: {action} in state {self._state.value}")
            raise InvalidTransitionError(action, self._state)

    def start(self) -> Session:
        """IDLE -> RUNNING. Creates an empty session."""
        with self._lock:
            self._require("start", TrackingState.IDLE)
            now = self._clock()
            self._session = Session(id=self._id_factory(now), start_time_ms=now)
            self._start_time_ms = now
            self._paused_at_ms = 0
            self._state = TrackingState.RUNNING
            logger.info(f"Session {self._session.id} started")
            return self._session

    def add_position(self, fix: Fix) -> bool:
        """
        Append a raw fix to the active session.

        Only RUNNING accepts fixes. In any other state the fix is refused,
        counted and logged; state is left untouched.

        Returns:
            True if appended
        """
        with self._lock:
            if self._state != TrackingState.RUNNING or self._session is None:
                self.rejected_fix_count += 1
                logger.warning(
                    f"Fix at {fix.timestamp_ms} refused in state {self._state.value} "
                    f"(refused so far: {self.rejected_fix_count})"
                )
                return False
            self._session = self._session.with_position(fix)
            return True

    def pause(self) -> None:
        """RUNNING -> PAUSED."""
        with self._lock:
            self._require("pause", TrackingState.RUNNING)
            self._paused_at_ms = self._clock()
            self._state = TrackingState.PAUSED
            logger.info(f"Session {self._session.id} paused")

    def resume(self) -> None:
        """PAUSED -> RUNNING. Paused interval is excluded from duration."""
        with self._lock:
            self._require("resume", TrackingState.PAUSED)
            elapsed = max(0, self._clock() - self._paused_at_ms)
            self._start_time_ms += elapsed
            self._paused_at_ms = 0
            self._state = TrackingState.RUNNING
            logger.info(f"Session {self._session.id} resumed after {elapsed}ms pause")

    def complete(self, end_time_ms: Optional[int] = None) -> Session:
        """
        RUNNING|PAUSED -> COMPLETED. Seals the session with final metrics.

        Completing while paused does not count the pause in progress: the
        duration runs to `paused_at_ms`, not to `end_time_ms` as a plain
        `end - start` would.

        Args:
            end_time_ms: Wall-clock end, defaults to now

        Returns:
            The sealed session (also appended to history, if one is attached)
        """
        with self._lock:
            self._require("complete", TrackingState.RUNNING, TrackingState.PAUSED)
            end = self._clock() if end_time_ms is None else end_time_ms

            measured_end = end
            if self._state == TrackingState.PAUSED:
                measured_end = min(end, self._paused_at_ms)
            duration = max(0, measured_end - self._start_time_ms)

            distance = self._accumulator.total_distance(self._session.positions)
            metrics = derive(distance, duration)

            self._session = self._session.model_copy(update={
                "end_time_ms": end,
                "distance_meters": distance,
                "duration_ms": duration,
                "avg_pace_min_per_km": metrics.avg_pace_min_per_km,
            })
            self._state = TrackingState.COMPLETED

            if self._history is not None:
                self._history.append(self._session)

            logger.info(
                f"Session {self._session.id} completed: "
                f"{distance:.1f}m in {duration}ms, pace {metrics.avg_pace_min_per_km:.2f}"
            )
            return self._session

    # =========================================================================
    # Projections
    # =========================================================================

    def live_stats(self, now: Optional[int] = None) -> LiveStats:
        """
        Current duration, distance, pace and speed. No side effects.

        Raises:
            InvalidTransitionError: lifecycle is not RUNNING or PAUSED
        """
        with self._lock:
            self._require("read live stats", TrackingState.RUNNING, TrackingState.PAUSED)
            session = self._session
            start = self._start_time_ms
            paused = self._state == TrackingState.PAUSED
            paused_at = self._paused_at_ms

        if paused:
            duration = max(0, paused_at - start)
        else:
            duration = max(0, (self._clock() if now is None else now) - start)

        distance = self._accumulator.total_distance(session.positions)
        metrics = derive(distance, duration)

        return LiveStats(
            duration_ms=duration,
            distance_meters=distance,
            pace_min_per_km=metrics.avg_pace_min_per_km,
            speed_kmh=metrics.speed_kmh,
        )

    def snapshot(self) -> TrackingSnapshot:
        """Persistable projection of the current state."""
        with self._lock:
            return TrackingSnapshot(
                is_tracking=self._state in (TrackingState.RUNNING, TrackingState.PAUSED),
                is_paused=self._state == TrackingState.PAUSED,
                session=self._session,
                start_time_ms=self._start_time_ms,
                paused_at_ms=self._paused_at_ms,
            )
