"""
Tracking Service

Orchestrates the tracking components:
- SessionLifecycle for the active session
- SessionHistory for completed sessions
- SessionStore + DeferredWorkQueue for durability
- RecoveryCoordinator at startup
- Location feed and permission gate

This is the main entry point for anything that drives a session (UI, CLI).
Persistence here is best effort: a failed write sets save status to ERROR
and the next scheduled write retries naturally. Nothing in this class lets
a storage problem interrupt live tracking.
"""

import logging
import threading
from typing import Callable, Optional

from jogtracker.shared.clock import Clock, now_ms
from jogtracker.shared.constants import SaveStatus, StorageKey, TaskPriority, TrackingState
from jogtracker.features.location import LocationFeed, PermissionMonitor, PermissionState
from jogtracker.features.persistence import DeferredWorkQueue, RecurringTask, SessionStore

from .calculators import DistanceAccumulator, overall_stats
from .config import TrackingConfig
from .exceptions import InvalidTransitionError, PermissionDeniedError
from .history import SessionHistory
from .lifecycle import SessionLifecycle
from .recovery import RecoveryCoordinator, RecoveryResult
from .schemas import Fix, LiveStats, OverallStats, Session, TrackingSnapshot

logger = logging.getLogger(__name__)


class TrackingService:
    """
    Session control surface.

    Usage:
        service = TrackingService(store, queue, permission=monitor, feed=feed)
        service.recover()
        service.start()
        ...
        session = service.complete()
        service.shutdown()
    """

    def __init__(
        self,
        store: SessionStore,
        queue: DeferredWorkQueue,
        clock: Clock = now_ms,
        accumulator: Optional[DistanceAccumulator] = None,
        permission: Optional[PermissionMonitor] = None,
        feed: Optional[LocationFeed] = None,
        backup_interval_seconds: float = TrackingConfig.BACKUP_INTERVAL_SECONDS,
        on_notice: Optional[Callable[[str], None]] = None,
    ):
        self.store = store
        self.queue = queue
        self.permission = permission
        self.feed = feed
        self.backup_interval_seconds = backup_interval_seconds

        self._clock = clock
        self._accumulator = accumulator or DistanceAccumulator()
        self._on_notice = on_notice
        self._lock = threading.RLock()

        self._history = SessionHistory()
        self._history_loaded = False
        self._lifecycle: Optional[SessionLifecycle] = None
        self._backup_task: Optional[RecurringTask] = None

        self.save_status = SaveStatus.IDLE
        self.last_save_time_ms: Optional[int] = None
        self.last_error: Optional[str] = None

    # =========================================================================
    # Startup
    # =========================================================================

    def recover(self) -> RecoveryResult:
        """
        Load history and restore any in-flight session.

        Call once at startup, before start().
        """
        with self._lock:
            if self._lifecycle is not None and self._lifecycle.is_active:
                raise InvalidTransitionError("recover", self._lifecycle.state)

            self._ensure_history()

            result = RecoveryCoordinator(
                self.store,
                clock=self._clock,
                accumulator=self._accumulator,
                history=self._history,
                on_notice=self._on_notice,
            ).recover()

            self._lifecycle = result.lifecycle
            if result.restored and self._lifecycle.state == TrackingState.RUNNING:
                self._start_feed()
            return result

    def start_backups(self) -> None:
        """Begin periodic best-effort history backup."""
        with self._lock:
            self._ensure_history()
            if self._backup_task is not None and not self._backup_task.cancelled:
                return
            self._backup_task = self.queue.schedule_recurring(
                self._write_backup,
                self.backup_interval_seconds,
                TaskPriority.BACKGROUND,
                key=StorageKey.SESSIONS_BACKUP.value,
            )
            logger.info(f"History backup every {self.backup_interval_seconds}s")

    def _ensure_history(self) -> SessionHistory:
        """Stored history, loaded once. Every path that writes `sessions` goes through here."""
        with self._lock:
            if not self._history_loaded:
                self._history = SessionHistory(self.store.load_sessions())
                self._history_loaded = True
                logger.info(f"Loaded {len(self._history)} sessions")
            return self._history

    def shutdown(self, timeout: Optional[float] = 5.0) -> None:
        """Stop the feed and backups, then drain pending writes."""
        with self._lock:
            if self.feed is not None and self.feed.is_running:
                self.feed.stop()
            if self._backup_task is not None:
                self._backup_task.cancel()
                self._backup_task = None
        self.queue.shutdown(timeout)

    # =========================================================================
    # Read-only views
    # =========================================================================

    @property
    def state(self) -> TrackingState:
        with self._lock:
            if self._lifecycle is None or self._lifecycle.state == TrackingState.COMPLETED:
                return TrackingState.IDLE
            return self._lifecycle.state

    @property
    def current_session(self) -> Optional[Session]:
        with self._lock:
            if self._lifecycle is None or not self._lifecycle.is_active:
                return None
            return self._lifecycle.session

    def history(self) -> list[Session]:
        """Completed sessions in completion order."""
        return self._ensure_history().all()

    def overall_stats(self) -> OverallStats:
        return overall_stats(self._ensure_history().all())

    def live_stats(self, now: Optional[int] = None) -> LiveStats:
        """Stats for the active session; raises InvalidTransitionError when idle."""
        with self._lock:
            lifecycle = self._lifecycle
        if lifecycle is None:
            raise InvalidTransitionError("read live stats", TrackingState.IDLE)
        return lifecycle.live_stats(now)

    def snapshot(self) -> TrackingSnapshot:
        with self._lock:
            if self._lifecycle is None or not self._lifecycle.is_active:
                return TrackingSnapshot.idle()
            return self._lifecycle.snapshot()

    # =========================================================================
    # Transitions
    # =========================================================================

    def start(self) -> Session:
        """Begin a new session. Requires granted permission when a monitor is attached."""
        with self._lock:
            if self.permission is not None and not self.permission.is_granted:
                raise PermissionDeniedError(
                    f"Location permission is {self.permission.state.value}"
                )
            if self._lifecycle is not None and self._lifecycle.is_active:
                raise InvalidTransitionError("start", self._lifecycle.state)

            lifecycle = SessionLifecycle(
                clock=self._clock,
                accumulator=self._accumulator,
                history=self._ensure_history(),
            )
            session = lifecycle.start()
            self._lifecycle = lifecycle
            self._start_feed()
            self._persist_snapshot(TaskPriority.USER_VISIBLE)
            return session

    def add_position(self, fix: Fix) -> bool:
        """Append a fix to the running session. Refused (False) otherwise."""
        with self._lock:
            if self._lifecycle is None:
                logger.warning(f"Fix at {fix.timestamp_ms} refused: no session")
                return False
            appended = self._lifecycle.add_position(fix)
            if appended:
                self._persist_snapshot(TaskPriority.BACKGROUND)
            return appended

    def pause(self) -> None:
        with self._lock:
            self._active_lifecycle("pause").pause()
            self._stop_feed()
            self._persist_snapshot(TaskPriority.USER_VISIBLE)

    def resume(self) -> None:
        with self._lock:
            self._active_lifecycle("resume").resume()
            self._start_feed()
            self._persist_snapshot(TaskPriority.USER_VISIBLE)

    def complete(self, end_time_ms: Optional[int] = None) -> Session:
        """Seal the active session, add it to history and persist both."""
        with self._lock:
            session = self._active_lifecycle("complete").complete(end_time_ms)
            self._stop_feed()
            self._lifecycle = None

            sessions = self._history.all()
            self._schedule_save(
                StorageKey.SESSIONS,
                lambda: self.store.save_sessions(sessions),
                TaskPriority.USER_VISIBLE,
            )
            idle = TrackingSnapshot.idle()
            self._schedule_save(
                StorageKey.APP_STATE,
                lambda: self.store.save_app_state(idle),
                TaskPriority.USER_VISIBLE,
            )
            return session

    def _active_lifecycle(self, action: str) -> SessionLifecycle:
        if self._lifecycle is None:
            logger.warning(f"Invalid transition: {action} with no session")
            raise InvalidTransitionError(action, TrackingState.IDLE)
        return self._lifecycle

    # =========================================================================
    # Location feed
    # =========================================================================

    def _start_feed(self) -> None:
        if self.feed is None or self.feed.is_running:
            return
        if self.permission is not None and not self.permission.is_granted:
            logger.warning("Location feed not started: permission not granted")
            return
        self.feed.start(self.add_position, self._on_feed_error)

    def _stop_feed(self) -> None:
        if self.feed is not None and self.feed.is_running:
            self.feed.stop()

    def _on_feed_error(self, message: str) -> None:
        self.last_error = message
        logger.error(f"Location feed error: {message}")
        if self.permission is not None and "permission denied" in message.lower():
            self.permission.set(PermissionState.DENIED)

    # =========================================================================
    # Persistence
    # =========================================================================

    def _persist_snapshot(self, priority: TaskPriority) -> None:
        snapshot = self._lifecycle.snapshot()
        self._schedule_save(
            StorageKey.APP_STATE,
            lambda: self.store.save_app_state(snapshot),
            priority,
        )

    def _schedule_save(
        self,
        key: StorageKey,
        save: Callable[[], bool],
        priority: TaskPriority,
    ) -> None:
        def task() -> None:
            self.save_status = SaveStatus.SAVING
            if save():
                self.save_status = SaveStatus.SAVED
                self.last_save_time_ms = self._clock()
            else:
                self.save_status = SaveStatus.ERROR
                logger.warning(f"Save of {key.value} failed; will retry on next write")

        self.queue.schedule(task, priority, key=key.value)

    def _write_backup(self) -> None:
        if not self.store.create_backup(self._history.all()):
            logger.warning("History backup failed")
