"""
Deferred work queue.

Fire-and-forget scheduler for non-urgent persistence writes.

Ordering rules:
- user-blocking before user-visible before background
- FIFO within a priority
- Tasks that share a `key` are last-submitted-wins: a keyed task is skipped
  if a newer task with the same key was submitted after it. A stale
  snapshot can therefore never overwrite a newer one, whatever the
  priorities involved.

Where tasks run is decided once, at construction, by a strategy:
- ThreadStrategy: one daemon worker thread
- InlineStrategy: the submitting thread, right away

Failed tasks are logged. The queue never retries.
"""

import heapq
import itertools
import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Optional, Union

from jogtracker.shared.constants import TaskPriority

logger = logging.getLogger(__name__)

Task = Callable[[], None]


@dataclass(order=True)
class _QueuedTask:
    rank: int
    seq: int
    fn: Task = field(compare=False)
    priority: TaskPriority = field(compare=False)
    key: Optional[str] = field(default=None, compare=False)


@dataclass(frozen=True)
class QueueStatus:
    """Point-in-time queue state."""
    pending: int
    processing: bool
    strategy: str


# =============================================================================
# Strategies
# =============================================================================

class QueueStrategy(ABC):
    """Decides which thread drains the queue."""

    name: str = "abstract"

    @abstractmethod
    def attach(self, queue: "DeferredWorkQueue") -> None:
        ...

    @abstractmethod
    def notify(self) -> None:
        """Called after every submission."""
        ...

    def stop(self, timeout: Optional[float] = None) -> None:
        pass


class InlineStrategy(QueueStrategy):
    """
    Drain on the submitting thread.

    Nested submissions from inside a running task are queued and picked up
    by the outer drain loop.
    """

    name = "inline"

    def __init__(self):
        self._queue: Optional[DeferredWorkQueue] = None
        self._drain_lock = threading.Lock()

    def attach(self, queue: "DeferredWorkQueue") -> None:
        self._queue = queue

    def notify(self) -> None:
        while self._queue.pending and self._drain_lock.acquire(blocking=False):
            try:
                while self._queue.run_next():
                    pass
            finally:
                self._drain_lock.release()


class ThreadStrategy(QueueStrategy):
    """Drain on a single daemon worker thread."""

    name = "thread"

    def __init__(self, thread_name: str = "deferred-work"):
        self._thread_name = thread_name
        self._queue: Optional[DeferredWorkQueue] = None
        self._wakeup = threading.Event()
        self._stopped = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def attach(self, queue: "DeferredWorkQueue") -> None:
        self._queue = queue
        self._thread = threading.Thread(target=self._loop, name=self._thread_name, daemon=True)
        self._thread.start()

    def notify(self) -> None:
        self._wakeup.set()

    def _loop(self) -> None:
        while not self._stopped.is_set():
            self._wakeup.wait()
            self._wakeup.clear()
            while self._queue.run_next():
                pass

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stopped.set()
        self._wakeup.set()
        if self._thread is not None:
            self._thread.join(timeout)


STRATEGIES: dict[str, type[QueueStrategy]] = {
    InlineStrategy.name: InlineStrategy,
    ThreadStrategy.name: ThreadStrategy,
}


# =============================================================================
# Recurring tasks
# =============================================================================

class RecurringTask:
    """
    Resubmits a task every `interval` seconds until cancelled.

    The timer only schedules; the work itself runs wherever the queue runs it.
    """

    def __init__(
        self,
        queue: "DeferredWorkQueue",
        fn: Task,
        interval: float,
        priority: TaskPriority,
        key: Optional[str],
    ):
        self.interval = interval
        self._queue = queue
        self._fn = fn
        self._priority = priority
        self._key = key
        self._cancelled = threading.Event()
        self._thread = threading.Thread(target=self._loop, name=f"recurring-{key or 'task'}", daemon=True)

    def start(self, run_immediately: bool = True) -> "RecurringTask":
        if run_immediately:
            self._queue.schedule(self._fn, self._priority, key=self._key)
        self._thread.start()
        return self

    def _loop(self) -> None:
        while not self._cancelled.wait(self.interval):
            self._queue.schedule(self._fn, self._priority, key=self._key)

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()


# =============================================================================
# Queue
# =============================================================================

class DeferredWorkQueue:
    """
    Priority queue of deferred tasks.

    Usage:
        queue = DeferredWorkQueue("thread")
        queue.schedule(lambda: store.save_app_state(snapshot), key="appState")
        queue.flush(timeout=1.0)
        queue.shutdown()
    """

    def __init__(self, strategy: Union[str, QueueStrategy] = "thread"):
        if isinstance(strategy, str):
            if strategy not in STRATEGIES:
                raise ValueError(f"Unknown work queue strategy: {strategy}")
            strategy = STRATEGIES[strategy]()

        self._heap: list[_QueuedTask] = []
        self._seq = itertools.count()
        self._latest_for_key: dict[str, int] = {}
        self._processing = False
        self._cond = threading.Condition()
        self._recurring: list[RecurringTask] = []
        self._closed = False

        self.strategy = strategy
        self.strategy.attach(self)
        logger.debug(f"Deferred work queue using {strategy.name} strategy")

    # =========================================================================
    # Submission
    # =========================================================================

    def schedule(
        self,
        fn: Task,
        priority: TaskPriority = TaskPriority.BACKGROUND,
        key: Optional[str] = None,
    ) -> int:
        """
        Queue `fn`. Never blocks on the task itself.

        Args:
            fn: Zero-argument callable
            priority: Scheduling priority
            key: Logical record written by `fn`; newer submissions for the
                same key supersede older pending ones

        Returns:
            Task sequence number, or -1 if the queue is shut down and the
            task was dropped
        """
        with self._cond:
            if self._closed:
                logger.warning(f"Queue is shut down, dropping task (key={key})")
                return -1
            seq = next(self._seq)
            heapq.heappush(self._heap, _QueuedTask(priority.rank, seq, fn, priority, key))
            if key is not None:
                self._latest_for_key[key] = seq
        self.strategy.notify()
        return seq

    def schedule_recurring(
        self,
        fn: Task,
        interval: float,
        priority: TaskPriority = TaskPriority.BACKGROUND,
        key: Optional[str] = None,
        run_immediately: bool = True,
    ) -> RecurringTask:
        """Submit `fn` now (optionally) and then every `interval` seconds."""
        task = RecurringTask(self, fn, interval, priority, key)
        with self._cond:
            if self._closed:
                logger.warning(f"Queue is shut down, not starting recurring task (key={key})")
                task.cancel()
                return task
            self._recurring.append(task)
        return task.start(run_immediately=run_immediately)

    # =========================================================================
    # Draining (called by strategies)
    # =========================================================================

    @property
    def pending(self) -> int:
        with self._cond:
            return len(self._heap)

    def run_next(self) -> bool:
        """
        Pop and run one task.

        Returns:
            False if the queue was empty
        """
        with self._cond:
            if not self._heap:
                return False
            task = heapq.heappop(self._heap)
            stale = task.key is not None and self._latest_for_key.get(task.key) != task.seq
            self._processing = True

        try:
            if stale:
                logger.debug(f"Skipping superseded task {task.seq} for {task.key}")
            else:
                task.fn()
        except Exception:
            logger.exception(f"Deferred task {task.seq} ({task.priority.value}) failed")
        finally:
            with self._cond:
                if task.key is not None and self._latest_for_key.get(task.key) == task.seq:
                    del self._latest_for_key[task.key]
                self._processing = False
                self._cond.notify_all()
        return True

    # =========================================================================
    # Control
    # =========================================================================

    def flush(self, timeout: Optional[float] = None) -> bool:
        """
        Wait until every queued task has run.

        Returns:
            True if drained within `timeout`
        """
        with self._cond:
            return self._cond.wait_for(
                lambda: not self._heap and not self._processing,
                timeout=timeout,
            )

    def status(self) -> QueueStatus:
        with self._cond:
            return QueueStatus(
                pending=len(self._heap),
                processing=self._processing,
                strategy=self.strategy.name,
            )

    def clear(self) -> None:
        """Drop pending tasks and stop recurring ones."""
        with self._cond:
            dropped = len(self._heap)
            self._heap.clear()
            self._latest_for_key.clear()
            recurring, self._recurring = self._recurring, []
            self._cond.notify_all()
        for task in recurring:
            task.cancel()
        if dropped:
            logger.info(f"Cleared {dropped} pending tasks")

    def shutdown(self, timeout: Optional[float] = 5.0) -> None:
        """Stop recurring tasks, drain what is queued, stop the strategy."""
        with self._cond:
            self._closed = True
            recurring, self._recurring = self._recurring, []
        for task in recurring:
            task.cancel()
        if not self.flush(timeout):
            logger.warning(f"Shutdown with {self.pending} tasks still pending")
        self.strategy.stop(timeout)
