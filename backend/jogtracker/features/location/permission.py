"""
Location permission state.

Three-way state with change notifications. The tracking core only reads
`is_granted`; the prompt flow that changes the state lives outside.
"""

import logging
import threading
from enum import Enum
from typing import Callable

logger = logging.getLogger(__name__)


class PermissionState(str, Enum):
    """Browser-style geolocation permission state."""
    PROMPT = "prompt"
    GRANTED = "granted"
    DENIED = "denied"


PermissionListener = Callable[[PermissionState], None]


class PermissionMonitor:
    """
    Observable permission value.

    Usage:
        monitor = PermissionMonitor()
        unsubscribe = monitor.subscribe(lambda state: print(state))
        monitor.set(PermissionState.GRANTED)
        unsubscribe()
    """

    def __init__(self, initial: PermissionState = PermissionState.PROMPT):
        self._state = initial
        self._listeners: list[PermissionListener] = []
        self._lock = threading.Lock()

    @property
    def state(self) -> PermissionState:
        with self._lock:
            return self._state

    @property
    def is_granted(self) -> bool:
        return self.state == PermissionState.GRANTED

    def subscribe(self, listener: PermissionListener) -> Callable[[], None]:
        """Register `listener`; returns a function that removes it."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def set(self, state: PermissionState) -> None:
        """Update state; listeners fire only on an actual change."""
        with self._lock:
            if state == self._state:
                return
            previous, self._state = self._state, state
            listeners = list(self._listeners)

        logger.info(f"Location permission {previous.value} -> {state.value}")
        for listener in listeners:
            try:
                listener(state)
            except Exception:
                logger.exception("Permission listener failed")
