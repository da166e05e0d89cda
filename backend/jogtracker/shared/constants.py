"""
Unified constants for tracking state, persistence and scheduling.

This module provides a single source of truth for enum values that cross
feature boundaries (tracking, persistence, location).
"""

from enum import Enum


class TrackingState(str, Enum):
    """
    Lifecycle states of a tracked session.

    IDLE -> RUNNING -> (PAUSED <-> RUNNING) -> COMPLETED
    COMPLETED is terminal.
    """
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"


class TaskPriority(str, Enum):
    """Priority of deferred work, highest first."""
    USER_BLOCKING = "user-blocking"
    USER_VISIBLE = "user-visible"
    BACKGROUND = "background"

    @property
    def rank(self) -> int:
        """Lower rank runs first."""
        return _PRIORITY_RANK[self]


_PRIORITY_RANK: dict[TaskPriority, int] = {
    TaskPriority.USER_BLOCKING: 0,
    TaskPriority.USER_VISIBLE: 1,
    TaskPriority.BACKGROUND: 2,
}


class SaveStatus(str, Enum):
    """Durability status shown next to live stats."""
    IDLE = "idle"
    SAVING = "saving"
    SAVED = "saved"
    ERROR = "error"


class StorageKey(str, Enum):
    """
    Logical persistence records.

    Three independent records; any of them may be absent.
    """
    SESSIONS = "sessions"
    APP_STATE = "appState"
    SESSIONS_BACKUP = "sessionsBackup"


# Backup payload version (the only schema marker persisted)
BACKUP_VERSION = "1.0"
