"""
Session store.

Typed facade over a PersistenceGateway for the three tracker records:
- sessions        list of completed Session
- appState        latest TrackingSnapshot
- sessionsBackup  SessionBackup {timestamp, sessions, version}

Loads never raise: an absent record is empty/None, a malformed record is
logged and treated as absent. Saves return False instead of raising, so a
storage failure can only degrade durability, never live tracking.
"""

import json
import logging
from dataclasses import dataclass
from typing import Optional

from pydantic import TypeAdapter, ValidationError

from jogtracker.shared.clock import Clock, now_ms
from jogtracker.shared.constants import StorageKey
from jogtracker.features.tracking.schemas import Session, SessionBackup, TrackingSnapshot

from .gateway import PersistenceError, PersistenceGateway

logger = logging.getLogger(__name__)

_SESSION_LIST = TypeAdapter(list[Session])

DEFAULT_QUOTA_BYTES = 5 * 1024 * 1024


@dataclass(frozen=True)
class StorageInfo:
    """Approximate storage usage."""
    used: int
    available: int
    percentage: float


class SessionStore:
    """
    Read/write tracker records.

    Usage:
        store = SessionStore(InMemoryGateway())
        store.save_sessions(history.all())
        snapshot = store.load_app_state()
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        clock: Clock = now_ms,
        quota_bytes: int = DEFAULT_QUOTA_BYTES,
    ):
        self.gateway = gateway
        self._clock = clock
        self.quota_bytes = quota_bytes

    # =========================================================================
    # Low-level helpers
    # =========================================================================

    def _write(self, key: StorageKey, payload: str) -> bool:
        try:
            self.gateway.put(key.value, payload)
            return True
        except PersistenceError as e:
            logger.error(f"Failed to save {key.value}: {e}")
            return False

    def _read(self, key: StorageKey) -> Optional[str]:
        try:
            return self.gateway.get(key.value)
        except PersistenceError as e:
            logger.error(f"Failed to load {key.value}: {e}")
            return None

    def _delete(self, key: StorageKey) -> None:
        try:
            self.gateway.delete(key.value)
        except PersistenceError as e:
            logger.error(f"Failed to clear {key.value}: {e}")

    # =========================================================================
    # Sessions
    # =========================================================================

    def save_sessions(self, sessions: list[Session]) -> bool:
        """Replace the stored session list."""
        payload = _SESSION_LIST.dump_json(sessions, by_alias=True).decode()
        return self._write(StorageKey.SESSIONS, payload)

    def load_sessions(self) -> list[Session]:
        """Stored completed sessions, [] when absent or malformed."""
        raw = self._read(StorageKey.SESSIONS)
        if raw is None:
            return []

        try:
            sessions = _SESSION_LIST.validate_json(raw)
        except ValidationError as e:
            logger.warning(f"Stored sessions are malformed, ignoring: {e.error_count()} errors")
            return []

        completed = [s for s in sessions if s.is_completed]
        if len(completed) != len(sessions):
            logger.warning(
                f"Dropped {len(sessions) - len(completed)} stored sessions without end time"
            )
        return completed

    # =========================================================================
    # App state
    # =========================================================================

    def save_app_state(self, snapshot: TrackingSnapshot) -> bool:
        """Replace the stored tracking snapshot."""
        return self._write(StorageKey.APP_STATE, snapshot.model_dump_json(by_alias=True))

    def load_app_state(self) -> Optional[TrackingSnapshot]:
        """Stored snapshot, None when absent or malformed."""
        raw = self._read(StorageKey.APP_STATE)
        if raw is None:
            return None

        try:
            return TrackingSnapshot.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(f"Stored app state is malformed, ignoring: {e.error_count()} errors")
            return None

    def clear_app_state(self) -> None:
        self._delete(StorageKey.APP_STATE)

    # =========================================================================
    # Backup
    # =========================================================================

    def create_backup(self, sessions: list[Session]) -> bool:
        """Write a timestamped copy of `sessions`."""
        backup = SessionBackup(timestamp=self._clock(), sessions=sessions)
        return self._write(StorageKey.SESSIONS_BACKUP, backup.model_dump_json(by_alias=True))

    def load_backup(self) -> Optional[SessionBackup]:
        raw = self._read(StorageKey.SESSIONS_BACKUP)
        if raw is None:
            return None

        try:
            return SessionBackup.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(f"Stored backup is malformed, ignoring: {e.error_count()} errors")
            return None

    # =========================================================================
    # Maintenance
    # =========================================================================

    def clear_all_data(self) -> None:
        for key in StorageKey:
            self._delete(key)

    def storage_info(self) -> StorageInfo:
        """Characters used by tracker records against the nominal quota."""
        used = 0
        for key in StorageKey:
            raw = self._read(key)
            if raw is not None:
                used += len(raw) + len(key.value)

        available = max(0, self.quota_bytes - used)
        percentage = (used / self.quota_bytes) * 100 if self.quota_bytes else 0.0
        return StorageInfo(used=used, available=available, percentage=percentage)

    def export_json(self) -> dict:
        """All present records as parsed JSON, keyed by record name."""
        exported = {}
        for key in StorageKey:
            raw = self._read(key)
            if raw is None:
                continue
            try:
                exported[key.value] = json.loads(raw)
            except json.JSONDecodeError:
                logger.warning(f"Skipping unparsable {key.value} in export")
        return exported
