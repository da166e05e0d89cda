"""
Tracking schemas.

Pydantic models for fixes, sessions and the persisted tracking snapshot.
JSON uses camelCase keys; Python attributes are snake_case.
"""

import random
import string
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from jogtracker.shared.constants import BACKUP_VERSION


class _Schema(BaseModel):
    """Base config: camelCase aliases, construct by either name."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_json_dict(self) -> dict:
        """Serialize with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)


class Fix(_Schema):
    """Single raw geographic reading. Immutable."""

    model_config = ConfigDict(frozen=True)

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    timestamp_ms: int


class Session(_Schema):
    """
    One tracked activity.

    Frozen: the lifecycle replaces its session with `model_copy(update=...)`
    on every append, so any reference handed out stays a consistent view.
    Once `end_time_ms` is set the metrics are final.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    start_time_ms: int
    end_time_ms: Optional[int] = None
    positions: Tuple[Fix, ...] = ()
    distance_meters: float = 0.0
    duration_ms: int = 0
    avg_pace_min_per_km: float = 0.0

    @property
    def is_completed(self) -> bool:
        return self.end_time_ms is not None

    def with_position(self, fix: Fix) -> "Session":
        """Return a copy with `fix` appended."""
        return self.model_copy(update={"positions": self.positions + (fix,)})


class TrackingSnapshot(_Schema):
    """
    Point-in-time projection of a SessionLifecycle.

    Produced by `SessionLifecycle.snapshot()`; `idle()` is the projection of
    "no lifecycle".
    """

    is_tracking: bool
    is_paused: bool
    session: Optional[Session] = None
    start_time_ms: int = 0
    paused_at_ms: int = 0

    @model_validator(mode="after")
    def check_timing(self) -> "TrackingSnapshot":
        """An active snapshot must carry its timing anchors explicitly."""
        if self.is_paused and not self.is_tracking:
            raise ValueError("isPaused requires isTracking")
        if self.is_tracking and "start_time_ms" not in self.model_fields_set:
            raise ValueError("startTimeMs is required while tracking")
        if self.is_paused:
            if "paused_at_ms" not in self.model_fields_set:
                raise ValueError("pausedAtMs is required while paused")
            if self.paused_at_ms < self.start_time_ms:
                raise ValueError("pausedAtMs precedes startTimeMs")
        return self

    @classmethod
    def idle(cls) -> "TrackingSnapshot":
        return cls(is_tracking=False, is_paused=False)


class SessionBackup(_Schema):
    """Best-effort copy of the session history."""

    timestamp: int
    sessions: list[Session] = Field(default_factory=list)
    version: str = BACKUP_VERSION


class LiveStats(_Schema):
    """Stats polled by the UI while a session is active."""

    duration_ms: int
    distance_meters: float
    pace_min_per_km: float
    speed_kmh: float


class OverallStats(_Schema):
    """Aggregate over completed sessions."""

    total_distance_meters: float
    total_duration_ms: int
    avg_pace_min_per_km: float
    total_sessions: int


_ID_ALPHABET = string.digits + string.ascii_lowercase


def generate_session_id(timestamp_ms: int) -> str:
    """Generate `session_<ms>_<9 base36 chars>`."""
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"session_{timestamp_ms}_{suffix}"
