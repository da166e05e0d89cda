"""
History analytics over completed sessions.
"""

from datetime import datetime, timedelta
from typing import Sequence

from jogtracker.features.tracking.schemas import OverallStats, Session


def overall_stats(sessions: Sequence[Session]) -> OverallStats:
    """
    Aggregate totals over sessions.

    avg pace is the plain mean of per-session paces, not distance-weighted.
    """
    total_distance = sum(s.distance_meters for s in sessions)
    total_duration = sum(s.duration_ms for s in sessions)
    avg_pace = (
        sum(s.avg_pace_min_per_km for s in sessions) / len(sessions)
        if sessions else 0.0
    )

    return OverallStats(
        total_distance_meters=total_distance,
        total_duration_ms=total_duration,
        avg_pace_min_per_km=avg_pace,
        total_sessions=len(sessions),
    )


def _started_at(session: Session) -> datetime:
    return datetime.fromtimestamp(session.start_time_ms / 1000)


def filter_by_date_range(
    sessions: Sequence[Session],
    start: datetime,
    end: datetime,
) -> list[Session]:
    """Sessions whose start time falls in [start, end]."""
    return [s for s in sessions if start <= _started_at(s) <= end]


def recent_sessions(
    sessions: Sequence[Session],
    days: int,
    now: datetime | None = None,
) -> list[Session]:
    """Sessions started within the last `days` days."""
    cutoff = (now or datetime.now()) - timedelta(days=days)
    return [s for s in sessions if _started_at(s) >= cutoff]
