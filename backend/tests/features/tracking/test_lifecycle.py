"""
Tests for SessionLifecycle.

Covers the state machine, pause-time accounting, completion, and the
refuse-but-flag behaviour of add_position outside RUNNING.
"""

import threading

import pytest

from jogtracker.shared.clock import ManualClock
from jogtracker.shared.constants import TrackingState
from jogtracker.features.tracking import (
    Fix,
    InvalidTransitionError,
    SessionHistory,
    SessionLifecycle,
    TrackingSnapshot,
)


def _fix(lon: float, t: int = 0, lat: float = 0.0) -> Fix:
    return Fix(latitude=lat, longitude=lon, timestamp_ms=t)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def clock():
    return ManualClock(start=0)


@pytest.fixture
def history():
    return SessionHistory()


@pytest.fixture
def lifecycle(clock, history):
    return SessionLifecycle(clock=clock, history=history)


@pytest.fixture
def running(lifecycle):
    lifecycle.start()
    return lifecycle


# =============================================================================
# State machine
# =============================================================================

class TestTransitions:
    """Valid and invalid transitions."""

    def test_initial_state_idle(self, lifecycle):
        assert lifecycle.state == TrackingState.IDLE
        assert lifecycle.session is None

    def test_start(self, lifecycle, clock):
        clock.set(5_000)
        session = lifecycle.start()

        assert lifecycle.state == TrackingState.RUNNING
        assert session.start_time_ms == 5_000
        assert session.positions == ()
        assert session.distance_meters == 0
        assert lifecycle.start_time_ms == 5_000
        assert lifecycle.paused_at_ms == 0

    def test_session_ids_unique(self, clock):
        ids = set()
        for _ in range(50):
            lifecycle = SessionLifecycle(clock=clock)
            ids.add(lifecycle.start().id)
        assert len(ids) == 50

    def test_pause_resume(self, running):
        running.pause()
        assert running.state == TrackingState.PAUSED
        running.resume()
        assert running.state == TrackingState.RUNNING

    def test_complete_from_running(self, running):
        running.complete()
        assert running.state == TrackingState.COMPLETED

    def test_complete_from_paused(self, running):
        running.pause()
        running.complete()
        assert running.state == TrackingState.COMPLETED

    @pytest.mark.parametrize("action", ["pause", "resume", "complete"])
    def test_invalid_from_idle(self, lifecycle, action):
        with pytest.raises(InvalidTransitionError) as exc:
            getattr(lifecycle, action)()
        assert exc.value.state == TrackingState.IDLE
        assert lifecycle.state == TrackingState.IDLE

    def test_start_twice(self, running):
        with pytest.raises(InvalidTransitionError):
            running.start()

    def test_resume_while_running(self, running):
        with pytest.raises(InvalidTransitionError):
            running.resume()

    def test_pause_while_paused(self, running):
        running.pause()
        with pytest.raises(InvalidTransitionError):
            running.pause()

    @pytest.mark.parametrize("action", ["start", "pause", "resume", "complete"])
    def test_completed_is_terminal(self, running, action):
        running.complete()
        with pytest.raises(InvalidTransitionError):
            getattr(running, action)()
        assert running.state == TrackingState.COMPLETED

    def test_error_message(self, lifecycle):
        with pytest.raises(InvalidTransitionError, match="Cannot pause while idle"):
            lifecycle.pause()


# =============================================================================
# Positions
# =============================================================================

class TestAddPosition:
    """Tests for add_position."""

    def test_appends_raw(self, running):
        assert running.add_position(_fix(0.0, t=0)) is True
        assert running.add_position(_fix(0.0, t=1000)) is True
        assert len(running.session.positions) == 2

    def test_refused_while_paused(self, running):
        running.add_position(_fix(0.0))
        running.pause()

        assert running.add_position(_fix(0.001, t=5000)) is False
        assert len(running.session.positions) == 1
        assert running.state == TrackingState.PAUSED
        assert running.rejected_fix_count == 1

    def test_refused_while_idle(self, lifecycle):
        assert lifecycle.add_position(_fix(0.0)) is False
        assert lifecycle.state == TrackingState.IDLE
        assert lifecycle.rejected_fix_count == 1

    def test_refused_after_complete(self, running):
        session = running.complete()
        assert running.add_position(_fix(0.0)) is False
        assert running.session == session

    def test_refusal_is_logged(self, running, caplog):
        running.pause()
        with caplog.at_level("WARNING"):
            running.add_position(_fix(0.0, t=42))
        assert "refused" in caplog.text

    def test_earlier_session_reference_unchanged(self, running):
        """Handed-out sessions are immutable snapshots."""
        before = running.session
        running.add_position(_fix(0.0))
        assert before.positions == ()


# =============================================================================
# Timing
# =============================================================================

class TestTiming:
    """Duration accounting across pauses."""

    def test_running_duration(self, running, clock):
        clock.set(30_000)
        assert running.live_stats().duration_ms == 30_000

    def test_explicit_now(self, running):
        assert running.live_stats(now=12_345).duration_ms == 12_345

    def test_duration_frozen_while_paused(self, running, clock):
        clock.set(10_000)
        running.pause()
        clock.set(70_000)
        assert running.live_stats().duration_ms == 10_000

    def test_pause_resume_excludes_paused_time(self, running, clock):
        clock.set(10_000)
        before = running.live_stats().duration_ms

        running.pause()
        clock.advance(3_600_000)
        running.resume()

        assert running.live_stats().duration_ms == before
        assert running.start_time_ms == 3_600_000

    def test_multiple_pauses(self, running, clock):
        clock.set(10_000)
        running.pause()
        clock.set(20_000)
        running.resume()
        clock.set(30_000)
        running.pause()
        clock.set(50_000)
        running.resume()
        clock.set(60_000)
        # Active: 0-10s, 20-30s, 50-60s
        assert running.live_stats().duration_ms == 30_000

    def test_session_keeps_wall_clock_start(self, running, clock):
        clock.set(10_000)
        running.pause()
        clock.set(20_000)
        running.resume()
        assert running.session.start_time_ms == 0

    def test_live_stats_has_no_side_effects(self, running, clock):
        running.add_position(_fix(0.0))
        running.add_position(_fix(0.001, t=10_000))
        clock.set(20_000)

        snapshot_before = running.snapshot()
        for _ in range(100):
            running.live_stats()
        assert running.snapshot() == snapshot_before

    def test_live_stats_requires_active(self, lifecycle):
        with pytest.raises(InvalidTransitionError):
            lifecycle.live_stats()


# =============================================================================
# Completion
# =============================================================================

class TestComplete:
    """Tests for complete()."""

    def test_reference_scenario(self, running, clock):
        """Start at 0, fixes ~111 m apart, complete at 20 s."""
        running.add_position(_fix(0.0, t=0))
        clock.set(10_000)
        running.add_position(_fix(0.001, t=10_000))

        session = running.complete(end_time_ms=20_000)

        assert session.end_time_ms == 20_000
        assert session.duration_ms == 20_000
        assert session.distance_meters == pytest.approx(111.19, abs=0.1)
        assert session.avg_pace_min_per_km == pytest.approx(3.0, rel=0.01)
        assert session.is_completed

    def test_defaults_to_now(self, running, clock):
        clock.set(45_000)
        assert running.complete().end_time_ms == 45_000

    def test_end_before_start_clamps_to_zero(self, lifecycle, clock):
        clock.set(10_000)
        lifecycle.start()
        assert lifecycle.complete(end_time_ms=5_000).duration_ms == 0

    def test_complete_while_paused_ignores_current_pause(self, running, clock):
        clock.set(10_000)
        running.pause()
        session = running.complete(end_time_ms=100_000)
        assert session.duration_ms == 10_000
        assert session.end_time_ms == 100_000

    def test_appends_to_history(self, running, history):
        session = running.complete()
        assert history.all() == [session]

    def test_outlier_fixes_kept_in_positions(self, running):
        running.add_position(_fix(0.0))
        running.add_position(_fix(1.0))  # 111 km jump
        running.add_position(_fix(1.001))
        session = running.complete()

        assert len(session.positions) == 3
        assert session.distance_meters == pytest.approx(111.19, abs=0.1)

    def test_metrics_reproducible_from_sealed_session(self, running, clock):
        from jogtracker.features.tracking.calculators import derive, total_distance

        for i in range(5):
            clock.set(i * 30_000)
            running.add_position(_fix(i * 0.0005, t=i * 30_000))
        session = running.complete()

        for _ in range(2):
            distance = total_distance(session.positions)
            assert distance == session.distance_meters
            assert derive(distance, session.duration_ms).avg_pace_min_per_km == (
                session.avg_pace_min_per_km
            )

    def test_sealed_session_is_frozen(self, running):
        session = running.complete()
        with pytest.raises(Exception):
            session.distance_meters = 5.0


# =============================================================================
# Snapshots and restore
# =============================================================================

class TestSnapshot:
    """Snapshot projection and restore()."""

    def test_running_snapshot(self, running, clock):
        running.add_position(_fix(0.0))
        snapshot = running.snapshot()

        assert snapshot.is_tracking is True
        assert snapshot.is_paused is False
        assert snapshot.session == running.session
        assert snapshot.start_time_ms == 0

    def test_paused_snapshot(self, running, clock):
        clock.set(7_000)
        running.pause()
        snapshot = running.snapshot()
        assert snapshot.is_paused is True
        assert snapshot.paused_at_ms == 7_000

    def test_idle_snapshot(self, lifecycle):
        assert lifecycle.snapshot().is_tracking is False

    def test_restore_round_trip(self, running, clock):
        running.add_position(_fix(0.0))
        clock.set(10_000)
        running.pause()

        restored = SessionLifecycle.restore(running.snapshot(), clock=clock)

        assert restored.state == TrackingState.PAUSED
        assert restored.session == running.session
        assert restored.live_stats() == running.live_stats()

    def test_restore_rejects_idle_snapshot(self):
        with pytest.raises(ValueError):
            SessionLifecycle.restore(TrackingSnapshot.idle())

    def test_restore_rejects_completed_session(self, running):
        running.complete()
        snapshot = running.snapshot().model_copy(update={"is_tracking": True})
        with pytest.raises(ValueError):
            SessionLifecycle.restore(snapshot)


# =============================================================================
# Concurrency
# =============================================================================

class TestConcurrency:
    """Concurrent feed and polling threads."""

    def test_concurrent_appends_and_reads(self, running):
        def feed(offset):
            for i in range(200):
                running.add_position(_fix(offset + i * 0.0001, t=i))

        def poll():
            for _ in range(200):
                running.live_stats(now=1_000)

        threads = [threading.Thread(target=feed, args=(n,)) for n in range(3)]
        threads.append(threading.Thread(target=poll))
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(running.session.positions) == 600
