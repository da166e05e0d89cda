"""
Tests for RecoveryCoordinator.

Recovery must rebuild RUNNING/PAUSED sessions from the persisted snapshot
and fall back to IDLE, without raising, for anything it cannot use.
"""

import pytest

from jogtracker.shared.clock import ManualClock
from jogtracker.shared.constants import StorageKey, TrackingState
from jogtracker.features.persistence import InMemoryGateway, SessionStore
from jogtracker.features.tracking import (
    Fix,
    RecoveryCoordinator,
    SessionHistory,
    SessionLifecycle,
)


def _fix(lon: float, t: int = 0) -> Fix:
    return Fix(latitude=0.0, longitude=lon, timestamp_ms=t)


@pytest.fixture
def clock():
    return ManualClock(start=0)


@pytest.fixture
def gateway():
    return InMemoryGateway()


@pytest.fixture
def store(gateway, clock):
    return SessionStore(gateway, clock=clock)


@pytest.fixture
def crashed_lifecycle(clock):
    """A lifecycle that ran for 20 s with three fixes before the 'crash'."""
    lifecycle = SessionLifecycle(clock=clock)
    lifecycle.start()
    for i in range(3):
        clock.set(i * 10_000)
        lifecycle.add_position(_fix(i * 0.001, t=i * 10_000))
    return lifecycle


# =============================================================================
# Restores
# =============================================================================

class TestRestore:
    """Snapshots describing an active session."""

    def test_restores_running(self, store, clock, crashed_lifecycle):
        store.save_app_state(crashed_lifecycle.snapshot())
        expected = crashed_lifecycle.live_stats(now=20_000)

        result = RecoveryCoordinator(store, clock=clock).recover()

        assert result.restored
        assert result.lifecycle.state == TrackingState.RUNNING
        restored_stats = result.lifecycle.live_stats(now=20_000)
        assert restored_stats.distance_meters == expected.distance_meters
        assert restored_stats.duration_ms == expected.duration_ms

    def test_restores_paused(self, store, clock, crashed_lifecycle):
        clock.set(25_000)
        crashed_lifecycle.pause()
        store.save_app_state(crashed_lifecycle.snapshot())

        clock.set(500_000)  # app comes back much later
        result = RecoveryCoordinator(store, clock=clock).recover()

        assert result.lifecycle.state == TrackingState.PAUSED
        assert result.lifecycle.paused_at_ms == 25_000
        assert result.lifecycle.live_stats().duration_ms == 25_000

    def test_restored_positions_intact(self, store, clock, crashed_lifecycle):
        store.save_app_state(crashed_lifecycle.snapshot())
        result = RecoveryCoordinator(store, clock=clock).recover()
        assert result.lifecycle.session == crashed_lifecycle.session

    def test_restored_lifecycle_continues(self, store, clock, crashed_lifecycle):
        store.save_app_state(crashed_lifecycle.snapshot())
        lifecycle = RecoveryCoordinator(store, clock=clock).recover().lifecycle

        lifecycle.add_position(_fix(0.003, t=30_000))
        session = lifecycle.complete(end_time_ms=40_000)

        assert len(session.positions) == 4
        assert session.duration_ms == 40_000

    def test_restored_lifecycle_completes_into_history(self, store, clock, crashed_lifecycle):
        store.save_app_state(crashed_lifecycle.snapshot())
        history = SessionHistory()
        lifecycle = RecoveryCoordinator(store, clock=clock, history=history).recover().lifecycle

        session = lifecycle.complete()
        assert history.all() == [session]

    def test_notice(self, store, clock, crashed_lifecycle):
        store.save_app_state(crashed_lifecycle.snapshot())
        notices = []

        result = RecoveryCoordinator(store, clock=clock, on_notice=notices.append).recover()

        assert notices == [result.notice]
        assert "Restored running session" in result.notice

    def test_failing_notice_callback_does_not_abort(self, store, clock, crashed_lifecycle):
        store.save_app_state(crashed_lifecycle.snapshot())

        def broken(_):
            raise RuntimeError("ui gone")

        result = RecoveryCoordinator(store, clock=clock, on_notice=broken).recover()
        assert result.restored


# =============================================================================
# Falls back to idle
# =============================================================================

class TestIdleFallback:
    """Nothing usable to restore."""

    def test_absent_snapshot(self, store, clock):
        result = RecoveryCoordinator(store, clock=clock).recover()
        assert not result.restored
        assert result.notice is None

    def test_not_tracking(self, store, clock, crashed_lifecycle):
        snapshot = crashed_lifecycle.snapshot().model_copy(update={"is_tracking": False})
        store.save_app_state(snapshot)
        assert not RecoveryCoordinator(store, clock=clock).recover().restored

    def test_tracking_without_session(self, gateway, store, clock):
        gateway.put(
            StorageKey.APP_STATE.value,
            '{"isTracking": true, "isPaused": false, "session": null, '
            '"startTimeMs": 0, "pausedAtMs": 0}',
        )
        assert not RecoveryCoordinator(store, clock=clock).recover().restored

    @pytest.mark.parametrize("raw", [
        "not json at all",
        "[]",
        '{"isTracking": "maybe"}',
        '{"isTracking": true, "isPaused": false, "session": {"id": 5}}',
        '{"isTracking": true, "isPaused": false, "session": {"id": "s", "startTimeMs": 1}}',
        '{"isTracking": true, "isPaused": true, "session": {"id": "s", "startTimeMs": 1}, '
        '"startTimeMs": 1000}',
        '{"isTracking": true, "isPaused": true, "session": {"id": "s", "startTimeMs": 1}, '
        '"startTimeMs": 5000, "pausedAtMs": 1000}',
        '{"isTracking": false, "isPaused": true, "session": null, "startTimeMs": 0, "pausedAtMs": 0}',
        "",
    ])
    def test_malformed_snapshot(self, gateway, store, clock, raw, caplog):
        gateway.put(StorageKey.APP_STATE.value, raw)
        with caplog.at_level("WARNING"):
            result = RecoveryCoordinator(store, clock=clock).recover()
        assert not result.restored
        assert "malformed" in caplog.text

    def test_completed_session_in_snapshot(self, store, clock, crashed_lifecycle):
        crashed_lifecycle.complete()
        snapshot = crashed_lifecycle.snapshot().model_copy(update={"is_tracking": True})
        store.save_app_state(snapshot)

        assert not RecoveryCoordinator(store, clock=clock).recover().restored
