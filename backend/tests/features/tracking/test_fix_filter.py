"""
Tests for GeoFixFilter.

The minimum-movement filter compares each candidate to the last ACCEPTED
fix, so slow drift eventually passes while jitter does not.
"""

import pytest

from jogtracker.features.tracking import Fix
from jogtracker.features.tracking.calculators import GeoFixFilter, fix_distance


def _fix(lon: float, t: int = 0, lat: float = 0.0) -> Fix:
    return Fix(latitude=lat, longitude=lon, timestamp_ms=t)


# ~0.56 m and ~1.11 m along the equator
HALF_METER_DEG = 0.000005
ONE_METER_DEG = 0.00001


class TestAccept:
    """Tests for single accept() decisions."""

    def test_first_fix_always_accepted(self):
        assert GeoFixFilter().accept(None, _fix(0.0)) is True

    def test_identical_fix_rejected(self):
        assert GeoFixFilter().accept(_fix(0.0), _fix(0.0, t=1000)) is False

    def test_jitter_below_threshold_rejected(self):
        assert GeoFixFilter().accept(_fix(0.0), _fix(HALF_METER_DEG)) is False

    def test_movement_above_threshold_accepted(self):
        assert GeoFixFilter().accept(_fix(0.0), _fix(ONE_METER_DEG)) is True

    def test_custom_threshold(self):
        strict = GeoFixFilter(min_movement_m=5.0)
        assert strict.accept(_fix(0.0), _fix(ONE_METER_DEG)) is False
        assert strict.accept(_fix(0.0), _fix(ONE_METER_DEG * 5)) is True

    def test_zero_threshold_accepts_everything(self):
        assert GeoFixFilter(min_movement_m=0.0).accept(_fix(0.0), _fix(0.0)) is True


class TestFilterSequence:
    """Tests for filter() over a trajectory."""

    def test_empty(self):
        assert GeoFixFilter().filter([]) == []

    def test_keeps_order(self):
        positions = [_fix(i * 0.0001, t=i) for i in range(5)]
        assert GeoFixFilter().filter(positions) == positions

    def test_compares_to_last_accepted_not_last_raw(self):
        """Two half-meter steps add up to an accepted ~1.1 m move."""
        positions = [
            _fix(0.0),
            _fix(HALF_METER_DEG),        # 0.56 m from start: rejected
            _fix(HALF_METER_DEG * 2),    # 1.11 m from start: accepted
        ]
        accepted = GeoFixFilter().filter(positions)
        assert accepted == [positions[0], positions[2]]

    def test_input_not_modified(self):
        positions = [_fix(0.0), _fix(0.0), _fix(0.0)]
        GeoFixFilter().filter(positions)
        assert len(positions) == 3


class TestFixDistance:
    """Tests for fix_distance helper."""

    def test_matches_haversine_reference(self):
        assert fix_distance(_fix(0.0), _fix(1.0)) == pytest.approx(111_195, rel=0.005)
