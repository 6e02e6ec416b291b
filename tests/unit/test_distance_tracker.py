"""
Unit tests for distance-to-go bookkeeping.
"""

import pytest

from src.reporting.distance_tracker import (
    initial_distance_to_go,
    leg_progress,
    updated_distance_to_go,
)


class TestInitialDistanceToGo:
    """Distance-to-go at departure."""

    def test_subtracts_harbour_distance(self):
        assert initial_distance_to_go(100, 20) == 80

    def test_clamped_at_zero(self):
        assert initial_distance_to_go(20, 100) == 0

    def test_missing_inputs_count_as_zero(self):
        assert initial_distance_to_go(None, 20) == 0
        assert initial_distance_to_go(100, None) == 100


class TestUpdatedDistanceToGo:
    """Distance-to-go carried forward from the baseline report."""

    def test_subtracts_distance_since_last(self):
        assert updated_distance_to_go(950, 200) == 750

    def test_clamped_at_zero(self):
        assert updated_distance_to_go(5, 10) == 0

    def test_missing_distance_keeps_previous(self):
        assert updated_distance_to_go(300, None) == 300

    def test_result_is_float(self):
        assert isinstance(updated_distance_to_go(10, 3), float)


class TestLegProgress:
    """Noon / arrival leg arithmetic."""

    def test_normal_leg(self):
        assert leg_progress(950, 200) == (200, 750)

    def test_stopped_vessel_travels_nothing(self):
        traveled, distance_to_go = leg_progress(750, 40, stopped=True)
        assert traveled == 0
        assert distance_to_go == pytest.approx(710)

    def test_overshoot_clamps_distance_to_go(self):
        assert leg_progress(30, 45) == (45, 0)
