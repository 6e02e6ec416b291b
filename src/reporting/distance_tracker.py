"""
Distance-to-go bookkeeping.

Distance-to-go is carried forward from the last approved report and never
goes below zero. Missing inputs count as zero.
"""

from typing import Optional, Tuple


def _nm(value: Optional[float]) -> float:
    return float(value) if value is not None else 0.0


def initial_distance_to_go(total_distance: Optional[float], harbour_distance: Optional[float]) -> float:
    """Distance-to-go at departure: voyage distance minus the harbour leg already steamed."""
    return max(0.0, _nm(total_distance) - _nm(harbour_distance))


def updated_distance_to_go(previous: Optional[float], since_last: Optional[float]) -> float:
    """Distance-to-go after steaming `since_last` NM from the previous report."""
    return max(0.0, _nm(previous) - _nm(since_last))


def leg_progress(baseline_dtg: Optional[float], since_last: Optional[float],
                 stopped: bool = False) -> Tuple[float, float]:
    """
    Progress of a sea-passage leg (noon or arrival report).

    Args:
        baseline_dtg: distance-to-go of the last approved report
        since_last: distance reported since that report (NM)
        stopped: vessel is at a stop of sea passage (SOSP); the distance
            still counts against distance-to-go but not as distance traveled

    Returns:
        (distance_traveled, distance_to_go)
    """
    distance_to_go = updated_distance_to_go(baseline_dtg, since_last)
    traveled = 0.0 if stopped else _nm(since_last)
    return traveled, distance_to_go
