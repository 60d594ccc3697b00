"""Tests for navigation goal synthesis"""

import pytest

from excavation_executive.codes import LocationCode
from excavation_executive.config import GeometryConstraints
from excavation_executive.exceptions import UnsupportedLocationError
from excavation_executive.geometry import quaternion_to_yaw
from excavation_executive.navigation_goals import (
    NavigationGoalManager, goal_distance, synthesize_goal,
)

CONSTRAINTS = GeometryConstraints(safe_mining_distance=4.0, finish_line=1.5)


@pytest.mark.parametrize('location, x', [
    (LocationCode.MINING, 4.0),
    (LocationCode.DUMPING, 0.0),
    (LocationCode.FINISH_LINE, 1.5),
])
def test_goal_position_along_reference_axis(location, x):
    goal = synthesize_goal(location, CONSTRAINTS, 'bin')

    assert goal.frame_id == 'bin'
    assert goal.pose.position.x == pytest.approx(x)
    assert goal.pose.position.y == 0.0
    assert goal.pose.position.z == 0.0
    assert quaternion_to_yaw(goal.pose.orientation) == pytest.approx(0.0)


def test_goal_synthesis_is_deterministic():
    first = synthesize_goal(LocationCode.MINING, CONSTRAINTS, 'bin', stamp=5.0)
    second = synthesize_goal(LocationCode.MINING, CONSTRAINTS, 'bin', stamp=5.0)

    assert first == second


def test_goal_tracks_constraints():
    wide = GeometryConstraints(safe_mining_distance=6.5, finish_line=2.0)

    assert goal_distance(LocationCode.MINING, wide) == 6.5
    assert goal_distance(LocationCode.FINISH_LINE, wide) == 2.0


@pytest.mark.parametrize('location', [LocationCode.NONE, 7, -3])
def test_unsupported_location_raises(location):
    with pytest.raises(UnsupportedLocationError):
        synthesize_goal(location, CONSTRAINTS, 'bin')


def test_unsupported_location_is_a_value_error():
    with pytest.raises(ValueError):
        goal_distance(LocationCode.NONE, CONSTRAINTS)


def test_manager_binds_frame_and_constraints():
    manager = NavigationGoalManager('bin', CONSTRAINTS)

    goal = manager.initialize_goal(LocationCode.FINISH_LINE, stamp=12.0)

    assert goal.frame_id == 'bin'
    assert goal.stamp == 12.0
    assert goal.pose.position.x == pytest.approx(1.5)


def test_manager_rejects_none():
    manager = NavigationGoalManager('bin', CONSTRAINTS)

    with pytest.raises(UnsupportedLocationError):
        manager.initialize_goal(LocationCode.NONE)


def test_unsupported_location_hides_lookup_error():
    with pytest.raises(UnsupportedLocationError) as excinfo:
        goal_distance(LocationCode.NONE, CONSTRAINTS)

    assert excinfo.value.__cause__ is None
    assert excinfo.value.__suppress_context__
