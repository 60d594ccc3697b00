"""
Navigation goal synthesis

Turns a symbolic destination into a concrete goal pose. Goals are expressed
in the bin reference frame, whose +x axis points from the bin out toward the
mining area. Every goal faces +x so the robot's rear (and its dumping bin)
points back at the collection bin.
"""

import logging
from typing import Dict

from .codes import LocationCode
from .config import GeometryConstraints
from .exceptions import UnsupportedLocationError
from .geometry import PoseStamped, planar_pose

logger = logging.getLogger(__name__)


def goal_distance(location: LocationCode, constraints: GeometryConstraints) -> float:
    """Distance along the reference axis for a supported location"""
    distances: Dict[LocationCode, float] = {
        LocationCode.MINING: constraints.safe_mining_distance,
        LocationCode.DUMPING: 0.0,
        LocationCode.FINISH_LINE: constraints.finish_line,
    }
    try:
        return distances[LocationCode(location)]
    except (KeyError, ValueError):
        raise UnsupportedLocationError(
            f"No navigation goal defined for location {location!r}") from None


def synthesize_goal(location: LocationCode,
                    constraints: GeometryConstraints,
                    reference_frame: str,
                    stamp: float = 0.0) -> PoseStamped:
    """Concrete goal pose for a symbolic location.

    Pure and deterministic: the same location, constraints and frame always
    yield the same pose. Unsupported locations raise UnsupportedLocationError
    rather than falling back to a default pose.
    """
    distance = goal_distance(location, constraints)
    return PoseStamped(
        frame_id=reference_frame,
        pose=planar_pose(distance, 0.0, 0.0),
        stamp=stamp
    )


class NavigationGoalManager:
    """Binds a reference frame and geometry constraints for repeated goal requests"""

    def __init__(self, reference_frame: str, constraints: GeometryConstraints):
        self.reference_frame = reference_frame
        self.constraints = constraints

    def initialize_goal(self, location: LocationCode, stamp: float = 0.0) -> PoseStamped:
        goal = synthesize_goal(location, self.constraints, self.reference_frame, stamp)
        logger.info(f"Navigation goal for {LocationCode(location).name}: "
                    f"x={goal.pose.position.x:.2f} in {goal.frame_id}")
        return goal
