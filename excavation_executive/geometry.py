"""
Plain geometry types used by the executive core.

These mirror the geometry_msgs layouts closely enough that the ROS nodes can
convert them field by field, while keeping the core importable without ROS.
"""

from dataclasses import dataclass, field, replace
from typing import Sequence, Tuple

import numpy as np
from scipy.spatial.transform import Rotation


@dataclass(frozen=True)
class Point:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def as_array(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z], dtype=float)

    @classmethod
    def from_array(cls, values: Sequence[float]) -> 'Point':
        x, y, z = (float(v) for v in values)
        return cls(x, y, z)


@dataclass(frozen=True)
class Quaternion:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    w: float = 1.0


@dataclass(frozen=True)
class Pose:
    position: Point = field(default_factory=Point)
    orientation: Quaternion = field(default_factory=Quaternion)


@dataclass(frozen=True)
class PoseStamped:
    """A pose qualified by a reference frame and a timestamp in seconds"""
    frame_id: str
    pose: Pose = field(default_factory=Pose)
    stamp: float = 0.0


@dataclass(frozen=True)
class Twist:
    """Planar drive command: forward speed and yaw rate"""
    linear: float = 0.0
    angular: float = 0.0


def yaw_to_quaternion(yaw: float) -> Quaternion:
    """Quaternion for a pure rotation about +z"""
    x, y, z, w = Rotation.from_euler('z', yaw).as_quat()
    return Quaternion(float(x), float(y), float(z), float(w))


def quaternion_to_yaw(q: Quaternion) -> float:
    return float(Rotation.from_quat([q.x, q.y, q.z, q.w]).as_euler('zyx')[0])


def axis_correction_matrix(axis_signs: Sequence[float]) -> np.ndarray:
    """Diagonal transform applying a per-axis scale to a position"""
    signs = np.asarray(axis_signs, dtype=float)
    if signs.shape != (3,):
        raise ValueError(f"axis correction needs 3 entries, got {signs.shape}")
    return np.diag(signs)


def apply_axis_correction(pose: PoseStamped, correction: np.ndarray) -> PoseStamped:
    """Apply a fixed linear correction to the position of a stamped pose.

    Orientation is left untouched; only the detector's position convention
    differs from the base frame.
    """
    corrected = correction @ pose.pose.position.as_array()
    new_pose = replace(pose.pose, position=Point.from_array(corrected))
    return replace(pose, pose=new_pose)


def planar_pose(x: float, y: float, yaw: float = 0.0) -> Pose:
    return Pose(position=Point(x, y, 0.0), orientation=yaw_to_quaternion(yaw))


def position_tuple(pose: PoseStamped) -> Tuple[float, float, float]:
    p = pose.pose.position
    return (p.x, p.y, p.z)
