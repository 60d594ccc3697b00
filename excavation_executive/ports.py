"""
Capability interfaces consumed by the executive core.

The teleop executive and the localizer only talk to the outside world
through these ports. The ROS nodes provide implementations backed by rclpy
service clients, action clients, publishers and tf2; the tests provide fakes.
"""

import threading
from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Optional, Protocol

from .codes import BinCode
from .geometry import PoseStamped, Twist


class CancellationToken:
    """Cooperative preemption flag checked at well-defined poll points.

    A token is cancelled either explicitly through cancel() or when any of
    its sources (e.g. "goal cancel requested", "ROS is shutting down")
    reports true. Sources are only sampled when the token is checked.
    """

    def __init__(self, sources: Optional[Iterable[Callable[[], bool]]] = None):
        self._event = threading.Event()
        self._sources: List[Callable[[], bool]] = list(sources or [])

    def cancel(self):
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        for source in self._sources:
            if source():
                self._event.set()
                return True
        return False


# ========== Remote procedure calls ==========

class DiggingTimeService(Protocol):
    def get_digging_time(self) -> float:
        """Digging duration in seconds; raises ServiceCallError"""


class BinStateService(Protocol):
    def get_bin_state(self) -> BinCode:
        """Current bin state; raises ServiceCallError"""


@dataclass
class CapturedImage:
    """An on-demand camera frame with its calibration"""
    image: Any
    camera_info: Any


class ImageService(Protocol):
    def capture(self) -> CapturedImage:
        """Grab one frame; raises ServiceCallError"""


class LocalizePointService(Protocol):
    def localize_point(self, pose: PoseStamped) -> bool:
        """Commit a localized point; False (or ServiceCallError) on failure"""


class FrameTransformer(Protocol):
    def transform_pose(self, pose: PoseStamped, target_frame: str) -> PoseStamped:
        """Express pose in target_frame; raises TransformError"""


# ========== Subordinate tasks ==========

class TaskHandle(Protocol):
    """Handle to a goal running on another component (Future-like)"""

    def done(self) -> bool:
        ...

    def cancel(self) -> Any:
        ...

    def result(self, timeout: Optional[float] = None) -> Any:
        """Block for the result; raises SubordinateTaskError on failure"""


class SubordinateTask(Protocol):
    def send_goal(self, goal: Any) -> TaskHandle:
        ...


@dataclass
class DiggingGoal:
    digging_time: float


@dataclass
class MarkerDetection:
    """Result of a marker detection goal"""
    number_found: int
    relative_pose: Optional[PoseStamped] = None


# ========== Output channels ==========

class DrivePublisher(Protocol):
    def publish_drive(self, command: Twist) -> None:
        ...


class BinPublisher(Protocol):
    def publish_bin(self, angle: float) -> None:
        ...
