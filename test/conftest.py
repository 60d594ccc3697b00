"""Shared fakes for the executive ports"""

from typing import Any, List, Optional

import pytest

from excavation_executive.codes import BinCode
from excavation_executive.config import BinAngles, DriveVelocity, LocalizationSettings
from excavation_executive.exceptions import ServiceCallError, SubordinateTaskError, TransformError
from excavation_executive.geometry import Point, Pose, PoseStamped
from excavation_executive.localizer import Localizer
from excavation_executive.ports import CancellationToken, CapturedImage, MarkerDetection
from excavation_executive.teleop_executive import TeleopExecutive


class EventLog:
    def __init__(self):
        self.events: List[tuple] = []

    def record(self, *event):
        self.events.append(event)

    def kinds(self) -> List[str]:
        return [event[0] for event in self.events]


class RecordingDrivePublisher:
    def __init__(self, log: EventLog):
        self.log = log
        self.messages = []

    def publish_drive(self, command):
        self.messages.append(command)
        self.log.record('drive', command)


class RecordingBinPublisher:
    def __init__(self, log: EventLog):
        self.log = log
        self.angles = []

    def publish_bin(self, angle):
        self.angles.append(angle)
        self.log.record('bin', angle)


class FakeDiggingTimeService:
    def __init__(self, duration: float = 12.5, fail: bool = False):
        self.duration = duration
        self.fail = fail
        self.calls = 0

    def get_digging_time(self):
        self.calls += 1
        if self.fail:
            raise ServiceCallError('digging_time')
        return self.duration


class ScriptedBinStateService:
    """Returns scripted states in order, repeating the last one"""

    def __init__(self, log: EventLog, states: Optional[list] = None):
        self.log = log
        self.states = list(states or [BinCode.TRANSITIONAL])
        self.calls = 0

    def get_bin_state(self):
        index = min(self.calls, len(self.states) - 1)
        self.calls += 1
        state = self.states[index]
        self.log.record('poll', state)
        if isinstance(state, Exception):
            raise state
        return state


class FakeTaskHandle:
    """Completes after a number of done() polls"""

    def __init__(self, goal: Any, polls_until_done: Optional[int] = 0,
                 outcome: Any = None, error: Optional[Exception] = None):
        self.goal = goal
        self.polls_until_done = polls_until_done
        self.outcome = outcome
        self.error = error
        self.polls = 0
        self.cancelled = False

    def done(self) -> bool:
        self.polls += 1
        if self.polls_until_done is None:
            return False
        return self.polls > self.polls_until_done

    def cancel(self):
        self.cancelled = True
        return True

    def result(self, timeout=None):
        if self.error is not None:
            raise self.error
        return self.outcome


class FakeDiggingTask:
    def __init__(self, polls_until_done: Optional[int] = 3, error: Optional[Exception] = None,
                 unavailable: bool = False):
        self.polls_until_done = polls_until_done
        self.error = error
        self.unavailable = unavailable
        self.handles: List[FakeTaskHandle] = []

    def send_goal(self, goal):
        if self.unavailable:
            raise SubordinateTaskError("Action server 'dig' not available")
        handle = FakeTaskHandle(goal, self.polls_until_done, error=self.error)
        self.handles.append(handle)
        return handle


class CountingSleep:
    """Records sleeps; optionally cancels a token after a number of them"""

    def __init__(self, token: Optional[CancellationToken] = None,
                 cancel_after: Optional[int] = None):
        self.token = token
        self.cancel_after = cancel_after
        self.periods: List[float] = []

    def __call__(self, period: float):
        self.periods.append(period)
        if self.token is not None and self.cancel_after is not None \
                and len(self.periods) >= self.cancel_after:
            self.token.cancel()


# ========== Localization fakes ==========

def detected_pose(x=1.0, y=0.5, z=0.25, frame='rear_cam_optical'):
    return PoseStamped(frame_id=frame, pose=Pose(position=Point(x, y, z)), stamp=3.0)


class FakeImageService:
    def __init__(self, failures: int = 0):
        self.failures = failures
        self.calls = 0

    def capture(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise ServiceCallError('/on_demand/rear_cam/image_raw')
        return CapturedImage(image=f'frame-{self.calls}', camera_info='rear_cam')


class ScriptedMarkerTask:
    """Each goal returns the next scripted detection (or raises it)"""

    def __init__(self, detections: list):
        self.detections = list(detections)
        self.goals = []

    def send_goal(self, goal):
        self.goals.append(goal)
        index = min(len(self.goals) - 1, len(self.detections) - 1)
        scripted = self.detections[index]
        if isinstance(scripted, Exception):
            return FakeTaskHandle(goal, error=scripted)
        return FakeTaskHandle(goal, outcome=scripted)


class FakeTransformer:
    """Translates poses by a fixed offset into the requested frame"""

    def __init__(self, offset=(0.5, 0.0, 0.0), failures: int = 0):
        self.offset = offset
        self.failures = failures
        self.calls = []

    def transform_pose(self, pose, target_frame):
        self.calls.append((pose, target_frame))
        if len(self.calls) <= self.failures:
            raise TransformError(f"{pose.frame_id} -> {target_frame}: no transform")
        p = pose.pose.position
        moved = Point(p.x + self.offset[0], p.y + self.offset[1], p.z + self.offset[2])
        return PoseStamped(frame_id=target_frame,
                           pose=Pose(position=moved, orientation=pose.pose.orientation),
                           stamp=pose.stamp)


class FakeLocalizePointService:
    def __init__(self, responses: Optional[list] = None):
        self.responses = list(responses or [True])
        self.committed: List[PoseStamped] = []

    def localize_point(self, pose):
        index = min(len(self.committed), len(self.responses) - 1)
        self.committed.append(pose)
        response = self.responses[index]
        if isinstance(response, Exception):
            raise response
        return response


# ========== Fixtures ==========

@pytest.fixture
def drive_stats():
    return DriveVelocity(linear=0.25, angular=0.1)


@pytest.fixture
def bin_angles():
    return BinAngles(lowered=0.0, raised=1.5)


@pytest.fixture
def event_log():
    return EventLog()


@pytest.fixture
def teleop_ports(event_log):
    return {
        'drive_publisher': RecordingDrivePublisher(event_log),
        'bin_publisher': RecordingBinPublisher(event_log),
        'digging_time_service': FakeDiggingTimeService(),
        'bin_state_service': ScriptedBinStateService(event_log),
        'digging_task': FakeDiggingTask(),
    }


@pytest.fixture
def make_teleop(teleop_ports, drive_stats, bin_angles):
    def factory(sleep=None, **overrides):
        ports = dict(teleop_ports, **overrides)
        return TeleopExecutive(
            drive_stats=drive_stats,
            bin_angles=bin_angles,
            poll_period=0.1,
            sleep=sleep or CountingSleep(),
            **ports
        )
    return factory


@pytest.fixture
def settings():
    return LocalizationSettings()


@pytest.fixture
def make_localizer(settings):
    def factory(image_service=None, marker_task=None, transformer=None,
                localize_service=None, clock=lambda: 42.0, **overrides):
        return Localizer(
            image_service=image_service or FakeImageService(),
            marker_task=marker_task or ScriptedMarkerTask(
                [MarkerDetection(number_found=1, relative_pose=detected_pose())]),
            transformer=transformer or FakeTransformer(),
            localize_service=localize_service or FakeLocalizePointService(),
            settings=overrides.get('settings', settings),
            clock=clock
        )
    return factory
