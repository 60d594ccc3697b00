"""
rclpy-backed implementations of the executive ports

Blocking calls wait on rclpy futures with a threading.Event, so the owning
node must be spun by a MultiThreadedExecutor and the clients must live in a
ReentrantCallbackGroup; otherwise the future callbacks can never run while an
execute callback is blocked.
"""

import threading
from typing import Any, Callable, Optional

from rclpy.action import ActionClient
from rclpy.duration import Duration
from rclpy.node import Node
from action_msgs.msg import GoalStatus

# ROS2 Message Imports
from std_msgs.msg import Float64
from geometry_msgs.msg import Twist as TwistMsg
from tf2_ros import Buffer, TransformException
import tf2_geometry_msgs  # noqa: F401  registers PoseStamped with tf2

from ..codes import BinCode
from ..exceptions import ServiceCallError, SubordinateTaskError, TransformError
from ..geometry import PoseStamped, Twist
from ..ports import CapturedImage
from .conversions import duration_to_seconds, pose_from_msg, pose_to_msg, twist_to_msg


def wait_for_future(future, timeout: Optional[float] = None) -> bool:
    """Block the calling thread until an rclpy future completes"""
    event = threading.Event()
    future.add_done_callback(lambda _: event.set())
    return event.wait(timeout)


# ========== Services ==========

class ServiceProxy:
    """Blocking request/response wrapper around an rclpy service client"""

    def __init__(self, node: Node, srv_type, name: str, callback_group=None,
                 ready_timeout: float = 1.0):
        self.name = name
        self._srv_type = srv_type
        self._ready_timeout = ready_timeout
        self._client = node.create_client(srv_type, name, callback_group=callback_group)

    def wait_for_service(self, timeout_sec: Optional[float] = None) -> bool:
        return self._client.wait_for_service(timeout_sec=timeout_sec)

    def call(self, request=None):
        if not self._client.wait_for_service(timeout_sec=self._ready_timeout):
            raise ServiceCallError(self.name)

        future = self._client.call_async(request or self._srv_type.Request())
        wait_for_future(future)

        if future.exception() is not None:
            raise ServiceCallError(self.name, str(future.exception()))
        response = future.result()
        if response is None:
            raise ServiceCallError(self.name, "no response")
        return response


class RosDiggingTimeService(ServiceProxy):
    def get_digging_time(self) -> float:
        return duration_to_seconds(self.call().duration)


class RosBinStateService(ServiceProxy):
    def get_bin_state(self) -> BinCode:
        return BinCode.parse(self.call().code)


class RosImageService(ServiceProxy):
    def capture(self) -> CapturedImage:
        response = self.call()
        return CapturedImage(image=response.image, camera_info=response.camera_info)


class RosLocalizePointService(ServiceProxy):
    def localize_point(self, pose: PoseStamped) -> bool:
        request = self._srv_type.Request()
        request.pose = pose_to_msg(pose)
        return bool(self.call(request).success)


# ========== Frames ==========

class Tf2FrameTransformer:
    def __init__(self, buffer: Buffer, timeout: float = 0.5):
        self._buffer = buffer
        self._timeout = Duration(seconds=timeout)

    def transform_pose(self, pose: PoseStamped, target_frame: str) -> PoseStamped:
        try:
            transformed = self._buffer.transform(pose_to_msg(pose), target_frame,
                                                 timeout=self._timeout)
        except TransformException as e:
            raise TransformError(f"{pose.frame_id} -> {target_frame}: {e}") from e
        return pose_from_msg(transformed)


# ========== Subordinate tasks ==========

class RosTaskHandle:
    """Future-like view over an action goal sent with send_goal_async"""

    def __init__(self, send_goal_future, result_factory: Callable[[Any], Any]):
        self._result_factory = result_factory
        self._lock = threading.Lock()
        self._finished = threading.Event()
        self._goal_handle = None
        self._result_response = None
        self._rejected = False
        self._cancel_requested = False
        send_goal_future.add_done_callback(self._goal_response_callback)

    def _goal_response_callback(self, future):
        goal_handle = future.result()
        if goal_handle is None or not goal_handle.accepted:
            self._rejected = True
            self._finished.set()
            return

        with self._lock:
            self._goal_handle = goal_handle
            cancel_now = self._cancel_requested
        if cancel_now:
            goal_handle.cancel_goal_async()
        goal_handle.get_result_async().add_done_callback(self._result_callback)

    def _result_callback(self, future):
        self._result_response = future.result()
        self._finished.set()

    def done(self) -> bool:
        return self._finished.is_set()

    def cancel(self) -> bool:
        with self._lock:
            self._cancel_requested = True
            goal_handle = self._goal_handle
        if goal_handle is not None:
            goal_handle.cancel_goal_async()
        return True

    def result(self, timeout: Optional[float] = None) -> Any:
        if not self._finished.wait(timeout):
            raise SubordinateTaskError("Timed out waiting for result")
        if self._rejected:
            raise SubordinateTaskError("Goal rejected")
        status = self._result_response.status
        if status != GoalStatus.STATUS_SUCCEEDED:
            raise SubordinateTaskError(f"Goal finished with status {status}")
        return self._result_factory(self._result_response.result)


class RosActionTask:
    """Sends core goals to an action server, converting goals and results"""

    def __init__(self, node: Node, action_type, name: str,
                 goal_factory: Callable[[Any], Any],
                 result_factory: Callable[[Any], Any] = lambda result: result,
                 callback_group=None):
        self.name = name
        self._client = ActionClient(node, action_type, name, callback_group=callback_group)
        self._goal_factory = goal_factory
        self._result_factory = result_factory

    def wait_for_server(self, timeout_sec: Optional[float] = None) -> bool:
        return self._client.wait_for_server(timeout_sec=timeout_sec)

    def send_goal(self, goal: Any) -> RosTaskHandle:
        if not self._client.server_is_ready():
            raise SubordinateTaskError(f"Action server '{self.name}' not available")
        future = self._client.send_goal_async(self._goal_factory(goal))
        return RosTaskHandle(future, self._result_factory)


# ========== Output channels ==========

class TopicDrivePublisher:
    def __init__(self, node: Node, topic: str, qos):
        self._publisher = node.create_publisher(TwistMsg, topic, qos)

    def publish_drive(self, command: Twist):
        self._publisher.publish(twist_to_msg(command))


class TopicBinPublisher:
    def __init__(self, node: Node, topic: str, qos):
        self._publisher = node.create_publisher(Float64, topic, qos)

    def publish_bin(self, angle: float):
        self._publisher.publish(Float64(data=float(angle)))
