#!/usr/bin/env python3
"""
Localization Action Server for the excavation robot

Takes an empty goal and provides no feedback. Grabs on-demand rear camera
frames, asks the aruco action server for the bin markers and commits the bin
pose through the localize_bin service once a detection is confirmed.

Parameters:
- turn_speed: how fast to turn [rad/s] (double, default 0.0)
- turn_duration: how long to turn [s] (double, default 0.0)
- base_frame / destination_frame: frames for the detected pose
- axis_correction: per-axis sign fix for the detector convention
- config_file: optional YAML file seeding the parameters above
"""

import traceback

import rclpy
from rclpy.node import Node
from rclpy.callback_groups import ReentrantCallbackGroup
from rclpy.executors import MultiThreadedExecutor
from rclpy.action import ActionServer, CancelResponse, GoalResponse
from tf2_ros import Buffer, TransformListener

# Custom ROS2 Message Imports
from excavation_msgs.action import Aruco, Empty
from excavation_msgs.srv import LocalizePoint, WrappedImage

from ..exceptions import ExecutiveBusyError
from ..localizer import Localizer
from ..ports import CancellationToken, MarkerDetection
from .conversions import pose_from_msg
from .parameters import declare_executive_config
from .ros_ports import RosActionTask, RosImageService, RosLocalizePointService, Tf2FrameTransformer


def aruco_goal(captured) -> Aruco.Goal:
    goal = Aruco.Goal()
    goal.image = captured.image
    goal.camera_info = captured.camera_info
    return goal


def marker_detection(result) -> MarkerDetection:
    if result.number_found == 0:
        return MarkerDetection(number_found=0)
    return MarkerDetection(
        number_found=result.number_found,
        relative_pose=pose_from_msg(result.relative_pose)
    )


class LocalizationActionServer(Node):
    """ROS2 front end for the Localizer"""

    def __init__(self):
        super().__init__('localization_action_server')

        self.callback_group = ReentrantCallbackGroup()
        self.config = declare_executive_config(self)
        settings = self.config.localization
        if not settings.turn_configured:
            self.get_logger().warn("Localization Action Server: Uninitialized Parameters")

        # TF2 for coordinate transforms
        self.tf_buffer = Buffer()
        self.tf_listener = TransformListener(self.tf_buffer, self)

        self.aruco = RosActionTask(
            self, Aruco, 'aruco_action_server',
            goal_factory=aruco_goal,
            result_factory=marker_detection,
            callback_group=self.callback_group
        )
        self.image_client = RosImageService(
            self, WrappedImage, '/on_demand/rear_cam/image_raw',
            callback_group=self.callback_group)
        localize_bin = RosLocalizePointService(
            self, LocalizePoint, 'localize_bin', callback_group=self.callback_group)

        self.localizer = Localizer(
            image_service=self.image_client,
            marker_task=self.aruco,
            transformer=Tf2FrameTransformer(self.tf_buffer),
            localize_service=localize_bin,
            settings=settings,
            clock=lambda: self.get_clock().now().nanoseconds * 1e-9
        )

        self.get_logger().info("Localization Action Server: Connecting Aruco")
        self.aruco.wait_for_server()
        self.get_logger().info("Localization Action Server: Connected Aruco")

        self.get_logger().info("Localization Action Server: Connecting Image Client")
        self.image_client.wait_for_service()
        self.get_logger().info("Localization Action Server: Connected Image Client")

        self._action_server = ActionServer(
            self,
            Empty,
            'localize',
            execute_callback=self._execute_callback,
            goal_callback=self._goal_callback,
            cancel_callback=self._cancel_callback,
            callback_group=self.callback_group
        )
        self.get_logger().info("Localization Action Server: Started")

    # ========== Action Server Callbacks ==========

    def _goal_callback(self, goal_request):
        if self.localizer.busy:
            self.get_logger().warn("Localization Action Server: already localizing, goal rejected")
            return GoalResponse.REJECT
        return GoalResponse.ACCEPT

    def _cancel_callback(self, goal_handle):
        self.get_logger().info("Localization Action Server: preempt requested")
        return CancelResponse.ACCEPT

    def _execute_callback(self, goal_handle):
        token = CancellationToken(sources=[
            lambda: goal_handle.is_cancel_requested,
            lambda: not rclpy.ok(),
        ])
        try:
            result = self.localizer.localize(token)
        except ExecutiveBusyError as e:
            self.get_logger().warn(f"Localization Action Server: {e}")
            goal_handle.abort()
            return Empty.Result()

        if result.succeeded:
            goal_handle.succeed()
        elif goal_handle.is_cancel_requested:
            goal_handle.canceled()
        else:
            goal_handle.abort()
        return Empty.Result()


def main(args=None):
    """Main entry point"""
    rclpy.init(args=args)

    executor = MultiThreadedExecutor(num_threads=4)
    localizer = LocalizationActionServer()
    executor.add_node(localizer)

    try:
        executor.spin()
    except KeyboardInterrupt:
        localizer.get_logger().info("Localization Action Server shutdown requested")
    except Exception as e:
        localizer.get_logger().error(f"Localization Action Server error: {e}")
        traceback.print_exc()
    finally:
        executor.shutdown()
        localizer.destroy_node()
        rclpy.shutdown()


if __name__ == '__main__':
    main()
