#!/usr/bin/env python3
"""
Teleop Action Server for the excavation robot

Processes operator commands for remote operation. All teleoperation commands
go through this server except emergency stop, which the control system
handles directly.

Parameters:
- linear_velocity: max linear velocity (double, default 0.25)
- angular_velocity: max angular velocity (double, default 0.1)
- rate: frequency in Hz to check for preemption during long running
  commands (double, default 10.0)
- lowered_angle / raised_angle: bin joint targets (double)
- config_file: optional YAML file seeding the parameters above
"""

import traceback

import rclpy
from rclpy.node import Node
from rclpy.qos import QoSProfile, QoSHistoryPolicy, QoSReliabilityPolicy
from rclpy.callback_groups import ReentrantCallbackGroup
from rclpy.executors import MultiThreadedExecutor
from rclpy.action import ActionServer, CancelResponse, GoalResponse

# Custom ROS2 Message Imports
from excavation_msgs.action import Digging, Teleop
from excavation_msgs.srv import CodeSrv, DurationSrv

from ..exceptions import ExecutiveBusyError
from ..ports import CancellationToken
from ..teleop_executive import TeleopExecutive
from .conversions import seconds_to_duration
from .parameters import declare_executive_config
from .ros_ports import (
    RosActionTask, RosBinStateService, RosDiggingTimeService,
    TopicBinPublisher, TopicDrivePublisher,
)


class TeleopActionServer(Node):
    """
    ROS2 front end for the TeleopExecutive.

    Accepts one Teleop goal at a time; goals arriving while a command is in
    flight are rejected.
    """

    def __init__(self):
        super().__init__('teleop_action_server')

        qos_command = QoSProfile(
            depth=5,
            reliability=QoSReliabilityPolicy.RELIABLE,
            history=QoSHistoryPolicy.KEEP_LAST
        )

        # Blocking service and action calls run inside the execute callback
        self.callback_group = ReentrantCallbackGroup()

        self.config = declare_executive_config(self)

        drive_publisher = TopicDrivePublisher(self, 'cmd_vel', qos_command)
        bin_publisher = TopicBinPublisher(self, '/bin_position_controller/command', qos_command)
        digging_time = RosDiggingTimeService(
            self, DurationSrv, 'digging_time', callback_group=self.callback_group)
        bin_state = RosBinStateService(
            self, CodeSrv, 'bin_state', callback_group=self.callback_group)
        self.digging_task = RosActionTask(
            self, Digging, 'dig',
            goal_factory=lambda goal: Digging.Goal(
                digging_time=seconds_to_duration(goal.digging_time)),
            callback_group=self.callback_group
        )

        self.executive = TeleopExecutive(
            drive_publisher=drive_publisher,
            bin_publisher=bin_publisher,
            digging_time_service=digging_time,
            bin_state_service=bin_state,
            digging_task=self.digging_task,
            drive_stats=self.config.drive,
            bin_angles=self.config.bin_angles,
            poll_period=self.config.poll_period
        )

        self.get_logger().info("Teleop Action Server: Connecting digging server")
        self.digging_task.wait_for_server()
        self.get_logger().info("Teleop Action Server: Connected digging server")

        self._action_server = ActionServer(
            self,
            Teleop,
            'teleop_action_server',
            execute_callback=self._execute_callback,
            goal_callback=self._goal_callback,
            cancel_callback=self._cancel_callback,
            callback_group=self.callback_group
        )

        self.get_logger().info(
            f"Teleop Action Server: Online (linear={self.config.drive.linear}, "
            f"angular={self.config.drive.angular}, rate={self.config.rate}Hz)"
        )

    # ========== Action Server Callbacks ==========

    def _goal_callback(self, goal_request):
        """Reject new goals while a command is in flight"""
        if self.executive.busy:
            self.get_logger().warn(
                f"Teleop Action Server: rejecting command {goal_request.code}, executive busy")
            return GoalResponse.REJECT
        return GoalResponse.ACCEPT

    def _cancel_callback(self, goal_handle):
        self.get_logger().info("Teleop Action Server: preemption requested")
        return CancelResponse.ACCEPT

    def _execute_callback(self, goal_handle):
        token = CancellationToken(sources=[
            lambda: goal_handle.is_cancel_requested,
            lambda: not rclpy.ok(),
        ])

        try:
            result = self.executive.process_command(goal_handle.request.code, token)
        except ExecutiveBusyError as e:
            self.get_logger().warn(f"Teleop Action Server: {e}")
            goal_handle.abort()
            return Teleop.Result()

        if result.succeeded:
            goal_handle.succeed()
        elif result.preempted and goal_handle.is_cancel_requested:
            goal_handle.canceled()
        else:
            goal_handle.abort()
        return Teleop.Result()


def main(args=None):
    """Main entry point"""
    rclpy.init(args=args)

    executor = MultiThreadedExecutor(num_threads=4)
    teleop = TeleopActionServer()
    executor.add_node(teleop)

    try:
        executor.spin()
    except KeyboardInterrupt:
        teleop.get_logger().info("Teleop Action Server shutdown requested")
    except Exception as e:
        teleop.get_logger().error(f"Teleop Action Server error: {e}")
        traceback.print_exc()
    finally:
        executor.shutdown()
        teleop.destroy_node()
        rclpy.shutdown()


if __name__ == '__main__':
    main()
