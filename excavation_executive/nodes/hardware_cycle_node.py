#!/usr/bin/env python3
"""
Hardware Cycle Node for the excavation robot

Registers simulated actuator hardware, loads joint limits from the robot
description and runs the read -> update -> write cycle at a fixed rate.
Relays bin position commands into the cycle and serves bin_state so the
teleop executive can run its dump and reset sequences without the arm
attached.

Parameters:
- robot_description: URDF of the robot (string, required)
- cycle_rate: hardware cycle frequency in Hz (double, default 50.0)
- max_joint_velocity: simulated joint speed [rad/s] (double, default 0.5)
- bin_state_tolerance: distance from a limit that counts as reached [rad]
  (double, default 0.05)
- config_file / lowered_angle / raised_angle: bin targets, checked against
  the bin joint limits at startup
"""

import sys
import traceback

import rclpy
from rclpy.node import Node
from rclpy.qos import QoSProfile, QoSHistoryPolicy, QoSReliabilityPolicy
from rclpy.executors import SingleThreadedExecutor

# ROS2 Message Imports
from sensor_msgs.msg import JointState
from std_msgs.msg import Float64

# Custom ROS2 Message Imports
from excavation_msgs.srv import CodeSrv

from ..exceptions import ConfigurationError
from ..hardware_cycle import (
    BIN_JOINT, CommandRelay, FakeActuatorHardware, HardwareCycle, check_bin_angles,
    load_joint_limits,
)
from .parameters import declare_executive_config


class HardwareCycleNode(Node):

    def __init__(self):
        super().__init__('controller_launcher')

        self.declare_parameters(
            namespace='',
            parameters=[
                ('robot_description', ''),
                ('cycle_rate', 50.0),
                ('max_joint_velocity', 0.5),
                ('bin_state_tolerance', 0.05),
            ]
        )

        description = self.get_parameter('robot_description').value
        self.bin_state_tolerance = self.get_parameter('bin_state_tolerance').value
        try:
            config = declare_executive_config(self)
            limits = load_joint_limits(description)
            check_bin_angles(limits, config.bin_angles, self.bin_state_tolerance)
        except ConfigurationError as e:
            self.get_logger().error(f"{e}, quitting.")
            raise

        self.hardware = FakeActuatorHardware(limits)
        self.relay = CommandRelay(self.hardware, self.get_parameter('max_joint_velocity').value)
        self.cycle = HardwareCycle(
            self.hardware, self.relay,
            clock=lambda: self.get_clock().now().nanoseconds * 1e-9
        )

        qos_command = QoSProfile(
            depth=5,
            reliability=QoSReliabilityPolicy.RELIABLE,
            history=QoSHistoryPolicy.KEEP_LAST
        )
        self.bin_command_sub = self.create_subscription(
            Float64,
            '/bin_position_controller/command',
            self._bin_command_callback,
            qos_command
        )
        self.joint_state_pub = self.create_publisher(JointState, 'joint_states', 10)
        self.bin_state_srv = self.create_service(CodeSrv, 'bin_state', self._bin_state_callback)

        cycle_rate = self.get_parameter('cycle_rate').value
        self.cycle_timer = self.create_timer(1.0 / cycle_rate, self._cycle_callback)

        self.get_logger().info(f"Hardware cycle running at {cycle_rate}Hz "
                               f"for joints {sorted(limits)}")

    def _bin_command_callback(self, msg: Float64):
        self.relay.set_target(BIN_JOINT, msg.data)

    def _bin_state_callback(self, request, response):
        response.code = int(self.hardware.bin_state(self.bin_state_tolerance))
        return response

    def _cycle_callback(self):
        self.cycle.step()

        positions = self.hardware.read()
        joint_state = JointState()
        joint_state.header.stamp = self.get_clock().now().to_msg()
        joint_state.name = list(positions)
        joint_state.position = [positions[name] for name in joint_state.name]
        self.joint_state_pub.publish(joint_state)


def main(args=None):
    """Main entry point"""
    rclpy.init(args=args)

    try:
        node = HardwareCycleNode()
    except ConfigurationError:
        rclpy.shutdown()
        sys.exit(1)

    executor = SingleThreadedExecutor()
    executor.add_node(node)

    try:
        executor.spin()
    except KeyboardInterrupt:
        node.get_logger().info("Hardware cycle shutdown requested")
    except Exception as e:
        node.get_logger().error(f"Hardware cycle error: {e}")
        traceback.print_exc()
    finally:
        executor.shutdown()
        node.destroy_node()
        rclpy.shutdown()


if __name__ == '__main__':
    main()
