#!/usr/bin/env python3
"""
Excavation Executive Launch
Starts: simulated hardware cycle + teleop action server + localization action server
"""

import os
from ament_index_python.packages import get_package_share_directory
from launch import LaunchDescription
from launch.actions import DeclareLaunchArgument, TimerAction
from launch.conditions import IfCondition
from launch.substitutions import Command, LaunchConfiguration
from launch_ros.actions import Node
from launch_ros.parameter_descriptions import ParameterValue


def generate_launch_description():

    # Package paths
    executive_pkg = get_package_share_directory('excavation_executive')
    config_file = os.path.join(executive_pkg, 'config', 'executive.yaml')

    use_fake_hardware = LaunchConfiguration('use_fake_hardware')
    robot_urdf = LaunchConfiguration('robot_urdf')

    # 1. Simulated hardware cycle (serves bin_state for dump/reset)
    hardware_cycle = Node(
        package='excavation_executive',
        executable='controller_launcher',
        name='controller_launcher',
        output='screen',
        condition=IfCondition(use_fake_hardware),
        parameters=[{
            'robot_description': ParameterValue(Command(['xacro ', robot_urdf]), value_type=str),
            'cycle_rate': 50.0,
            'config_file': config_file,
        }]
    )

    # 2. Teleop action server (waits for the dig action server)
    teleop = TimerAction(
        period=2.0,
        actions=[
            Node(
                package='excavation_executive',
                executable='teleop_action_server',
                name='teleop_action_server',
                output='screen',
                parameters=[{
                    'config_file': config_file,
                    'linear_velocity': 0.25,
                    'angular_velocity': 0.1,
                    'rate': 10.0,
                }]
            )
        ]
    )

    # 3. Localization action server (waits for aruco + rear camera)
    localization = TimerAction(
        period=2.0,
        actions=[
            Node(
                package='excavation_executive',
                executable='localization_action_server',
                name='localization_action_server',
                output='screen',
                parameters=[{'config_file': config_file}]
            )
        ]
    )

    return LaunchDescription([
        DeclareLaunchArgument('use_fake_hardware', default_value='true'),
        # No default: the hardware cycle needs the bin joint limits from the URDF
        DeclareLaunchArgument(
            'robot_urdf',
            description='Path to the robot URDF/xacro with bin_joint and arm joint limits'
        ),
        hardware_cycle,
        teleop,
        localization
    ])
