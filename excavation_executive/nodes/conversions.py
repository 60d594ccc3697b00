"""
Conversions between executive core types and ROS2 messages
"""

import math

# ROS2 Message Imports
from builtin_interfaces.msg import Duration as DurationMsg
from builtin_interfaces.msg import Time as TimeMsg
from geometry_msgs.msg import PoseStamped as PoseStampedMsg
from geometry_msgs.msg import Twist as TwistMsg

from ..geometry import Point, Pose, PoseStamped, Quaternion, Twist


def seconds_to_time(seconds: float) -> TimeMsg:
    fractional, whole = math.modf(seconds)
    return TimeMsg(sec=int(whole), nanosec=int(round(fractional * 1e9)))


def time_to_seconds(stamp) -> float:
    return stamp.sec + stamp.nanosec * 1e-9


def seconds_to_duration(seconds: float) -> DurationMsg:
    fractional, whole = math.modf(seconds)
    return DurationMsg(sec=int(whole), nanosec=int(round(fractional * 1e9)))


def duration_to_seconds(duration) -> float:
    return duration.sec + duration.nanosec * 1e-9


def pose_to_msg(pose: PoseStamped) -> PoseStampedMsg:
    msg = PoseStampedMsg()
    msg.header.frame_id = pose.frame_id
    msg.header.stamp = seconds_to_time(pose.stamp)
    msg.pose.position.x = pose.pose.position.x
    msg.pose.position.y = pose.pose.position.y
    msg.pose.position.z = pose.pose.position.z
    msg.pose.orientation.x = pose.pose.orientation.x
    msg.pose.orientation.y = pose.pose.orientation.y
    msg.pose.orientation.z = pose.pose.orientation.z
    msg.pose.orientation.w = pose.pose.orientation.w
    return msg


def pose_from_msg(msg: PoseStampedMsg) -> PoseStamped:
    p = msg.pose.position
    q = msg.pose.orientation
    return PoseStamped(
        frame_id=msg.header.frame_id,
        pose=Pose(position=Point(p.x, p.y, p.z), orientation=Quaternion(q.x, q.y, q.z, q.w)),
        stamp=time_to_seconds(msg.header.stamp)
    )


def twist_to_msg(command: Twist) -> TwistMsg:
    msg = TwistMsg()
    msg.linear.x = float(command.linear)
    msg.angular.z = float(command.angular)
    return msg
