"""ROS2 node wrappers around the executive core"""
