"""
Task executive for the excavation robot: teleop command dispatch,
marker-based bin localization and navigation goal synthesis.
"""

__version__ = '1.0.0'
