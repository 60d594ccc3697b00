"""
Discrete codes exchanged with operators, missions and hardware services
"""

from enum import IntEnum
from typing import Optional


class CommandCode(IntEnum):
    """Teleoperation command codes carried by a teleop goal"""
    STOP_DRIVEBASE = 0
    STOP_TURNTABLE = 1
    FORWARD = 2
    BACKWARD = 3
    LEFT = 4
    RIGHT = 5
    CLOCKWISE = 6
    COUNTERCLOCKWISE = 7
    DIG = 8
    DUMP = 9
    RESET_DUMPING = 10
    RESET_STARTING = 11

    @classmethod
    def parse(cls, value: int) -> Optional['CommandCode']:
        """Return the matching code, or None for an unrecognized value"""
        try:
            return cls(value)
        except ValueError:
            return None


class BinCode(IntEnum):
    """Physical state of the dumping bin as reported by the bin_state service"""
    TRANSITIONAL = 0
    LOWERED = 1
    RAISED = 2

    @classmethod
    def parse(cls, value: int) -> 'BinCode':
        """Unknown values are reported as TRANSITIONAL"""
        try:
            return cls(value)
        except ValueError:
            return cls.TRANSITIONAL


class LocationCode(IntEnum):
    """Symbolic navigation destinations"""
    NONE = 0
    MINING = 1
    DUMPING = 2
    FINISH_LINE = 3
