"""
Hardware cycle for the excavator's actuated joints

Joint limits are loaded once from the robot description (URDF) at startup.
The cycle then repeats read -> controller update -> write at a fixed rate.
When no real hardware is attached, FakeActuatorHardware stands in for it,
echoing commanded positions back as state within the joint limits.
"""

import logging
import threading
import time
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Optional, Protocol

import numpy as np

from .codes import BinCode
from .config import BinAngles
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

BIN_JOINT = 'bin_joint'
ACTUATED_JOINTS = (BIN_JOINT, 'lower_arm_joint', 'upper_arm_joint', 'scoop_joint')


@dataclass(frozen=True)
class JointLimit:
    lower: float
    upper: float

    def clamp(self, value: float) -> float:
        return float(np.clip(value, self.lower, self.upper))


def load_joint_limits(robot_description: str,
                      joints: Iterable[str] = ACTUATED_JOINTS) -> Dict[str, JointLimit]:
    """Read position limits for the actuated joints from a URDF string"""
    if not robot_description:
        raise ConfigurationError("robot_description is empty, cannot load joint limits")

    try:
        root = ET.fromstring(robot_description)
    except ET.ParseError as e:
        raise ConfigurationError(f"Couldn't load robot_description: {e}") from e

    found = {joint.get('name'): joint for joint in root.iter('joint')}
    limits: Dict[str, JointLimit] = {}
    for name in joints:
        joint = found.get(name)
        if joint is None:
            raise ConfigurationError(f"Joint '{name}' missing from robot_description")
        limit = joint.find('limit')
        if limit is None or limit.get('lower') is None or limit.get('upper') is None:
            raise ConfigurationError(f"Joint '{name}' has no position limits")
        limits[name] = JointLimit(float(limit.get('lower')), float(limit.get('upper')))

    logger.info(f"Model loaded successfully, loaded limits for {len(limits)} joints")
    return limits


def check_bin_angles(limits: Dict[str, JointLimit], bin_angles: BinAngles,
                     tolerance: float):
    """Reject bin targets that bin_state could never report as reached.

    bin_state reads RAISED/LOWERED only within tolerance of the joint limits,
    so each commanded angle must land inside that band once clamped.
    """
    limit = limits[BIN_JOINT]
    if limit.clamp(bin_angles.raised) < limit.upper - tolerance:
        raise ConfigurationError(
            f"raised_angle {bin_angles.raised} never reaches the RAISED band of "
            f"{BIN_JOINT} (upper limit {limit.upper}, tolerance {tolerance})")
    if limit.clamp(bin_angles.lowered) > limit.lower + tolerance:
        raise ConfigurationError(
            f"lowered_angle {bin_angles.lowered} never reaches the LOWERED band of "
            f"{BIN_JOINT} (lower limit {limit.lower}, tolerance {tolerance})")


class Hardware(Protocol):
    def read(self) -> Dict[str, float]:
        ...

    def write(self) -> None:
        ...


class ControllerManager(Protocol):
    def update(self, now: float, period: float) -> None:
        ...


class FakeActuatorHardware:
    """Simulated actuators for running without the arm attached"""

    def __init__(self, limits: Dict[str, JointLimit]):
        self.limits = limits
        self.positions: Dict[str, float] = {name: limit.lower for name, limit in limits.items()}
        self._commands: Dict[str, float] = dict(self.positions)
        self._lock = threading.Lock()

    def command(self, joint: str, position: float):
        if joint not in self.limits:
            raise KeyError(f"Unknown joint '{joint}'")
        with self._lock:
            self._commands[joint] = float(position)

    def read(self) -> Dict[str, float]:
        with self._lock:
            return dict(self.positions)

    def write(self):
        with self._lock:
            for joint, commanded in self._commands.items():
                self.positions[joint] = self.limits[joint].clamp(commanded)

    def bin_state(self, tolerance: float = 0.05) -> BinCode:
        """Classify the bin joint position against its limits"""
        limit = self.limits[BIN_JOINT]
        position = self.read()[BIN_JOINT]
        if position >= limit.upper - tolerance:
            return BinCode.RAISED
        if position <= limit.lower + tolerance:
            return BinCode.LOWERED
        return BinCode.TRANSITIONAL


class CommandRelay:
    """Velocity-limited position controller feeding the latest joint targets to hardware"""

    def __init__(self, hardware: FakeActuatorHardware, max_velocity: float = 0.5):
        self._hardware = hardware
        self._max_velocity = max_velocity
        self._targets: Dict[str, float] = {}
        self._lock = threading.Lock()

    def set_target(self, joint: str, position: float):
        with self._lock:
            self._targets[joint] = float(position)

    def update(self, now: float, period: float):
        with self._lock:
            targets = dict(self._targets)
        positions = self._hardware.read()
        max_step = self._max_velocity * period
        for joint, target in targets.items():
            current = positions[joint]
            step = float(np.clip(target - current, -max_step, max_step))
            self._hardware.command(joint, current + step)


class HardwareCycle:
    """Fixed read -> update -> write loop around a controller manager"""

    def __init__(self, hardware: Hardware, manager: ControllerManager,
                 clock: Callable[[], float] = time.monotonic):
        self._hardware = hardware
        self._manager = manager
        self._clock = clock
        self._then: Optional[float] = None
        self.cycles = 0

    def step(self) -> float:
        """Run one cycle and return the period handed to the manager"""
        now = self._clock()
        period = 0.0 if self._then is None else now - self._then

        self._hardware.read()
        self._manager.update(now, period)
        self._hardware.write()

        self._then = now
        self.cycles += 1
        return period

    def run(self, ok: Callable[[], bool], period: float = 0.0,
            sleep: Callable[[float], None] = time.sleep):
        while ok():
            self.step()
            if period > 0.0:
                sleep(period)
