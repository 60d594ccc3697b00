"""Tests for the simulated actuator hardware cycle"""

import pytest

from excavation_executive.codes import BinCode
from excavation_executive.config import BinAngles
from excavation_executive.exceptions import ConfigurationError
from excavation_executive.hardware_cycle import (
    ACTUATED_JOINTS, BIN_JOINT, CommandRelay, FakeActuatorHardware, HardwareCycle,
    JointLimit, check_bin_angles, load_joint_limits,
)

URDF = """<?xml version="1.0"?>
<robot name="excavator">
  <link name="base_link"/>
  <joint name="bin_joint" type="revolute">
    <limit lower="0.0" upper="1.5" effort="100" velocity="0.5"/>
  </joint>
  <joint name="lower_arm_joint" type="revolute">
    <limit lower="-0.5" upper="1.0" effort="100" velocity="0.5"/>
  </joint>
  <joint name="upper_arm_joint" type="revolute">
    <limit lower="-1.0" upper="1.0" effort="100" velocity="0.5"/>
  </joint>
  <joint name="scoop_joint" type="revolute">
    <limit lower="-2.0" upper="0.5" effort="100" velocity="0.5"/>
  </joint>
  <joint name="left_wheel_joint" type="continuous"/>
</robot>
"""


@pytest.fixture
def limits():
    return load_joint_limits(URDF)


@pytest.fixture
def hardware(limits):
    return FakeActuatorHardware(limits)


class FakeClock:
    def __init__(self, times):
        self.times = list(times)

    def __call__(self):
        return self.times.pop(0)


def test_loads_limits_for_actuated_joints(limits):
    assert set(limits) == set(ACTUATED_JOINTS)
    assert limits[BIN_JOINT] == JointLimit(0.0, 1.5)
    assert limits['scoop_joint'] == JointLimit(-2.0, 0.5)


@pytest.mark.parametrize('description', ['', '<robot', '<robot name="empty"/>'])
def test_bad_description_raises(description):
    with pytest.raises(ConfigurationError):
        load_joint_limits(description)


def test_joint_without_limits_raises():
    with pytest.raises(ConfigurationError):
        load_joint_limits(URDF, joints=['left_wheel_joint'])


def test_joint_limit_clamp():
    limit = JointLimit(-1.0, 1.0)

    assert limit.clamp(2.0) == 1.0
    assert limit.clamp(-3.0) == -1.0
    assert limit.clamp(0.25) == 0.25


def test_hardware_starts_at_lower_limits(hardware):
    positions = hardware.read()

    assert positions['lower_arm_joint'] == -0.5
    assert hardware.bin_state() is BinCode.LOWERED


def test_write_clamps_commands(hardware):
    hardware.command(BIN_JOINT, 3.0)
    hardware.write()

    assert hardware.read()[BIN_JOINT] == 1.5
    assert hardware.bin_state() is BinCode.RAISED


def test_unknown_joint_rejected(hardware):
    with pytest.raises(KeyError):
        hardware.command('turntable_joint', 0.0)


def test_bin_state_transitional_between_limits(hardware):
    hardware.command(BIN_JOINT, 0.75)
    hardware.write()

    assert hardware.bin_state() is BinCode.TRANSITIONAL
    assert hardware.bin_state(tolerance=1.0) is BinCode.RAISED


def test_relay_moves_at_most_max_velocity(hardware):
    relay = CommandRelay(hardware, max_velocity=0.5)
    relay.set_target(BIN_JOINT, 1.5)

    relay.update(now=0.0, period=0.2)
    hardware.write()

    assert hardware.read()[BIN_JOINT] == pytest.approx(0.1)


def test_cycle_raises_bin_over_time(hardware):
    relay = CommandRelay(hardware, max_velocity=0.5)
    cycle = HardwareCycle(hardware, relay, clock=FakeClock([0.0, 1.0, 2.0, 3.0, 4.0]))
    relay.set_target(BIN_JOINT, 1.5)

    periods = [cycle.step() for _ in range(5)]

    assert periods == [0.0, 1.0, 1.0, 1.0, 1.0]
    assert cycle.cycles == 5
    assert hardware.read()[BIN_JOINT] == pytest.approx(1.5)
    assert hardware.bin_state() is BinCode.RAISED


def test_cycle_order_is_read_update_write():
    calls = []

    class RecordingHardware:
        def read(self):
            calls.append('read')
            return {}

        def write(self):
            calls.append('write')

    class RecordingManager:
        def update(self, now, period):
            calls.append(('update', now, period))

    cycle = HardwareCycle(RecordingHardware(), RecordingManager(), clock=FakeClock([1.0, 1.02]))
    cycle.step()
    cycle.step()

    assert calls[:3] == ['read', ('update', 1.0, 0.0), 'write']
    assert calls[4] == ('update', 1.02, pytest.approx(0.02))


def test_run_until_not_ok(hardware):
    relay = CommandRelay(hardware)
    cycle = HardwareCycle(hardware, relay, clock=FakeClock([0.0, 0.1, 0.2]))
    remaining = iter([True, True, True, False])
    sleeps = []

    cycle.run(lambda: next(remaining), period=0.1, sleep=sleeps.append)

    assert cycle.cycles == 3
    assert sleeps == [0.1, 0.1, 0.1]


def test_parse_error_keeps_cause():
    with pytest.raises(ConfigurationError) as excinfo:
        load_joint_limits('<robot')

    assert excinfo.value.__cause__ is not None


@pytest.mark.parametrize('angles', [
    BinAngles(lowered=0.0, raised=1.5),
    BinAngles(lowered=0.02, raised=1.47),
    BinAngles(lowered=-1.0, raised=3.0),
])
def test_reachable_bin_angles_accepted(limits, angles):
    check_bin_angles(limits, angles, tolerance=0.05)


@pytest.mark.parametrize('angles', [
    BinAngles(lowered=0.0, raised=1.2),
    BinAngles(lowered=0.3, raised=1.5),
])
def test_unreachable_bin_angles_rejected(limits, angles):
    with pytest.raises(ConfigurationError):
        check_bin_angles(limits, angles, tolerance=0.05)


def test_raised_angle_below_wider_limit_rejected():
    wide = load_joint_limits(URDF.replace('upper="1.5"', 'upper="2.0"', 1))

    with pytest.raises(ConfigurationError):
        check_bin_angles(wide, BinAngles(lowered=0.0, raised=1.5), tolerance=0.05)
