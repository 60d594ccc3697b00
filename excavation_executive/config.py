"""
Startup configuration for the excavation executive.

Configuration is load-once, read-many: every object here is a frozen
dataclass built at node startup and shared by reference afterwards. Values
come from a YAML document (config/executive.yaml) and may be overridden by
ROS parameters in the nodes.
"""

import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DriveVelocity:
    """Max drive speeds used to synthesize teleop velocity commands"""
    linear: float = 0.25   # m/s
    angular: float = 0.1   # rad/s


@dataclass(frozen=True)
class BinAngles:
    """Bin joint angles (radians) commanded for each bin target"""
    lowered: float = 0.0
    raised: float = 1.5


@dataclass(frozen=True)
class GeometryConstraints:
    """Immutable geometry constraints for navigation goal selection"""
    # distance to travel away from the bin before it is safe to dig
    safe_mining_distance: float = 4.0
    # distance from the bin to the finish line
    finish_line: float = 1.5


@dataclass(frozen=True)
class LocalizationSettings:
    turn_speed: float = 0.0       # rad/s
    turn_duration: float = 0.0    # s
    base_frame: str = 'base_footprint'
    destination_frame: str = 'odom'
    axis_correction: Tuple[float, float, float] = (1.0, -1.0, -1.0)

    @property
    def turn_configured(self) -> bool:
        return self.turn_speed != 0.0 and self.turn_duration != 0.0


@dataclass(frozen=True)
class ExecutiveConfig:
    drive: DriveVelocity = field(default_factory=DriveVelocity)
    rate: float = 10.0  # Hz, preemption check frequency
    bin_angles: BinAngles = field(default_factory=BinAngles)
    geometry: GeometryConstraints = field(default_factory=GeometryConstraints)
    reference_frame: str = 'bin'
    localization: LocalizationSettings = field(default_factory=LocalizationSettings)

    @property
    def poll_period(self) -> float:
        return 1.0 / self.rate


def _number(section: Dict[str, Any], key: str, default: float,
            minimum: Optional[float] = None, strict: bool = False) -> float:
    value = section.get(key, default)
    try:
        value = float(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"'{key}' must be a number, got {value!r}") from e
    if not math.isfinite(value):
        raise ConfigurationError(f"'{key}' must be finite, got {value}")
    if minimum is not None:
        if strict and value <= minimum:
            raise ConfigurationError(f"'{key}' must be > {minimum}, got {value}")
        if not strict and value < minimum:
            raise ConfigurationError(f"'{key}' must be >= {minimum}, got {value}")
    return value


def _section(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ConfigurationError(f"Section '{name}' must be a mapping")
    return section


def _axis_correction(section: Dict[str, Any]) -> Tuple[float, float, float]:
    raw = section.get('axis_correction', LocalizationSettings.axis_correction)
    # ROS double arrays arrive as array.array, YAML gives lists
    if isinstance(raw, (str, bytes)) or not hasattr(raw, '__len__') or len(raw) != 3:
        raise ConfigurationError(f"'axis_correction' must have 3 entries, got {raw!r}")
    values = tuple(_number({'axis_correction': v}, 'axis_correction', 0.0) for v in raw)
    return values


def config_from_dict(data: Optional[Dict[str, Any]]) -> ExecutiveConfig:
    """Build a validated ExecutiveConfig from a parsed YAML document"""
    data = data or {}
    if not isinstance(data, dict):
        raise ConfigurationError("Configuration root must be a mapping")

    teleop = _section(data, 'teleop')
    bin_cfg = _section(data, 'bin')
    navigation = _section(data, 'navigation')
    localization = _section(data, 'localization')

    defaults = ExecutiveConfig()
    drive = DriveVelocity(
        linear=_number(teleop, 'linear_velocity', defaults.drive.linear, minimum=0.0),
        angular=_number(teleop, 'angular_velocity', defaults.drive.angular, minimum=0.0),
    )
    rate = _number(teleop, 'rate', defaults.rate, minimum=0.0, strict=True)

    bin_angles = BinAngles(
        lowered=_number(bin_cfg, 'lowered_angle', defaults.bin_angles.lowered),
        raised=_number(bin_cfg, 'raised_angle', defaults.bin_angles.raised),
    )

    geometry = GeometryConstraints(
        safe_mining_distance=_number(
            navigation, 'safe_mining_distance',
            defaults.geometry.safe_mining_distance, minimum=0.0),
        finish_line=_number(
            navigation, 'finish_line', defaults.geometry.finish_line, minimum=0.0),
    )

    settings = LocalizationSettings(
        turn_speed=_number(localization, 'turn_speed', 0.0),
        turn_duration=_number(localization, 'turn_duration', 0.0, minimum=0.0),
        base_frame=str(localization.get('base_frame', defaults.localization.base_frame)),
        destination_frame=str(localization.get(
            'destination_frame', defaults.localization.destination_frame)),
        axis_correction=_axis_correction(localization),
    )
    return ExecutiveConfig(
        drive=drive,
        rate=rate,
        bin_angles=bin_angles,
        geometry=geometry,
        reference_frame=str(navigation.get('reference_frame', defaults.reference_frame)),
        localization=settings,
    )


def load_config(path: Union[str, Path]) -> ExecutiveConfig:
    """Load executive configuration from a YAML file"""
    path = Path(path)
    try:
        with open(path, 'r') as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        raise ConfigurationError(f"Configuration file not found: {path}") from None
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Failed to parse {path}: {e}") from e

    config = config_from_dict(data)
    logger.info(f"Loaded executive config from {path}")
    return config


# Flat ROS parameter name -> (YAML section, key)
PARAMETER_LAYOUT: Dict[str, Tuple[str, str]] = {
    'linear_velocity': ('teleop', 'linear_velocity'),
    'angular_velocity': ('teleop', 'angular_velocity'),
    'rate': ('teleop', 'rate'),
    'lowered_angle': ('bin', 'lowered_angle'),
    'raised_angle': ('bin', 'raised_angle'),
    'safe_mining_distance': ('navigation', 'safe_mining_distance'),
    'finish_line': ('navigation', 'finish_line'),
    'reference_frame': ('navigation', 'reference_frame'),
    'turn_speed': ('localization', 'turn_speed'),
    'turn_duration': ('localization', 'turn_duration'),
    'base_frame': ('localization', 'base_frame'),
    'destination_frame': ('localization', 'destination_frame'),
    'axis_correction': ('localization', 'axis_correction'),
}


def config_to_parameters(config: ExecutiveConfig) -> List[Tuple[str, Any]]:
    """(name, default) pairs for Node.declare_parameters, seeded from config"""
    values = {
        'linear_velocity': config.drive.linear,
        'angular_velocity': config.drive.angular,
        'rate': config.rate,
        'lowered_angle': config.bin_angles.lowered,
        'raised_angle': config.bin_angles.raised,
        'safe_mining_distance': config.geometry.safe_mining_distance,
        'finish_line': config.geometry.finish_line,
        'reference_frame': config.reference_frame,
        'turn_speed': config.localization.turn_speed,
        'turn_duration': config.localization.turn_duration,
        'base_frame': config.localization.base_frame,
        'destination_frame': config.localization.destination_frame,
        'axis_correction': [float(v) for v in config.localization.axis_correction],
    }
    return [(name, values[name]) for name in PARAMETER_LAYOUT]


def config_from_parameters(values: Dict[str, Any]) -> ExecutiveConfig:
    """Rebuild a validated config from flat parameter values"""
    data: Dict[str, Dict[str, Any]] = {}
    for name, value in values.items():
        if name not in PARAMETER_LAYOUT:
            continue
        section, key = PARAMETER_LAYOUT[name]
        data.setdefault(section, {})[key] = value
    return config_from_dict(data)
