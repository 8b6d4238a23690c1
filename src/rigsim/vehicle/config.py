"""
Vehicle configuration - Geometry and dynamic response tunables.

Defines:
- VehicleConfig: per-vehicle tunables (geometry, suspension, drivetrain, steering)
- Presets for the car/trailer and drifter/drifter-trailer rigs
- Runtime tuning ranges used by a settings panel
- TOML loading of named configurations
"""

from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Dict, Any
import math
import tomllib

import numpy as np

from rigsim.errors import ConfigurationError


@dataclass
class VehicleConfig:
    """Tunable parameters of one vehicle.

    Lengths are half extents, matching the box collider of the body.
    Default values describe the standard car.
    """
    # Geometry (m)
    height: float = 1.452024 / 2.0
    width: float = 2.02946 / 2.0
    length: float = 5.31114 / 2.0
    wheelbase: float = 3.11912 / 2.0
    wheel_offset: float = 0.0

    # Suspension
    spring_offset: float = 1.252926  # Rest length and raycast probe length (m)
    spring_power: float = 300.0
    shock: float = 45.0

    # Drivetrain
    max_speed: float = 50.0   # m/s
    max_force: float = 100.0  # N at full throttle on the torque plateau

    # Steering (max tire yaw, radians)
    turn_radius: float = 0.45811518324607

    # Coupling anchor in body coordinates (car <-> trailer joint)
    anchor_point: np.ndarray = field(
        default_factory=lambda: np.array([-5.31114 / 2.0 - 0.787, -0.7, 0.0])
    )

    scale: float = 1.0
    starting_tire_grip: float = 0.7

    def __post_init__(self):
        self.anchor_point = np.asarray(self.anchor_point, dtype=float).copy()
        self.validate()

    def validate(self) -> None:
        """Check the only cross-field invariant: a positive spring offset.

        Raises:
            ConfigurationError: If spring_offset is not a positive finite number
        """
        if not (math.isfinite(self.spring_offset) and self.spring_offset > 0.0):
            raise ConfigurationError(
                f"spring_offset must be > 0, got {self.spring_offset}"
            )

    @property
    def is_driven(self) -> bool:
        """Whether the drivetrain can produce force at all."""
        return math.isfinite(self.max_speed) and self.max_speed > 0.0

    def collider_mass(self, density: float = 1.0) -> float:
        """Mass of the body's box collider.

        Args:
            density: Collider density (solver default is 1.0)

        Returns:
            Mass in kg
        """
        return 8.0 * self.length * self.height * self.width * density

    def copy(self) -> "VehicleConfig":
        """Return an independent copy (used for per-tick snapshots)."""
        return replace(self, anchor_point=self.anchor_point.copy())

    def update(self, **changes: Any) -> "VehicleConfig":
        """Apply runtime edits, clamping each value into its tuning range.

        Args:
            **changes: Field names and new values

        Returns:
            self, for chaining

        Raises:
            ConfigurationError: On unknown fields or an invalid spring offset
        """
        known = {f.name for f in fields(self)}
        unknown = set(changes) - known
        if unknown:
            raise ConfigurationError(f"Unknown vehicle config fields: {sorted(unknown)}")

        resolved = {}
        for name, value in changes.items():
            if name == "anchor_point":
                value = np.asarray(value, dtype=float).copy()
            elif name in TUNABLE_RANGES:
                low, high = TUNABLE_RANGES[name]
                value = float(np.clip(value, low, high))
            resolved[name] = value

        # Reject the whole edit before touching any field
        offset = resolved.get("spring_offset", self.spring_offset)
        if not offset > 0.0:
            raise ConfigurationError(f"spring_offset must be > 0, got {offset}")

        for name, value in resolved.items():
            setattr(self, name, value)
        return self

    def get_state(self) -> dict:
        """Get configuration values for telemetry.

        Returns:
            Dictionary of config values
        """
        state = {f.name: getattr(self, f.name) for f in fields(self)}
        state["anchor_point"] = self.anchor_point.tolist()
        return state


# Settings-panel slider ranges (min, max)
TUNABLE_RANGES: Dict[str, tuple[float, float]] = {
    "max_speed": (5.0, 200.0),
    "max_force": (50.0, 1000.0),
    "spring_offset": (0.0, 10.0),
    "spring_power": (0.0, 500.0),
    "shock": (0.0, 100.0),
    "height": (0.1, 10.0),
    "width": (0.1, 10.0),
    "length": (0.1, 10.0),
    "turn_radius": (0.0, math.pi / 4.0),
    "starting_tire_grip": (0.0, 1.0),
}


CAR_LENGTH = 5.31114 / 2.0
CAR_CONFIG = VehicleConfig()

TRAILER_LENGTH = 7.8768 / 2.0
TRAILER_WIDTH = 2.159 / 2.0
TRAILER_CONFIG = VehicleConfig(
    height=0.18234 / 2.0,
    width=TRAILER_WIDTH,
    length=TRAILER_LENGTH,
    wheelbase=1.0 / 2.0,
    wheel_offset=-1.0,
    spring_offset=1.0,
    spring_power=21.0,
    shock=5.0,
    max_speed=0.0,
    max_force=0.0,
    turn_radius=0.0,
    anchor_point=np.array([TRAILER_LENGTH + TRAILER_WIDTH, -(0.18234 / 2.0), 0.0]),
    starting_tire_grip=0.7,
)

DRIFTER_LENGTH = 3.31114 / 2.0
DRIFTER_CONFIG = VehicleConfig(
    height=1.252024 / 2.0,
    width=2.02946 / 2.0,
    length=DRIFTER_LENGTH,
    wheelbase=3.11912 / 2.0,
    wheel_offset=0.0,
    spring_offset=1.252926,
    spring_power=300.0,
    shock=45.0,
    max_speed=50.0,
    max_force=160.0,
    turn_radius=0.45811518324607,
    anchor_point=np.array([-DRIFTER_LENGTH * 1.1, -0.7, 0.0]),
    starting_tire_grip=0.03,
)

DRIFTER_TRAILER_LENGTH = 2.8768 / 2.0
DRIFTER_TRAILER_WIDTH = 2.159 / 2.0
DRIFTER_TRAILER_CONFIG = VehicleConfig(
    height=0.18234 / 2.0,
    width=DRIFTER_TRAILER_WIDTH,
    length=DRIFTER_TRAILER_LENGTH,
    wheelbase=1.0 / 2.0,
    wheel_offset=0.0,
    spring_offset=1.0,
    spring_power=15.0,
    shock=3.0,
    max_speed=0.0,
    max_force=0.0,
    turn_radius=0.0,
    anchor_point=np.array([
        DRIFTER_TRAILER_LENGTH + DRIFTER_TRAILER_WIDTH, -(0.18234 / 2.0), 0.0,
    ]),
    starting_tire_grip=0.03,
)

PRESETS: Dict[str, VehicleConfig] = {
    "car": CAR_CONFIG,
    "trailer": TRAILER_CONFIG,
    "drifter": DRIFTER_CONFIG,
    "drifter_trailer": DRIFTER_TRAILER_CONFIG,
}


def get_preset(name: str) -> VehicleConfig:
    """Get a copy of a named preset.

    Args:
        name: Preset name (car, trailer, drifter, drifter_trailer)

    Returns:
        Fresh VehicleConfig safe to mutate

    Raises:
        ConfigurationError: If the preset does not exist
    """
    try:
        return PRESETS[name].copy()
    except KeyError:
        raise ConfigurationError(
            f"Unknown preset '{name}', expected one of {sorted(PRESETS)}"
        ) from None


def config_from_mapping(data: Dict[str, Any]) -> VehicleConfig:
    """Build a config from a mapping, optionally layered on a ``base`` preset.

    Values are taken as given (no range clamping); the spring offset is
    still validated.
    """
    data = dict(data)
    base_name = data.pop("base", None)
    config = get_preset(base_name) if base_name else VehicleConfig()

    known = {f.name for f in fields(VehicleConfig)}
    unknown = set(data) - known
    if unknown:
        raise ConfigurationError(f"Unknown vehicle config fields: {sorted(unknown)}")

    for name, value in data.items():
        if name == "anchor_point":
            value = np.asarray(value, dtype=float)
            if value.shape != (3,):
                raise ConfigurationError(f"anchor_point must have 3 components, got {value.shape}")
        setattr(config, name, value)
    config.validate()
    return config


def load_vehicle_configs(path: str | Path) -> Dict[str, VehicleConfig]:
    """Load named vehicle configurations from a TOML file.

    Each top-level table is one vehicle, for example::

        [my_car]
        base = "drifter"
        max_force = 220.0

    Args:
        path: Path to the TOML file

    Returns:
        Mapping of table name to VehicleConfig
    """
    with Path(path).open("rb") as handle:
        payload = tomllib.load(handle)

    configs = {}
    for name, table in payload.items():
        if not isinstance(table, dict):
            raise ConfigurationError(f"Entry '{name}' must be a table")
        configs[name] = config_from_mapping(table)
    return configs
