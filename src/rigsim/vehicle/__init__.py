"""
Vehicle module - Per-tire force models and vehicle records.

This module contains:
- VehicleConfig: Geometry, suspension, drivetrain and steering tunables
- Vehicle / Tire: Rigid body and wheel records
- Suspension: Spring-damper force
- Drivetrain: Power curve and throttle force
- Friction: Constant kinetic friction at driven tires
- Cornering: Lateral grip force
- Steering: Tire yaw actuation
"""

from rigsim.vehicle.config import VehicleConfig, get_preset, load_vehicle_configs
from rigsim.vehicle.vehicle import (
    Vehicle,
    Tire,
    TirePosition,
    VehicleRole,
    ExternalForce,
)
from rigsim.vehicle.sample import TireSample
from rigsim.vehicle.suspension import Suspension
from rigsim.vehicle.drivetrain import Drivetrain, power_curve
from rigsim.vehicle.friction import Friction, FrictionConfig
from rigsim.vehicle.cornering import Cornering
from rigsim.vehicle.steering import Steering

__all__ = [
    "VehicleConfig",
    "get_preset",
    "load_vehicle_configs",
    "Vehicle",
    "Tire",
    "TirePosition",
    "VehicleRole",
    "ExternalForce",
    "TireSample",
    "Suspension",
    "Drivetrain",
    "power_curve",
    "Friction",
    "FrictionConfig",
    "Cornering",
    "Steering",
]
