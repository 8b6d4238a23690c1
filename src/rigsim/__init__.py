"""
RigSim - Per-tick force pipeline for a car/trailer rig.

This package computes the net force and torque that each vehicle's
suspension, drivetrain, tires and steering apply to its rigid body:
- Raycast ground contact per tire
- Spring-damper suspension, power-curve drivetrain, slip friction, cornering grip
- Order-independent per-vehicle force aggregation
- Driver controls, steering and reset
- Telemetry recording and export
"""

__version__ = "0.1.0"

from rigsim.simulation.simulator import Simulator, SimulatorConfig
from rigsim.vehicle.config import VehicleConfig
from rigsim.controls import InputState

__all__ = ["Simulator", "SimulatorConfig", "VehicleConfig", "InputState", "__version__"]
