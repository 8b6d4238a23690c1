"""
Simulation module - Per-tick force pipeline.

This module contains:
- Simulator: Ordered tick pipeline and reset
- World: Arena of vehicles, tires and joints
- Physics: Solver boundary and reference raycast scene
- GroundContactSensor: Per-tire ground probe
- ForceAggregator: Per-vehicle force/torque summation
"""

from rigsim.simulation.simulator import Simulator, SimulatorConfig, TickPhase
from rigsim.simulation.world import World, Joint
from rigsim.simulation.physics import PhysicsBackend, QueryFilter, StaticScene, Plane, Box
from rigsim.simulation.contact import GroundContactSensor, ContactReport
from rigsim.simulation.forces import ForceAggregator

__all__ = [
    "Simulator",
    "SimulatorConfig",
    "TickPhase",
    "World",
    "Joint",
    "PhysicsBackend",
    "QueryFilter",
    "StaticScene",
    "Plane",
    "Box",
    "GroundContactSensor",
    "ContactReport",
    "ForceAggregator",
]
