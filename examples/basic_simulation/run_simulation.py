#!/usr/bin/env python3
"""
Basic Simulation Example

This example demonstrates how to:
1. Spawn a coupled car and trailer on flat ground
2. Drive the force pipeline with scripted driver input
3. Hand the resulting forces to a (very) simple integrator
4. Read per-vehicle state

The integrator here only moves the bodies vertically and along the ground
plane without rotation; a real host would pass external_force to its
rigid-body solver instead.

Run with: python run_simulation.py
"""

from rigsim import Simulator, InputState
from rigsim.logging_config import setup_logging


GRAVITY = 9.81


def integrate(sim: Simulator, dt: float) -> None:
    """Explicit Euler step for every vehicle (translation only)."""
    for vehicle in sim.vehicles.values():
        acceleration = vehicle.external_force.force / vehicle.mass
        acceleration[1] -= GRAVITY
        vehicle.linear_velocity = vehicle.linear_velocity + acceleration * dt
        vehicle.transform.translation = vehicle.transform.translation + vehicle.linear_velocity * dt


def main():
    setup_logging("INFO")

    print("=" * 60)
    print("RigSim Basic Simulation Example")
    print("=" * 60)

    print("\n1. Spawning rig...")
    sim = Simulator()
    car, trailer, joint = sim.spawn_rig()
    print(f"   {car.name}: mass {car.mass:.2f}, at {car.transform.translation.round(2)}")
    print(f"   {trailer.name}: mass {trailer.mass:.2f}, at {trailer.transform.translation.round(2)}")

    print("\n2. Running 600 ticks at 60 Hz...")
    sim.add_post_step_callback(integrate)
    for tick in range(600):
        if tick < 240:
            inputs = InputState(accelerate=True)
        elif tick < 360:
            inputs = InputState(accelerate=True, turn_left=True)
        else:
            inputs = InputState(brake=True)

        forces = sim.step(inputs)

        if (tick + 1) % 120 == 0:
            net = forces[car.vehicle_id].force
            print(f"   Tick {tick + 1}: car speed = {car.speed:.2f} m/s, "
                  f"net force = ({net[0]:.1f}, {net[1]:.1f}, {net[2]:.1f}) N, "
                  f"grounded = {sim.last_contact.grounded}/{sim.last_contact.probed}")

    print("\n3. Final state:")
    for vehicle in sim.vehicles.values():
        state = vehicle.get_state()
        print(f"   {state['name']}: position {[round(p, 2) for p in state['position']]}, "
              f"speed {state['speed_mps']:.2f} m/s")

    print("\n4. Reset:")
    sim.step(InputState(reset=True))
    print(f"   Car back at {car.transform.translation.round(3)}")

    print("\n" + "=" * 60)
    print(f"Simulation complete after {sim.tick} ticks ({sim.time:.2f} s)")
    print("=" * 60)


if __name__ == "__main__":
    main()
