#!/usr/bin/env python3
"""
Telemetry Analysis Example

This example demonstrates how to:
1. Record per-vehicle telemetry during simulation
2. Inspect channel statistics and the debug force trace
3. Export telemetry to CSV and JSON

Run with: python record_telemetry.py
"""

from pathlib import Path

from rigsim import Simulator, InputState
from rigsim.core.contribution import ForceSource
from rigsim.telemetry import TelemetryExporter
from rigsim.telemetry.exporter import ExporterConfig


def main():
    print("=" * 60)
    print("RigSim Telemetry Recording Example")
    print("=" * 60)

    output_dir = Path(__file__).parent / "output"

    print("\n1. Setting up simulation...")
    sim = Simulator()
    car, trailer, _ = sim.spawn_rig()

    print("\n2. Running 300 ticks with alternating steering...")
    for tick in range(300):
        steer = 1.0 if (tick // 60) % 2 == 0 else -1.0
        sim.step(InputState(accelerate=True, steer_axis=steer))

    print("\n3. Channel statistics:")
    recorder = sim.recorder
    for key in ("force_x", "force_y", "torque", "contributions"):
        stats = recorder.vehicle_channel(car.vehicle_id, key).get_state()
        print(f"   car.{key:<14} min={stats['min']:>9} max={stats['max']:>9} mean={stats['mean']:>9}")

    print("\n4. Last tick's force trace:")
    for source in ForceSource:
        segments = sim.trace.for_source(source)
        longest = max((s.length for s in segments), default=0.0)
        print(f"   {source.value:<11} {len(segments)} segments, longest {longest:.2f}")

    print("\n5. Exporting...")
    exporter = TelemetryExporter(ExporterConfig(output_dir=str(output_dir)))
    csv_path = exporter.export_csv(recorder)
    json_path = exporter.export_json(recorder)
    print(f"   CSV:  {csv_path}")
    print(f"   JSON: {json_path}")

    print("\n" + "=" * 60)
    print("Telemetry recording complete!")
    print("=" * 60)


if __name__ == "__main__":
    main()
