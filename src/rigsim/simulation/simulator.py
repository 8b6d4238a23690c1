"""
Simulator - Ordered per-tick force pipeline.

Provides:
- Tick phases: contact sensing, force models, aggregation, controls
- Per-tick config snapshots
- Setup checks (orphan tires, vehicles without tires)
- Reset to the spawn pose
- Telemetry collection
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Set, Tuple
import logging
import math

from rigsim.controls import InputState
from rigsim.core.contribution import ForceContribution
from rigsim.errors import ConfigurationError, PipelineOrderError, SetupError
from rigsim.simulation.contact import ContactReport, GroundContactSensor
from rigsim.simulation.forces import ForceAggregator
from rigsim.simulation.physics import PhysicsBackend, QueryFilter, StaticScene
from rigsim.simulation.world import Joint, World
from rigsim.telemetry.recorder import TelemetryRecorder
from rigsim.telemetry.trace import ForceTrace
from rigsim.vehicle.config import VehicleConfig, get_preset
from rigsim.vehicle.cornering import Cornering, DEFAULT_CORNERING_RATE_HZ
from rigsim.vehicle.drivetrain import Drivetrain
from rigsim.vehicle.friction import Friction, FrictionConfig
from rigsim.vehicle.sample import TireSample
from rigsim.vehicle.steering import Steering
from rigsim.vehicle.suspension import Suspension
from rigsim.vehicle.vehicle import ExternalForce, Tire, Vehicle

logger = logging.getLogger(__name__)


class TickPhase(Enum):
    """Progress through one tick. Phases must run in declaration order."""
    IDLE = 0
    BEGUN = 1
    SENSED = 2
    FORCES = 3
    AGGREGATED = 4
    ACTUATED = 5


@dataclass
class SimulatorConfig:
    """Simulator configuration."""
    # Time stepping
    fixed_dt: float = 1.0 / 60.0

    # Cornering force assumes this many ticks per second
    cornering_rate_hz: float = DEFAULT_CORNERING_RATE_HZ

    friction: FrictionConfig = field(default_factory=FrictionConfig)
    query_filter: QueryFilter = QueryFilter.ONLY_FIXED

    enable_telemetry: bool = True

    def __post_init__(self):
        if not (math.isfinite(self.fixed_dt) and self.fixed_dt > 0.0):
            raise ConfigurationError(f"fixed_dt must be > 0, got {self.fixed_dt}")
        if not (math.isfinite(self.cornering_rate_hz) and self.cornering_rate_hz > 0.0):
            raise ConfigurationError(
                f"cornering_rate_hz must be > 0, got {self.cornering_rate_hz}"
            )


class Simulator:
    """Force pipeline driver.

    Each tick runs, strictly in order:
        1. begin_tick       snapshot configs, resolve tires, open the aggregator
        2. sense_contacts   ground probe for every tire
        3. compute_forces   suspension, drivetrain, friction, cornering
        4. aggregate_forces net force/torque written to every vehicle
        5. apply_controls   steering, then reset (seen by the next tick)
        6. end_tick         advance time and tick counter

    ``step`` runs all phases; the individual phase methods are public so a
    host loop can interleave its own work, and calling one out of order
    raises PipelineOrderError.

    Usage:
        sim = Simulator()
        sim.spawn_rig()

        for _ in range(600):
            forces = sim.step(InputState(accelerate=True))
            # hand vehicle.external_force to the solver
    """

    def __init__(
        self,
        backend: PhysicsBackend | None = None,
        config: SimulatorConfig | None = None,
        world: World | None = None,
    ):
        """Initialize simulator.

        Args:
            backend: Physics solver queries. Uses a flat ground plane if None.
            config: Simulator configuration. Uses defaults if None.
            world: Entity arena. Starts empty if None.
        """
        self.config = config or SimulatorConfig()
        self.backend = backend or StaticScene.with_ground()
        self.world = world or World()

        # Pipeline components
        self.sensor = GroundContactSensor(self.backend, self.config.query_filter)
        self.suspension = Suspension()
        self.drivetrain = Drivetrain()
        self.friction = Friction(self.config.friction)
        self.cornering = Cornering(rate_hz=self.config.cornering_rate_hz)
        self.steering = Steering()
        self.aggregator = ForceAggregator()

        # Telemetry
        self.recorder: Optional[TelemetryRecorder] = (
            TelemetryRecorder() if self.config.enable_telemetry else None
        )
        self.trace = ForceTrace()

        # Tick state
        self._tick: int = 0
        self._phase: TickPhase = TickPhase.IDLE
        self._dt: float = self.config.fixed_dt
        self._configs: Dict[int, VehicleConfig] = {}
        self._excluded: Set[int] = set()
        self._entries: List[Tuple[Tire, Vehicle, VehicleConfig]] = []
        self._last_contact: ContactReport = ContactReport()

        # Setup problems are logged once per entity
        self.setup_errors: List[SetupError] = []
        self._reported_tires: Set[int] = set()
        self._reported_vehicles: Set[int] = set()
        self._reported_configs: Set[int] = set()
        self._rate_warning_logged: bool = False

        # Step callbacks
        self._pre_step_callbacks: List[Callable] = []
        self._post_step_callbacks: List[Callable] = []

    @property
    def tick(self) -> int:
        """Number of completed ticks."""
        return self._tick

    @property
    def phase(self) -> TickPhase:
        return self._phase

    @property
    def time(self) -> float:
        """Current simulation time."""
        return self.world.time

    @property
    def vehicles(self) -> Dict[int, Vehicle]:
        return self.world.vehicles

    @property
    def models(self) -> tuple:
        """Force models in evaluation order."""
        return (self.suspension, self.drivetrain, self.friction, self.cornering)

    @property
    def last_contact(self) -> ContactReport:
        return self._last_contact

    def spawn_rig(
        self,
        leading_config: VehicleConfig | None = None,
        following_config: VehicleConfig | None = None,
    ) -> Tuple[Vehicle, Vehicle, Joint]:
        """Spawn a coupled car and trailer.

        Args:
            leading_config: Car config (car preset if None)
            following_config: Trailer config (trailer preset if None)

        Returns:
            (leading vehicle, following vehicle, joint)
        """
        return self.world.spawn_rig(
            leading_config or get_preset("car"),
            following_config or get_preset("trailer"),
        )

    def add_pre_step_callback(self, callback: Callable) -> None:
        """Add callback called before each step.

        Args:
            callback: Function taking (simulator, dt) arguments
        """
        self._pre_step_callbacks.append(callback)

    def add_post_step_callback(self, callback: Callable) -> None:
        """Add callback called after each step.

        Args:
            callback: Function taking (simulator, dt) arguments
        """
        self._post_step_callbacks.append(callback)

    def step(
        self,
        inputs: InputState | None = None,
        dt: float | None = None,
    ) -> Dict[int, ExternalForce]:
        """Run one complete tick.

        Args:
            inputs: Driver input for this tick (no input if None)
            dt: Tick length (uses fixed_dt if None)

        Returns:
            Dictionary mapping vehicle_id to the ExternalForce written this tick
        """
        inputs = inputs or InputState()
        dt = self.config.fixed_dt if dt is None else dt

        for callback in self._pre_step_callbacks:
            callback(self, dt)

        try:
            self.begin_tick(dt)
            self.sense_contacts()
            self.compute_forces(inputs)
            results = self.aggregate_forces()
            self.apply_controls(inputs)
            self.end_tick()
        except Exception:
            self._abort_tick()
            raise

        for callback in self._post_step_callbacks:
            callback(self, dt)

        return results

    def _expect(self, phase: TickPhase, operation: str) -> None:
        if self._phase is not phase:
            raise PipelineOrderError(
                f"{operation} requires phase {phase.name}, current phase is {self._phase.name}"
            )

    def _abort_tick(self) -> None:
        """Return to IDLE after a failed phase without advancing the tick."""
        if self._phase is not TickPhase.IDLE:
            logger.warning(f"Tick {self._tick} aborted during phase {self._phase.name}")
        if self.aggregator.tick is not None:
            self.aggregator.seal()
        self._phase = TickPhase.IDLE

    def begin_tick(self, dt: float | None = None) -> None:
        """Open a tick: snapshot configs, resolve tires, reset the aggregator.

        A vehicle whose config fails validation sits the tick out: its tires
        are neither probed nor steered and it receives exact zero force. It
        rejoins on the first tick its config validates again.

        Args:
            dt: Tick length (uses fixed_dt if None)

        Raises:
            PipelineOrderError: If the previous tick is still open
            ConfigurationError: On a non-positive dt
        """
        self._expect(TickPhase.IDLE, "begin_tick")

        dt = self.config.fixed_dt if dt is None else dt
        if not (math.isfinite(dt) and dt > 0.0):
            raise ConfigurationError(f"Tick length must be > 0, got {dt}")
        self._dt = dt
        self._check_cornering_rate(dt)

        # Snapshot and validate each vehicle on its own
        configs = {}
        excluded = set()
        for vehicle_id, vehicle in self.world.vehicles.items():
            snapshot = vehicle.config.copy()
            try:
                snapshot.validate()
            except ConfigurationError as e:
                excluded.add(vehicle_id)
                if vehicle_id not in self._reported_configs:
                    self._reported_configs.add(vehicle_id)
                    self._report_setup_error(SetupError(
                        f"Vehicle {vehicle_id} excluded from the pipeline: {e}",
                        entity_id=vehicle_id,
                    ))
                continue
            self._reported_configs.discard(vehicle_id)
            vehicle.sync_mass(snapshot)
            configs[vehicle_id] = snapshot
        self._configs = configs
        self._excluded = excluded

        self._entries = self._resolve_entries()
        self.aggregator.begin_tick(self._tick, self.world.vehicles.keys())
        self._phase = TickPhase.BEGUN

    def _check_cornering_rate(self, dt: float) -> None:
        expected = 1.0 / self.config.cornering_rate_hz
        if self._rate_warning_logged or math.isclose(dt, expected, rel_tol=1e-6):
            return
        logger.warning(
            f"Tick length {dt:.6f}s differs from the cornering rate "
            f"{self.config.cornering_rate_hz:g} Hz ({expected:.6f}s); "
            f"cornering forces keep the configured rate"
        )
        self._rate_warning_logged = True

    def _report_setup_error(self, error: SetupError) -> None:
        self.setup_errors.append(error)
        logger.warning(str(error))

    def _resolve_entries(self) -> List[Tuple[Tire, Vehicle, VehicleConfig]]:
        """Pair tires with their vehicles, excluding unresolvable entities."""
        entries = []
        tire_counts: Dict[int, int] = {vehicle_id: 0 for vehicle_id in self._configs}
        for tire in self.world.tires:
            vehicle = self.world.get_vehicle(tire.vehicle_id)
            if vehicle is None:
                if tire.tire_id not in self._reported_tires:
                    self._reported_tires.add(tire.tire_id)
                    self._report_setup_error(SetupError(
                        f"Tire {tire.tire_id} references missing vehicle {tire.vehicle_id}; "
                        f"excluded from the pipeline",
                        entity_id=tire.tire_id,
                    ))
                continue
            if vehicle.vehicle_id in self._excluded:
                continue
            tire_counts[vehicle.vehicle_id] += 1
            entries.append((tire, vehicle, self._configs[vehicle.vehicle_id]))

        for vehicle_id, count in tire_counts.items():
            if count == 0 and vehicle_id not in self._reported_vehicles:
                self._reported_vehicles.add(vehicle_id)
                self._report_setup_error(SetupError(
                    f"Vehicle {vehicle_id} has no tires; it receives zero force",
                    entity_id=vehicle_id,
                ))
        return entries

    def sense_contacts(self) -> ContactReport:
        """Probe the ground under every resolved tire.

        Returns:
            ContactReport for this tick
        """
        self._expect(TickPhase.BEGUN, "sense_contacts")
        self._last_contact = self.sensor.sense(self._entries)
        self._phase = TickPhase.SENSED
        return self._last_contact

    def compute_forces(self, inputs: InputState | None = None) -> int:
        """Run every force model on every resolved tire.

        Args:
            inputs: Driver input (supplies the throttle)

        Returns:
            Number of contributions stored by the aggregator
        """
        self._expect(TickPhase.SENSED, "compute_forces")
        throttle = (inputs or InputState()).throttle_multiplier()

        num_tires: Dict[int, int] = {}
        num_driven: Dict[int, int] = {}
        for tire, vehicle, _ in self._entries:
            num_tires[vehicle.vehicle_id] = num_tires.get(vehicle.vehicle_id, 0) + 1
            if tire.connected_to_engine:
                num_driven[vehicle.vehicle_id] = num_driven.get(vehicle.vehicle_id, 0) + 1

        stored = 0
        for tire, vehicle, config in self._entries:
            point = tire.world_transform(vehicle).translation
            sample = TireSample.take(
                vehicle,
                tire,
                config,
                tick=self._tick,
                point_velocity=self.backend.velocity_at_point(vehicle, point),
                num_tires=num_tires[vehicle.vehicle_id],
                num_driven_tires=num_driven.get(vehicle.vehicle_id, 0),
                throttle=throttle,
            )
            stored += self.aggregator.submit_all(model.contribute(sample) for model in self.models)

        self._phase = TickPhase.FORCES
        return stored

    def aggregate_forces(self) -> Dict[int, ExternalForce]:
        """Write the net external force of every vehicle.

        Returns:
            Dictionary mapping vehicle_id to ExternalForce
        """
        self._expect(TickPhase.FORCES, "aggregate_forces")
        results = self.aggregator.aggregate(self.world.vehicles)
        self.trace.capture(self._tick, self.aggregator.all_contributions())
        self._phase = TickPhase.AGGREGATED
        return results

    def apply_controls(self, inputs: InputState | None = None) -> None:
        """Steer turnable tires, then reset if requested.

        Args:
            inputs: Driver input for this tick
        """
        self._expect(TickPhase.AGGREGATED, "apply_controls")
        inputs = inputs or InputState()

        steer = inputs.steer_multiplier()
        for vehicle_id, config in self._configs.items():
            self.steering.actuate(self.world.tires_of(vehicle_id), config, steer)

        if inputs.reset_requested:
            self.reset_vehicles()

        self._phase = TickPhase.ACTUATED

    def end_tick(self) -> None:
        """Record telemetry and advance time and the tick counter."""
        self._expect(TickPhase.ACTUATED, "end_tick")

        if self.recorder is not None:
            self.recorder.record(
                self._tick,
                self.world.time,
                self.world.vehicles,
                self.aggregator.all_contributions(),
                [tire for tire, _, _ in self._entries],
            )

        logger.debug(
            f"Tick {self._tick} done: {len(self.aggregator.all_contributions())} contributions, "
            f"{self._last_contact.grounded}/{self._last_contact.probed} tires grounded"
        )
        self.world.advance_time(self._dt)
        self._tick += 1
        self._phase = TickPhase.IDLE

    def reset_vehicles(self) -> None:
        """Snap every vehicle to its spawn pose and clear its motion."""
        for vehicle in self.world.vehicles.values():
            vehicle.reset_motion()
        logger.info(f"Reset {self.world.vehicle_count} vehicles to spawn")

    def submitted(self) -> List[ForceContribution]:
        """Contributions accepted in the current (or last) tick."""
        return self.aggregator.all_contributions()

    def clear_telemetry(self) -> None:
        """Clear recorded telemetry and the force trace."""
        if self.recorder is not None:
            self.recorder.clear()
        self.trace.clear()

    def get_state(self) -> Dict[str, Any]:
        """Get complete simulation state.

        Returns:
            Dictionary containing simulation state
        """
        return {
            "config": {
                "fixed_dt": self.config.fixed_dt,
                "cornering_rate_hz": self.config.cornering_rate_hz,
                "query_filter": self.config.query_filter.value,
            },
            "tick": self._tick,
            "phase": self._phase.name,
            "aggregator": self.aggregator.get_state(),
            "setup_errors": [str(e) for e in self.setup_errors],
            "world": self.world.get_state(),
        }
