"""Tests for vehicle configuration, layout and per-tire force models."""

import math

import pytest
import numpy as np

from rigsim.core.contribution import ForceSource
from rigsim.core.transform import Transform, vec3, quat_from_axis_angle, Y_AXIS
from rigsim.errors import ConfigurationError
from rigsim.vehicle.config import (
    VehicleConfig,
    TUNABLE_RANGES,
    get_preset,
    load_vehicle_configs,
)
from rigsim.vehicle.vehicle import (
    Vehicle,
    Tire,
    TirePosition,
    VehicleRole,
    build_tires,
    spawn_transform,
)
from rigsim.vehicle.sample import TireSample
from rigsim.vehicle.suspension import Suspension, suspension_force_magnitude
from rigsim.vehicle.drivetrain import Drivetrain, available_force, power_curve, speed_ratio
from rigsim.vehicle.friction import Friction, FrictionConfig, friction_magnitude
from rigsim.vehicle.cornering import Cornering, cornering_force_magnitude
from rigsim.vehicle.steering import Steering, steer_angle


def make_sample(
    config: VehicleConfig | None = None,
    distance: float | None = 0.5,
    point_velocity=(0.0, 0.0, 0.0),
    vehicle_velocity=None,
    rotation=None,
    connected_to_engine: bool = True,
    grip: float = 0.7,
    throttle: float = 0.0,
    mass: float = 10.0,
    num_tires: int = 4,
    num_driven_tires: int = 2,
) -> TireSample:
    """Build a tire sample at the origin without going through a world."""
    config = config or VehicleConfig()
    if vehicle_velocity is None:
        vehicle_velocity = point_velocity
    world = Transform(translation=vec3(1.0, 0.5, -1.0))
    if rotation is not None:
        world.rotation = rotation
    return TireSample(
        vehicle_id=0,
        tick=0,
        config=config,
        world=world,
        point_velocity=np.array(point_velocity, dtype=float),
        vehicle_velocity=np.array(vehicle_velocity, dtype=float),
        mass=mass,
        num_tires=num_tires,
        num_driven_tires=num_driven_tires,
        connected_to_engine=connected_to_engine,
        grip=grip,
        distance_to_ground=distance,
        throttle=throttle,
    )


class TestVehicleConfig:
    """Test vehicle configuration."""

    def test_default_is_car(self):
        """Test defaults match the car preset."""
        config = VehicleConfig()
        car = get_preset("car")

        assert config.max_force == car.max_force
        assert np.allclose(config.anchor_point, car.anchor_point)

    def test_spring_offset_must_be_positive(self):
        """Test invalid spring offset is rejected."""
        with pytest.raises(ConfigurationError):
            VehicleConfig(spring_offset=0.0)
        with pytest.raises(ConfigurationError):
            VehicleConfig(spring_offset=float("nan"))

    def test_update_clamps_to_ranges(self):
        """Test runtime edits are clamped into slider ranges."""
        config = VehicleConfig()
        config.update(max_speed=1000.0, max_force=1.0, turn_radius=2.0)

        assert config.max_speed == TUNABLE_RANGES["max_speed"][1]
        assert config.max_force == TUNABLE_RANGES["max_force"][0]
        assert config.turn_radius == pytest.approx(math.pi / 4.0)

    def test_update_rejects_bad_edit_atomically(self):
        """Test a rejected edit leaves every field untouched."""
        config = VehicleConfig()
        before = config.max_force

        with pytest.raises(ConfigurationError):
            config.update(max_force=500.0, spring_offset=0.0)
        assert config.max_force == before

        with pytest.raises(ConfigurationError):
            config.update(horsepower=500)

    def test_copy_is_independent(self):
        """Test snapshots do not share the anchor array."""
        config = VehicleConfig()
        snapshot = config.copy()
        config.anchor_point[0] = 99.0

        assert snapshot.anchor_point[0] != 99.0

    def test_collider_mass(self):
        """Test mass of the box collider from half extents."""
        config = VehicleConfig(height=0.5, width=1.0, length=2.0)
        assert config.collider_mass() == pytest.approx(8.0)
        assert config.collider_mass(density=2.0) == pytest.approx(16.0)

    def test_trailer_is_not_driven(self):
        """Test trailer preset has no usable drivetrain."""
        assert not get_preset("trailer").is_driven
        assert get_preset("drifter").starting_tire_grip == pytest.approx(0.03)

    def test_unknown_preset(self):
        """Test unknown preset name."""
        with pytest.raises(ConfigurationError):
            get_preset("truck")

    def test_load_toml(self, tmp_path):
        """Test loading named configs layered on presets."""
        path = tmp_path / "rigs.toml"
        path.write_text(
            '[fast]\n'
            'base = "drifter"\n'
            'max_force = 220.0\n'
            'anchor_point = [-2.0, -0.5, 0.0]\n'
            '\n'
            '[plain]\n'
            'spring_power = 250.0\n'
        )

        configs = load_vehicle_configs(path)

        assert configs["fast"].max_force == 220.0
        assert configs["fast"].starting_tire_grip == pytest.approx(0.03)
        assert np.allclose(configs["fast"].anchor_point, [-2.0, -0.5, 0.0])
        assert configs["plain"].spring_power == 250.0

    def test_load_toml_rejects_bad_anchor(self, tmp_path):
        """Test anchor point shape check."""
        path = tmp_path / "bad.toml"
        path.write_text('[bad]\nanchor_point = [1.0, 2.0]\n')

        with pytest.raises(ConfigurationError):
            load_vehicle_configs(path)


class TestVehicleLayout:
    """Test spawn pose and tire layout."""

    def test_spawn_sign_by_role(self):
        """Test leading spawns at +x, following mirrored at -x."""
        config = VehicleConfig()
        leading = spawn_transform(config, VehicleRole.LEADING)
        following = spawn_transform(config, VehicleRole.FOLLOWING)
        expected_x = config.length + config.anchor_point[0]

        assert leading.translation[0] == pytest.approx(expected_x)
        assert following.translation[0] == pytest.approx(-expected_x)
        assert leading.translation[1] == pytest.approx(config.height)
        assert np.allclose(leading.rotation, [1.0, 0.0, 0.0, 0.0])

    def test_leading_front_tires_driven_and_steered(self):
        """Test only the leading vehicle's front tires are powered."""
        config = VehicleConfig()
        tires = build_tires(config, VehicleRole.LEADING, vehicle_id=3)

        powered = {t.position for t in tires if t.connected_to_engine}
        steered = {t.position for t in tires if t.turns}
        assert powered == {TirePosition.FRONT_LEFT, TirePosition.FRONT_RIGHT}
        assert steered == powered
        assert all(t.vehicle_id == 3 for t in tires)
        assert all(t.grip == config.starting_tire_grip for t in tires)

        trailer_tires = build_tires(get_preset("trailer"), VehicleRole.FOLLOWING, vehicle_id=4)
        assert not any(t.connected_to_engine or t.turns for t in trailer_tires)

    def test_tire_mount_points(self):
        """Test tire positions relative to the body."""
        config = VehicleConfig(wheelbase=1.5, wheel_offset=-0.5, height=0.6, width=1.0)
        tires = {t.position: t for t in build_tires(config, VehicleRole.LEADING, 0)}

        front_left = tires[TirePosition.FRONT_LEFT].local_transform.translation
        rear_right = tires[TirePosition.REAR_RIGHT].local_transform.translation
        assert np.allclose(front_left, [1.0, -0.1, -1.1])
        assert np.allclose(rear_right, [-2.0, -0.1, 1.1])

    def test_mass_defaults_to_collider_mass(self):
        """Test vehicle mass default."""
        config = VehicleConfig()
        vehicle = Vehicle(vehicle_id=0, config=config)
        assert vehicle.mass == pytest.approx(config.collider_mass())

    def test_sync_mass(self):
        """Test only collider-derived masses follow geometry edits."""
        config = VehicleConfig(height=0.5, width=0.5, length=0.5)
        derived = Vehicle(vehicle_id=0, config=config)
        given = Vehicle(vehicle_id=1, config=config, mass=3.0)

        config.update(length=1.0)

        assert derived.sync_mass() == pytest.approx(2.0)
        assert given.sync_mass() == 3.0
        assert not given.mass_from_collider

    def test_grip_is_clamped(self):
        """Test tire grip stays inside [0, 1]."""
        tire = Tire(tire_id=0, vehicle_id=0, position=TirePosition.FRONT_LEFT, grip=1.5)
        assert tire.grip == 1.0

        assert tire.set_grip(-0.2) == 0.0
        assert tire.set_grip(0.4) == 0.4

    def test_sample_clamps_edited_grip(self):
        """Test a grip written straight to the attribute is clamped when sampled."""
        vehicle = Vehicle(vehicle_id=0, config=VehicleConfig())
        tire = build_tires(vehicle.config, VehicleRole.LEADING, 0)[0]
        tire.grip = 3.0

        sample = TireSample.take(
            vehicle, tire, vehicle.config, tick=0,
            point_velocity=vec3(), num_tires=4, num_driven_tires=2,
        )

        assert sample.grip == 1.0

    def test_velocity_at_point_includes_rotation(self):
        """Test rigid-body point velocity."""
        vehicle = Vehicle(
            vehicle_id=0,
            config=VehicleConfig(),
            linear_velocity=vec3(1.0, 0.0, 0.0),
            angular_velocity=vec3(0.0, 1.0, 0.0),
        )
        velocity = vehicle.velocity_at_point(vec3(1.0, 0.0, 0.0))
        assert np.allclose(velocity, [1.0, 0.0, -1.0])

    def test_tire_world_transform(self):
        """Test tire pose follows the vehicle."""
        vehicle = Vehicle(
            vehicle_id=0,
            config=VehicleConfig(),
            transform=Transform(
                translation=vec3(10.0, 1.0, 0.0),
                rotation=quat_from_axis_angle(Y_AXIS, math.pi / 2.0),
            ),
        )
        tire = Tire(tire_id=0, vehicle_id=0, position=TirePosition.FRONT_LEFT,
                    local_transform=Transform.from_xyz(1.0, 0.0, 0.0))

        world = tire.world_transform(vehicle)
        assert np.allclose(world.translation, [10.0, 1.0, -1.0])
        assert np.allclose(world.drive_axis(), [0.0, 0.0, -1.0])


class TestSuspension:
    """Test spring-damper model."""

    def test_formula(self):
        """Test magnitude is (offset - d) * k - v * c."""
        assert suspension_force_magnitude(1.0, 0.4, 300.0, 0.0, 45.0) == pytest.approx(180.0)
        assert suspension_force_magnitude(1.0, 0.4, 300.0, 2.0, 45.0) == pytest.approx(90.0)

    def test_sign_flip(self):
        """Test force turns negative once the tire extends quickly enough."""
        compressed = suspension_force_magnitude(1.0, 0.5, 100.0, 0.0, 10.0)
        rest = suspension_force_magnitude(1.0, 1.0, 100.0, 0.0, 10.0)
        extending = suspension_force_magnitude(1.0, 1.0, 100.0, 1.0, 10.0)

        assert compressed > 0.0
        assert rest == 0.0
        assert extending < 0.0

    def test_contribution_along_up_axis(self):
        """Test contribution direction and point."""
        config = VehicleConfig(spring_offset=1.0, spring_power=100.0, shock=10.0)
        sample = make_sample(config, distance=0.75)

        contribution = Suspension().contribute(sample)

        assert Suspension().compression(sample) == pytest.approx(0.25)
        assert contribution.source is ForceSource.SUSPENSION
        assert np.allclose(contribution.force, [0.0, 25.0, 0.0])
        assert np.allclose(contribution.point, sample.point)

    def test_airborne_emits_nothing(self):
        """Test no contribution without ground contact."""
        assert Suspension().contribute(make_sample(distance=None)) is None


class TestDrivetrain:
    """Test power curve and drive force."""

    def test_curve_segments(self):
        """Test representative values of each segment."""
        assert power_curve(-0.1) == 0.5
        assert power_curve(0.0) == pytest.approx(-math.log10(0.3))
        assert power_curve(0.5) == 1.0
        assert power_curve(1.0) == pytest.approx(0.6)
        assert power_curve(1.0001) == 0.0
        assert power_curve(5.0) == 0.0

    def test_curve_continuity(self):
        """Test the curve has no jumps at its segment boundaries."""
        eps = 1e-9
        assert power_curve(0.4 - eps) == pytest.approx(power_curve(0.4), abs=1e-6)
        assert power_curve(0.698 + eps) == pytest.approx(power_curve(0.698), abs=1e-3)

    def test_speed_ratio_non_driven(self):
        """Test zero max speed disables the drivetrain."""
        assert speed_ratio(10.0, 0.0) is None
        assert speed_ratio(10.0, -5.0) is None
        assert speed_ratio(10.0, 50.0) == pytest.approx(0.2)
        assert available_force(10.0, 0.0, 100.0) == 0.0
        assert available_force(30.0, 50.0, 100.0) == pytest.approx(100.0)

    def test_full_throttle_from_rest(self):
        """Test drive force at standstill with full throttle."""
        config = VehicleConfig(max_force=100.0)
        sample = make_sample(config, throttle=1.0)

        contribution = Drivetrain().contribute(sample)

        assert contribution.magnitude == pytest.approx(100.0 * -math.log10(0.3))
        assert np.allclose(contribution.force / contribution.magnitude, [1.0, 0.0, 0.0])

    def test_reverse_throttle(self):
        """Test negative throttle pushes backwards."""
        sample = make_sample(VehicleConfig(max_force=100.0), throttle=-0.5)
        contribution = Drivetrain().contribute(sample)
        assert contribution.force[0] < 0.0

    def test_follows_steered_tire(self):
        """Test force follows the tire yaw."""
        rotation = quat_from_axis_angle(Y_AXIS, math.pi / 2.0)
        sample = make_sample(VehicleConfig(max_force=100.0), throttle=1.0, rotation=rotation)

        contribution = Drivetrain().contribute(sample)
        direction = contribution.force / contribution.magnitude

        assert np.allclose(direction, [0.0, 0.0, -1.0])

    def test_skips_undriven_airborne_and_trailer(self):
        """Test drive force only at driven, grounded tires of a driven vehicle."""
        drivetrain = Drivetrain()
        assert drivetrain.contribute(make_sample(connected_to_engine=False, throttle=1.0)) is None
        assert drivetrain.contribute(make_sample(distance=None, throttle=1.0)) is None
        trailer = get_preset("trailer")
        assert drivetrain.contribute(make_sample(trailer, throttle=1.0)) is None


class TestFriction:
    """Test slip friction model."""

    def test_magnitude(self):
        """Test magnitude is mass share times mu times g."""
        assert friction_magnitude(10.0, 2, FrictionConfig()) == pytest.approx(10.0 / 2 * 0.5 * 9.81)
        assert friction_magnitude(10.0, 0, FrictionConfig()) == 0.0

    def test_opposes_forward_motion(self):
        """Test friction points against the rolling direction."""
        sample = make_sample(point_velocity=(5.0, 0.0, 0.0), mass=10.0, num_driven_tires=2)

        contribution = Friction().contribute(sample)

        assert np.allclose(contribution.force, [-10.0 / 2 * 0.5 * 9.81, 0.0, 0.0])

    def test_opposes_reverse_motion(self):
        """Test friction flips sign when rolling backwards."""
        sample = make_sample(point_velocity=(-5.0, 0.0, 0.0))
        assert Friction().contribute(sample).force[0] > 0.0

    def test_requires_motion_and_drive(self):
        """Test no friction at rest, on undriven or airborne tires."""
        friction = Friction()
        assert friction.contribute(make_sample()) is None
        moving = (1.0, 0.0, 0.0)
        assert friction.contribute(make_sample(point_velocity=moving, connected_to_engine=False)) is None
        assert friction.contribute(make_sample(point_velocity=moving, distance=None)) is None


class TestCornering:
    """Test lateral grip model."""

    def test_zero_grip_is_exactly_zero(self):
        """Test drift-class tires produce no lateral force."""
        sample = make_sample(point_velocity=(0.0, 0.0, 3.0), grip=0.0)

        contribution = Cornering().contribute(sample)

        assert np.all(contribution.force == 0.0)

    def test_full_grip_resists_sliding(self):
        """Test force opposes lateral velocity and scales with it."""
        cornering = Cornering()
        slow = cornering.contribute(make_sample(point_velocity=(0.0, 0.0, 1.0), grip=1.0))
        fast = cornering.contribute(make_sample(point_velocity=(0.0, 0.0, 2.0), grip=1.0))

        # Sliding toward +Z (right); force pushes back toward -Z
        assert slow.force[2] < 0.0
        assert fast.magnitude == pytest.approx(2.0 * slow.magnitude)
        assert slow.magnitude == pytest.approx(1.0 * 60.0 * 10.0 / 4)

    def test_rate_is_tunable(self):
        """Test the rate constant scales the force."""
        assert cornering_force_magnitude(1.0, 1.0, 10.0, 4, rate_hz=120.0) == pytest.approx(-300.0)

    def test_airborne_emits_nothing(self):
        """Test no lateral force without ground contact."""
        assert Cornering().contribute(make_sample(distance=None)) is None


class TestSteering:
    """Test steering actuator."""

    def test_angle_clamped(self):
        """Test input is clamped before scaling."""
        assert steer_angle(2.0, 0.4) == pytest.approx(0.4)
        assert steer_angle(-0.5, 0.4) == pytest.approx(-0.2)

    def test_actuate_turns_only_steered_tires(self):
        """Test positive input yaws steered tires to the left."""
        config = VehicleConfig(turn_radius=0.4)
        tires = build_tires(config, VehicleRole.LEADING, 0)

        turned = Steering().actuate(tires, config, 1.0)

        assert turned == 2
        for tire in tires:
            drive = tire.local_transform.drive_axis()
            if tire.turns:
                assert np.allclose(drive, [math.cos(0.4), 0.0, -math.sin(0.4)])
            else:
                assert np.allclose(drive, [1.0, 0.0, 0.0])

    def test_center_restores_heading(self):
        """Test zero input straightens the tires."""
        config = VehicleConfig()
        tires = build_tires(config, VehicleRole.LEADING, 0)
        steering = Steering()

        steering.actuate(tires, config, -1.0)
        steering.actuate(tires, config, 0.0)

        assert all(np.allclose(t.local_transform.rotation, [1.0, 0.0, 0.0, 0.0]) for t in tires)
