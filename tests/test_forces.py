"""Tests for the force aggregator."""

import logging

import pytest
import numpy as np

from rigsim.core.contribution import ForceContribution, ForceSource
from rigsim.core.transform import Transform, vec3
from rigsim.errors import PipelineOrderError, StaleContributionError
from rigsim.simulation.forces import ForceAggregator
from rigsim.vehicle.config import VehicleConfig
from rigsim.vehicle.vehicle import ExternalForce, Vehicle


def make_vehicles():
    return {
        0: Vehicle(vehicle_id=0, config=VehicleConfig(), transform=Transform.from_xyz(1.0, 2.0, 3.0)),
        1: Vehicle(vehicle_id=1, config=VehicleConfig()),
    }


def contribution(vehicle_id=0, point=(0.0, 0.0, 0.0), force=(0.0, 1.0, 0.0), tick=0,
                 source=ForceSource.SUSPENSION):
    return ForceContribution(
        vehicle_id=vehicle_id,
        point=np.array(point, dtype=float),
        force=np.array(force, dtype=float),
        source=source,
        tick=tick,
    )


class TestForceAggregator:
    """Test per-tick aggregation."""

    def test_net_force_and_torque(self):
        """Test force sum and torque about the vehicle translation."""
        vehicles = make_vehicles()
        aggregator = ForceAggregator()
        aggregator.begin_tick(0, vehicles.keys())

        aggregator.submit(contribution(point=(2.0, 2.0, 3.0), force=(0.0, 10.0, 0.0)))
        aggregator.submit(contribution(point=(1.0, 2.0, 3.0), force=(5.0, 0.0, 0.0)))
        results = aggregator.aggregate(vehicles)

        assert np.allclose(results[0].force, [5.0, 10.0, 0.0])
        # (1, 0, 0) x (0, 10, 0)
        assert np.allclose(results[0].torque, [0.0, 0.0, 10.0])
        assert vehicles[0].external_force is results[0]
        assert aggregator.is_sealed

    def test_empty_vehicle_gets_exact_zero(self):
        """Test zero contributions give exactly zero force and torque."""
        vehicles = make_vehicles()
        vehicles[1].external_force.force = vec3(7.0, 7.0, 7.0)
        aggregator = ForceAggregator()
        aggregator.begin_tick(0, vehicles.keys())

        results = aggregator.aggregate(vehicles)

        assert np.array_equal(results[1].force, np.zeros(3))
        assert np.array_equal(results[1].torque, np.zeros(3))
        assert vehicles[1].external_force.is_zero()

    def test_order_independent(self):
        """Test permuting contributions gives bit-identical results."""
        rng = np.random.default_rng(7)
        items = [
            contribution(point=rng.normal(size=3) * 3.0, force=rng.normal(size=3) * 1e4)
            for _ in range(50)
        ]

        outcomes = []
        for seed in range(5):
            order = np.random.default_rng(seed).permutation(len(items))
            vehicles = make_vehicles()
            aggregator = ForceAggregator()
            aggregator.begin_tick(0, vehicles.keys())
            for index in order:
                aggregator.submit(items[index])
            outcomes.append(aggregator.aggregate(vehicles)[0])

        for outcome in outcomes[1:]:
            assert np.array_equal(outcome.force, outcomes[0].force)
            assert np.array_equal(outcome.torque, outcomes[0].torque)

    def test_begin_tick_clears(self):
        """Test contributions do not leak into the next tick."""
        vehicles = make_vehicles()
        aggregator = ForceAggregator()
        aggregator.begin_tick(0, vehicles.keys())
        aggregator.submit(contribution())
        aggregator.aggregate(vehicles)

        aggregator.begin_tick(1, vehicles.keys())
        results = aggregator.aggregate(vehicles)

        assert results[0].is_zero()

    def test_wrong_tick_rejected(self):
        """Test stale contributions raise."""
        aggregator = ForceAggregator()
        aggregator.begin_tick(3, [0])

        with pytest.raises(StaleContributionError):
            aggregator.submit(contribution(tick=2))

    def test_sealed_tick_rejected(self):
        """Test submissions after aggregation raise."""
        vehicles = make_vehicles()
        aggregator = ForceAggregator()
        aggregator.begin_tick(0, vehicles.keys())
        aggregator.aggregate(vehicles)

        with pytest.raises(StaleContributionError):
            aggregator.submit(contribution())

    def test_before_first_tick_rejected(self):
        """Test nothing is accepted before begin_tick."""
        aggregator = ForceAggregator()

        with pytest.raises(StaleContributionError):
            aggregator.submit(contribution())
        with pytest.raises(PipelineOrderError):
            aggregator.aggregate(make_vehicles())

    def test_unknown_vehicle_rejected(self):
        """Test contributions for vehicles outside the tick raise."""
        aggregator = ForceAggregator()
        aggregator.begin_tick(0, [0])

        with pytest.raises(StaleContributionError):
            aggregator.submit(contribution(vehicle_id=9))

    def test_non_finite_dropped(self, caplog):
        """Test NaN contributions are dropped and logged."""
        vehicles = make_vehicles()
        aggregator = ForceAggregator()
        aggregator.begin_tick(0, vehicles.keys())

        with caplog.at_level(logging.ERROR, logger="rigsim.simulation.forces"):
            stored = aggregator.submit(contribution(force=(np.nan, 0.0, 0.0)))
        results = aggregator.aggregate(vehicles)

        assert stored is False
        assert aggregator.dropped_count == 1
        assert "non-finite" in caplog.text
        assert results[0].is_zero()

    def test_submit_all_skips_none(self):
        """Test None entries from inactive models are ignored."""
        aggregator = ForceAggregator()
        aggregator.begin_tick(0, [0])

        stored = aggregator.submit_all([None, contribution(), None, contribution()])

        assert stored == 2
        assert len(aggregator.contributions_for(0)) == 2

    def test_single_contribution_matches_point_force(self):
        """Test one contribution equals the force applied at its point."""
        vehicles = make_vehicles()
        aggregator = ForceAggregator()
        aggregator.begin_tick(0, vehicles.keys())
        aggregator.submit(contribution(point=(0.0, 1.0, 5.0), force=(3.0, -2.0, 1.0)))

        result = aggregator.aggregate(vehicles)[0]
        expected = ExternalForce.at_point(
            vec3(3.0, -2.0, 1.0), vec3(0.0, 1.0, 5.0), vehicles[0].center_of_mass
        )

        assert np.allclose(result.force, expected.force)
        assert np.allclose(result.torque, expected.torque)
