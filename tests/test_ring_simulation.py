import math

import pytest

from neurodrive.agents.agent import Agent
from neurodrive.controller import Controller
from neurodrive.evolution.engine import EvolutionEngine
from neurodrive.runner import TrainingRunner
from neurodrive.simulation import RingTrackConfig, RingTrackSimulation


@pytest.fixture
def simulation():
    return RingTrackSimulation(RingTrackConfig(sensor_count=3, max_frames=200))


def test_start_pose_is_mid_lane(simulation):
    pose = simulation.start_pose
    assert pose.x == pytest.approx(150.0 + 55.0 / 2)
    assert pose.y == 0.0
    assert pose.angle == pytest.approx(math.pi / 2)


def test_ray_lengths_hit_walls(simulation):
    mid = 177.5
    assert simulation._ray_length(mid, 0.0, 0.0) == pytest.approx(27.5)
    assert simulation._ray_length(mid, 0.0, math.pi) == pytest.approx(27.5)
    assert simulation._ray_length(mid, 0.0, math.pi / 2) == pytest.approx(
        math.sqrt(205.0**2 - mid**2)
    )


def test_ray_length_capped_by_range():
    simulation = RingTrackSimulation(RingTrackConfig(sensor_range=10.0))
    assert simulation._ray_length(177.5, 0.0, 0.0) == pytest.approx(10.0)


def test_generation_ends_with_every_agent_terminal(simulation, rng):
    agents = [Agent(Controller(6, 5, 4, rng=rng)) for _ in range(6)]
    simulation.run_generation(agents)
    for agent in agents:
        assert not agent.alive
        assert math.isfinite(agent.fitness)
        assert agent.behavior.total_distance >= 0


def test_trains_end_to_end(make_config):
    engine = EvolutionEngine(make_config())
    simulation = RingTrackSimulation(RingTrackConfig(sensor_count=3, max_frames=100))
    history = TrainingRunner(engine, simulation, max_generations=2).run()
    assert len(history) == 2
    assert engine.all_time_best is not None
