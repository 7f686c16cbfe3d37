import numpy as np
import pytest

from neurodrive.agents.agent import Agent
from neurodrive.agents.models import BehaviorDescriptor, StartPose, TerminalState
from neurodrive.evolution.engine import EvolutionEngine
from neurodrive.exceptions import EvolutionError
from neurodrive.persistence import load_model
from neurodrive.runner import TrainingRunner
from neurodrive.simulation.base import Simulation
from neurodrive.utils.trackers import LogWriter


class ScriptedSimulation(Simulation):
    """Scores each agent by its controller's response to a fixed input."""

    def __init__(self, sensors: int = 3, finish: bool = True):
        self.sensors = sensors
        self.finish = finish
        self.generations = 0

    @property
    def start_pose(self) -> StartPose:
        return StartPose(x=1.0, y=2.0, angle=0.0)

    @property
    def sensor_count(self) -> int:
        return self.sensors

    def run_generation(self, agents: list[Agent]) -> None:
        self.generations += 1
        if not self.finish:
            return
        inputs = np.ones(self.sensors + 3)
        for agent in agents:
            out = agent.controller.predict(inputs)
            fitness = float(100 * (out[0] + 1))
            agent.finish(
                TerminalState(
                    fitness=fitness,
                    behavior=BehaviorDescriptor(final_x=out[1], final_y=out[2]),
                )
            )


class RecordingWriter(LogWriter):
    def __init__(self):
        self.scalar_calls = []
        self.hist_calls = []
        self.closed = False

    def scalar(self, metric, value, step):
        self.scalar_calls.append((metric, value, step))

    def hist(self, metric, values, step):
        self.hist_calls.append((metric, len(values), step))

    def text(self, tag, text, step):
        pass

    def close(self):
        self.closed = True


@pytest.fixture
def engine(make_config):
    return EvolutionEngine(make_config())


def test_runs_until_generation_cap(engine, tmp_path):
    simulation = ScriptedSimulation()
    writer = RecordingWriter()
    runner = TrainingRunner(
        engine,
        simulation,
        writer=writer,
        max_generations=3,
        checkpoint_path=tmp_path / "best.json",
        checkpoint_every=2,
    )
    history = runner.run()

    assert len(history) == 3
    assert simulation.generations == 3
    assert engine.generation == 4
    assert [stats.generation for stats in history] == [1, 2, 3]
    assert all(stats.best_agent is not None for stats in history)
    assert all(stats.best_agent.fitness <= engine.best_fitness for stats in history)
    assert all(agent.alive for agent in runner.population)
    assert all(agent.start == simulation.start_pose for agent in runner.population)

    steps = {step for _, _, step in writer.scalar_calls}
    assert steps == {1, 2, 3}
    metrics = {metric for metric, _, _ in writer.scalar_calls}
    assert "best_fitness" in metrics
    assert "alive" not in metrics
    assert len(writer.hist_calls) == 3

    saved = load_model(tmp_path / "best.json")
    assert saved.generation == 4
    assert saved.best_fitness == engine.best_fitness


def test_best_fitness_never_decreases(engine):
    history = TrainingRunner(engine, ScriptedSimulation(), max_generations=5).run()
    records = [stats.best_fitness for stats in history]
    assert records == sorted(records)


def test_sensor_mismatch(engine):
    with pytest.raises(EvolutionError):
        TrainingRunner(engine, ScriptedSimulation(sensors=5))


def test_unfinished_generation(engine):
    runner = TrainingRunner(engine, ScriptedSimulation(finish=False), max_generations=1)
    with pytest.raises(EvolutionError):
        runner.run_generation()
    assert engine.generation == 1


@pytest.mark.parametrize("kwargs", [{"max_generations": 0}, {"checkpoint_every": 0}])
def test_invalid_arguments(engine, kwargs):
    with pytest.raises(ValueError):
        TrainingRunner(engine, ScriptedSimulation(), **kwargs)
