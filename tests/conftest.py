from __future__ import annotations

import numpy as np
import pytest

from neurodrive.agents.agent import Agent
from neurodrive.agents.models import BehaviorDescriptor, StartPose, TerminalState
from neurodrive.evolution.config import EvolutionConfig


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(1234)


@pytest.fixture
def make_config():
    """Factory for small engine configs; keyword sections override defaults."""

    def _make(**sections) -> EvolutionConfig:
        data = {
            "seed": 7,
            "network": {"hidden_size": 5, "sensor_count": 3},
            "genetic": {"population_size": 8, "elitism": 2},
        }
        for name, values in sections.items():
            if isinstance(values, dict):
                data.setdefault(name, {}).update(values)
            else:
                data[name] = values
        return EvolutionConfig.from_dict(data)

    return _make


@pytest.fixture
def make_terminal():
    def _make(
        fitness: float = 0.0,
        x: float = 0.0,
        y: float = 0.0,
        checkpoints: int = 0,
        distance: float = 0.0,
        laps: int = 0,
        best_lap_time: float = float("inf"),
    ) -> TerminalState:
        return TerminalState(
            fitness=fitness,
            laps=laps,
            best_lap_time=best_lap_time,
            behavior=BehaviorDescriptor(
                final_x=x,
                final_y=y,
                checkpoints_passed=checkpoints,
                total_distance=distance,
            ),
        )

    return _make


@pytest.fixture
def finish_all(make_terminal):
    """Drive every agent of a population to a terminal state."""

    def _finish(population: list[Agent], fitnesses=None, **behavior) -> None:
        if fitnesses is None:
            fitnesses = range(len(population))
        for agent, fitness in zip(population, fitnesses):
            agent.finish(make_terminal(fitness=float(fitness), **behavior))

    return _finish


@pytest.fixture
def start_pose() -> StartPose:
    return StartPose(x=10.0, y=20.0, angle=0.5)


@pytest.fixture
def warnings_logged():
    """Messages of every loguru WARNING (or worse) emitted during the test."""
    from loguru import logger

    messages: list[str] = []
    handler_id = logger.add(lambda m: messages.append(m.record["message"]), level="WARNING")
    yield messages
    logger.remove(handler_id)
