from __future__ import annotations

from pathlib import Path

from loguru import logger

from neurodrive.agents.agent import Agent
from neurodrive.agents.controls import input_size_for
from neurodrive.evolution.engine.core import EvolutionEngine
from neurodrive.evolution.engine.metrics import GenerationStats
from neurodrive.exceptions import EvolutionError
from neurodrive.persistence.model_io import save_model, snapshot_engine
from neurodrive.simulation.base import Simulation
from neurodrive.utils.trackers import LogWriter, NullWriter


class TrainingRunner:
    """Alternates simulation and evolution until the generation cap.

    Selection and reproduction run only once the simulation has brought every
    agent of the generation to a terminal state.
    """

    def __init__(
        self,
        engine: EvolutionEngine,
        simulation: Simulation,
        writer: LogWriter | None = None,
        max_generations: int | None = None,
        checkpoint_path: str | Path | None = None,
        checkpoint_every: int = 10,
    ) -> None:
        if max_generations is not None and max_generations < 1:
            raise ValueError(f"max_generations must be positive, got {max_generations}")
        if checkpoint_every < 1:
            raise ValueError(f"checkpoint_every must be positive, got {checkpoint_every}")
        expected_inputs = engine.config.network.input_size
        if input_size_for(simulation.sensor_count) != expected_inputs:
            raise EvolutionError(
                f"Simulation provides {simulation.sensor_count} sensors "
                f"({input_size_for(simulation.sensor_count)} inputs) but the "
                f"network expects {expected_inputs} inputs"
            )
        self.engine = engine
        self.simulation = simulation
        self.writer = writer or NullWriter()
        self.max_generations = max_generations
        self.checkpoint_path = Path(checkpoint_path) if checkpoint_path else None
        self.checkpoint_every = checkpoint_every
        self.population: list[Agent] = []
        self.history: list[GenerationStats] = []

    def _reached_generation_cap(self, completed: int) -> bool:
        return self.max_generations is not None and completed >= self.max_generations

    def _report(self, population: list[Agent], generation: int) -> GenerationStats:
        """Stats for the finished *generation*, with the records its selection set."""
        stats = self.engine.stats(population).model_copy(
            update={
                "generation": generation,
                "best_agent": max(population, key=lambda a: a.fitness),
            }
        )
        self.writer.scalars(stats.scalars(), generation)
        self.writer.hist("fitness", [agent.fitness for agent in population], generation)
        self.history.append(stats)
        return stats

    def _checkpoint(self) -> None:
        if self.checkpoint_path is None:
            return
        save_model(snapshot_engine(self.engine), self.checkpoint_path)

    def run_generation(self) -> GenerationStats:
        """Simulate the current population, breed the next one, report."""
        start = self.simulation.start_pose
        if not self.population:
            self.population = self.engine.create_population(start)

        self.simulation.run_generation(self.population)
        if not self.engine.all_dead(self.population):
            raise EvolutionError("Simulation returned with agents still running")

        generation = self.engine.generation
        next_population = self.engine.evolve(self.population, start)
        stats = self._report(self.population, generation)
        self.population = next_population
        return stats

    def run(self) -> list[GenerationStats]:
        logger.info(
            "[TrainingRunner] Start | max_generations={}",
            self.max_generations or "unlimited",
        )
        completed = 0
        try:
            while not self._reached_generation_cap(completed):
                stats = self.run_generation()
                completed += 1
                logger.info(
                    "[TrainingRunner] Generation {} done | best={:.1f}, laps={}, "
                    "stagnation={}, mutation={:.0%}, diversity={:.1f}",
                    stats.generation,
                    stats.best_fitness,
                    stats.best_laps,
                    stats.stagnation,
                    stats.mutation_rate,
                    stats.diversity,
                )
                if completed % self.checkpoint_every == 0:
                    self._checkpoint()
        except KeyboardInterrupt:
            logger.info("[TrainingRunner] Interrupted by user")
        finally:
            if completed % self.checkpoint_every:
                self._checkpoint()
            logger.info("[TrainingRunner] Stopped after {} generation(s)", completed)
        return self.history
