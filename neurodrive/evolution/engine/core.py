from __future__ import annotations

import math

import numpy as np
from loguru import logger

from neurodrive.agents.agent import Agent
from neurodrive.agents.models import StartPose
from neurodrive.controller.network import Controller
from neurodrive.evolution.config import EvolutionConfig
from neurodrive.evolution.engine.metrics import EngineMetrics, GenerationStats
from neurodrive.evolution.strategies.diversity import DiversityMetrics
from neurodrive.evolution.strategies.novelty import NoveltyArchive
from neurodrive.evolution.strategies.scoring import ScoringStrategy, combined_score
from neurodrive.evolution.strategies.selectors import TournamentSelector
from neurodrive.exceptions import EmptyPopulationError, EvolutionError

__all__ = ["EvolutionEngine"]

# Elite pool: top quarter of the population, never fewer than four.
MIN_ELITE = 4
ELITE_FRACTION = 0.25
# Improvement below 1% over last generation's best counts as stagnation.
STAGNATION_TOLERANCE = 1.01
MAX_MUTATION_RATE = 0.8
HYPERMUTATION_CHANCE = 0.1
HYPERMUTATION_RATE = 0.5


class EvolutionEngine:
    """
    Generational loop over a population of driving agents:
    - The external simulation runs every agent until it is terminal.
    - ``selection`` scores the generation and returns the elite pool.
    - ``evolve`` breeds the next population from that pool.
    All randomness comes from a single numpy Generator.
    """

    def __init__(
        self,
        config: EvolutionConfig,
        rng: np.random.Generator | None = None,
    ):
        self.config = config
        self.rng = rng if rng is not None else np.random.default_rng(config.seed)

        self.archive = NoveltyArchive(
            archive_size=config.novelty.archive_size,
            k_neighbors=config.novelty.k_neighbors,
        )
        self.diversity_metrics = DiversityMetrics(config.sharing)
        self.tournament = TournamentSelector()
        self.metrics = EngineMetrics()

        self.reset()

        logger.info(
            "[EvolutionEngine] Init | population={}, network={}, scoring={}",
            config.genetic.population_size,
            config.network.shape,
            self.strategy.value,
        )

    def reset(self) -> None:
        self.generation = 1
        self.best_fitness = 0.0
        self.best_laps = 0
        self.best_lap_time = math.inf
        self.best_controller: Controller | None = None
        self.all_time_best: Controller | None = None
        self.stagnation_counter = 0
        self.last_best_fitness = 0.0
        self.diversity = 0.0
        self.archive.reset()
        self.metrics.reset()
        self.strategy = ScoringStrategy.resolve(self.config)

    @property
    def population_size(self) -> int:
        return self.config.genetic.population_size

    @property
    def elite_count(self) -> int:
        return max(MIN_ELITE, math.floor(self.population_size * ELITE_FRACTION))

    def new_controller(self) -> Controller:
        return Controller(*self.config.network.shape, rng=self.rng)

    def seed(self, controller: Controller) -> None:
        """Install *controller* as the all-time best used to seed populations."""
        controller.check_shape(self.config.network.shape)
        self.all_time_best = controller.clone()
        self.best_controller = controller.clone()
        logger.info("[EvolutionEngine] Seeded with controller {}", controller.shape)

    # -------------------------- Population --------------------------

    def create_population(self, start: StartPose | None = None) -> list[Agent]:
        """Fresh population, optionally built around the all-time best.

        Seeded agents are clones of the best controller; every seeded agent but
        the first is mutated with a strength that grows with its index.
        """
        size = self.population_size
        seeded = 0
        if self.all_time_best is not None:
            seeded = math.ceil(size * self.config.genetic.seed_fraction)
        rate = self.get_current_mutation_rate()

        agents = []
        for i in range(size):
            if i < seeded:
                controller = self.all_time_best.clone()
                if i > 0:
                    controller.mutate(rate * (0.5 + i / size), self.rng)
            else:
                controller = self.new_controller()
            agents.append(Agent(controller, start))

        logger.info(
            "[EvolutionEngine] Population created | size={}, seeded={}",
            size,
            seeded,
        )
        return agents

    def get_current_mutation_rate(self) -> float:
        rate = self.config.genetic.mutation_rate
        adaptive = self.config.adaptive
        if adaptive.enabled:
            boost = min(self.stagnation_counter / adaptive.stagnation_threshold, 1)
            rate += boost * adaptive.mutation_boost
        return min(max(rate, 0.0), MAX_MUTATION_RATE)

    # -------------------------- Selection --------------------------

    def _apply_novelty(self, agents: list[Agent]) -> None:
        weight = self.config.novelty.weight
        for agent in agents:
            agent.novelty = self.archive.calculate_novelty(agent.behavior)
            agent.combined_score = combined_score(agent.fitness, agent.novelty, weight)

    def selection(self, population: list[Agent]) -> list[Agent]:
        if not population:
            raise EmptyPopulationError("Cannot select from an empty population")
        running = sum(1 for agent in population if agent.alive)
        if running:
            raise EvolutionError(
                f"{running} agent(s) have not reached a terminal state"
            )

        self.diversity_metrics.apply_fitness_sharing(population)
        if self.config.novelty.enabled:
            self._apply_novelty(population)
        self.diversity = self.diversity_metrics.calculate_diversity(population)

        ranked = self.strategy.rank(population)
        best = ranked[0]
        best_fitness = best.fitness

        if best_fitness <= self.last_best_fitness * STAGNATION_TOLERANCE:
            self.stagnation_counter += 1
        else:
            self.stagnation_counter = 0
        self.last_best_fitness = best_fitness

        if self.all_time_best is None or best_fitness >= self.best_fitness:
            self.best_fitness = max(self.best_fitness, best_fitness)
            self.all_time_best = best.controller.clone()
            self.best_controller = best.controller.clone()
        if best.laps > self.best_laps:
            self.best_laps = best.laps
        if best.best_lap_time < self.best_lap_time:
            self.best_lap_time = best.best_lap_time

        if self.config.novelty.enabled and self.archive.maybe_add(
            best.behavior, best.novelty
        ):
            self.metrics.archive_admissions += 1

        elite = ranked[: self.elite_count]
        self.metrics.elites_selected += len(elite)
        logger.info(
            "[EvolutionEngine] Generation {} selected | best={:.1f}, record={:.1f}, "
            "elite={}, stagnation={}, diversity={:.1f}",
            self.generation,
            best_fitness,
            self.best_fitness,
            len(elite),
            self.stagnation_counter,
            self.diversity,
        )
        return elite

    def tournament_select(self, elite: list[Agent]) -> Agent:
        return self.tournament(elite, self.strategy, self.rng)

    # -------------------------- Reproduction --------------------------

    def evolve(
        self, population: list[Agent], start: StartPose | None = None
    ) -> list[Agent]:
        elite = self.selection(population)
        genetic = self.config.genetic

        new_population = [
            Agent(agent.controller.clone(), start)
            for agent in elite[: genetic.elitism]
        ]
        copied = len(new_population)

        rate = self.get_current_mutation_rate()
        hypermutate = (
            self.stagnation_counter > self.config.adaptive.stagnation_threshold * 2
        )
        crossed = cloned = hypermutated = 0

        while len(new_population) < genetic.population_size:
            parent1 = self.tournament_select(elite)
            parent2 = self.tournament_select(elite)

            if self.rng.random() < genetic.crossover_rate:
                child = Controller.crossover(
                    parent1.controller, parent2.controller, self.rng
                )
                crossed += 1
            else:
                child = parent1.controller.clone()
                cloned += 1

            child.mutate(rate, self.rng)

            if hypermutate and self.rng.random() < HYPERMUTATION_CHANCE:
                child.mutate(HYPERMUTATION_RATE, self.rng)
                hypermutated += 1

            new_population.append(Agent(child, start))

        self.metrics.record_reproduction_metrics(copied, crossed, cloned, hypermutated)
        self.metrics.total_generations += 1
        self.generation += 1

        logger.info(
            "[EvolutionEngine] Generation {} bred | elites={}, crossover={}, "
            "clones={}, hypermutated={}, mutation_rate={:.3f}",
            self.generation,
            copied,
            crossed,
            cloned,
            hypermutated,
            rate,
        )
        return new_population

    # -------------------------- Queries --------------------------

    @staticmethod
    def all_dead(population: list[Agent]) -> bool:
        return all(not agent.alive for agent in population)

    def stats(self, population: list[Agent]) -> GenerationStats:
        alive = [agent for agent in population if agent.alive]
        best_agent = max(alive, key=lambda a: a.fitness) if alive else None
        return GenerationStats(
            generation=self.generation,
            alive=len(alive),
            best_fitness=self.best_fitness,
            best_laps=self.best_laps,
            best_lap_time=self.best_lap_time,
            diversity=self.diversity,
            stagnation=self.stagnation_counter,
            mutation_rate=self.get_current_mutation_rate(),
            best_agent=best_agent,
        )
