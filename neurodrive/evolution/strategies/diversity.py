from __future__ import annotations

from itertools import combinations

from loguru import logger

from neurodrive.agents.agent import Agent
from neurodrive.evolution.config import SharingConfig
from neurodrive.evolution.strategies.novelty import behavior_distance

# Diversity is measured on a bounded prefix of the population.
DIVERSITY_SAMPLE = 20


class DiversityMetrics:
    """Fitness sharing and an observational population diversity measure."""

    def __init__(self, sharing: SharingConfig):
        self.sharing = sharing

    def apply_fitness_sharing(self, agents: list[Agent]) -> None:
        """Divide each agent's fitness by its niche count.

        ``shared = fitness / (1 + sum(1 - d / sigma))`` over every other agent
        whose behavior lies within ``sigma``.
        """
        if not self.sharing.enabled:
            return

        sigma = self.sharing.sigma
        behaviors = [agent.behavior for agent in agents]
        for i, agent in enumerate(agents):
            sharing_sum = 0.0
            for j, other in enumerate(behaviors):
                if i == j:
                    continue
                distance = behavior_distance(behaviors[i], other)
                if distance < sigma:
                    sharing_sum += 1 - distance / sigma
            agent.shared_fitness = agent.fitness / (1 + sharing_sum)

        logger.debug(
            "[DiversityMetrics] Shared fitness applied to {} agents (sigma={})",
            len(agents),
            sigma,
        )

    def calculate_diversity(self, agents: list[Agent]) -> float:
        """Average pairwise behavior distance over the first 20 agents."""
        sample = [agent.behavior for agent in agents[:DIVERSITY_SAMPLE]]
        if len(sample) < 2:
            return 0.0
        distances = [behavior_distance(a, b) for a, b in combinations(sample, 2)]
        return sum(distances) / len(distances)
