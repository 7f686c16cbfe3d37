from __future__ import annotations

from enum import Enum

from neurodrive.agents.agent import Agent
from neurodrive.evolution.config import EvolutionConfig

# Fixed divisors that bring fitness and novelty onto comparable scales.
FITNESS_NORMALIZER = 10_000.0
NOVELTY_NORMALIZER = 500.0


def combined_score(fitness: float, novelty: float, weight: float) -> float:
    return (1 - weight) * (fitness / FITNESS_NORMALIZER) + weight * (
        novelty / NOVELTY_NORMALIZER
    )


class ScoringStrategy(Enum):
    """Ranking key used for one generation's selection and tournaments."""

    FITNESS = "fitness"
    SHARED_FITNESS = "shared_fitness"
    COMBINED = "combined_score"

    @classmethod
    def resolve(cls, config: EvolutionConfig) -> ScoringStrategy:
        """Novelty search takes precedence over sharing, sharing over raw fitness."""
        if config.novelty.enabled:
            return cls.COMBINED
        if config.sharing.enabled:
            return cls.SHARED_FITNESS
        return cls.FITNESS

    def score(self, agent: Agent) -> float:
        if self is ScoringStrategy.FITNESS:
            return agent.fitness
        return getattr(agent, self.value)

    def rank(self, agents: list[Agent]) -> list[Agent]:
        """Descending by score; equal scores keep population order."""
        return sorted(agents, key=self.score, reverse=True)
