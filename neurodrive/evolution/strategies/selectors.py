from __future__ import annotations

import numpy as np
from loguru import logger

from neurodrive.agents.agent import Agent
from neurodrive.evolution.strategies.scoring import ScoringStrategy
from neurodrive.exceptions import EmptyPopulationError


class TournamentSelector:
    """Tournament with replacement over an elite pool."""

    def __init__(self, tournament_size: int = 4):
        if tournament_size < 1:
            raise ValueError(
                f"tournament_size must be at least 1, got {tournament_size}"
            )
        self.tournament_size = tournament_size

    def __call__(
        self,
        elite: list[Agent],
        strategy: ScoringStrategy,
        rng: np.random.Generator,
    ) -> Agent:
        if not elite:
            raise EmptyPopulationError("Tournament over an empty elite pool")

        size = min(self.tournament_size, len(elite))
        picks = rng.integers(0, len(elite), size=size)
        candidates = [elite[i] for i in picks]
        # max() keeps the first of equally scored candidates
        winner = max(candidates, key=strategy.score)
        logger.debug(
            "[TournamentSelector] {} candidates -> winner score {:.3f}",
            size,
            strategy.score(winner),
        )
        return winner
