from __future__ import annotations

import math
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from neurodrive.agents.agent import Agent


class EngineMetrics(BaseModel):
    """Running counters of what the engine has done."""

    total_generations: int = Field(
        default=0, description="Total number of generations evolved"
    )
    elites_selected: int = Field(
        default=0, description="Total elites selected across all generations"
    )
    elites_copied: int = Field(
        default=0, description="Total elites copied unmodified"
    )
    children_crossover: int = Field(
        default=0, description="Children produced by crossover"
    )
    children_cloned: int = Field(
        default=0, description="Children produced by cloning a parent"
    )
    hypermutations: int = Field(
        default=0, description="Children that received a hypermutation pass"
    )
    archive_admissions: int = Field(
        default=0, description="Behaviors admitted to the novelty archive"
    )

    def record_reproduction_metrics(
        self, copied: int, crossover: int, cloned: int, hypermutated: int
    ) -> None:
        self.elites_copied += copied
        self.children_crossover += crossover
        self.children_cloned += cloned
        self.hypermutations += hypermutated

    def reset(self) -> None:
        for name in type(self).model_fields:
            setattr(self, name, 0)


class GenerationStats(BaseModel):
    """Read-only view of the engine for rendering and reporting."""

    generation: int
    alive: int
    best_fitness: float
    best_laps: int
    best_lap_time: float = math.inf
    diversity: float
    stagnation: int
    mutation_rate: float
    best_agent: Agent | None = None

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    def scalars(self) -> dict[str, Any]:
        """Numeric fields for metric trackers; the live agent count is left out."""
        return self.model_dump(exclude={"best_agent", "alive"})
