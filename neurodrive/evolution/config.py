from __future__ import annotations

from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    computed_field,
    model_validator,
)

from neurodrive.agents.controls import OUTPUT_SIZE, input_size_for
from neurodrive.exceptions import ConfigurationError


class NetworkConfig(BaseModel):
    """Controller topology and the sensor layout that feeds it."""

    hidden_size: int = Field(default=14, ge=1, description="Hidden neurons")
    sensor_count: int = Field(default=7, ge=2, description="Ray sensors per car")
    sensor_range: float = Field(
        default=120.0, gt=0, description="Ray length in track units"
    )

    @computed_field
    @property
    def input_size(self) -> int:
        return input_size_for(self.sensor_count)

    @computed_field
    @property
    def output_size(self) -> int:
        return OUTPUT_SIZE

    @property
    def shape(self) -> tuple[int, int, int]:
        return (self.input_size, self.hidden_size, self.output_size)


class GeneticConfig(BaseModel):
    population_size: int = Field(default=50, ge=1, description="Agents per generation")
    mutation_rate: float = Field(
        default=0.15, ge=0, le=1, description="Base per-parameter mutation probability"
    )
    elitism: int = Field(
        default=3, ge=0, description="Elites copied unmodified into the next generation"
    )
    crossover_rate: float = Field(
        default=0.75, ge=0, le=1, description="Probability of crossover versus clone"
    )
    seed_fraction: float = Field(
        default=1.0,
        ge=0,
        le=1,
        description="Share of a new population seeded from the all-time best controller",
    )


class AdaptiveConfig(BaseModel):
    enabled: bool = Field(default=True, description="Boost mutation on stagnation")
    stagnation_threshold: int = Field(
        default=5, ge=1, description="Generations without improvement for a full boost"
    )
    mutation_boost: float = Field(
        default=0.30, ge=0, le=1, description="Maximum additional mutation rate"
    )


class NoveltyConfig(BaseModel):
    enabled: bool = Field(default=False, description="Rank by fitness and novelty")
    weight: float = Field(
        default=0.5, ge=0, le=1, description="0 = pure fitness, 1 = pure novelty"
    )
    archive_size: int = Field(default=100, ge=1, description="Behavior archive bound")
    k_neighbors: int = Field(default=15, ge=1, description="Neighbors for novelty")


class SharingConfig(BaseModel):
    enabled: bool = Field(default=False, description="Apply fitness sharing")
    sigma: float = Field(default=50.0, gt=0, description="Niche radius")


class EvolutionConfig(BaseModel):
    """Everything the evolution engine and its strategies consume."""

    network: NetworkConfig = Field(default_factory=NetworkConfig)
    genetic: GeneticConfig = Field(default_factory=GeneticConfig)
    adaptive: AdaptiveConfig = Field(default_factory=AdaptiveConfig)
    novelty: NoveltyConfig = Field(default_factory=NoveltyConfig)
    sharing: SharingConfig = Field(default_factory=SharingConfig)
    seed: int | None = Field(
        default=None, description="Seed for the engine random stream (None = entropy)"
    )

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def _validate_elitism(self) -> EvolutionConfig:
        if self.genetic.elitism > self.genetic.population_size:
            raise ValueError(
                f"elitism ({self.genetic.elitism}) must not exceed "
                f"population_size ({self.genetic.population_size})"
            )
        return self

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None = None) -> EvolutionConfig:
        """Validate *data*, reporting any violation as ConfigurationError."""
        try:
            return cls.model_validate(data or {})
        except ValidationError as exc:
            raise ConfigurationError(str(exc)) from exc
