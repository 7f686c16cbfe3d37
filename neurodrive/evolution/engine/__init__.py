from __future__ import annotations

from neurodrive.evolution.config import (
    AdaptiveConfig,
    EvolutionConfig,
    GeneticConfig,
    NetworkConfig,
    NoveltyConfig,
    SharingConfig,
)
from neurodrive.evolution.engine.core import EvolutionEngine
from neurodrive.evolution.engine.metrics import EngineMetrics, GenerationStats

__all__ = [
    "AdaptiveConfig",
    "EngineMetrics",
    "EvolutionConfig",
    "EvolutionEngine",
    "GenerationStats",
    "GeneticConfig",
    "NetworkConfig",
    "NoveltyConfig",
    "SharingConfig",
]
