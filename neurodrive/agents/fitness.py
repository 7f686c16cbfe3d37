from __future__ import annotations

import math

from pydantic import BaseModel, Field

# Bonus per unit of "facing the next checkpoint".
DIRECTION_BONUS = 200.0
DISTANCE_WEIGHT = 0.3
# Scale of the approach term (distance at which it halves).
APPROACH_SCALE = 50.0
WRONG_WAY_THRESHOLD = -0.3


class FitnessWeights(BaseModel):
    """Reward shaping weights used by the simulation to score a run."""

    checkpoint_weight: float = Field(default=1000.0, ge=0)
    approach_weight: float = Field(default=500.0, ge=0)
    speed_weight: float = Field(default=50.0, ge=0)
    exploration_weight: float = Field(default=0.0, ge=0)
    stuck_penalty: float = Field(default=50.0, ge=0)
    wrong_way_penalty: float = Field(default=100.0, ge=0)
    lap_bonus: float = Field(default=100_000.0, ge=0)


class DrivingStats(BaseModel):
    """Accumulated per-run statistics the fitness is computed from."""

    laps: int = 0
    checkpoints_passed: int = 0
    min_distance_to_next_checkpoint: float = math.inf
    checkpoint_dir_x: float = 0.0
    total_distance: float = 0.0
    avg_speed: float = 0.0
    zones_visited: int = 0
    stuck_counter: int = 0


def compute_fitness(stats: DrivingStats, weights: FitnessWeights) -> float:
    score = stats.laps * weights.lap_bonus
    score += stats.checkpoints_passed * weights.checkpoint_weight

    min_dist = stats.min_distance_to_next_checkpoint
    if 0 < min_dist < math.inf:
        score += weights.approach_weight / (1 + min_dist / APPROACH_SCALE)

    score += max(0.0, stats.checkpoint_dir_x) * DIRECTION_BONUS
    score += stats.total_distance * DISTANCE_WEIGHT
    score += stats.avg_speed * weights.speed_weight
    score += stats.zones_visited * weights.exploration_weight

    score -= stats.stuck_counter * weights.stuck_penalty
    if stats.checkpoint_dir_x < WRONG_WAY_THRESHOLD:
        score -= weights.wrong_way_penalty * abs(stats.checkpoint_dir_x)
    return score
