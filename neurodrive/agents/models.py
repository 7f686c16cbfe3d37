from __future__ import annotations

import math

from pydantic import BaseModel, ConfigDict, Field


class BehaviorDescriptor(BaseModel):
    """Compact summary of where and how an agent ended its run."""

    final_x: float = Field(description="X coordinate at terminal state")
    final_y: float = Field(description="Y coordinate at terminal state")
    checkpoints_passed: int = Field(
        default=0, ge=0, description="Checkpoints crossed in the right direction"
    )
    total_distance: float = Field(
        default=0.0, ge=0, description="Path length driven during the run"
    )
    avg_speed: float = Field(default=0.0, ge=0, description="Mean non-zero speed")

    model_config = ConfigDict(frozen=True)


class TerminalState(BaseModel):
    """Read-only outcome the simulation hands over once an agent stops."""

    fitness: float = Field(description="Raw fitness computed by the simulation")
    laps: int = Field(default=0, ge=0, description="Completed laps")
    best_lap_time: float = Field(
        default=math.inf,
        gt=0,
        description="Fastest lap in frames (inf when no lap was completed)",
    )
    behavior: BehaviorDescriptor

    model_config = ConfigDict(frozen=True)


class StartPose(BaseModel):
    """Track start handed through to freshly created agents."""

    x: float = 0.0
    y: float = 0.0
    angle: float = 0.0

    model_config = ConfigDict(frozen=True)
