"""Translation between driving state, controller inputs and driving actions.

Controllers use tanh, so every output lies in [-1, 1]. The four outputs are
read as ``[accelerate, brake, left, right]``; the action is the difference of
each opposing pair, giving throttle and steering in [-2, 2] where positive
means "go forward" and "turn right".
"""

from __future__ import annotations

from typing import Sequence

import numpy as np
from pydantic import BaseModel, ConfigDict

# accelerate, brake, left, right
OUTPUT_SIZE = 4
# speed + checkpoint direction (x, y)
EXTRA_INPUTS = 3


class DrivingAction(BaseModel):
    throttle: float
    steering: float

    model_config = ConfigDict(frozen=True)


def input_size_for(sensor_count: int) -> int:
    return sensor_count + EXTRA_INPUTS


def build_inputs(
    sensor_readings: Sequence[float],
    speed: float,
    max_speed: float,
    checkpoint_dir: tuple[float, float],
) -> np.ndarray:
    """Assemble ``[*sensors, speed / max_speed, dir_x, dir_y]``."""
    normalized_speed = speed / max_speed if max_speed > 0 else 0.0
    return np.array(
        [*sensor_readings, normalized_speed, checkpoint_dir[0], checkpoint_dir[1]],
        dtype=np.float64,
    )


def decode_actions(outputs: Sequence[float] | np.ndarray) -> DrivingAction:
    if len(outputs) != OUTPUT_SIZE:
        raise ValueError(f"Expected {OUTPUT_SIZE} outputs, got {len(outputs)}")
    accelerate, brake, left, right = (float(v) for v in outputs)
    return DrivingAction(throttle=accelerate - brake, steering=right - left)
