from __future__ import annotations

from collections import deque

import numpy as np
from loguru import logger

from neurodrive.agents.models import BehaviorDescriptor

# Distance weights are constants so novelty values stay comparable across runs.
POSITION_WEIGHT = 1.0
CHECKPOINT_WEIGHT = 100.0
DISTANCE_WEIGHT = 0.1

# Novelty reported against an empty archive.
EMPTY_ARCHIVE_NOVELTY = 1000.0
ADMISSION_THRESHOLD = 50.0
# Behaviors admitted unconditionally while the archive is this small.
BOOTSTRAP_SIZE = 10


def behavior_distance(b1: BehaviorDescriptor, b2: BehaviorDescriptor) -> float:
    """Weighted distance between two terminal behaviors."""
    position = np.hypot(b1.final_x - b2.final_x, b1.final_y - b2.final_y)
    checkpoints = abs(b1.checkpoints_passed - b2.checkpoints_passed)
    distance = abs(b1.total_distance - b2.total_distance)
    return float(
        position * POSITION_WEIGHT
        + checkpoints * CHECKPOINT_WEIGHT
        + distance * DISTANCE_WEIGHT
    )


class NoveltyArchive:
    """Bounded FIFO archive of previously seen behaviors.

    Grows until ``archive_size`` and then slides: each admission past the bound
    evicts the oldest entry, regardless of how novel it was.
    """

    def __init__(self, archive_size: int, k_neighbors: int):
        if archive_size < 1:
            raise ValueError(f"archive_size must be at least 1, got {archive_size}")
        if k_neighbors < 1:
            raise ValueError(f"k_neighbors must be at least 1, got {k_neighbors}")
        self.archive_size = archive_size
        self.k_neighbors = k_neighbors
        self._behaviors: deque[BehaviorDescriptor] = deque(maxlen=archive_size)

    def __len__(self) -> int:
        return len(self._behaviors)

    @property
    def behaviors(self) -> tuple[BehaviorDescriptor, ...]:
        """Archived behaviors, oldest first."""
        return tuple(self._behaviors)

    def calculate_novelty(self, behavior: BehaviorDescriptor) -> float:
        """Mean distance to the k nearest archived behaviors."""
        if not self._behaviors:
            return EMPTY_ARCHIVE_NOVELTY

        distances = sorted(behavior_distance(behavior, b) for b in self._behaviors)
        k = min(self.k_neighbors, len(distances))
        return sum(distances[:k]) / k

    def maybe_add(self, behavior: BehaviorDescriptor, novelty: float) -> bool:
        if novelty <= ADMISSION_THRESHOLD and len(self._behaviors) >= BOOTSTRAP_SIZE:
            return False

        if len(self._behaviors) == self.archive_size:
            logger.debug(
                "[NoveltyArchive] Full ({}), evicting oldest behavior",
                self.archive_size,
            )
        self._behaviors.append(behavior)
        logger.debug(
            "[NoveltyArchive] Admitted behavior (novelty={:.1f}, size={})",
            novelty,
            len(self._behaviors),
        )
        return True

    def reset(self) -> None:
        self._behaviors.clear()
