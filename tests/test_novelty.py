import pytest

from neurodrive.agents.models import BehaviorDescriptor
from neurodrive.evolution.strategies.novelty import (
    BOOTSTRAP_SIZE,
    EMPTY_ARCHIVE_NOVELTY,
    NoveltyArchive,
    behavior_distance,
)


def _behavior(x=0.0, y=0.0, checkpoints=0, distance=0.0) -> BehaviorDescriptor:
    return BehaviorDescriptor(
        final_x=x, final_y=y, checkpoints_passed=checkpoints, total_distance=distance
    )


def test_behavior_distance_weights():
    a = _behavior()
    b = _behavior(x=3.0, y=4.0, checkpoints=1, distance=10.0)
    assert behavior_distance(a, b) == pytest.approx(5.0 + 100.0 + 1.0)
    assert behavior_distance(b, a) == behavior_distance(a, b)
    assert behavior_distance(a, a) == 0.0


def test_empty_archive_novelty():
    archive = NoveltyArchive(archive_size=10, k_neighbors=3)
    assert archive.calculate_novelty(_behavior()) == EMPTY_ARCHIVE_NOVELTY


def test_novelty_is_mean_of_k_nearest():
    archive = NoveltyArchive(archive_size=10, k_neighbors=2)
    for x in (10.0, 20.0, 100.0):
        archive.maybe_add(_behavior(x=x), novelty=0.0)
    assert archive.calculate_novelty(_behavior()) == pytest.approx(15.0)


def test_k_larger_than_archive():
    archive = NoveltyArchive(archive_size=10, k_neighbors=15)
    archive.maybe_add(_behavior(x=10.0), novelty=0.0)
    archive.maybe_add(_behavior(x=30.0), novelty=0.0)
    assert archive.calculate_novelty(_behavior()) == pytest.approx(20.0)


def test_bootstrap_then_threshold():
    archive = NoveltyArchive(archive_size=100, k_neighbors=3)
    for i in range(BOOTSTRAP_SIZE):
        assert archive.maybe_add(_behavior(x=float(i)), novelty=0.0)
    assert len(archive) == BOOTSTRAP_SIZE

    assert not archive.maybe_add(_behavior(), novelty=10.0)
    assert not archive.maybe_add(_behavior(), novelty=50.0)
    assert archive.maybe_add(_behavior(), novelty=50.5)
    assert len(archive) == BOOTSTRAP_SIZE + 1


def test_fifo_eviction():
    archive = NoveltyArchive(archive_size=3, k_neighbors=1)
    for x in (1.0, 2.0, 3.0, 4.0):
        archive.maybe_add(_behavior(x=x), novelty=1000.0)
    assert len(archive) == 3
    assert [b.final_x for b in archive.behaviors] == [2.0, 3.0, 4.0]


def test_reset():
    archive = NoveltyArchive(archive_size=3, k_neighbors=1)
    archive.maybe_add(_behavior(), novelty=1000.0)
    archive.reset()
    assert len(archive) == 0


@pytest.mark.parametrize("size,k", [(0, 1), (1, 0)])
def test_invalid_bounds(size, k):
    with pytest.raises(ValueError):
        NoveltyArchive(archive_size=size, k_neighbors=k)
