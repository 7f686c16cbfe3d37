import pytest

from neurodrive.evolution.config import EvolutionConfig
from neurodrive.exceptions import ConfigurationError


def test_defaults():
    config = EvolutionConfig()
    assert config.genetic.population_size == 50
    assert config.genetic.mutation_rate == 0.15
    assert config.genetic.elitism == 3
    assert config.genetic.crossover_rate == 0.75
    assert config.adaptive.enabled
    assert config.adaptive.stagnation_threshold == 5
    assert config.novelty.k_neighbors == 15
    assert not config.sharing.enabled
    assert config.network.shape == (10, 14, 4)


def test_from_dict_partial():
    config = EvolutionConfig.from_dict({"genetic": {"population_size": 20}})
    assert config.genetic.population_size == 20
    assert config.genetic.elitism == 3


def test_from_dict_none():
    assert EvolutionConfig.from_dict(None) == EvolutionConfig()


@pytest.mark.parametrize(
    "data",
    [
        {"genetic": {"population_size": 0}},
        {"genetic": {"mutation_rate": 1.5}},
        {"genetic": {"crossover_rate": -0.1}},
        {"genetic": {"population_size": 2, "elitism": 3}},
        {"novelty": {"weight": 2.0}},
        {"sharing": {"sigma": 0}},
        {"network": {"sensor_count": 1}},
        {"unknown_section": {}},
    ],
)
def test_invalid_configs(data):
    with pytest.raises(ConfigurationError):
        EvolutionConfig.from_dict(data)


def test_computed_sizes_serialised():
    dumped = EvolutionConfig().model_dump()
    assert dumped["network"]["input_size"] == 10
    assert dumped["network"]["output_size"] == 4
