import numpy as np
import pytest

from distributions.benchmarks import get_reference_model


@pytest.fixture
def hiv_model():
    return get_reference_model("hiv_art")


@pytest.fixture
def mono_matrix():
    return np.array([
        [0.721, 0.202, 0.067, 0.010],
        [0.000, 0.581, 0.407, 0.012],
        [0.000, 0.000, 0.750, 0.250],
        [0.000, 0.000, 0.000, 1.000],
    ])


@pytest.fixture
def mono_costs():
    return np.array([5034.0, 5330.0, 11285.0, 0.0])


@pytest.fixture
def life_years():
    return np.array([1.0, 1.0, 1.0, 0.0])


@pytest.fixture
def z0():
    return np.array([1000.0, 0.0, 0.0, 0.0])


@pytest.fixture
def random_matrix():
    """A dense 5-state stochastic matrix with state 4 absorbing."""
    rng = np.random.default_rng(2024)
    m = rng.dirichlet(np.ones(5), size=5)
    m[4] = [0.0, 0.0, 0.0, 0.0, 1.0]
    return m
