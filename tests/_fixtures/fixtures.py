import pytest

from tests._fixtures.factories import set_factory_seed
from tests._fixtures.helpers import make_bars, make_random_walk_bars


# Central deterministic seed fixture for all tests (Polyfactory + numeric libs)
@pytest.fixture(scope="session", autouse=True)
def factory_seed():
    """
    Seed Faker, Polyfactory, Python `random` and `numpy.random` once per session.

    Returns:
        int: The seed value used (42).
    """
    seed = 42
    set_factory_seed(seed)
    return seed


@pytest.fixture
def rising_bars():
    """Six bars with strictly increasing closes 1..6."""
    return make_bars([1.0, 2.0, 3.0, 4.0, 5.0, 6.0])


@pytest.fixture
def flat_bars():
    """Thirty bars with constant close and constant volume."""
    return make_bars([100.0] * 30, volumes=[1000.0] * 30)


@pytest.fixture
def random_walk_bars():
    return make_random_walk_bars(n=120, seed=42)
