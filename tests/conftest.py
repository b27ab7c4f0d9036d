import pytest

from rectpartition.EngineSettings import settings


@pytest.fixture(autouse=True)
def default_settings():
    """Every test starts from the default engine settings."""
    settings.reset_to_defaults()
    yield
    settings.reset_to_defaults()


@pytest.fixture
def square():
    return [(0, 0), (0, 2), (2, 2), (2, 0), (0, 0)]


@pytest.fixture
def ring():
    """3x3 square with its centre removed."""
    return [
        [(0, 0), (0, 3), (3, 3), (3, 0), (0, 0)],
        [(1, 1), (1, 2), (2, 2), (2, 1), (1, 1)],
    ]


@pytest.fixture
def plus_shape():
    return [
        (1, 0), (2, 0), (2, 1), (3, 1), (3, 2), (2, 2),
        (2, 3), (1, 3), (1, 2), (0, 2), (0, 1), (1, 1), (1, 0)
    ]


@pytest.fixture
def l_shape():
    return [(0, 0), (0, 2), (2, 2), (2, 1), (1, 1), (1, 0), (0, 0)]


@pytest.fixture
def u_shape():
    return [(0, 0), (0, 2), (3, 2), (3, 0), (2, 0), (2, 1), (1, 1), (1, 0), (0, 0)]


@pytest.fixture
def staircase():
    return [(0, 0), (0, 3), (3, 3), (3, 2), (2, 2), (2, 1), (1, 1), (1, 0), (0, 0)]


@pytest.fixture
def comb():
    """Strip along the bottom with 20 unit teeth separated by unit gaps."""
    teeth = 20
    width = 2 * teeth - 1
    loop = [(0, 2), (width, 2)]
    for k in reversed(range(teeth)):
        loop += [(2 * k + 1, 0), (2 * k, 0)]
        if k:
            loop += [(2 * k, 1), (2 * k - 1, 1)]
    return loop
