from pathlib import Path
import numpy as np
import pytest
from ballistic_walk.anthropometry import Anthropometry, derive_params
from ballistic_walk.simulate import initial_state
from ballistic_walk.utils import DEFAULT_CONFIG

ROOT = Path(__file__).resolve().parents[1]

# q1, q2, q3 [deg], u1, u2, u3 [deg/s]
REFERENCE_STATE_DEG = [14.0, -14.0, -60.0, -50.0, 250.0, -150.0]


@pytest.fixture(scope="session")
def config_path():
    return ROOT / DEFAULT_CONFIG


@pytest.fixture(scope="session")
def params():
    return derive_params(Anthropometry())


@pytest.fixture
def x0():
    return initial_state(REFERENCE_STATE_DEG)


@pytest.fixture
def random_states():
    rng = np.random.default_rng(0)
    q = rng.uniform(-np.pi / 2, np.pi / 2, size=(20, 3))
    u = rng.uniform(-5.0, 5.0, size=(20, 3))
    return np.hstack([q, u])
